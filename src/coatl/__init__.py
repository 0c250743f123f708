"""
Coatl - Token, ICO and Vesting Contracts

In-process implementation of the Coatl contract suite:

Main Components:
- Token: fee-bearing fungible ledger with pause and blacklist/whitelist controls
- ICO: oracle-priced token sale with soft/hard caps and refunds
- Vesting: cliff-gated linear release schedules for founders and contributors
- VM: serialized, atomic executor that runs the contracts

See DESIGN.md for the module map and design decisions.
"""

__version__ = "0.1.0"
__author__ = "Coatl Development Team"

__all__ = []
