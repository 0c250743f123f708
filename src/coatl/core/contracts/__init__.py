"""
Coatl contracts: the CTL token, its ICO and the team vesting manager.

Import contracts from their modules, e.g.
``from coatl.core.contracts.token import CoatlToken``.
"""

__all__ = []
