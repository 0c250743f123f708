"""
Coatl Core Module

Core functionality for the Coatl contracts including:
- Contract execution runtime (vm)
- Token, ICO and vesting contracts
- Price feed integration
- Configuration, units and logging

This package contains the fundamental building blocks of the Coatl suite.
"""

__all__ = []
