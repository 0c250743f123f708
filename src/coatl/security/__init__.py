"""Account access lists for Coatl contracts."""

from .address_filter import AddressFilter

__all__ = ["AddressFilter"]
