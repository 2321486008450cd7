"""A minimal DHCP server that hands a single address to a single client."""

__version__ = "0.1"