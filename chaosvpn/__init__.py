"""Building blocks for a tinc VPN client: addresses, archives, crypto, HTTP, files, settings and processes."""

__version__ = "0.1.0"