"""devctl: background dev server management."""

__version__ = "1.0.0"
