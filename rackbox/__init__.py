"""RackBox: warehouse rack inventory tracking."""

__version__ = "0.1.0"
