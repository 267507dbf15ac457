"""Interview session network store and protocol installation reconciler."""

__version__ = "0.1.0"
