"""bcl — bicycle record keeper CLI."""

__version__ = "0.3.0"
