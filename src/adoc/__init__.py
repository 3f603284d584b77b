"""Apple developer documentation crawler."""

__version__ = "0.1.0"
