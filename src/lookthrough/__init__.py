"""Look-through exposure engine."""

__version__ = "0.1.0"
