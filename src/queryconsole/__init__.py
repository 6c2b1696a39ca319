"""Query console editing core: version history, AI modifications, dirty tracking."""

__all__ = ["__version__"]

__version__ = "0.3.0"
