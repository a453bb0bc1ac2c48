"""Account and destination registry stored in MySQL and served over HTTP."""

__version__ = "0.1.0"
__all__ = ["__version__"]