"""Date field mapping for document indexes."""

__version__ = "0.1.0"
