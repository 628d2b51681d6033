"""Item service with a primary store mirrored into a search index."""

__version__ = "0.1.0"
