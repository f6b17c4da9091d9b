"""ligi: tag index and query engine for markdown knowledge bases."""

__version__ = "0.3.0"
