"""pdf-qa — paragraph retrieval over embedded PDF documents."""

__version__ = "0.1.0"
