"""Settings and book loading."""

from .loader import Book, Settings, load_book, load_settings

__all__ = ["Book", "Settings", "load_book", "load_settings"]
