"""SSE stream parsing and content sanitizing."""

from .line_parser import StreamLineParser
from .sanitizer import clean

__all__ = [
    "StreamLineParser",
    "clean",
]
