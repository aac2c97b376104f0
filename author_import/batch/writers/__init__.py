"""
Batch writers.
"""

from .author_writer import AuthorSink, BulkAuthorWriter

__all__ = [
    "AuthorSink",
    "BulkAuthorWriter",
]
