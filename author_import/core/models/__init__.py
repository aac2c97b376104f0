"""
Core data models for the author import pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .author import Author, AuthorCreate, AuthorSearchParams, AuthorUpdate, Gender
from .batch import Batch, BulkInsertResult
from .parsed_record import ParsedRecord, RawLine
from .run_stats import RunStats

__all__ = [
    "RawLine",
    "ParsedRecord",
    "Gender",
    "AuthorCreate",
    "AuthorUpdate",
    "Author",
    "AuthorSearchParams",
    "Batch",
    "BulkInsertResult",
    "RunStats",
]
