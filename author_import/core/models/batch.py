"""
Batch and BulkInsertResult models exchanged with the sink.
"""

from pydantic import BaseModel, Field

from .author import AuthorCreate


class Batch(BaseModel):
    """
    Ordered group of authors submitted to the sink in one call.

    Attributes:
        batch_number: One-based sequence number within the run
        authors: Authors in arrival order
    """

    batch_number: int = Field(..., ge=1)
    authors: list[AuthorCreate] = Field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.authors)


class BulkInsertResult(BaseModel):
    """Sink acknowledgement; duplicates are skipped, not counted."""

    inserted_count: int = Field(..., ge=0)
