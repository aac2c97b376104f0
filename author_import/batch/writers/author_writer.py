"""
Bulk author writer: the boundary between the pipeline and the store.

Duplicates are skipped by the store. Any other sink error fails the whole
batch unless per-author retry is enabled.
"""

import logging
from typing import Protocol

from author_import.core.errors import BatchSubmitError
from author_import.core.models import AuthorCreate, Batch, BulkInsertResult
from author_import.observability import metrics
from author_import.observability.logger import get_logger


class AuthorSink(Protocol):
    """
    Store that accepts authors in bulk.

    bulk_insert must skip authors whose olid already exists instead of
    failing, and report only the rows actually written.
    """

    def bulk_insert(self, authors: list[AuthorCreate]) -> BulkInsertResult:
        ...


class BulkAuthorWriter:
    """
    Submits batches to an AuthorSink, one call in flight at a time.
    """

    def __init__(
        self,
        sink: AuthorSink,
        retry_per_record: bool = False,
        source_id: str = "openlibrary_authors",
        logger: logging.Logger | None = None,
    ):
        """
        Initialize bulk author writer.

        Args:
            sink: Store accepting bulk inserts
            retry_per_record: Resubmit a failed batch one author at a time
            source_id: Label for metrics
            logger: Logger instance (uses module logger if None)
        """
        self.sink = sink
        self.retry_per_record = retry_per_record
        self.source_id = source_id
        self.logger = logger or get_logger(__name__)

    def submit(self, batch: Batch) -> int:
        """
        Insert a batch.

        Args:
            batch: Batch to insert

        Returns:
            Number of authors written (at most batch.size)

        Raises:
            BatchSubmitError: If the sink rejected the batch
        """
        if batch.size == 0:
            return 0

        try:
            inserted = self._insert(batch.authors)
        except Exception as e:
            metrics.record_batch(self.source_id, batch.size, success=False)
            if self.retry_per_record:
                self.logger.warning(
                    f"Batch {batch.batch_number} failed, retrying {batch.size} authors individually: {e}",
                    extra={"batch_number": batch.batch_number, "batch_size": batch.size},
                )
                self._retry_individually(batch, e)
            raise BatchSubmitError(batch.batch_number, batch.size, str(e)) from e

        metrics.record_batch(self.source_id, batch.size, success=True)
        return inserted

    def _insert(self, authors: list[AuthorCreate]) -> int:
        with metrics.track_duration(metrics.bulk_write_duration_seconds, source_id=self.source_id):
            result = self.sink.bulk_insert(authors)
        if result.inserted_count > len(authors):
            raise ValueError(
                f"sink reported {result.inserted_count} inserted rows for {len(authors)} authors"
            )
        return result.inserted_count

    def _retry_individually(self, batch: Batch, batch_error: Exception) -> None:
        """
        Resubmit each author of a failed batch on its own.

        Raises:
            BatchSubmitError: Always, carrying the per-author outcome
        """
        inserted = 0
        failed = 0
        for author in batch.authors:
            try:
                inserted += self._insert([author])
            except Exception as e:
                failed += 1
                self.logger.error(
                    f"Author {author.olid} failed on retry: {e}",
                    extra={"olid": author.olid, "batch_number": batch.batch_number},
                )

        raise BatchSubmitError(
            batch.batch_number,
            batch.size,
            str(batch_error),
            inserted_count=inserted,
            failed_count=failed,
        ) from batch_error
