"""
RunStats model holding the counters of one import run.
"""

import time
from datetime import datetime

from pydantic import BaseModel, Field


class RunStats(BaseModel):
    """
    Monotonic counters for a single import run.

    Owned by the pipeline driver and passed explicitly to the components
    that report on it. Every non-blank line ends up in exactly one of
    imported, duplicates_skipped, errored, non_author_skipped or malformed.

    Attributes:
        source_path: File being imported
        lines_seen: Non-blank lines read from the source
        blank_lines: Whitespace-only lines (not records, outside the partition)
        malformed: Lines with fewer than five columns
        non_author_skipped: Well-formed rows of another record type
        records_normalized: Author rows turned into AuthorCreate
        records_imported: Rows the sink reported as inserted
        duplicates_skipped: Rows the sink skipped because the olid existed
        records_errored: Payload decode failures plus members of failed batches
        batches_flushed: Batches submitted to the sink
        batches_failed: Submitted batches that failed as a whole
        started_at: Wall-clock start of the run
        started_monotonic: Monotonic clock reading at start
        finished_monotonic: Monotonic clock reading at completion
    """

    source_path: str = ""
    lines_seen: int = 0
    blank_lines: int = 0
    malformed: int = 0
    non_author_skipped: int = 0
    records_normalized: int = 0
    records_imported: int = 0
    duplicates_skipped: int = 0
    records_errored: int = 0
    batches_flushed: int = 0
    batches_failed: int = 0
    started_at: datetime = Field(default_factory=datetime.utcnow)
    started_monotonic: float = Field(default_factory=time.monotonic)
    finished_monotonic: float | None = None

    def accounted_lines(self) -> int:
        """Lines attributed to a final outcome."""
        return (
            self.records_imported
            + self.duplicates_skipped
            + self.records_errored
            + self.non_author_skipped
            + self.malformed
        )

    def is_balanced(self) -> bool:
        """True when every line seen has exactly one outcome."""
        return self.accounted_lines() == self.lines_seen

    def elapsed_seconds(self, now: float | None = None) -> float:
        end = self.finished_monotonic if self.finished_monotonic is not None else now
        if end is None:
            end = time.monotonic()
        return max(end - self.started_monotonic, 0.0)

    def average_rate(self, now: float | None = None) -> float:
        """Lines per second over the whole run."""
        elapsed = self.elapsed_seconds(now)
        if elapsed <= 0:
            return 0.0
        return self.lines_seen / elapsed

    def summary(self) -> dict:
        return {
            "source_path": self.source_path,
            "total_lines": self.lines_seen,
            "imported": self.records_imported,
            "duplicates_skipped": self.duplicates_skipped,
            "errors": self.records_errored,
            "non_author_skipped": self.non_author_skipped,
            "malformed": self.malformed,
            "blank_lines": self.blank_lines,
            "batches": self.batches_flushed,
            "failed_batches": self.batches_failed,
            "elapsed_seconds": round(self.elapsed_seconds(), 2),
            "average_rate": round(self.average_rate(), 2),
        }
