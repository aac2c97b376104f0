"""
Author import pipeline orchestration.

Coordinates the flow: line source → parser → normalizer → batcher → sink,
in a single sequential pass with at most one bulk insert in flight.
"""

import gc
import logging
from enum import Enum
from pathlib import Path

from author_import.core.config import ImporterConfig
from author_import.core.errors import (
    BatchSubmitError,
    MalformedLineError,
    PayloadDecodeError,
    SourceFileNotFoundError,
)
from author_import.core.models import Batch, RawLine, RunStats
from author_import.core.normalizer import AuthorNormalizer
from author_import.observability import metrics
from author_import.observability.logger import get_logger
from author_import.observability.progress import ProgressReporter
from author_import.utils.validation import validate_batch_size

from .batcher import Batcher
from .readers import LineSource, RecordParser
from .writers import AuthorSink, BulkAuthorWriter


logger = get_logger(__name__)


class PipelineState(str, Enum):
    """Lifecycle of one run."""

    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    DONE = "done"
    FAILED = "failed"


class AuthorImportPipeline:
    """
    Orchestrates one import of an author dump.

    Flow:
    1. Open the dump (a missing or unreadable file aborts the run)
    2. Parse each non-blank line into its five columns
    3. Skip rows that are not authors
    4. Normalize author rows into AuthorCreate
    5. Batch authors and bulk insert each full batch
    6. Flush the final partial batch and report totals

    Malformed lines, undecodable payloads and failed batches are counted
    and logged; none of them stops the run.
    """

    def __init__(
        self,
        sink: AuthorSink,
        config: ImporterConfig | None = None,
        reporter: ProgressReporter | None = None,
        log: logging.Logger | None = None,
    ):
        """
        Initialize author import pipeline.

        Args:
            sink: Store receiving bulk inserts
            config: Importer settings (defaults if None)
            reporter: Progress reporter (built from config if None)
            log: Logger instance (uses module logger if None)
        """
        self.config = config or ImporterConfig()
        self.logger = log or logger
        self.parser = RecordParser(author_type=self.config.author_type)
        self.normalizer = AuthorNormalizer(
            key_prefix=self.config.key_prefix,
            link_origin=self.config.link_origin,
            image_url_template=self.config.image_url_template,
        )
        self.writer = BulkAuthorWriter(
            sink,
            retry_per_record=self.config.retry_failed_batch_per_record,
            source_id=self.config.source_id,
        )
        self.reporter = reporter or ProgressReporter(
            interval_seconds=self.config.report_interval_seconds,
            source_id=self.config.source_id,
        )
        self.state = PipelineState.IDLE
        self._stats: RunStats | None = None

    def run(self, file_path: str | Path) -> RunStats:
        """
        Import every author of a dump file.

        Args:
            file_path: Path to the tab-separated dump

        Returns:
            RunStats with the totals of the run

        Raises:
            SourceFileNotFoundError: If the file cannot be opened; nothing
                has been processed in that case
        """
        stats = RunStats(source_path=str(file_path), started_monotonic=self.reporter.clock())
        self._stats = stats

        try:
            source = LineSource(file_path, buffer_size=self.config.read_buffer_bytes)
        except SourceFileNotFoundError:
            self.state = PipelineState.FAILED
            self.logger.error(f"Cannot open source file: {file_path}", extra={"source_path": str(file_path)})
            raise

        self.state = PipelineState.RUNNING
        self.logger.info(
            f"Importing authors from {source.path} with batch size {self.config.batch_size}",
            extra={"source_path": str(source.path), "batch_size": self.config.batch_size},
        )
        self.reporter.start(stats)

        batcher = Batcher(self.config.batch_size, self._flush)
        for raw_line in source:
            self._process_line(raw_line, batcher, stats)
            self.reporter.tick(stats)

        self.state = PipelineState.DRAINING
        batcher.drain()

        stats.finished_monotonic = self.reporter.clock()
        self.state = PipelineState.DONE
        self.reporter.report_final(stats)
        return stats

    def _process_line(self, raw_line: RawLine, batcher: Batcher, stats: RunStats) -> None:
        if not raw_line.text.strip():
            stats.blank_lines += 1
            return

        stats.lines_seen += 1

        try:
            record = self.parser.parse(raw_line)
        except MalformedLineError as e:
            stats.malformed += 1
            metrics.record_line_outcome(self.config.source_id, "malformed")
            self.logger.warning(
                f"Line {e.line_number} has fewer than 5 fields",
                extra={"line_number": e.line_number, "field_count": e.field_count},
            )
            return

        if not self.parser.is_author(record):
            stats.non_author_skipped += 1
            metrics.record_line_outcome(self.config.source_id, "non_author")
            return

        try:
            author = self.normalizer.normalize(record, raw_line.line_number)
        except PayloadDecodeError as e:
            stats.records_errored += 1
            metrics.record_line_outcome(self.config.source_id, "error")
            self.logger.error(
                f"Error parsing author data at line {e.line_number}: {e.cause}",
                extra={"line_number": e.line_number, "key": record.key},
            )
            return

        stats.records_normalized += 1
        batcher.add(author)

    def _flush(self, batch: Batch) -> None:
        """Submit one batch and attribute every member to an outcome."""
        stats = self._stats
        stats.batches_flushed += 1
        source_id = self.config.source_id

        try:
            inserted = self.writer.submit(batch)
        except BatchSubmitError as e:
            stats.batches_failed += 1
            duplicates = e.batch_size - e.inserted_count - e.failed_count
            stats.records_imported += e.inserted_count
            stats.duplicates_skipped += duplicates
            stats.records_errored += e.failed_count
            metrics.record_line_outcome(source_id, "imported", e.inserted_count)
            metrics.record_line_outcome(source_id, "duplicate", duplicates)
            metrics.record_line_outcome(source_id, "error", e.failed_count)
            self.logger.error(
                f"Error importing batch {batch.batch_number}: {e.cause}",
                extra={
                    "batch_number": batch.batch_number,
                    "batch_size": batch.size,
                    "inserted": e.inserted_count,
                    "failed": e.failed_count,
                },
            )
        else:
            duplicates = batch.size - inserted
            stats.records_imported += inserted
            stats.duplicates_skipped += duplicates
            metrics.record_line_outcome(source_id, "imported", inserted)
            metrics.record_line_outcome(source_id, "duplicate", duplicates)
            self.logger.info(
                f"Batch {batch.batch_number} completed. Imported {inserted} records.",
                extra={
                    "batch_number": batch.batch_number,
                    "batch_size": batch.size,
                    "inserted": inserted,
                    "duplicates": duplicates,
                },
            )

        if self.config.collect_garbage:
            gc.collect()


def import_authors(
    file_path: str | Path,
    sink: AuthorSink,
    batch_size: int | None = None,
    config: ImporterConfig | None = None,
) -> RunStats:
    """
    Run one author import.

    Args:
        file_path: Path to the tab-separated dump
        sink: Store receiving bulk inserts
        batch_size: Overrides config.batch_size when given
        config: Importer settings (defaults if None)

    Returns:
        RunStats of the completed run

    Raises:
        SourceFileNotFoundError: If the file cannot be opened
        ValidationError: If batch_size is out of range
    """
    config = config or ImporterConfig()
    if batch_size is not None:
        config = config.model_copy(update={"batch_size": validate_batch_size(batch_size)})
    return AuthorImportPipeline(sink, config).run(file_path)
