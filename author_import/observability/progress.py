"""
Interval progress and final summary reporting for an import run.

The reporter only observes RunStats; it never changes pipeline control flow.
"""

import logging
import time
from typing import Callable

from author_import.core.models import RunStats
from author_import.utils.memory import format_bytes, get_memory_usage, get_rss_bytes

from . import metrics
from .logger import get_logger


class ProgressReporter:
    """
    Emits throughput and memory telemetry on a wall-clock interval.

    The rate is lines seen since the previous report divided by the seconds
    elapsed since it.
    """

    def __init__(
        self,
        interval_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
        memory_probe: Callable[[], int] = get_rss_bytes,
        memory_summary: Callable[[], str] = get_memory_usage,
        logger: logging.Logger | None = None,
        source_id: str = "openlibrary_authors",
    ):
        """
        Initialize progress reporter.

        Args:
            interval_seconds: Minimum seconds between two progress reports
            clock: Monotonic clock returning seconds
            memory_probe: Returns current process memory in bytes
            memory_summary: Returns a one-line memory description for start and end logs
            logger: Logger instance (uses module logger if None)
            source_id: Label for metrics and log fields
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.interval_seconds = interval_seconds
        self.clock = clock
        self.memory_probe = memory_probe
        self.memory_summary = memory_summary
        self.logger = logger or get_logger(__name__)
        self.source_id = source_id
        self.reports_emitted = 0
        self._last_report_time = clock()
        self._last_report_lines = 0

    def start(self, stats: RunStats) -> None:
        """Reset the interval window and log the starting memory footprint."""
        self._last_report_time = self.clock()
        self._last_report_lines = stats.lines_seen
        self.reports_emitted = 0
        rss = self._sample_memory()
        self.logger.info(
            f"Import started: {stats.source_path}",
            extra={"source_path": stats.source_path, "rss_bytes": rss, "rss": format_bytes(rss)},
        )
        self.logger.info(self.memory_summary(), extra={"phase": "start"})

    def tick(self, stats: RunStats) -> bool:
        """
        Report progress if the interval has elapsed.

        Returns:
            True if a report was emitted
        """
        now = self.clock()
        elapsed = now - self._last_report_time
        if elapsed < self.interval_seconds:
            return False

        processed = stats.lines_seen - self._last_report_lines
        rate = processed / elapsed if elapsed > 0 else 0.0
        rss = self._sample_memory()
        metrics.set_gauge(metrics.throughput_lines_per_second, rate, source_id=self.source_id)

        self.logger.info(
            f"Processing rate: {round(rate)} lines/sec | RSS: {format_bytes(rss)} | "
            f"Imported: {stats.records_imported}, Errors: {stats.records_errored}",
            extra={
                "lines_per_second": round(rate, 2),
                "lines_seen": stats.lines_seen,
                "imported": stats.records_imported,
                "errors": stats.records_errored,
                "batches": stats.batches_flushed,
                "rss_bytes": rss,
            },
        )

        self._last_report_time = now
        self._last_report_lines = stats.lines_seen
        self.reports_emitted += 1
        return True

    def report_final(self, stats: RunStats) -> dict:
        """
        Log the final totals of a run.

        Returns:
            The summary dictionary that was logged
        """
        summary = stats.summary()
        rss = self._sample_memory()
        summary["rss_bytes"] = rss

        self.logger.info(
            f"Import completed: {summary['total_lines']} lines, "
            f"{summary['imported']} imported, {summary['errors']} errors, "
            f"{summary['batches']} batches in {summary['elapsed_seconds']:.2f}s "
            f"({summary['average_rate']:.2f} lines/sec) | RSS: {format_bytes(rss)}",
            extra=summary,
        )
        self.logger.info(self.memory_summary(), extra={"phase": "end"})
        if not stats.is_balanced():
            self.logger.warning(
                "Line accounting mismatch",
                extra={"lines_seen": stats.lines_seen, "accounted": stats.accounted_lines()},
            )
        return summary

    def _sample_memory(self) -> int:
        rss = self.memory_probe()
        metrics.set_gauge(metrics.memory_usage_bytes, rss, component="importer")
        return rss
