"""
Prometheus metrics for author imports

All metrics live in a private registry, exposed over HTTP only when an import
is started with --metrics-port. Recording a metric never changes pipeline
behaviour.
"""
import os
import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
)

REGISTRY = CollectorRegistry()

LINE_OUTCOMES = ("imported", "duplicate", "error", "non_author", "malformed")


# Line accounting

lines_processed_total = Counter(
    name="author_import_lines_total",
    documentation="Dump lines by final outcome",
    labelnames=["source_id", "outcome"],
    registry=REGISTRY,
)

throughput_lines_per_second = Gauge(
    name="author_import_throughput_lines_per_second",
    documentation="Lines per second over the last progress interval",
    labelnames=["source_id"],
    registry=REGISTRY,
)


# Bulk inserts

batches_processed_total = Counter(
    name="author_import_batches_total",
    documentation="Batches submitted to the author store by status",
    labelnames=["source_id", "status"],
    registry=REGISTRY,
)

batch_size = Histogram(
    name="author_import_batch_size_records",
    documentation="Authors per submitted batch",
    labelnames=["source_id"],
    buckets=[1, 10, 50, 100, 500, 1000, 5000, 10000, 50000, 100000],
    registry=REGISTRY,
)

bulk_write_duration_seconds = Histogram(
    name="author_import_bulk_write_duration_seconds",
    documentation="Duration of one bulk insert call",
    labelnames=["source_id"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)


# Process

memory_usage_bytes = Gauge(
    name="author_import_memory_usage_bytes",
    documentation="Resident memory of the importer process",
    labelnames=["component"],
    registry=REGISTRY,
)


def start_metrics_server(port: int | None = None) -> int:
    """
    Serve the registry over HTTP in a background thread

    Args:
        port: Listen port (env METRICS_PORT, else 8000)

    Returns:
        The port being served
    """
    from prometheus_client import start_http_server

    port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(port, registry=REGISTRY)
    return port


@contextmanager
def track_duration(histogram: Histogram, **labels) -> Iterator[None]:
    """Observe the wall time of the block, including when it raises."""
    started = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - started)


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """Add value to a labelled counter; zero and negative values are ignored."""
    if value > 0:
        counter.labels(**labels).inc(value)


def set_gauge(gauge: Gauge, value: float, **labels) -> None:
    gauge.labels(**labels).set(value)


def record_line_outcome(source_id: str, outcome: str, count: int = 1) -> None:
    """
    Count lines that reached a final outcome

    Args:
        source_id: Import source label
        outcome: One of LINE_OUTCOMES
        count: Number of lines
    """
    if outcome not in LINE_OUTCOMES:
        raise ValueError(f"Unknown line outcome: {outcome}")
    increment_counter(lines_processed_total, count, source_id=source_id, outcome=outcome)


def record_batch(source_id: str, record_count: int, success: bool) -> None:
    """Count a submitted batch and observe its size."""
    status = "success" if success else "failure"
    increment_counter(batches_processed_total, 1, source_id=source_id, status=status)
    if record_count > 0:
        batch_size.labels(source_id=source_id).observe(record_count)
