"""
Structured logging for the author importer

Log lines are JSON objects (python-json-logger) by default. LOG_FORMAT=text
switches to a plain formatter for interactive runs.
"""
import logging
import os
import sys
import time
from contextlib import contextmanager
from typing import IO, Iterator

from pythonjsonlogger import jsonlogger

DEFAULT_LOGGER_NAME = "author-import"

JSON_FIELDS = "%(timestamp)s %(level)s %(logger)s %(message)s"
TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


class ImportJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter for importer logs

    Every line carries timestamp, level, logger name and call site; values
    passed through ``extra`` are merged in as top-level keys.
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = log_record.get("timestamp") or self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["location"] = f"{record.module}:{record.funcName}:{record.lineno}"
        log_record["pid"] = record.process


def _resolve_level(level: str | None) -> int:
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def build_formatter(format_type: str | None = None) -> logging.Formatter:
    """Formatter for "json" (default) or "text" output."""
    format_type = (format_type or os.getenv("LOG_FORMAT", "json")).lower()
    if format_type == "text":
        return logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    return ImportJsonFormatter(JSON_FIELDS, datefmt="%Y-%m-%dT%H:%M:%S")


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """
    Configure a logger with a single stream handler

    Args:
        name: Logger name
        level: Level name (defaults to env var LOG_LEVEL or INFO)
        format_type: "json" or "text" (defaults to env var LOG_FORMAT or json)
        stream: Output stream (stdout if None)

    Returns:
        Configured logger; calling again replaces its handler
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(build_formatter(format_type))
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Logger by name, configured on first use."""
    logger = logging.getLogger(name)
    return logger if logger.handlers else setup_logger(name)


@contextmanager
def log_operation(
    operation_name: str,
    logger: logging.Logger | None = None,
    **fields,
) -> Iterator[dict]:
    """
    Log the start and outcome of an operation with its duration

    Usage:
        with log_operation("Importing authors", logger=logger, source_path=path):
            pipeline.run(path)

    Exceptions are logged with their traceback and re-raised.
    """
    logger = logger or get_logger()
    context = {"operation": operation_name, **fields}
    logger.info(f"Starting: {operation_name}", extra=context)
    started = time.perf_counter()

    try:
        yield context
    except Exception as e:
        logger.error(
            f"Failed: {operation_name}",
            extra={
                **context,
                "status": "error",
                "duration_seconds": round(time.perf_counter() - started, 3),
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
            exc_info=True,
        )
        raise

    logger.info(
        f"Completed: {operation_name}",
        extra={
            **context,
            "status": "success",
            "duration_seconds": round(time.perf_counter() - started, 3),
        },
    )
