"""
Error taxonomy for the author import pipeline.

Only SourceFileNotFoundError aborts a run. The others are absorbed by the
pipeline driver, counted, and surfaced through progress logs and the final
summary.
"""


class AuthorImportError(Exception):
    """Base class for import errors."""


class SourceFileNotFoundError(AuthorImportError, FileNotFoundError):
    """Raised when the dump file cannot be opened for reading."""

    def __init__(self, path: str, reason: str = "path does not resolve to a readable file"):
        self.path = path
        self.reason = reason
        super().__init__(f"Source file not found: {path} ({reason})")


class MalformedLineError(AuthorImportError):
    """Raised when a line has fewer than the five expected columns."""

    def __init__(self, line_number: int, raw_text: str, field_count: int):
        self.line_number = line_number
        self.raw_text = raw_text
        self.field_count = field_count
        super().__init__(
            f"Line {line_number} has {field_count} fields, expected at least 5"
        )


class PayloadDecodeError(AuthorImportError):
    """Raised when an author row's JSON payload cannot be decoded."""

    def __init__(self, line_number: int, cause: str):
        self.line_number = line_number
        self.cause = cause
        super().__init__(f"Invalid author payload at line {line_number}: {cause}")


class BatchSubmitError(AuthorImportError):
    """
    Raised when the sink rejects a batch.

    inserted_count and failed_count are only non-trivial when the batch was
    retried one author at a time; for a whole-batch failure
    failed_count == batch_size and inserted_count == 0.
    """

    def __init__(
        self,
        batch_number: int,
        batch_size: int,
        cause: str,
        inserted_count: int = 0,
        failed_count: int | None = None,
    ):
        self.batch_number = batch_number
        self.batch_size = batch_size
        self.cause = cause
        self.inserted_count = inserted_count
        self.failed_count = batch_size if failed_count is None else failed_count
        super().__init__(
            f"Batch {batch_number} ({batch_size} authors) failed: {cause}"
        )
