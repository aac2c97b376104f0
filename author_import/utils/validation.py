"""
Input validation utilities for the author importer.

Checks command-line and query inputs (batch sizes, Open Library author
identifiers, pagination values, file paths) before any file or database
work starts.
"""

import re

MAX_BATCH_SIZE = 100_000
MAX_PAGE_SIZE = 10_000
MAX_PATH_LENGTH = 4096

AUTHOR_OLID_PATTERN = re.compile(r"^OL[1-9][0-9]*A$")


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


def _require_int(value, field_name: str, minimum: int, maximum: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer, got {type(value).__name__}")
    if value < minimum:
        qualifier = "positive" if minimum == 1 else "non-negative"
        raise ValidationError(f"{field_name} must be a {qualifier} integer, got {value}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field_name} exceeds maximum of {maximum}")
    return value


def validate_batch_size(batch_size: int, field_name: str = "batch_size") -> int:
    """
    Validate the number of authors per bulk insert (1..MAX_BATCH_SIZE).

    Raises:
        ValidationError: If the value is not an integer in range

    Examples:
        >>> validate_batch_size(1000)
        1000
        >>> validate_batch_size(0)  # doctest: +SKIP
        ValidationError: batch_size must be a positive integer, got 0
    """
    return _require_int(batch_size, field_name, 1, MAX_BATCH_SIZE)


def parse_batch_size(raw: str | None, default: int, field_name: str = "batch_size") -> int:
    """
    Parse a batch size given as text, falling back to a default when absent.

    Raises:
        ValidationError: If the text is not a valid batch size
    """
    if raw is None or raw.strip() == "":
        return validate_batch_size(default, field_name)
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be an integer, got '{raw}'") from None
    return validate_batch_size(value, field_name)


def validate_olid(olid: str, field_name: str = "olid") -> str:
    """
    Validate an Open Library author identifier.

    Accepts the bare identifier ("OL23919A") or the dump key form
    ("/authors/OL23919A").

    Returns:
        The bare identifier

    Raises:
        ValidationError: If the value is not an author identifier

    Examples:
        >>> validate_olid("/authors/OL23919A")
        'OL23919A'
        >>> validate_olid("OL1M")  # doctest: +SKIP
        ValidationError: olid must look like 'OL<digits>A'
    """
    if not isinstance(olid, str) or not olid.strip():
        raise ValidationError(f"{field_name} must be a non-empty string")

    olid = olid.strip().removeprefix("/authors/")

    if len(olid) > 64:
        raise ValidationError(f"{field_name} exceeds maximum length of 64 characters")

    if not AUTHOR_OLID_PATTERN.match(olid):
        raise ValidationError(f"{field_name} must look like 'OL<digits>A', got '{olid}'")

    return olid


def validate_limit(limit: int, field_name: str = "limit", max_limit: int = MAX_PAGE_SIZE) -> int:
    """Validate a page size for search queries (1..max_limit)."""
    return _require_int(limit, field_name, 1, max_limit)


def validate_offset(offset: int, field_name: str = "offset") -> int:
    """Validate the number of search results to skip."""
    return _require_int(offset, field_name, 0)


def validate_file_path(file_path: str, field_name: str = "file_path") -> str:
    """
    Validate the dump path argument.

    Only the text of the path is checked here; whether the file exists is
    decided by LineSource.

    Returns:
        The path with surrounding whitespace removed

    Raises:
        ValidationError: If the path is empty, contains NUL or is too long

    Examples:
        >>> validate_file_path(" data/ol_dump_authors.txt ")
        'data/ol_dump_authors.txt'
    """
    cleaned = file_path.strip() if isinstance(file_path, str) else ""
    if not cleaned:
        raise ValidationError(f"{field_name} must be a non-empty path")
    if "\x00" in cleaned:
        raise ValidationError(f"{field_name} contains a NUL character")
    if len(cleaned) > MAX_PATH_LENGTH:
        raise ValidationError(f"{field_name} is longer than {MAX_PATH_LENGTH} characters")
    return cleaned
