"""
Unit tests for input validation utilities.
"""

import pytest

from author_import.utils.validation import (
    MAX_BATCH_SIZE,
    ValidationError,
    parse_batch_size,
    validate_batch_size,
    validate_file_path,
    validate_limit,
    validate_offset,
    validate_olid,
)


@pytest.mark.unit
class TestValidateBatchSize:
    """Tests for validate_batch_size function"""

    @pytest.mark.parametrize("value", [1, 50, 1000, MAX_BATCH_SIZE])
    def test_valid(self, value):
        assert validate_batch_size(value) == value

    @pytest.mark.parametrize("value", [0, -1, MAX_BATCH_SIZE + 1])
    def test_out_of_range(self, value):
        with pytest.raises(ValidationError):
            validate_batch_size(value)

    @pytest.mark.parametrize("value", ["10", 1.5, None, True])
    def test_wrong_type(self, value):
        with pytest.raises(ValidationError, match="must be an integer"):
            validate_batch_size(value)


@pytest.mark.unit
class TestParseBatchSize:
    """Tests for parse_batch_size function"""

    def test_parses_text(self):
        assert parse_batch_size(" 1000 ", 50) == 1000

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_absent_uses_default(self, raw):
        assert parse_batch_size(raw, 50) == 50

    @pytest.mark.parametrize("raw", ["abc", "1e3", "10.5"])
    def test_not_an_integer(self, raw):
        with pytest.raises(ValidationError, match="must be an integer"):
            parse_batch_size(raw, 50)

    def test_zero(self):
        with pytest.raises(ValidationError, match="positive"):
            parse_batch_size("0", 50)


@pytest.mark.unit
class TestValidateOlid:
    """Tests for validate_olid function"""

    @pytest.mark.parametrize("olid, expected", [
        ("  OL23919A ", "OL23919A"),
        ("/authors/OL1A", "OL1A"),
    ])
    def test_valid(self, olid, expected):
        assert validate_olid(olid) == expected

    @pytest.mark.parametrize("olid", ["", "   ", "OL1 A", "OL1;DROP", "OL1M", "OL0A", "ol1a", "OL" + "1" * 70 + "A"])
    def test_invalid(self, olid):
        with pytest.raises(ValidationError):
            validate_olid(olid)


@pytest.mark.unit
class TestPagination:
    """Tests for validate_limit and validate_offset"""

    def test_limit(self):
        assert validate_limit(10) == 10
        with pytest.raises(ValidationError):
            validate_limit(0)
        with pytest.raises(ValidationError):
            validate_limit(10001)

    def test_offset(self):
        assert validate_offset(0) == 0
        with pytest.raises(ValidationError):
            validate_offset(-1)


@pytest.mark.unit
class TestValidateFilePath:
    """Tests for validate_file_path function"""

    def test_strips_whitespace(self):
        assert validate_file_path("  data/authors.txt ") == "data/authors.txt"

    def test_relative_parent_is_allowed(self):
        assert validate_file_path("../dumps/authors.txt") == "../dumps/authors.txt"

    @pytest.mark.parametrize("path", ["", "   ", "a\x00b", "a" * 4097])
    def test_invalid(self, path):
        with pytest.raises(ValidationError):
            validate_file_path(path)
