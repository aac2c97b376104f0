"""
Parser for the five-column dump layout.

Columns: type, key, revision, last_modified, JSON payload. The payload is
left undecoded.
"""

from author_import.core.errors import MalformedLineError
from author_import.core.models import ParsedRecord, RawLine

FIELD_DELIMITER = "\t"
EXPECTED_FIELDS = 5


class RecordParser:
    """
    Splits raw lines into ParsedRecord objects.
    """

    def __init__(self, author_type: str = "/type/author"):
        """
        Initialize record parser.

        Args:
            author_type: Type marker identifying author rows
        """
        self.author_type = author_type

    def parse(self, raw_line: RawLine) -> ParsedRecord:
        """
        Parse one line into its columns.

        Columns beyond the fifth are ignored.

        Args:
            raw_line: Line read from the source

        Returns:
            ParsedRecord with the payload still undecoded

        Raises:
            MalformedLineError: If the line has fewer than five columns
        """
        fields = raw_line.text.split(FIELD_DELIMITER)
        if len(fields) < EXPECTED_FIELDS:
            raise MalformedLineError(raw_line.line_number, raw_line.text, len(fields))

        return ParsedRecord(
            type=fields[0],
            key=fields[1],
            revision=fields[2],
            last_modified=fields[3],
            raw_payload=fields[4],
            line_number=raw_line.line_number,
        )

    def is_author(self, record: ParsedRecord) -> bool:
        """Whether the record should go on to normalization."""
        return record.type == self.author_type
