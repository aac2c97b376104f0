"""
RawLine and ParsedRecord models for lines read from the author dump (ephemeral).
"""

from pydantic import BaseModel, Field


class RawLine(BaseModel):
    """
    One logical line of the dump, discarded once parsed.

    Attributes:
        line_number: One-based ordinal of the line in the source file
        text: Untouched line text without its line terminator
    """

    line_number: int = Field(..., ge=1)
    text: str


class ParsedRecord(BaseModel):
    """
    The five tab-separated columns of a dump line.

    Note: raw_payload stays opaque text here. Decoding happens in the
    normalizer so that non-author rows never pay the JSON cost.

    Attributes:
        type: Record type marker, e.g. "/type/author"
        key: Record key, e.g. "/authors/OL1A"
        revision: Revision number as found in the dump
        last_modified: Last modification timestamp as found in the dump
        raw_payload: Undecoded JSON document
        line_number: Source line the record came from
    """

    type: str
    key: str
    revision: str
    last_modified: str
    raw_payload: str
    line_number: int = Field(..., ge=1)

    class Config:
        json_schema_extra = {
            "example": {
                "type": "/type/author",
                "key": "/authors/OL1A",
                "revision": "1",
                "last_modified": "2008-04-01T03:28:50.625462",
                "raw_payload": "{\"name\": \"Ada\", \"key\": \"/authors/OL1A\"}",
                "line_number": 1
            }
        }
