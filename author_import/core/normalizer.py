"""
Normalization of author records into the create shape accepted by the store.
"""

import json
from datetime import datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .errors import PayloadDecodeError
from .models import AuthorCreate, Gender, ParsedRecord

UNKNOWN_NAME = "Unknown"


class AuthorNormalizer:
    """
    Maps a ParsedRecord of the author type to an AuthorCreate.

    Field rules:
    - olid: key column with the path prefix removed
    - name: payload name, or "Unknown"
    - birth_date: payload created.value as a timestamp, or None
    - alternate_names: payload list of strings, or []
    - link: origin + payload key, or origin + "/authors/<olid>"
    - rating_count / average_rating: 0
    - gender: unspecified
    - image_url: built from the first photo id, or None
    - about: bio, else wikipedia_excerpt, each either flat or {"value": ...}
    """

    def __init__(
        self,
        key_prefix: str = "/authors/",
        link_origin: str = "https://openlibrary.org",
        image_url_template: str = "https://covers.openlibrary.org/a/id/{photo_id}-L.jpg",
    ):
        """
        Initialize author normalizer.

        Args:
            key_prefix: Prefix removed from the key column
            link_origin: Origin prepended to author paths
            image_url_template: Cover URL template with a {photo_id} placeholder
        """
        self.key_prefix = key_prefix
        self.link_origin = link_origin.rstrip("/")
        self.image_url_template = image_url_template

    def normalize(self, record: ParsedRecord, line_number: int | None = None) -> AuthorCreate:
        """
        Decode the payload and build an AuthorCreate.

        Args:
            record: Parsed author row
            line_number: Source line (defaults to the record's own)

        Returns:
            AuthorCreate ready for the sink

        Raises:
            PayloadDecodeError: If the payload is not a JSON object or the
                resulting author is not well formed
        """
        line_number = line_number or record.line_number
        data = self.decode_payload(record.raw_payload, line_number)

        olid = self.extract_olid(record.key)
        if not olid:
            raise PayloadDecodeError(line_number, f"empty identifier in key '{record.key}'")

        try:
            return AuthorCreate(
                olid=olid,
                name=_extract_name(data),
                birth_date=_extract_created(data),
                alternate_names=_extract_alternate_names(data),
                link=self._build_link(data, olid),
                rating_count=0,
                average_rating=0.0,
                gender=Gender.UNSPECIFIED,
                image_url=self._build_image_url(data),
                about=_extract_about(data),
            )
        except PydanticValidationError as e:
            raise PayloadDecodeError(line_number, str(e)) from e

    @staticmethod
    def decode_payload(raw_payload: str, line_number: int) -> dict[str, Any]:
        """
        Decode the JSON payload column.

        Raises:
            PayloadDecodeError: If decoding fails or the document is not an object
        """
        try:
            data = json.loads(raw_payload)
        except (ValueError, RecursionError) as e:
            raise PayloadDecodeError(line_number, str(e)) from e

        if not isinstance(data, dict):
            raise PayloadDecodeError(
                line_number, f"expected a JSON object, got {type(data).__name__}"
            )
        return data

    def extract_olid(self, key: str) -> str:
        """Identifier persisted for the author: the key without its path prefix."""
        return key.strip().removeprefix(self.key_prefix)

    def _build_link(self, data: dict[str, Any], olid: str) -> str:
        path = data.get("key")
        if not isinstance(path, str) or not path:
            path = f"/authors/{olid}"
        return f"{self.link_origin}{path}"

    def _build_image_url(self, data: dict[str, Any]) -> str | None:
        photos = data.get("photos")
        if not isinstance(photos, list) or not photos or photos[0] is None:
            return None
        return self.image_url_template.format(photo_id=photos[0])


def _extract_name(data: dict[str, Any]) -> str:
    name = data.get("name")
    if isinstance(name, str) and name.strip():
        return name
    return UNKNOWN_NAME


def _extract_created(data: dict[str, Any]) -> datetime | None:
    created = data.get("created")
    if not isinstance(created, dict):
        return None
    value = created.get("value")
    if not isinstance(value, str) or not value:
        return None
    # fromisoformat only accepts a trailing "Z" from 3.11 on
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _extract_alternate_names(data: dict[str, Any]) -> list[str]:
    names = data.get("alternate_names")
    if not isinstance(names, list):
        return []
    return [n for n in names if isinstance(n, str)]


def _text_value(value: Any) -> str:
    """Unwrap {"type": "/type/text", "value": ...} or return a flat string."""
    if isinstance(value, dict):
        inner = value.get("value")
        return inner if isinstance(inner, str) else ""
    if isinstance(value, str):
        return value
    return ""


def _extract_about(data: dict[str, Any]) -> str:
    bio = data.get("bio")
    if bio:
        return _text_value(bio)
    excerpt = data.get("wikipedia_excerpt")
    if excerpt:
        return _text_value(excerpt)
    return ""
