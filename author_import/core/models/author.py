"""
Author models: the create shape consumed by the store and the read-path shapes.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Gender(str, Enum):
    """Categorical attribute stored with every author."""

    MALE = "male"
    FEMALE = "female"
    UNSPECIFIED = "unspecified"


class AuthorCreate(BaseModel):
    """
    Normalized author ready for bulk insertion.

    Attributes:
        olid: Open Library identifier with the "/authors/" prefix removed
        name: Display name ("Unknown" when the payload has none)
        birth_date: Parsed from the payload's created.value, if any
        alternate_names: Other names, in payload order
        link: Canonical Open Library URL
        rating_count: Number of ratings (0 at import time)
        average_rating: Mean rating (0 at import time)
        gender: Categorical attribute (unspecified at import time)
        image_url: Cover URL built from the first photo id, if any
        about: Biography text, empty when the payload has none
    """

    olid: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    birth_date: datetime | None = None
    alternate_names: list[str] = Field(default_factory=list)
    link: str
    rating_count: int = Field(0, ge=0)
    average_rating: float = Field(0.0, ge=0.0)
    gender: Gender = Gender.UNSPECIFIED
    image_url: str | None = None
    about: str = ""

    class Config:
        json_schema_extra = {
            "example": {
                "olid": "OL1A",
                "name": "Ada",
                "birth_date": None,
                "alternate_names": ["A. L."],
                "link": "https://openlibrary.org/authors/OL1A",
                "rating_count": 0,
                "average_rating": 0.0,
                "gender": "unspecified",
                "image_url": "https://covers.openlibrary.org/a/id/123-L.jpg",
                "about": ""
            }
        }


class AuthorUpdate(BaseModel):
    """Partial update; only fields that are set are written."""

    birth_date: datetime | None = None
    alternate_names: list[str] | None = None
    name: str | None = Field(None, min_length=1)
    link: str | None = None
    rating_count: int | None = Field(None, ge=0)
    average_rating: float | None = Field(None, ge=0.0)
    gender: Gender | None = None
    image_url: str | None = None
    about: str | None = None


class Author(AuthorCreate):
    """
    Author row as stored.

    Attributes:
        id: Surrogate primary key
        uuid: Stable public identifier
        created_at: Row creation time
        updated_at: Last update time
    """

    id: int
    uuid: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthorSearchParams(BaseModel):
    """
    Filters for author search and count.

    name and about match case-insensitive substrings; alternate_name
    must equal one member of alternate_names.
    """

    name: str | None = None
    alternate_name: str | None = None
    about: str | None = None
    take: int = Field(50, ge=1, le=10000)
    skip: int = Field(0, ge=0)
