"""Pydantic models for iTunes Search API records and proxy responses.

Field names are snake_case in Python and camelCase on the wire, matching
the iTunes payloads. Unknown upstream fields are ignored.
"""

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Prices are parsed as Decimal but written back out as JSON numbers.
Price = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ITunesModel(BaseModel):
    """Base for models exchanged with iTunes and with our own callers."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class Artist(ITunesModel):
    """An iTunes artist record."""

    artist_id: int
    artist_name: str
    primary_genre_name: str | None = None


class Album(ITunesModel):
    """An iTunes collection (album) record."""

    collection_id: int
    artist_id: int
    collection_name: str
    artist_name: str | None = None
    collection_price: Price | None = None
    currency: str | None = None
    primary_genre_name: str | None = None
    copyright: str | None = None


class SearchResult(ITunesModel):
    """Artists matching a search term, in upstream relevance order."""

    result_count: int
    results: list[Artist] = []


class LookupResult(ITunesModel):
    """An artist and their albums, split out of an iTunes lookup response."""

    result_count: int
    artist: Artist | None = None
    results: list[Album] = []


class RawResults(ITunesModel):
    """Envelope of a search or lookup response before its records are typed.

    ``results`` stays untyped: each record is later read as an Artist or an Album,
    independently of the others.
    """

    result_count: int
    results: list[dict[str, Any]]
