"""Splitting of iTunes lookup results into an artist and their albums.

An iTunes lookup with ``entity=album`` answers with one flat ``results``
list. Nothing in the records says which one is the artist: it is always the
first element, and every following element is an album. The records carry
overlapping fields, so the same object can be read as either shape and only
its position decides which.
"""

from collections.abc import Sequence
from typing import Any

from itunes.decoder import coerce_record
from itunes.models import Album, Artist, LookupResult, RawResults


def split_lookup(records: Sequence[dict[str, Any]]) -> tuple[Artist | None, list[Album]]:
    """Split lookup records into the leading artist and the trailing albums.

    Args:
        records: Untyped lookup records in upstream order

    Returns:
        ``(None, [])`` for an empty list, otherwise the artist read from
        element 0 and the albums read from elements 1..n in order

    Raises:
        ResponseDecodeError: If a record lacks a field its role requires
    """
    if not records:
        return None, []

    artist = coerce_record(records[0], Artist, 0)
    albums = [coerce_record(record, Album, i) for i, record in enumerate(records[1:], start=1)]
    return artist, albums


def build_lookup_result(raw: RawResults) -> LookupResult:
    """Build a LookupResult from a decoded lookup envelope.

    ``result_count`` is passed through as reported by iTunes.
    """
    artist, albums = split_lookup(raw.results)
    return LookupResult(result_count=raw.result_count, artist=artist, results=albums)
