"""Decoding of raw iTunes response bodies."""

import logging
from typing import Any, TypeVar

from pydantic import ValidationError

from core.exceptions import ResponseDecodeError
from itunes.models import Artist, ITunesModel, RawResults, SearchResult

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=ITunesModel)


def _error_summary(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "body"
    return f"{location}: {first['msg']}"


def decode_raw(body: str | bytes) -> RawResults:
    """Parse a response body into its result count and untyped records.

    Raises:
        ResponseDecodeError: If the body is not JSON, or lacks ``resultCount``
            or a ``results`` list of objects
    """
    try:
        raw = RawResults.model_validate_json(body)
    except ValidationError as e:
        raise ResponseDecodeError(
            f"Unexpected iTunes response: {_error_summary(e)}",
            details={"errors": e.error_count()},
        ) from e

    if raw.result_count != len(raw.results):
        logger.debug(
            f"iTunes reported {raw.result_count} results but returned {len(raw.results)}"
        )
    return raw


def decode_lookup_raw(body: str | bytes) -> RawResults:
    """Parse a lookup body, leaving its records for the splitter."""
    return decode_raw(body)


def coerce_record(record: dict[str, Any], model: type[RecordT], index: int) -> RecordT:
    """Read one open JSON object as ``model``, ignoring fields outside it.

    Raises:
        ResponseDecodeError: If the record lacks a field ``model`` requires
    """
    try:
        return model.model_validate(record)
    except ValidationError as e:
        raise ResponseDecodeError(
            f"Result {index} is not a valid {model.__name__}: {_error_summary(e)}",
            details={"index": index, "model": model.__name__},
        ) from e


def decode_search(body: str | bytes) -> SearchResult:
    """Decode an artist search body into a SearchResult, keeping upstream order."""
    raw = decode_raw(body)
    artists = [coerce_record(record, Artist, i) for i, record in enumerate(raw.results)]
    return SearchResult(result_count=raw.result_count, results=artists)
