from enum import StrEnum

from itunes.models import Album, Artist, ITunesModel


class PersistenceStatus(StrEnum):
    """What happened to the records of a successful fetch."""

    STORED = "stored"
    SKIPPED = "skipped"
    FAILED = "failed"


class StoredCatalog(ITunesModel):
    """An artist and the albums stored for them in the catalog database."""

    artist: Artist
    albums: list[Album] = []
    total: int = 0
