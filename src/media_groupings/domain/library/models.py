"""
Media library domain models.

Contains the flat album and track records supplied by the media player's API.
Records are immutable; the grouping subsystem only ever reads them.
"""

from typing import Any, Mapping, NamedTuple, Optional, Union


def _text(value: Any) -> str:
    """Coerce an API field to a string, treating None as empty."""
    if value is None:
        return ""
    return str(value)


class Album(NamedTuple):
    """Represents an album as reported by the media player."""

    id: str
    title: str = ""
    artist: str = ""  # Denormalized artist display name
    year: Optional[int] = None
    genre: Optional[str] = None
    track_count: Optional[int] = None
    art_url: Optional[str] = None

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "Album":
        """Build an Album from an API record, ignoring unknown keys."""
        return cls(
            id=_text(record.get("id")),
            title=_text(record.get("title")),
            artist=_text(record.get("artist")),
            year=record.get("year"),
            genre=record.get("genre"),
            track_count=record.get("track_count", record.get("trackCount")),
            art_url=record.get("art_url", record.get("album_art_uri")),
        )


class Track(NamedTuple):
    """Represents a track as reported by the media player.

    ``album`` is the album reference (the owning album's id), not its title.
    """

    id: str
    title: str = ""
    artist: str = ""
    album: str = ""  # Album id reference
    album_title: Optional[str] = None
    track_number: Optional[int] = None
    duration: Optional[float] = None  # in seconds
    genre: Optional[str] = None

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "Track":
        """Build a Track from an API record.

        The album reference is read from ``album_id``/``albumId`` when present,
        falling back to ``album``.
        """
        album_ref = record.get("album_id", record.get("albumId"))
        if album_ref is None:
            album_ref = record.get("album")

        return cls(
            id=_text(record.get("id")),
            title=_text(record.get("title")),
            artist=_text(record.get("artist")),
            album=_text(album_ref),
            album_title=record.get("album_title"),
            track_number=record.get("track_number", record.get("trackNumber")),
            duration=record.get("duration"),
            genre=record.get("genre"),
        )


MediaItem = Union[Album, Track]
