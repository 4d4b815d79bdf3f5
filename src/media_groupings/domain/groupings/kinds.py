"""Grouping kinds - the three fixed indices built from the flat collections."""

from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from media_groupings.domain.library.models import MediaItem

# Artist name or album id
GroupKey = str

# Key -> items with that key, in source order. Never mutated once built.
GroupedIndex = Mapping[GroupKey, Sequence[MediaItem]]


class GroupingKind(str, Enum):
    """The grouping computations the engine understands.

    Values double as the wire tags and pending labels.
    """

    ALBUMS_BY_ARTIST_NAME = "allAlbumsByArtistName"
    TRACKS_BY_ARTIST_NAME = "allTracksByArtistName"
    TRACKS_BY_ALBUM_ID = "allTracksByAlbumId"

    @property
    def label(self) -> str:
        return self.value

    @property
    def source(self) -> str:
        """Which flat collection feeds this kind ('albums' or 'tracks')."""
        return _SOURCES[self]

    @property
    def key_field(self) -> str:
        return _KEY_FIELDS[self]

    def group_key(self, item: Any) -> GroupKey:
        """Extract this kind's group key from an item.

        A missing or None field yields the empty-string key.
        """
        if isinstance(item, Mapping):
            value = item.get(self.key_field)
        else:
            value = getattr(item, self.key_field, None)
        if value is None:
            return ""
        return str(value)

    @classmethod
    def from_label(cls, label: Any) -> Optional["GroupingKind"]:
        """Look up a kind by wire tag; None for anything unrecognized."""
        if isinstance(label, cls):
            return label
        try:
            return cls(label)
        except (ValueError, TypeError):
            return None


_SOURCES = {
    GroupingKind.ALBUMS_BY_ARTIST_NAME: "albums",
    GroupingKind.TRACKS_BY_ARTIST_NAME: "tracks",
    GroupingKind.TRACKS_BY_ALBUM_ID: "tracks",
}

_KEY_FIELDS = {
    GroupingKind.ALBUMS_BY_ARTIST_NAME: "artist",
    GroupingKind.TRACKS_BY_ARTIST_NAME: "artist",
    GroupingKind.TRACKS_BY_ALBUM_ID: "album",
}


def kinds_for_source(source: str) -> tuple[GroupingKind, ...]:
    """Kinds computed when ``source`` ('albums' or 'tracks') arrives."""
    return tuple(kind for kind in GroupingKind if kind.source == source)
