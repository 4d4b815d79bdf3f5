"""Index store - the three grouped-index slots read by the consumer API."""

from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from media_groupings.domain.groupings.kinds import GroupedIndex, GroupingKind
from media_groupings.domain.library.models import MediaItem


class IndexStore:
    """One slot per GroupingKind, each holding a complete index or nothing.

    ``replace`` swaps a whole index in with a single assignment, so readers
    see either the old index or the new one.
    """

    def __init__(self) -> None:
        self._slots: dict[GroupingKind, Mapping[str, Sequence[MediaItem]]] = {}

    def get(self, kind: GroupingKind, key: str) -> Sequence[MediaItem]:
        index = self._slots.get(kind)
        if index is None:
            return ()
        return index.get(key, ())

    def index(self, kind: GroupingKind) -> Optional[Mapping[str, Sequence[MediaItem]]]:
        return self._slots.get(kind)

    def has(self, kind: GroupingKind) -> bool:
        return kind in self._slots

    def keys(self, kind: GroupingKind) -> tuple[str, ...]:
        index = self._slots.get(kind)
        return tuple(index) if index is not None else ()

    def replace(self, kind: GroupingKind, index: GroupedIndex) -> None:
        frozen = {key: tuple(items) for key, items in index.items()}
        self._slots[kind] = MappingProxyType(frozen)

    def clear(self) -> None:
        self._slots = {}
