"""Tests for the index store."""

import pytest

from media_groupings.domain.groupings.kinds import GroupingKind
from media_groupings.domain.groupings.store import IndexStore
from media_groupings.domain.library.models import Track


class TestIndexStore:
    """Tests for slot storage."""

    def test_empty_store_returns_empty_sequences(self) -> None:
        store = IndexStore()
        for kind in GroupingKind:
            assert store.get(kind, "anything") == ()
            assert not store.has(kind)
            assert store.keys(kind) == ()

    def test_replace_and_get(self) -> None:
        store = IndexStore()
        track = Track(id="t1", album="a1")
        store.replace(GroupingKind.TRACKS_BY_ALBUM_ID, {"a1": [track]})

        assert store.get(GroupingKind.TRACKS_BY_ALBUM_ID, "a1") == (track,)
        assert store.get(GroupingKind.TRACKS_BY_ALBUM_ID, "a2") == ()
        assert store.get(GroupingKind.TRACKS_BY_ARTIST_NAME, "a1") == ()
        assert store.keys(GroupingKind.TRACKS_BY_ALBUM_ID) == ("a1",)

    def test_replace_is_wholesale(self) -> None:
        store = IndexStore()
        kind = GroupingKind.TRACKS_BY_ALBUM_ID
        store.replace(kind, {"a1": [Track(id="t1")]})
        store.replace(kind, {"a2": [Track(id="t2")]})

        assert store.get(kind, "a1") == ()
        assert store.keys(kind) == ("a2",)

    def test_stored_index_is_read_only(self) -> None:
        store = IndexStore()
        source = {"a1": [Track(id="t1")]}
        store.replace(GroupingKind.TRACKS_BY_ALBUM_ID, source)

        source["a1"].append(Track(id="t2"))
        assert len(store.get(GroupingKind.TRACKS_BY_ALBUM_ID, "a1")) == 1
        with pytest.raises(TypeError):
            store.index(GroupingKind.TRACKS_BY_ALBUM_ID)["a2"] = ()

    def test_clear(self) -> None:
        store = IndexStore()
        store.replace(GroupingKind.TRACKS_BY_ALBUM_ID, {"a1": [Track(id="t1")]})
        store.clear()
        assert not store.has(GroupingKind.TRACKS_BY_ALBUM_ID)
