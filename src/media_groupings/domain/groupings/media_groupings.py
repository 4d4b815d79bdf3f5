"""Consumer API for grouped media lookups.

``MediaGroupings`` is the only thing the rest of the application talks to.
When the flat album or track collection arrives it sends one request per
grouping kind to its background engine; ``poll()`` (called from the owning
thread) stores finished indices and clears them from the pending tracker.

Lookups are plain reads of whatever has been stored so far and return an
empty tuple for unknown keys or indices that are not ready yet.

Example:
    groupings = MediaGroupings()
    groupings.albums_arrived(albums)
    groupings.tracks_arrived(tracks)
    ...
    groupings.poll()
    groupings.tracks_by_album_id("a1")
"""

import itertools
import queue
from enum import Enum
from time import monotonic
from typing import Any, Callable, Iterable, Optional, Sequence

from loguru import logger

from media_groupings.core.activity import BackgroundActivity, get_background_activity
from media_groupings.core.config import GroupingsConfig
from media_groupings.domain.groupings.engine import (
    GroupingEngine,
    GroupingRequest,
    GroupingResponse,
)
from media_groupings.domain.groupings.kinds import GroupingKind, kinds_for_source
from media_groupings.domain.groupings.store import IndexStore
from media_groupings.domain.groupings.tracker import PendingTracker
from media_groupings.domain.library.models import Album, MediaItem, Track


class GroupingStatus(str, Enum):
    """Where a grouping kind stands for the current session."""

    ABSENT = "absent"  # Nothing requested yet
    PENDING = "pending"  # Latest request still outstanding
    READY = "ready"  # Index stored
    UNAVAILABLE = "unavailable"  # Latest request failed or timed out


class MediaGroupings:
    """Grouped album/track lookups backed by a background grouping engine.

    Not thread-safe: arrival hooks, ``poll()`` and lookups belong to one
    (interactive) thread. Only the engine's worker runs elsewhere.
    """

    def __init__(
        self,
        config: Optional[GroupingsConfig] = None,
        engine: Optional[GroupingEngine] = None,
        activity: Optional[BackgroundActivity] = None,
        clock: Callable[[], float] = monotonic,
    ):
        self.config = config if config is not None else GroupingsConfig()
        self._owns_engine = engine is None
        self._engine = engine if engine is not None else GroupingEngine(self.config.worker_name)
        self._activity = activity if activity is not None else get_background_activity()
        self._activity_source = f"media-groupings-{id(self):x}"

        self._store = IndexStore()
        self._tracker = PendingTracker(on_change=self._on_pending_change, clock=clock)
        self._request_ids = itertools.count(1)
        self._latest_request: dict[GroupingKind, int] = {}
        self._unavailable: set[GroupingKind] = set()
        self._dispatched: dict[str, Sequence[MediaItem]] = {}

    def __enter__(self) -> "MediaGroupings":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Arrival
    # ------------------------------------------------------------------

    def albums_arrived(self, albums: Optional[Sequence[Album]]) -> int:
        """Request albums-by-artist-name for a newly fetched album collection.

        Returns:
            Number of requests sent (0 if empty or already dispatched)
        """
        return self._source_arrived("albums", albums)

    def tracks_arrived(self, tracks: Optional[Sequence[Track]]) -> int:
        """Request tracks-by-artist-name and tracks-by-album-id for a track collection.

        Returns:
            Number of requests sent (0 if empty or already dispatched)
        """
        return self._source_arrived("tracks", tracks)

    def _source_arrived(self, source: str, items: Optional[Sequence[MediaItem]]) -> int:
        if items is None or len(items) == 0:
            logger.debug(f"No {source} to group yet")
            return 0

        # Same collection object as last time: already requested
        if self._dispatched.get(source) is items:
            logger.debug(f"{source} collection unchanged, not regrouping")
            return 0

        self._dispatched[source] = items
        snapshot = tuple(items)
        kinds = kinds_for_source(source)
        for kind in kinds:
            request_id = next(self._request_ids)
            self._latest_request[kind] = request_id
            self._unavailable.discard(kind)
            self._tracker.add(request_id, kind.label)
            self._engine.submit(GroupingRequest(request_id, kind, snapshot))

        logger.info(
            f"Requested {', '.join(kind.label for kind in kinds)} for {len(snapshot)} {source}"
        )
        return len(kinds)

    # ------------------------------------------------------------------
    # Response handling
    # ------------------------------------------------------------------

    def poll(self) -> int:
        """Apply every response the engine has finished, then expire stale requests.

        Returns:
            Number of responses applied
        """
        applied = 0
        while True:
            try:
                response = self._engine.responses.get_nowait()
            except queue.Empty:
                break
            if self._apply_response(response):
                applied += 1

        self._expire_stale_requests()
        return applied

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until nothing is computing, applying responses as they land.

        Args:
            timeout: Maximum seconds to wait (None waits indefinitely)

        Returns:
            True if idle, False if the timeout elapsed first
        """
        deadline = None if timeout is None else monotonic() + timeout
        interval = self.config.poll_interval_seconds

        while True:
            self.poll()
            if not self.is_computing:
                return True

            wait = interval
            if deadline is not None:
                remaining = deadline - monotonic()
                if remaining <= 0:
                    return False
                wait = min(interval, remaining)

            try:
                response = self._engine.responses.get(timeout=wait)
            except queue.Empty:
                continue
            self._apply_response(response)

    def _apply_response(self, response: Any) -> bool:
        if not isinstance(response, GroupingResponse):
            logger.debug(f"Ignoring unrecognized engine response: {response!r:.80}")
            return False

        kind = response.kind
        is_latest = self._latest_request.get(kind) == response.request_id

        if not is_latest:
            logger.debug(
                f"Discarding superseded {kind.label} result (request {response.request_id})"
            )
        elif response.ok:
            self._store.replace(kind, response.result)
            self._unavailable.discard(kind)
            logger.info(f"{kind.label} ready ({len(response.result)} keys)")
        else:
            self._unavailable.add(kind)
            logger.warning(f"{kind.label} unavailable: {response.error}")

        self._tracker.remove(response.request_id)
        return True

    def _expire_stale_requests(self) -> None:
        timeout = self.config.response_timeout_seconds
        if timeout is None:
            return

        for entry in self._tracker.expired(timeout):
            logger.warning(
                f"{entry.label} (request {entry.request_id}) timed out after {timeout}s"
            )
            self._tracker.remove(entry.request_id)
            kind = GroupingKind.from_label(entry.label)
            if kind is not None and self._latest_request.get(kind) == entry.request_id:
                self._unavailable.add(kind)

    def _on_pending_change(self, is_computing: bool) -> None:
        self._activity.set_active(self._activity_source, is_computing)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def albums_by_artist_name(self, artist: str) -> Sequence[Album]:
        return self._store.get(GroupingKind.ALBUMS_BY_ARTIST_NAME, artist)

    def tracks_by_artist_name(self, artist: str) -> Sequence[Track]:
        return self._store.get(GroupingKind.TRACKS_BY_ARTIST_NAME, artist)

    def tracks_by_album_id(self, album_id: str) -> Sequence[Track]:
        return self._store.get(GroupingKind.TRACKS_BY_ALBUM_ID, album_id)

    @property
    def is_computing(self) -> bool:
        return self._tracker.is_computing

    @property
    def pending_labels(self) -> tuple[str, ...]:
        return self._tracker.labels

    def status(self, kind: GroupingKind) -> GroupingStatus:
        latest = self._latest_request.get(kind)
        if latest is not None and self._tracker.state.has_request(latest):
            return GroupingStatus.PENDING
        if kind in self._unavailable:
            return GroupingStatus.UNAVAILABLE
        if self._store.has(kind):
            return GroupingStatus.READY
        return GroupingStatus.ABSENT

    def artists_with_albums(self, artist_names: Iterable[str]) -> list[str]:
        """Names (in input order) with at least one album in the index."""
        return [name for name in artist_names if self.albums_by_artist_name(name)]

    def close(self) -> None:
        """Stop the owned engine and withdraw from the background activity signal."""
        if self._owns_engine:
            self._engine.stop()
        self._activity.set_active(self._activity_source, False)
