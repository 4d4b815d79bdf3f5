"""Grouping engine - builds grouped indices on a background worker thread.

The engine owns one long-lived worker thread. Callers submit requests through
a queue and collect responses from another queue, so the O(n) traversal never
runs on the caller's thread. Each response carries the kind and request id it
answers; responses for different kinds may come back in any order.
"""

import queue
import threading
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from loguru import logger

from media_groupings.domain.groupings.kinds import GroupedIndex, GroupingKind
from media_groupings.domain.library.models import MediaItem

_STOP = object()


def compute_grouped_index(
    kind: GroupingKind, items: Iterable[MediaItem]
) -> dict[str, tuple[MediaItem, ...]]:
    """Partition ``items`` by ``kind``'s group key in a single pass.

    Keys appear in first-occurrence order and every value keeps the source
    order of its items. Nothing is sorted, filtered or deduplicated; items
    without a key are grouped under "".
    """
    groups: dict[str, list[MediaItem]] = {}
    for item in items:
        key = kind.group_key(item)
        bucket = groups.get(key)
        if bucket is None:
            groups[key] = [item]
        else:
            bucket.append(item)

    if "" in groups:
        logger.debug(f"{kind.label}: {len(groups[''])} items have no group key")

    return {key: tuple(bucket) for key, bucket in groups.items()}


@dataclass(frozen=True)
class GroupingRequest:
    """Request for one grouped index. ``payload`` is a snapshot of the collection."""

    request_id: int
    kind: GroupingKind
    payload: tuple[MediaItem, ...]

    @classmethod
    def create(
        cls, request_id: int, kind: GroupingKind, items: Iterable[MediaItem]
    ) -> "GroupingRequest":
        return cls(request_id=request_id, kind=kind, payload=tuple(items))

    def to_message(self) -> dict[str, Any]:
        return {"type": self.kind.label, "id": self.request_id, "payload": list(self.payload)}

    @classmethod
    def from_message(cls, message: Any) -> Optional["GroupingRequest"]:
        """Parse a ``{type, id, payload}`` message; None if it is not a request."""
        if not isinstance(message, Mapping):
            return None
        kind = GroupingKind.from_label(message.get("type"))
        if kind is None:
            return None
        request_id = message.get("id", 0)
        if not isinstance(request_id, int):
            return None
        return cls.create(request_id, kind, message.get("payload") or ())


@dataclass(frozen=True)
class GroupingResponse:
    """Result for one request: either ``result`` or ``error`` is set."""

    request_id: int
    kind: GroupingKind
    result: Optional[GroupedIndex] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None

    def to_message(self) -> dict[str, Any]:
        message: dict[str, Any] = {"type": self.kind.label, "id": self.request_id}
        if self.ok:
            message["result"] = {key: list(items) for key, items in self.result.items()}
        else:
            message["error"] = self.error
        return message


class GroupingEngine:
    """Background worker computing grouped indices.

    Runs in a single daemon thread, started lazily on the first submit.
    Responses are put on ``responses`` for the owning thread to drain.
    """

    def __init__(self, name: str = "MediaGrouperThread"):
        """
        Initialize the engine.

        Args:
            name: Worker thread name (shows up in log records)
        """
        self.name = name
        self.requests: queue.Queue = queue.Queue()
        self.responses: queue.Queue = queue.Queue()
        self.running = False
        self.thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def is_alive(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def start(self) -> None:
        """Start the worker thread if it is not already running.

        A worker left over from a stop() whose join timed out is still
        draining the queue; it is kept instead of starting a second one.
        """
        with self._lock:
            if self.running:
                return
            self.running = True
            if self.thread is not None and self.thread.is_alive():
                logger.debug(f"Grouping engine resumed ({self.name})")
                return
            self.thread = threading.Thread(
                target=self._run_worker, daemon=True, name=self.name
            )
            self.thread.start()
        logger.debug(f"Grouping engine started ({self.name})")

    def stop(self, timeout: float = 2.0) -> None:
        """Stop the worker after it finishes the requests already queued."""
        with self._lock:
            if not self.running:
                return
            self.running = False
            thread = self.thread

        self.requests.put(_STOP)
        if thread and thread.is_alive():
            thread.join(timeout=timeout)
        logger.debug(f"Grouping engine stopped ({self.name})")

    def submit(self, request: GroupingRequest) -> None:
        """Queue a request; fire-and-forget."""
        self.start()
        self.requests.put(request)

    def post_message(self, message: Any) -> bool:
        """Queue a raw ``{type, id, payload}`` message.

        Returns:
            False if the message was not a recognizable request and was dropped
        """
        request = GroupingRequest.from_message(message)
        if request is None:
            logger.debug(f"Ignoring unrecognized grouping message: {message!r:.80}")
            return False
        self.submit(request)
        return True

    def _run_worker(self) -> None:
        """Worker loop: take a request, compute, post the response."""
        while True:
            item = self.requests.get()
            if item is _STOP:
                with self._lock:
                    # Stale sentinel from a stop() that was followed by start()
                    if self.running:
                        continue
                    if self.thread is threading.current_thread():
                        self.thread = None
                break
            if not isinstance(item, GroupingRequest):
                logger.debug(f"Ignoring non-request item on grouping queue: {item!r:.80}")
                continue
            self.responses.put(self._handle_request(item))

    def _handle_request(self, request: GroupingRequest) -> GroupingResponse:
        try:
            result = compute_grouped_index(request.kind, request.payload)
        except Exception as e:
            logger.exception(f"Grouping {request.kind.label} (request {request.request_id}) failed")
            return GroupingResponse(
                request_id=request.request_id, kind=request.kind, error=str(e) or type(e).__name__
            )

        logger.debug(
            f"Grouped {len(request.payload)} items into {len(result)} keys "
            f"for {request.kind.label} (request {request.request_id})"
        )
        return GroupingResponse(
            request_id=request.request_id, kind=request.kind, result=result
        )
