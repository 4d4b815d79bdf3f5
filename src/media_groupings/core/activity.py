"""Process-wide "computing in background" signal.

Any number of background workers can report activity under their own source
name. The aggregate flag is true while at least one source is active, so one
worker finishing never clears another worker's activity.
"""

import threading
from typing import Callable

from loguru import logger

ActivityCallback = Callable[[bool], None]


class BackgroundActivity:
    """Aggregated background-activity flag with change subscribers."""

    def __init__(self) -> None:
        self._active: set[str] = set()
        self._subscribers: list[ActivityCallback] = []
        self._lock = threading.Lock()

    @property
    def is_computing_in_background(self) -> bool:
        with self._lock:
            return bool(self._active)

    @property
    def active_sources(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._active)

    def set_active(self, source: str, active: bool) -> None:
        """Record whether ``source`` is currently computing.

        Subscribers are notified only when the aggregate flag flips.
        """
        with self._lock:
            was_active = bool(self._active)
            if active:
                self._active.add(source)
            else:
                self._active.discard(source)
            now_active = bool(self._active)
            subscribers = list(self._subscribers)

        if was_active == now_active:
            return

        logger.debug(f"Background activity {'started' if now_active else 'stopped'} ({source})")
        for callback in subscribers:
            try:
                callback(now_active)
            except Exception:
                logger.exception("Background activity subscriber failed")

    def subscribe(self, callback: ActivityCallback) -> Callable[[], None]:
        """Register a callback for flag changes; returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def reset(self) -> None:
        """Forget all active sources and subscribers."""
        with self._lock:
            self._active.clear()
            self._subscribers.clear()


_activity: BackgroundActivity | None = None
_activity_lock = threading.Lock()


def get_background_activity() -> BackgroundActivity:
    """Get or create the process-wide BackgroundActivity instance."""
    global _activity
    with _activity_lock:
        if _activity is None:
            _activity = BackgroundActivity()
        return _activity
