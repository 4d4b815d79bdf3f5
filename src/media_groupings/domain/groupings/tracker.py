"""Pending-computation tracker - which grouping requests are still outstanding.

State changes go through ``reduce_pending`` (pure, returns a new state).
Entries are keyed by request id rather than by label, so two requests for the
same kind never cancel each other out.
"""

from dataclasses import dataclass, replace
from time import monotonic
from typing import Any, Callable, Optional

from loguru import logger


@dataclass(frozen=True)
class PendingEntry:
    """One request sent to the engine and not yet answered."""

    request_id: int
    label: str
    started_at: float


@dataclass(frozen=True)
class PendingState:
    """Immutable tracker state - outstanding entries in dispatch order."""

    outstanding: tuple[PendingEntry, ...] = ()

    @property
    def is_computing(self) -> bool:
        return len(self.outstanding) > 0

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(entry.label for entry in self.outstanding)

    def has_request(self, request_id: int) -> bool:
        return any(entry.request_id == request_id for entry in self.outstanding)

    def expired(self, now: float, timeout: float) -> tuple[PendingEntry, ...]:
        """Entries that have been outstanding for at least ``timeout`` seconds."""
        return tuple(
            entry for entry in self.outstanding if now - entry.started_at >= timeout
        )


@dataclass(frozen=True)
class AddPending:
    request_id: int
    label: str
    started_at: float = 0.0


@dataclass(frozen=True)
class RemovePending:
    request_id: int


PendingAction = AddPending | RemovePending


def reduce_pending(state: PendingState, action: Any) -> PendingState:
    """Apply one action and return the new state.

    Unrecognized actions and removals of unknown ids leave the state unchanged.
    """
    if isinstance(action, AddPending):
        entry = PendingEntry(action.request_id, action.label, action.started_at)
        return replace(state, outstanding=state.outstanding + (entry,))

    if isinstance(action, RemovePending):
        for index, entry in enumerate(state.outstanding):
            if entry.request_id == action.request_id:
                return replace(
                    state,
                    outstanding=state.outstanding[:index] + state.outstanding[index + 1 :],
                )
        return state

    logger.debug(f"Ignoring unknown pending action: {action!r}")
    return state


class PendingTracker:
    """Holds the current PendingState and reports ``is_computing`` on every change.

    Args:
        on_change: Called with the derived ``is_computing`` flag after every
            state transition
        clock: Time source for entry timestamps
    """

    def __init__(
        self,
        on_change: Optional[Callable[[bool], None]] = None,
        clock: Callable[[], float] = monotonic,
    ):
        self.state = PendingState()
        self._on_change = on_change
        self._clock = clock

    @property
    def is_computing(self) -> bool:
        return self.state.is_computing

    @property
    def labels(self) -> tuple[str, ...]:
        return self.state.labels

    def add(self, request_id: int, label: str) -> None:
        self.dispatch(AddPending(request_id, label, self._clock()))

    def remove(self, request_id: int) -> None:
        self.dispatch(RemovePending(request_id))

    def dispatch(self, action: Any) -> PendingState:
        new_state = reduce_pending(self.state, action)
        if new_state is not self.state:
            self.state = new_state
            if self._on_change is not None:
                self._on_change(new_state.is_computing)
        return self.state

    def expired(self, timeout: float) -> tuple[PendingEntry, ...]:
        return self.state.expired(self._clock(), timeout)
