"""Groupings domain - fast lookup indices over the flat media collections.

This domain handles:
- The three grouping kinds and their key extractors
- The background grouping engine and its message protocol
- Pending-request tracking
- The consumer lookup API
"""

from .engine import (
    GroupingEngine,
    GroupingRequest,
    GroupingResponse,
    compute_grouped_index,
)
from .kinds import GroupedIndex, GroupingKind, GroupKey, kinds_for_source
from .media_groupings import GroupingStatus, MediaGroupings
from .store import IndexStore
from .tracker import (
    AddPending,
    PendingAction,
    PendingEntry,
    PendingState,
    PendingTracker,
    RemovePending,
    reduce_pending,
)

__all__ = [
    # Kinds
    "GroupedIndex",
    "GroupingKind",
    "GroupKey",
    "kinds_for_source",
    # Engine
    "GroupingEngine",
    "GroupingRequest",
    "GroupingResponse",
    "compute_grouped_index",
    # Tracker
    "AddPending",
    "PendingAction",
    "PendingEntry",
    "PendingState",
    "PendingTracker",
    "RemovePending",
    "reduce_pending",
    # Store
    "IndexStore",
    # Consumer API
    "GroupingStatus",
    "MediaGroupings",
]
