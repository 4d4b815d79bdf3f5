"""Library domain - the flat media collections.

This domain handles:
- Album and Track data models
- Loading saved API payloads from disk
"""

from .models import Album, MediaItem, Track
from .sources import SourceError, load_albums, load_tracks

__all__ = [
    # Models
    "Album",
    "MediaItem",
    "Track",
    # Sources
    "SourceError",
    "load_albums",
    "load_tracks",
]
