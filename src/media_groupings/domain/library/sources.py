"""
Offline source collections.

The media player's API delivers albums and tracks as flat JSON arrays. These
loaders read a saved copy of that payload so the grouping subsystem can run
without a live player (CLI, fixtures, debugging).
"""

import json
from pathlib import Path
from typing import Any, Callable, TypeVar

from loguru import logger

from media_groupings.domain.library.models import Album, Track

T = TypeVar("T")


class SourceError(ValueError):
    """Raised when a source collection file cannot be read or parsed."""


def _read_records(path: Path, collection_key: str) -> list[dict[str, Any]]:
    """Read a JSON list of records, or a ``{collection_key: [...]}`` wrapper."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise SourceError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SourceError(f"Invalid JSON in {path}: {e}") from e

    if isinstance(data, dict):
        if collection_key not in data:
            raise SourceError(f"{path} has no '{collection_key}' list")
        data = data[collection_key]

    if not isinstance(data, list):
        raise SourceError(
            f"{path} must contain a list of {collection_key}, got {type(data).__name__}"
        )

    return data


def _parse(
    records: list[Any], factory: Callable[[dict[str, Any]], T], path: Path
) -> list[T]:
    items: list[T] = []
    skipped = 0
    for record in records:
        if not isinstance(record, dict):
            skipped += 1
            continue
        items.append(factory(record))

    if skipped:
        logger.warning(f"Skipped {skipped} non-object records in {path}")
    return items


def load_albums(path: Path | str) -> list[Album]:
    """Load the flat album collection from a JSON file.

    Raises:
        SourceError: If the file is missing, unreadable or not a list of records
    """
    path = Path(path).expanduser()
    albums = _parse(_read_records(path, "albums"), Album.from_dict, path)
    logger.info(f"Loaded {len(albums)} albums from {path}")
    return albums


def load_tracks(path: Path | str) -> list[Track]:
    """Load the flat track collection from a JSON file.

    Raises:
        SourceError: If the file is missing, unreadable or not a list of records
    """
    path = Path(path).expanduser()
    tracks = _parse(_read_records(path, "tracks"), Track.from_dict, path)
    logger.info(f"Loaded {len(tracks)} tracks from {path}")
    return tracks
