"""
Media Groupings CLI - Entry point

Builds the grouped indices from saved album/track collections and prints
lookups, mostly for inspecting what the background grouping produces.
"""

import argparse
import sys
from typing import Optional

from media_groupings.core.config import (
    Config,
    create_default_config,
    get_config_path,
    get_log_file_path,
    load_config,
)
from media_groupings.core.console import print_table, safe_print
from media_groupings.core.output import setup_loguru
from media_groupings.domain.groupings import GroupingKind, GroupingStatus, MediaGroupings
from media_groupings.domain.library import SourceError, load_albums, load_tracks


def run_lookup(
    config: Config,
    albums_path: Optional[str],
    tracks_path: Optional[str],
    artists: list[str],
    album_ids: list[str],
    timeout: Optional[float] = None,
) -> int:
    """Group the collections in the background and print the requested lookups.

    Args:
        config: Loaded configuration
        albums_path: Album collection JSON (None skips albums)
        tracks_path: Track collection JSON (None skips tracks)
        artists: Artist names to look up
        album_ids: Album ids to look up
        timeout: Seconds to wait for grouping to finish (None waits forever)

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    if not albums_path and not tracks_path:
        safe_print("No collections given (use --albums and/or --tracks)", style="red")
        return 1

    try:
        albums = load_albums(albums_path) if albums_path else []
        tracks = load_tracks(tracks_path) if tracks_path else []
    except SourceError as e:
        safe_print(f"❌ {e}", style="red")
        return 1

    with MediaGroupings(config.groupings) as groupings:
        groupings.albums_arrived(albums)
        groupings.tracks_arrived(tracks)

        if not groupings.wait_until_idle(timeout=timeout):
            safe_print(
                f"❌ Grouping still running after {timeout}s: "
                f"{', '.join(groupings.pending_labels)}",
                style="red",
            )
            return 1

        for kind in GroupingKind:
            safe_print(f"{kind.label}: {groupings.status(kind).value}", style="dim")

        # Timed-out or failed requests leave the tracker idle but the kind unavailable
        unavailable = [
            kind.label
            for kind in GroupingKind
            if groupings.status(kind) is GroupingStatus.UNAVAILABLE
        ]
        if unavailable:
            safe_print(f"❌ Grouping unavailable: {', '.join(unavailable)}", style="red")
            return 1

        for artist in artists:
            print_table(
                f"Albums by {artist}",
                ("Id", "Title", "Year"),
                (
                    (album.id, album.title, album.year)
                    for album in groupings.albums_by_artist_name(artist)
                ),
            )
            print_table(
                f"Tracks by {artist}",
                ("Id", "Title", "Album"),
                (
                    (track.id, track.title, track.album)
                    for track in groupings.tracks_by_artist_name(artist)
                ),
            )

        for album_id in album_ids:
            print_table(
                f"Tracks on album {album_id}",
                ("#", "Id", "Title", "Artist"),
                (
                    (track.track_number, track.id, track.title, track.artist)
                    for track in groupings.tracks_by_album_id(album_id)
                ),
            )

    return 0


def run_init_config(force: bool = False) -> int:
    """Write the default config.toml if none exists (or --force)."""
    config_path = get_config_path()
    if config_path.exists() and not force:
        safe_print(f"Config already exists: {config_path}", style="yellow")
        return 1

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(create_default_config() + "\n", encoding="utf-8")
    safe_print(f"Created default configuration at: {config_path}", style="green")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="media-groupings",
        description="Media Groupings - grouped album/track lookups",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    lookup_parser = subparsers.add_parser(
        "lookup", help="Group saved collections and print lookups"
    )
    lookup_parser.add_argument("--albums", help="Album collection JSON file")
    lookup_parser.add_argument("--tracks", help="Track collection JSON file")
    lookup_parser.add_argument(
        "--artist", action="append", default=[], help="Artist name to look up (repeatable)"
    )
    lookup_parser.add_argument(
        "--album-id", action="append", default=[], help="Album id to look up (repeatable)"
    )
    lookup_parser.add_argument(
        "--timeout", type=float, default=None, help="Seconds to wait for grouping"
    )

    init_parser = subparsers.add_parser("init-config", help="Write a default config.toml")
    init_parser.add_argument(
        "--force", action="store_true", help="Overwrite an existing config"
    )

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the media-groupings command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.subcommand == "init-config":
        sys.exit(run_init_config(force=args.force))

    if args.subcommand == "lookup":
        config = load_config()
        setup_loguru(get_log_file_path(config), level=config.logging.level)
        timeout = args.timeout
        if timeout is None:
            timeout = config.groupings.response_timeout_seconds
        sys.exit(
            run_lookup(
                config,
                albums_path=args.albums or config.sources.albums_path,
                tracks_path=args.tracks or config.sources.tracks_path,
                artists=args.artist,
                album_ids=args.album_id,
                timeout=timeout,
            )
        )

    parser.print_help()
    sys.exit(1)


if __name__ == "__main__":
    main()
