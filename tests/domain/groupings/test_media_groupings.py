"""Tests for the MediaGroupings consumer API."""

import queue

import pytest

from media_groupings.core.activity import BackgroundActivity
from media_groupings.core.config import GroupingsConfig
from media_groupings.domain.groupings.engine import (
    GroupingRequest,
    GroupingResponse,
    compute_grouped_index,
)
from media_groupings.domain.groupings.kinds import GroupingKind
from media_groupings.domain.groupings.media_groupings import (
    GroupingStatus,
    MediaGroupings,
)
from media_groupings.domain.library.models import Album, Track


class FakeEngine:
    """Engine stand-in that only answers when told to."""

    def __init__(self) -> None:
        self.submitted: list[GroupingRequest] = []
        self.responses: queue.Queue = queue.Queue()
        self.stopped = False

    def submit(self, request: GroupingRequest) -> None:
        self.submitted.append(request)

    def stop(self) -> None:
        self.stopped = True

    def respond(self, request: GroupingRequest) -> None:
        self.responses.put(
            GroupingResponse(
                request_id=request.request_id,
                kind=request.kind,
                result=compute_grouped_index(request.kind, request.payload),
            )
        )

    def fail(self, request: GroupingRequest, error: str = "boom") -> None:
        self.responses.put(
            GroupingResponse(request_id=request.request_id, kind=request.kind, error=error)
        )

    def request_for(self, kind: GroupingKind) -> GroupingRequest:
        return [r for r in self.submitted if r.kind is kind][-1]


@pytest.fixture
def tracks() -> list[Track]:
    return [
        Track(id="t1", artist="Bowie", album="a1", title="Five Years"),
        Track(id="t2", artist="Bowie", album="a1", title="Soul Love"),
        Track(id="t3", artist="Eno", album="a2", title="Here Come the Warm Jets"),
    ]


@pytest.fixture
def albums() -> list[Album]:
    return [
        Album(id="a1", artist="Bowie", title="Ziggy Stardust"),
        Album(id="a2", artist="Eno", title="Here Come the Warm Jets"),
    ]


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def activity() -> BackgroundActivity:
    return BackgroundActivity()


@pytest.fixture
def groupings(engine: FakeEngine, activity: BackgroundActivity) -> MediaGroupings:
    return MediaGroupings(engine=engine, activity=activity)


class TestLookupsBeforeData:
    """Lookups default to empty before anything is computed."""

    def test_all_lookups_empty(self, groupings: MediaGroupings) -> None:
        assert groupings.albums_by_artist_name("Bowie") == ()
        assert groupings.tracks_by_artist_name("Bowie") == ()
        assert groupings.tracks_by_album_id("a1") == ()
        assert not groupings.is_computing

    def test_status_absent(self, groupings: MediaGroupings) -> None:
        for kind in GroupingKind:
            assert groupings.status(kind) is GroupingStatus.ABSENT


class TestDispatch:
    """Tests for arrival handling."""

    def test_albums_dispatch_one_request(self, groupings, engine, albums) -> None:
        assert groupings.albums_arrived(albums) == 1
        assert [r.kind for r in engine.submitted] == [GroupingKind.ALBUMS_BY_ARTIST_NAME]
        assert groupings.pending_labels == ("allAlbumsByArtistName",)

    def test_tracks_dispatch_two_requests(self, groupings, engine, tracks) -> None:
        assert groupings.tracks_arrived(tracks) == 2
        assert [r.kind for r in engine.submitted] == [
            GroupingKind.TRACKS_BY_ARTIST_NAME,
            GroupingKind.TRACKS_BY_ALBUM_ID,
        ]
        assert groupings.pending_labels == ("allTracksByArtistName", "allTracksByAlbumId")

    def test_request_ids_are_unique(self, groupings, engine, albums, tracks) -> None:
        groupings.albums_arrived(albums)
        groupings.tracks_arrived(tracks)
        ids = [r.request_id for r in engine.submitted]
        assert len(set(ids)) == 3

    @pytest.mark.parametrize("collection", [None, []])
    def test_empty_collection_sends_nothing(self, groupings, engine, collection) -> None:
        assert groupings.albums_arrived(collection) == 0
        assert groupings.tracks_arrived(collection) == 0
        assert engine.submitted == []
        assert not groupings.is_computing

    def test_same_collection_dispatched_once(self, groupings, engine, tracks) -> None:
        groupings.tracks_arrived(tracks)
        assert groupings.tracks_arrived(tracks) == 0
        assert len(engine.submitted) == 2

    def test_refetched_collection_dispatches_again(self, groupings, engine, tracks) -> None:
        groupings.tracks_arrived(tracks)
        assert groupings.tracks_arrived(list(tracks)) == 2
        assert len(engine.submitted) == 4

    def test_payload_is_snapshot(self, groupings, engine, tracks) -> None:
        groupings.tracks_arrived(tracks)
        tracks.append(Track(id="t9", artist="Bowie", album="a1"))
        assert len(engine.submitted[0].payload) == 3


class TestResponses:
    """Tests for storing engine results."""

    def test_example_scenario(self, groupings, engine, tracks) -> None:
        groupings.tracks_arrived(tracks)
        engine.respond(engine.request_for(GroupingKind.TRACKS_BY_ARTIST_NAME))
        groupings.poll()

        assert groupings.tracks_by_artist_name("Bowie") == (tracks[0], tracks[1])
        assert groupings.tracks_by_artist_name("Eno") == (tracks[2],)
        assert groupings.tracks_by_artist_name("Nobody") == ()

        engine.respond(engine.request_for(GroupingKind.TRACKS_BY_ALBUM_ID))
        groupings.poll()
        assert groupings.tracks_by_album_id("a1") == (tracks[0], tracks[1])

    def test_is_computing_until_response(self, groupings, engine, albums) -> None:
        groupings.albums_arrived(albums)
        assert groupings.is_computing
        assert groupings.status(GroupingKind.ALBUMS_BY_ARTIST_NAME) is GroupingStatus.PENDING

        assert groupings.poll() == 0
        assert groupings.is_computing

        engine.respond(engine.submitted[0])
        assert groupings.poll() == 1
        assert not groupings.is_computing
        assert groupings.status(GroupingKind.ALBUMS_BY_ARTIST_NAME) is GroupingStatus.READY
        assert groupings.albums_by_artist_name("Bowie") == (albums[0],)

    def test_computing_while_any_kind_outstanding(self, groupings, engine, tracks) -> None:
        groupings.tracks_arrived(tracks)
        engine.respond(engine.submitted[1])
        groupings.poll()

        assert groupings.is_computing
        assert groupings.pending_labels == ("allTracksByArtistName",)
        assert groupings.tracks_by_album_id("a2") == (tracks[2],)

    def test_responses_in_any_order(self, groupings, engine, albums, tracks) -> None:
        groupings.albums_arrived(albums)
        groupings.tracks_arrived(tracks)
        for request in reversed(engine.submitted):
            engine.respond(request)

        assert groupings.poll() == 3
        assert not groupings.is_computing
        for kind in GroupingKind:
            assert groupings.status(kind) is GroupingStatus.READY

    def test_repeated_reads_are_identical(self, groupings, engine, tracks) -> None:
        groupings.tracks_arrived(tracks)
        for request in engine.submitted:
            engine.respond(request)
        groupings.poll()

        first = groupings.tracks_by_artist_name("Bowie")
        second = groupings.tracks_by_artist_name("Bowie")
        assert first is second
        assert len(engine.submitted) == 2

    def test_superseded_response_is_discarded(self, groupings, engine, tracks) -> None:
        groupings.tracks_arrived(tracks)
        old_by_album = engine.request_for(GroupingKind.TRACKS_BY_ALBUM_ID)

        refetched = [Track(id="t9", artist="Can", album="a9")]
        groupings.tracks_arrived(refetched)
        new_by_album = engine.request_for(GroupingKind.TRACKS_BY_ALBUM_ID)

        engine.respond(old_by_album)
        groupings.poll()
        assert groupings.tracks_by_album_id("a1") == ()
        assert old_by_album.request_id not in [
            e.request_id for e in groupings._tracker.state.outstanding
        ]

        engine.respond(new_by_album)
        groupings.poll()
        assert groupings.tracks_by_album_id("a9") == (refetched[0],)

    def test_all_requests_clear_after_refetch(self, groupings, engine, tracks) -> None:
        groupings.tracks_arrived(tracks)
        groupings.tracks_arrived(list(tracks))
        for request in engine.submitted:
            engine.respond(request)
        groupings.poll()
        assert not groupings.is_computing

    def test_new_index_replaces_old(self, groupings, engine, tracks) -> None:
        groupings.tracks_arrived(tracks)
        for request in engine.submitted:
            engine.respond(request)
        groupings.poll()

        groupings.tracks_arrived([Track(id="t9", artist="Can", album="a9")])
        # Old index still served while the new one computes
        assert groupings.tracks_by_album_id("a1") == (tracks[0], tracks[1])

        for request in engine.submitted[2:]:
            engine.respond(request)
        groupings.poll()
        assert groupings.tracks_by_album_id("a1") == ()
        assert len(groupings.tracks_by_album_id("a9")) == 1

    def test_error_response_marks_unavailable(self, groupings, engine, albums) -> None:
        groupings.albums_arrived(albums)
        engine.fail(engine.submitted[0])
        groupings.poll()

        assert not groupings.is_computing
        assert groupings.status(GroupingKind.ALBUMS_BY_ARTIST_NAME) is GroupingStatus.UNAVAILABLE
        assert groupings.albums_by_artist_name("Bowie") == ()

    def test_unrecognized_response_ignored(self, groupings, engine, albums) -> None:
        groupings.albums_arrived(albums)
        engine.responses.put({"type": "allAlbumsByArtistName", "result": {}})

        assert groupings.poll() == 0
        assert groupings.is_computing


class TestTimeout:
    """Tests for the optional response timeout."""

    def test_expired_request_marks_unavailable(self, engine, activity, albums) -> None:
        now = [0.0]
        groupings = MediaGroupings(
            config=GroupingsConfig(response_timeout_seconds=5.0),
            engine=engine,
            activity=activity,
            clock=lambda: now[0],
        )
        groupings.albums_arrived(albums)

        now[0] = 4.0
        groupings.poll()
        assert groupings.is_computing

        now[0] = 5.0
        groupings.poll()
        assert not groupings.is_computing
        assert groupings.status(GroupingKind.ALBUMS_BY_ARTIST_NAME) is GroupingStatus.UNAVAILABLE

    def test_late_response_still_stored(self, engine, activity, albums) -> None:
        now = [0.0]
        groupings = MediaGroupings(
            config=GroupingsConfig(response_timeout_seconds=1.0),
            engine=engine,
            activity=activity,
            clock=lambda: now[0],
        )
        groupings.albums_arrived(albums)
        now[0] = 2.0
        groupings.poll()

        engine.respond(engine.submitted[0])
        groupings.poll()
        assert groupings.status(GroupingKind.ALBUMS_BY_ARTIST_NAME) is GroupingStatus.READY
        assert groupings.albums_by_artist_name("Eno") == (albums[1],)

    def test_no_timeout_waits_forever(self, engine, activity, albums) -> None:
        now = [0.0]
        groupings = MediaGroupings(engine=engine, activity=activity, clock=lambda: now[0])
        groupings.albums_arrived(albums)
        now[0] = 1_000_000.0
        groupings.poll()
        assert groupings.is_computing


class TestBackgroundActivity:
    """Tests for the process-wide activity signal."""

    def test_signal_follows_pending_state(self, groupings, engine, activity, tracks) -> None:
        changes: list[bool] = []
        activity.subscribe(changes.append)

        groupings.tracks_arrived(tracks)
        assert activity.is_computing_in_background

        for request in engine.submitted:
            engine.respond(request)
        groupings.poll()

        assert not activity.is_computing_in_background
        assert changes == [True, False]

    def test_close_withdraws_activity(self, groupings, engine, activity, tracks) -> None:
        groupings.tracks_arrived(tracks)
        groupings.close()
        assert not activity.is_computing_in_background

    def test_injected_engine_not_stopped(self, groupings, engine) -> None:
        groupings.close()
        assert not engine.stopped


class TestArtistsWithAlbums:
    def test_filters_and_keeps_order(self, groupings, engine, albums) -> None:
        groupings.albums_arrived(albums)
        engine.respond(engine.submitted[0])
        groupings.poll()

        assert groupings.artists_with_albums(["Eno", "Can", "Bowie"]) == ["Eno", "Bowie"]


class TestWithRealEngine:
    """End-to-end with the threaded engine."""

    def test_wait_until_idle(self, activity, albums, tracks) -> None:
        with MediaGroupings(activity=activity) as groupings:
            groupings.albums_arrived(albums)
            groupings.tracks_arrived(tracks)

            assert groupings.wait_until_idle(timeout=5.0)
            assert groupings.albums_by_artist_name("Bowie") == (albums[0],)
            assert groupings.tracks_by_artist_name("Bowie") == (tracks[0], tracks[1])
            assert groupings.tracks_by_album_id("a2") == (tracks[2],)
            assert not activity.is_computing_in_background

    def test_wait_until_idle_times_out(self, engine, activity, albums) -> None:
        groupings = MediaGroupings(engine=engine, activity=activity)
        groupings.albums_arrived(albums)
        assert groupings.wait_until_idle(timeout=0.1) is False

    def test_wait_until_idle_when_nothing_requested(self, groupings) -> None:
        assert groupings.wait_until_idle(timeout=0.1)

    def test_close_stops_owned_engine(self, activity, albums) -> None:
        groupings = MediaGroupings(activity=activity)
        groupings.albums_arrived(albums)
        groupings.wait_until_idle(timeout=5.0)
        groupings.close()
        assert not groupings._engine.is_alive
