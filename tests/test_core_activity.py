"""Tests for the background activity signal."""

from media_groupings.core.activity import BackgroundActivity, get_background_activity


class TestBackgroundActivity:
    def test_idle_by_default(self) -> None:
        activity = BackgroundActivity()
        assert not activity.is_computing_in_background
        assert activity.active_sources == frozenset()

    def test_one_source_does_not_clear_another(self) -> None:
        activity = BackgroundActivity()
        activity.set_active("groupings", True)
        activity.set_active("artwork", True)
        activity.set_active("groupings", False)

        assert activity.is_computing_in_background
        assert activity.active_sources == frozenset({"artwork"})

        activity.set_active("artwork", False)
        assert not activity.is_computing_in_background

    def test_subscribers_notified_on_flip_only(self) -> None:
        activity = BackgroundActivity()
        changes: list[bool] = []
        activity.subscribe(changes.append)

        activity.set_active("a", True)
        activity.set_active("b", True)
        activity.set_active("a", True)
        activity.set_active("a", False)
        activity.set_active("b", False)
        activity.set_active("b", False)

        assert changes == [True, False]

    def test_unsubscribe(self) -> None:
        activity = BackgroundActivity()
        changes: list[bool] = []
        unsubscribe = activity.subscribe(changes.append)
        unsubscribe()
        unsubscribe()

        activity.set_active("a", True)
        assert changes == []

    def test_failing_subscriber_does_not_break_others(self) -> None:
        activity = BackgroundActivity()
        changes: list[bool] = []

        def broken(_: bool) -> None:
            raise RuntimeError("indicator gone")

        activity.subscribe(broken)
        activity.subscribe(changes.append)
        activity.set_active("a", True)

        assert changes == [True]

    def test_reset(self) -> None:
        activity = BackgroundActivity()
        activity.set_active("a", True)
        activity.reset()
        assert not activity.is_computing_in_background

    def test_process_singleton(self) -> None:
        assert get_background_activity() is get_background_activity()
