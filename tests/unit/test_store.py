"""Tests for the dashboard state store."""

import pytest

from etcdash.data.models import ActionKind, ActionRequest, DashboardState
from etcdash.data.store import StateStore


class TestStateStore:
    def test_initial_state(self):
        store = StateStore()
        assert store.state == DashboardState()
        assert store.alive is True

    def test_update_replaces_state(self, sample_snapshot):
        store = StateStore()
        before = store.state

        store.update(snapshot=sample_snapshot, last_error=None)

        assert store.state is not before
        assert store.state.snapshot == sample_snapshot
        assert before.snapshot == DashboardState().snapshot

    def test_subscribers_get_every_change(self):
        store = StateStore()
        seen = []
        store.subscribe(seen.append)

        store.update(is_busy=True)
        store.update(is_busy=False, last_error="boom")

        assert [s.is_busy for s in seen] == [True, False]
        assert seen[-1].last_error == "boom"

    def test_unsubscribe(self):
        store = StateStore()
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        unsubscribe()

        store.update(is_busy=True)
        assert seen == []

    def test_failing_subscriber_does_not_block_others(self):
        store = StateStore()
        seen = []

        def broken(state):
            raise RuntimeError("render failed")

        store.subscribe(broken)
        store.subscribe(seen.append)
        store.update(is_busy=True)

        assert len(seen) == 1

    def test_dispose_ignores_writes(self, sample_snapshot):
        store = StateStore()
        seen = []
        store.subscribe(seen.append)
        store.dispose()

        assert store.update(snapshot=sample_snapshot) is False
        assert not store.state.snapshot
        assert seen == []


class TestPollSequencing:
    def test_successful_poll_applies_snapshot_and_clears_error(self, sample_snapshot):
        store = StateStore(DashboardState(last_error="old failure"))
        seq = store.begin_poll()
        assert store.state.is_busy is True

        assert store.finish_poll(seq, snapshot=sample_snapshot) is True

        assert store.state.snapshot == sample_snapshot
        assert store.state.last_error is None
        assert store.state.is_busy is False
        assert store.state.last_refresh_ts is not None

    def test_failed_poll_keeps_snapshot(self, sample_snapshot):
        store = StateStore(DashboardState(snapshot=sample_snapshot))
        seq = store.begin_poll()

        store.finish_poll(seq, error="HTTP 500")

        assert store.state.snapshot == sample_snapshot
        assert store.state.last_error == "HTTP 500"
        assert store.state.is_busy is False

    def test_older_poll_finishing_last_is_dropped(self, sample_snapshot, other_snapshot):
        store = StateStore()
        slow = store.begin_poll()
        fast = store.begin_poll()

        assert store.finish_poll(fast, snapshot=other_snapshot) is True
        assert store.state.is_busy is True  # slow one still outstanding
        assert store.finish_poll(slow, snapshot=sample_snapshot) is False

        assert store.state.snapshot == other_snapshot
        assert store.state.is_busy is False

    def test_stale_failure_does_not_set_error(self, sample_snapshot):
        store = StateStore()
        slow = store.begin_poll()
        fast = store.begin_poll()

        store.finish_poll(fast, snapshot=sample_snapshot)
        store.finish_poll(slow, error="connection refused")

        assert store.state.last_error is None

    def test_in_order_completion_applies_both(self, sample_snapshot, other_snapshot):
        store = StateStore()
        first = store.begin_poll()
        second = store.begin_poll()

        assert store.finish_poll(first, snapshot=sample_snapshot) is True
        assert store.finish_poll(second, snapshot=other_snapshot) is True
        assert store.state.snapshot == other_snapshot

    def test_abandon_poll_releases_busy_only(self, sample_snapshot):
        store = StateStore(DashboardState(snapshot=sample_snapshot, last_error="x"))
        seq = store.begin_poll()
        store.abandon_poll(seq)

        assert store.state.is_busy is False
        assert store.state.last_error == "x"
        assert store.state.snapshot == sample_snapshot

    def test_finish_after_dispose_is_dropped(self, sample_snapshot):
        store = StateStore()
        seq = store.begin_poll()
        store.dispose()

        assert store.finish_poll(seq, snapshot=sample_snapshot) is False
        assert not store.state.snapshot


class TestActionTracking:
    def test_action_keeps_busy_until_finished(self):
        store = StateStore()
        request = ActionRequest(ActionKind.COMPACT)

        store.begin_action(request)
        assert store.state.is_busy is True
        assert store.state.active_action == request

        store.finish_action()
        assert store.state.is_busy is False
        assert store.state.active_action is None

    def test_action_error(self, sample_snapshot):
        store = StateStore(DashboardState(snapshot=sample_snapshot))
        store.begin_action(ActionRequest(ActionKind.DEFRAG))
        store.finish_action(error="no space")

        assert store.state.last_error == "no space"
        assert store.state.snapshot == sample_snapshot

    @pytest.mark.parametrize("finish_poll_first", [True, False])
    def test_busy_while_any_request_outstanding(self, sample_snapshot, finish_poll_first):
        store = StateStore()
        seq = store.begin_poll()
        store.begin_action(ActionRequest(ActionKind.COMPACT))

        if finish_poll_first:
            store.finish_poll(seq, snapshot=sample_snapshot)
        else:
            store.finish_action()
        assert store.state.is_busy is True

        if finish_poll_first:
            store.finish_action()
        else:
            store.finish_poll(seq, snapshot=sample_snapshot)
        assert store.state.is_busy is False
