"""Unit tests for the in-memory snapshot store.

Tests the success/failure state transitions, the retention window used for
cache validity, and the two independent clauses of the health predicate.
"""

from datetime import timedelta

import pytest

from signage_player.cache import CacheSnapshot, SnapshotStore, isoformat


EVENTS = [
    {'id': 1, 'startDatetime': '2024-09-14T18:00:00Z'},
    {'id': 2, 'startDatetime': '2024-09-14T20:00:00Z'},
]


class TestInitialState:
    """Tests for a store that has never fetched."""

    def test_empty_snapshot(self, store):
        snapshot = store.get()

        assert snapshot.events == ()
        assert snapshot.venue is None
        assert snapshot.fetched_at is None
        assert snapshot.last_successful_fetch is None
        assert snapshot.is_offline is False
        assert snapshot.error_count == 0

    def test_not_valid_and_not_healthy(self, store):
        assert store.is_cache_valid() is False
        assert store.is_healthy() is False


class TestTransitions:
    """Tests for replace() and record_failure()."""

    def test_replace_publishes_everything(self, store, clock):
        store.replace(EVENTS, {'name': 'Main Hall'}, clock())
        snapshot = store.get()

        assert [e['id'] for e in snapshot.events] == [1, 2]
        assert snapshot.venue == {'name': 'Main Hall'}
        assert snapshot.fetched_at == clock()
        assert snapshot.last_successful_fetch == clock()
        assert snapshot.is_offline is False
        assert snapshot.error_count == 0

    def test_failures_count_up_and_preserve_data(self, store, clock):
        """Two failures after a success give error counts 1 then 2, data intact."""
        success_time = clock()
        store.replace(EVENTS, {'name': 'Main Hall'}, success_time)

        first = store.record_failure(clock.advance(minutes=1))
        assert first.error_count == 1
        assert first.is_offline is True

        second = store.record_failure(clock.advance(minutes=1))
        assert second.error_count == 2
        assert second.events == tuple(EVENTS)
        assert second.venue == {'name': 'Main Hall'}
        assert second.last_successful_fetch == success_time
        assert second.fetched_at == clock()

    def test_success_resets_error_state(self, store, clock):
        store.record_failure(clock())
        store.record_failure(clock.advance(minutes=1))

        store.replace(EVENTS, None, clock.advance(minutes=1))
        snapshot = store.get()

        assert snapshot.error_count == 0
        assert snapshot.is_offline is False

    def test_failure_without_prior_success(self, store, clock):
        snapshot = store.record_failure(clock())

        assert snapshot.events == ()
        assert snapshot.last_successful_fetch is None
        assert snapshot.error_count == 1

    def test_snapshots_are_immutable(self, store, clock):
        store.replace(EVENTS, None, clock())

        with pytest.raises(AttributeError):
            store.get().error_count = 5

    def test_old_snapshot_unchanged_after_failure(self, store, clock):
        """Readers holding a snapshot never see later updates."""
        store.replace(EVENTS, None, clock())
        held = store.get()

        store.record_failure(clock.advance(minutes=1))

        assert held.error_count == 0
        assert held.is_offline is False


class TestCacheValidity:
    """Tests for the retention window."""

    def test_valid_just_inside_window(self, store, clock):
        success_time = clock()
        store.replace(EVENTS, None, success_time)

        assert store.is_cache_valid(success_time + timedelta(hours=23, minutes=59)) is True

    def test_invalid_at_window_boundary(self, store, clock):
        success_time = clock()
        store.replace(EVENTS, None, success_time)

        assert store.is_cache_valid(success_time + timedelta(hours=24)) is False

    def test_uses_clock_by_default(self, store, clock):
        store.replace(EVENTS, None, clock())

        clock.advance(hours=25)

        assert store.is_cache_valid() is False


class TestHealth:
    """Tests for the health predicate."""

    def test_healthy_with_valid_cache_and_no_events(self, store, clock):
        """A recent successful fetch of zero events is healthy."""
        store.replace([], None, clock())

        assert store.is_healthy() is True

    def test_healthy_with_events_after_retention(self, store, clock):
        """Stale events still count as usable data."""
        store.replace(EVENTS, None, clock())
        clock.advance(hours=48)

        assert store.is_cache_valid() is False
        assert store.is_healthy() is True

    def test_unhealthy_with_expired_empty_cache(self, store, clock):
        store.replace([], None, clock())
        clock.advance(hours=48)

        assert store.is_healthy() is False


class TestSerialization:
    """Tests for CacheSnapshot helpers."""

    def test_isoformat_uses_z_and_milliseconds(self, clock):
        assert isoformat(clock()) == '2024-09-14T12:00:00.000Z'

    def test_isoformat_none(self):
        assert isoformat(None) is None

    def test_to_dict_keys(self, store, clock):
        store.replace(EVENTS, None, clock())

        data = store.get().to_dict()

        assert data == {
            'events': EVENTS,
            'venue': None,
            'fetchedAt': '2024-09-14T12:00:00.000Z',
            'lastSuccessfulFetch': '2024-09-14T12:00:00.000Z',
            'isOffline': False,
            'errorCount': 0,
        }

    def test_display_events_limit(self):
        snapshot = CacheSnapshot(events=tuple({'id': i} for i in range(10)))

        assert len(snapshot.display_events(6)) == 6
        assert snapshot.display_events(6)[0] == {'id': 0}


class TestSnapshotEvaluation:
    """Tests for evaluating validity and health against a given snapshot."""

    def test_healthy_uses_given_snapshot(self, store, clock):
        store.replace(EVENTS, None, clock())
        held = store.get()

        store.replace([], None, clock())
        clock.advance(hours=25)

        assert store.is_healthy(snapshot=held) is True
        assert store.is_healthy() is False

    def test_cache_valid_uses_given_snapshot(self, store, clock):
        store.replace(EVENTS, None, clock())

        assert store.is_cache_valid(snapshot=CacheSnapshot()) is False
        assert store.is_cache_valid() is True

    def test_now_uses_store_clock(self, store, clock):
        assert store.now() == clock()
