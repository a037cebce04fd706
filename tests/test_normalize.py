"""Unit tests for event payload normalization."""

from datetime import datetime, timezone

from signage_player.services.normalize import (
    hydrate_media_urls,
    normalize_events,
    parse_start,
    sort_events_by_time,
)

BASE_URL = 'https://displays.coregeek.test'


class TestHydrateMediaUrls:
    """Tests for hydrate_media_urls()."""

    def test_upload_paths_become_absolute(self):
        events = [{'imageUrl': '/uploads/a.jpg'}]

        result = hydrate_media_urls(events, BASE_URL)

        assert result[0]['imageUrl'] == 'https://displays.coregeek.test/uploads/a.jpg'

    def test_absolute_urls_pass_through(self):
        events = [{'imageUrl': 'https://cdn.example.org/a.jpg'}]

        assert hydrate_media_urls(events, BASE_URL)[0]['imageUrl'] == 'https://cdn.example.org/a.jpg'

    def test_other_relative_paths_pass_through(self):
        events = [{'imageUrl': '/static/a.jpg'}, {'imageUrl': None}, {}]

        result = hydrate_media_urls(events, BASE_URL)

        assert result == [{'imageUrl': '/static/a.jpg'}, {'imageUrl': None}, {}]

    def test_input_is_not_mutated(self):
        original = {'imageUrl': '/uploads/a.jpg', 'title': 'A'}

        hydrate_media_urls([original], BASE_URL)

        assert original['imageUrl'] == '/uploads/a.jpg'


class TestParseStart:
    """Tests for parse_start()."""

    def test_zulu_timestamp(self):
        assert parse_start('2024-09-14T18:00:00Z') == datetime(2024, 9, 14, 18, 0, tzinfo=timezone.utc)

    def test_fractional_seconds_and_offset(self):
        parsed = parse_start('2024-09-14T20:00:00.500+02:00')
        assert parsed == datetime(2024, 9, 14, 18, 0, 0, 500000, tzinfo=timezone.utc)

    def test_naive_timestamp_is_utc(self):
        assert parse_start('2024-09-14T18:00:00').tzinfo is not None

    def test_invalid_values(self):
        assert parse_start('not a date') is None
        assert parse_start('') is None
        assert parse_start(None) is None
        assert parse_start(12345) is None


class TestSortEventsByTime:
    """Tests for sort_events_by_time()."""

    def test_sorted_ascending(self):
        """[T3, T1, T2] becomes [T1, T2, T3]."""
        events = [
            {'id': 3, 'startDatetime': '2024-09-14T22:00:00Z'},
            {'id': 1, 'startDatetime': '2024-09-14T18:00:00Z'},
            {'id': 2, 'startDatetime': '2024-09-14T20:00:00Z'},
        ]

        assert [e['id'] for e in sort_events_by_time(events)] == [1, 2, 3]

    def test_equal_start_times_keep_order(self):
        events = [
            {'id': 'a', 'startDatetime': '2024-09-14T18:00:00Z'},
            {'id': 'b', 'startDatetime': '2024-09-14T18:00:00Z'},
            {'id': 'c', 'startDatetime': '2024-09-14T17:00:00Z'},
        ]

        assert [e['id'] for e in sort_events_by_time(events)] == ['c', 'a', 'b']

    def test_invalid_start_times_sort_last_in_original_order(self):
        events = [
            {'id': 'x', 'startDatetime': 'garbage'},
            {'id': 'late', 'startDatetime': '2024-09-14T22:00:00Z'},
            {'id': 'y'},
            {'id': 'early', 'startDatetime': '2024-09-14T18:00:00Z'},
        ]

        assert [e['id'] for e in sort_events_by_time(events)] == ['early', 'late', 'x', 'y']

    def test_mixed_offsets_compare_by_instant(self):
        events = [
            {'id': 'utc', 'startDatetime': '2024-09-14T18:30:00Z'},
            {'id': 'cest', 'startDatetime': '2024-09-14T20:00:00+02:00'},
        ]

        assert [e['id'] for e in sort_events_by_time(events)] == ['cest', 'utc']


class TestNormalizeEvents:
    """Tests for normalize_events()."""

    def test_hydrates_and_sorts(self):
        events = [
            {'id': 2, 'startDatetime': '2024-09-14T20:00:00Z', 'imageUrl': '/uploads/b.jpg'},
            {'id': 1, 'startDatetime': '2024-09-14T18:00:00Z'},
        ]

        result = normalize_events(events, BASE_URL)

        assert [e['id'] for e in result] == [1, 2]
        assert result[1]['imageUrl'] == 'https://displays.coregeek.test/uploads/b.jpg'
