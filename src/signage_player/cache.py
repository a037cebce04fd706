"""
In-memory event cache for Signage Player.

The cache holds exactly one CacheSnapshot. The refresher is its only writer;
routes read it on every request. Snapshots are immutable and each update
publishes a complete new snapshot with a single reference swap, so a reader
never sees a half-applied update.

State rules:
- success replaces everything and clears the error state
- failure keeps events, venue and last_successful_fetch, bumps error_count
  and marks the cache offline
- data is never dropped because it is old; the retention window only feeds
  the validity and health signals
"""

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Serialize a timestamp as ISO-8601 with millisecond precision and 'Z'."""
    if value is None:
        return None
    value = value.astimezone(timezone.utc)
    return value.strftime('%Y-%m-%dT%H:%M:%S.') + f'{value.microsecond // 1000:03d}Z'


@dataclass(frozen=True)
class CacheSnapshot:
    """
    Current view of fetched events plus fetch bookkeeping.

    Attributes:
        events: Events sorted by start time, earliest first
        venue: Venue metadata, or None
        fetched_at: Time of the most recent fetch attempt
        last_successful_fetch: Time of the most recent successful fetch
        is_offline: True when the most recent fetch attempt failed
        error_count: Consecutive failed attempts since the last success
    """
    events: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)
    venue: Optional[Dict[str, Any]] = None
    fetched_at: Optional[datetime] = None
    last_successful_fetch: Optional[datetime] = None
    is_offline: bool = False
    error_count: int = 0

    @property
    def event_count(self) -> int:
        """Number of cached events."""
        return len(self.events)

    def display_events(self, limit: int) -> Tuple[Dict[str, Any], ...]:
        """Get at most `limit` events for rendering."""
        return self.events[:max(limit, 0)]

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize snapshot for JSON responses.

        Returns:
            dict: Snapshot fields using the feed's camelCase naming
        """
        return {
            'events': list(self.events),
            'venue': self.venue,
            'fetchedAt': isoformat(self.fetched_at),
            'lastSuccessfulFetch': isoformat(self.last_successful_fetch),
            'isOffline': self.is_offline,
            'errorCount': self.error_count,
        }


class SnapshotStore:
    """
    Owner of the single CacheSnapshot.

    Reads return the current immutable snapshot. Writes build the next
    snapshot in full and then publish it under the lock.

    Usage:
        store = SnapshotStore(retention_hours=24)
        store.replace(events, venue, fetched_at)
        if store.is_healthy():
            ...
    """

    def __init__(self, retention_hours: int = 24, clock: Optional[Clock] = None):
        """
        Args:
            retention_hours: Hours after the last success during which the
                             cache counts as valid
            clock: Callable returning the current UTC time (default: utc_now)
        """
        self.retention = timedelta(hours=retention_hours)
        self._clock = clock or utc_now
        self._lock = threading.Lock()
        self._snapshot = CacheSnapshot()

    def get(self) -> CacheSnapshot:
        """Get the current snapshot. Thread-safe."""
        with self._lock:
            return self._snapshot

    def now(self) -> datetime:
        """Current time according to the store's clock."""
        return self._clock()

    def replace(
        self,
        events: Iterable[Dict[str, Any]],
        venue: Optional[Dict[str, Any]],
        fetched_at: datetime,
    ) -> CacheSnapshot:
        """
        Publish the result of a successful fetch.

        Args:
            events: Normalized, sorted events
            venue: Venue metadata or None
            fetched_at: Timestamp taken when the fetch started

        Returns:
            The new snapshot
        """
        snapshot = CacheSnapshot(
            events=tuple(events),
            venue=venue,
            fetched_at=fetched_at,
            last_successful_fetch=fetched_at,
            is_offline=False,
            error_count=0,
        )

        with self._lock:
            self._snapshot = snapshot

        return snapshot

    def record_failure(self, fetched_at: datetime) -> CacheSnapshot:
        """
        Record a failed fetch attempt.

        Events, venue and last_successful_fetch are carried over unchanged.

        Args:
            fetched_at: Timestamp taken when the fetch started

        Returns:
            The new snapshot
        """
        with self._lock:
            snapshot = replace(
                self._snapshot,
                fetched_at=fetched_at,
                is_offline=True,
                error_count=self._snapshot.error_count + 1,
            )
            self._snapshot = snapshot

        return snapshot

    def is_cache_valid(
        self,
        now: Optional[datetime] = None,
        snapshot: Optional[CacheSnapshot] = None,
    ) -> bool:
        """
        Check whether the last successful fetch is within the retention window.

        Args:
            now: Reference time (default: clock())
            snapshot: Snapshot to evaluate (default: the current one)

        Returns:
            False if there has never been a successful fetch
        """
        snapshot = snapshot or self.get()
        last_success = snapshot.last_successful_fetch
        if last_success is None:
            return False

        now = now or self._clock()
        return now - last_success < self.retention

    def is_healthy(
        self,
        now: Optional[datetime] = None,
        snapshot: Optional[CacheSnapshot] = None,
    ) -> bool:
        """
        Check whether the display has usable data.

        Healthy when the cache is still valid, or when any events are
        cached at all, even past the retention window. Both clauses are
        evaluated against the same snapshot.
        """
        snapshot = snapshot or self.get()

        if self.is_cache_valid(now, snapshot):
            return True

        if snapshot.event_count > 0:
            return True

        return False
