"""
Event Refresher for Signage Player.

Runs one fetch round-trip against the controller and folds the outcome
into the SnapshotStore. refresh() is the only code path that writes the
cache and it never raises: every failure becomes offline state on the
snapshot, and the previous events keep being served.
"""

import threading
from typing import Any, Dict, Optional

from . import FeedClientError
from .feed_client import FeedClient
from .normalize import normalize_events
from ..cache import Clock, SnapshotStore, isoformat, utc_now
from ..logger import setup_logger

logger = setup_logger(__name__)


class EventRefresher:
    """
    Fetches events (and optional venue metadata) into the cache.

    A refresh that is triggered while another one is still running is
    skipped, so there is never more than one writer.
    """

    def __init__(
        self,
        client: FeedClient,
        store: SnapshotStore,
        venue_slug: Optional[str] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            client: FeedClient for the controller
            store: SnapshotStore to publish into
            venue_slug: Optional venue slug to scope the feed
            clock: Callable returning the current UTC time (default: utc_now)
        """
        self.client = client
        self.store = store
        self.venue_slug = venue_slug
        self._clock = clock or utc_now
        self._in_flight = threading.Lock()

        # Stats
        self._total_refreshes = 0
        self._skipped_refreshes = 0

    @property
    def is_refreshing(self) -> bool:
        """Check if a refresh is currently running."""
        return self._in_flight.locked()

    def get_stats(self) -> Dict[str, int]:
        """Get refresh counters for diagnostics."""
        return {
            'total_refreshes': self._total_refreshes,
            'skipped_refreshes': self._skipped_refreshes,
        }

    def refresh(self) -> bool:
        """
        Run one refresh cycle.

        Returns:
            False if skipped because a refresh was already running, else True
            (whether the fetch itself succeeded or failed)
        """
        if not self._in_flight.acquire(blocking=False):
            self._skipped_refreshes += 1
            logger.debug("Refresh already in progress, skipping this run")
            return False

        try:
            self._total_refreshes += 1
            self._refresh_once()
        finally:
            self._in_flight.release()

        return True

    def _refresh_once(self) -> None:
        """Fetch, normalize and publish; record a failure on any error."""
        fetch_timestamp = self._clock()
        logger.info(f"[{isoformat(fetch_timestamp)}] Fetching events...")

        try:
            raw_events = self.client.get_events(self.venue_slug)
            events = normalize_events(raw_events, self.client.base_url)
        except FeedClientError as e:
            self._record_failure(fetch_timestamp, e)
            return
        except Exception as e:
            # Anything unexpected is still a failed fetch, never a crash
            logger.exception("Unexpected error while fetching events")
            self._record_failure(fetch_timestamp, e)
            return

        venue = self._fetch_venue()

        self.store.replace(events, venue, fetch_timestamp)
        logger.info(f"Fetched {len(events)} events successfully")

    def _fetch_venue(self) -> Optional[Dict[str, Any]]:
        """
        Fetch venue metadata if a venue is configured.

        Returns:
            Venue object, or None when not configured or the request failed
        """
        if not self.venue_slug:
            return None

        try:
            return self.client.get_venue(self.venue_slug)
        except Exception as e:
            logger.warning(f"Venue metadata fetch failed: {e}")

        return None

    def _record_failure(self, fetch_timestamp, error: Exception) -> None:
        """Publish the failure and log whether stale data is still valid."""
        snapshot = self.store.record_failure(fetch_timestamp)

        if self.store.is_cache_valid(fetch_timestamp):
            logger.error(
                f"Fetch failed (attempt {snapshot.error_count}), using cached data: {error}"
            )
        else:
            logger.error(
                f"Fetch failed (attempt {snapshot.error_count}) and cache expired: {error}"
            )
