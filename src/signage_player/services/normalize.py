"""
Normalization of controller event payloads.

Events arrive as plain JSON objects. Before they are cached:
- relative upload image paths are turned into absolute controller URLs
- the list is ordered by start time, earliest first

Both steps return new objects; the input list and its dicts are left as-is.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from dateutil.parser import isoparse

# Image paths served by the controller's upload handler
UPLOADS_PREFIX = '/uploads/'

START_FIELD = 'startDatetime'
IMAGE_FIELD = 'imageUrl'


def hydrate_media_urls(events: Iterable[Dict[str, Any]], base_url: str) -> List[Dict[str, Any]]:
    """
    Rewrite relative upload image paths to absolute URLs.

    Args:
        events: Raw event objects
        base_url: Controller base URL without trailing slash

    Returns:
        New list; rewritten events are shallow copies, others are passed through
    """
    hydrated = []

    for event in events:
        image_url = event.get(IMAGE_FIELD)
        if isinstance(image_url, str) and image_url.startswith(UPLOADS_PREFIX):
            event = {**event, IMAGE_FIELD: f"{base_url}{image_url}"}
        hydrated.append(event)

    return hydrated


def parse_start(value: Any) -> Optional[datetime]:
    """
    Parse an event start timestamp.

    Accepts ISO-8601 strings, including a trailing 'Z' for UTC. Naive timestamps
    are treated as UTC so that all parsed values compare with each other.

    Args:
        value: Raw startDatetime value

    Returns:
        Timezone-aware datetime, or None when missing or unparseable
    """
    if not isinstance(value, str) or not value.strip():
        return None

    try:
        parsed = isoparse(value.strip())
    except (ValueError, OverflowError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed


def sort_events_by_time(events: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Sort events by start time, upcoming first.

    The sort is stable. Events without a parseable start time are placed
    after all dated events, in their original relative order.

    Args:
        events: Event objects

    Returns:
        New sorted list
    """
    def sort_key(event: Dict[str, Any]):
        start = parse_start(event.get(START_FIELD))
        if start is None:
            return (1, 0.0)
        return (0, start.timestamp())

    return sorted(events, key=sort_key)


def normalize_events(events: Iterable[Dict[str, Any]], base_url: str) -> List[Dict[str, Any]]:
    """Hydrate media URLs and sort chronologically."""
    return sort_events_by_time(hydrate_media_urls(events, base_url))
