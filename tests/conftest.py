"""
Pytest configuration and fixtures for Signage Player tests.

This module provides shared fixtures for testing:
- Resolved configuration pointing at a fake controller
- Controllable clock and snapshot store
- Mock feed client
- Flask application with the scheduler disabled, and its test client
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

# Add src to path for imports without an installed package
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from signage_player.app import create_app
from signage_player.cache import SnapshotStore
from signage_player.config import reset_config, resolve_config
from signage_player.services import EventRefresher


BASE_URL = 'https://displays.coregeek.test'

SAMPLE_EVENTS = [
    {
        'id': 'evt-3',
        'title': 'Late Show',
        'startDatetime': '2024-09-14T22:00:00Z',
        'imageUrl': '/uploads/late.jpg',
    },
    {
        'id': 'evt-1',
        'title': 'Doors Open',
        'startDatetime': '2024-09-14T18:00:00Z',
        'imageUrl': 'https://cdn.example.org/doors.png',
    },
    {
        'id': 'evt-2',
        'title': 'Headliner',
        'startDatetime': '2024-09-14T20:00:00Z',
    },
]

SAMPLE_VENUE = {'slug': 'main-hall', 'name': 'Main Hall'}


class FakeClock:
    """Clock returning a fixed time that tests move forward explicitly."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def clean_global_config():
    """Reset the process-wide config before and after each test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def env():
    """Minimal valid environment."""
    return {'CONTROLLER_BASE_URL': BASE_URL}


@pytest.fixture
def config(env):
    """Resolved SignageConfig for the fake controller."""
    return resolve_config(env=env)


@pytest.fixture
def clock():
    """Controllable clock starting at a fixed UTC time."""
    return FakeClock(datetime(2024, 9, 14, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(clock):
    """Empty snapshot store using the fake clock."""
    return SnapshotStore(retention_hours=24, clock=clock)


@pytest.fixture
def mock_client():
    """FeedClient stand-in returning the sample events."""
    client = MagicMock()
    client.base_url = BASE_URL
    client.get_events.return_value = [dict(event) for event in SAMPLE_EVENTS]
    client.get_venue.return_value = dict(SAMPLE_VENUE)
    return client


@pytest.fixture
def refresher(mock_client, store, clock):
    """EventRefresher wired to the mock client and fake clock."""
    return EventRefresher(mock_client, store, clock=clock)


@pytest.fixture
def app(config, store, refresher):
    """
    Create application for testing.

    The initial refresh runs against the mock client; the scheduler is
    never started.
    """
    app = create_app(config=config, store=store, refresher=refresher, testing=True)
    yield app


@pytest.fixture
def client(app):
    """Create test client for making HTTP requests."""
    return app.test_client()
