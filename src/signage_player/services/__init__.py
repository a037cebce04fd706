"""
Service layer for Signage Player.

This module provides services for:
- Controller feed communication (events and venue metadata)
- Feed payload normalization
- Periodic refresh of the in-memory event cache

Base exception classes are defined here for consistent error handling
across all services.

Example:
    from signage_player.services import FeedClientError
    from signage_player.services.feed_client import FeedClient

    try:
        events = client.get_events()
    except FeedClientError as e:
        logger.error(f"Feed request failed: {e}")
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class
    to allow catching any service error with a single except clause.
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class FeedClientError(ServiceError):
    """
    Exception raised when a controller feed request fails.

    This includes network errors, timeouts, non-2xx responses
    and payloads that cannot be decoded.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.response_body = response_body


class FeedTimeoutError(FeedClientError):
    """
    Exception raised when a feed request times out.
    """

    pass


class FeedConnectionError(FeedClientError):
    """
    Exception raised when the controller cannot be reached.

    This indicates network-level failures such as
    DNS resolution failures or connection refused.
    """

    pass


class FeedDecodeError(FeedClientError):
    """
    Exception raised when a feed response is not the expected JSON shape.
    """

    pass


from .feed_client import FeedClient  # noqa: E402
from .event_refresher import EventRefresher  # noqa: E402

__all__ = [
    # Exception classes
    'ServiceError',
    'FeedClientError',
    'FeedTimeoutError',
    'FeedConnectionError',
    'FeedDecodeError',
    # Service classes
    'FeedClient',
    'EventRefresher',
]
