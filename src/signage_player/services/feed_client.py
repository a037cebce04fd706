"""
Feed Client - Communication with the displays controller public API.

This module provides the FeedClient class for all requests to the
controller. It handles:
- Session pooling for efficient connection reuse
- Static API key authentication via the x-api-key header
- Per-request timeouts with proper error types
- Mapping of non-2xx responses and bad payloads to FeedClientError

Failed requests are not retried here; the refresher simply tries again on
its next scheduled run.

Example:
    from signage_player.services.feed_client import FeedClient

    client = FeedClient('https://displays.coregeek.io', api_key='abc123')
    events = client.get_events(venue_slug='main-hall')
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from requests.exceptions import (
    ConnectionError as RequestsConnectionError,
    RequestException,
    Timeout,
)

from . import (
    FeedClientError,
    FeedConnectionError,
    FeedDecodeError,
    FeedTimeoutError,
)
from ..logger import setup_logger


logger = setup_logger(__name__)


# Default configuration
EVENTS_TIMEOUT = 10  # seconds
VENUE_TIMEOUT = 5  # seconds
USER_AGENT = 'CoreGeek-Signage-Player/1.0'

PUBLIC_EVENTS_PATH = '/api/public/events'
VENUE_PATH = '/api/public/venues/{slug}'
VENUE_EVENTS_PATH = '/api/public/venues/{slug}/events'


class FeedClient:
    """
    Client for the controller's public event feed.

    Attributes:
        base_url: Controller base URL
        events_timeout: Timeout for event list requests in seconds
        venue_timeout: Timeout for venue metadata requests in seconds
        session: Requests session for connection pooling
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        events_timeout: float = EVENTS_TIMEOUT,
        venue_timeout: float = VENUE_TIMEOUT,
    ):
        """
        Initialize the feed client.

        Args:
            base_url: Controller base URL (e.g., 'https://displays.coregeek.io')
            api_key: Optional API key sent as x-api-key
            events_timeout: Event list request timeout in seconds (default: 10)
            venue_timeout: Venue metadata request timeout in seconds (default: 5)
        """
        self.base_url = base_url.rstrip('/')
        self.events_timeout = events_timeout
        self.venue_timeout = venue_timeout

        # Create session with connection pooling, no automatic retries
        self.session = requests.Session()
        adapter = HTTPAdapter(
            max_retries=0,
            pool_connections=2,
            pool_maxsize=2,
        )
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)

        # Set default headers
        self.session.headers.update({
            'Accept': 'application/json',
            'User-Agent': USER_AGENT,
        })

        if api_key:
            self.session.headers['x-api-key'] = api_key

        logger.info(f"Feed client initialized with base URL: {self.base_url}")

    def events_endpoint(self, venue_slug: Optional[str] = None) -> str:
        """
        Get the event list path for the configured scope.

        Args:
            venue_slug: Optional venue slug; None means all public events

        Returns:
            Endpoint path
        """
        if venue_slug:
            return VENUE_EVENTS_PATH.format(slug=quote(venue_slug, safe=''))
        return PUBLIC_EVENTS_PATH

    def _build_url(self, endpoint: str) -> str:
        """
        Build full URL from endpoint.

        Args:
            endpoint: API endpoint path (e.g., '/api/public/events')

        Returns:
            Full URL string
        """
        endpoint = endpoint.lstrip('/')
        return f"{self.base_url}/{endpoint}"

    def _handle_response(self, response: requests.Response, endpoint: str) -> Any:
        """
        Handle HTTP response and convert errors to exceptions.

        Args:
            response: HTTP response object
            endpoint: Original endpoint for error context

        Returns:
            Decoded JSON body

        Raises:
            FeedClientError: For non-2xx responses
            FeedDecodeError: When the body is not valid JSON
        """
        if not 200 <= response.status_code < 300:
            raise FeedClientError(
                message=f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise FeedDecodeError(
                message=f"Invalid JSON from {endpoint}",
                status_code=response.status_code,
                details={'error': str(e)},
            )

    def get(self, endpoint: str, timeout: float) -> Any:
        """
        Make GET request to the controller.

        Args:
            endpoint: API endpoint path
            timeout: Request timeout in seconds

        Returns:
            Decoded JSON response

        Raises:
            FeedConnectionError: When connection fails
            FeedTimeoutError: When request times out
            FeedDecodeError: When the body is not JSON
            FeedClientError: For other request errors
        """
        url = self._build_url(endpoint)

        try:
            response = self.session.get(url, timeout=timeout)
        except Timeout as e:
            raise FeedTimeoutError(
                message=f"Request timed out for {endpoint}",
                details={'timeout': timeout, 'error': str(e)},
            )
        except RequestsConnectionError as e:
            raise FeedConnectionError(
                message=f"Connection failed for {endpoint}",
                details={'error': str(e)},
            )
        except RequestException as e:
            raise FeedClientError(
                message=f"Request error for {endpoint}",
                details={'error': str(e)},
            )

        return self._handle_response(response, endpoint)

    def get_events(self, venue_slug: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Fetch the raw event list.

        Args:
            venue_slug: Optional venue slug to scope the feed

        Returns:
            List of event objects in feed order

        Raises:
            FeedClientError: On any transport, status or payload failure
        """
        endpoint = self.events_endpoint(venue_slug)
        logger.info(f"Endpoint: {self._build_url(endpoint)}")

        payload = self.get(endpoint, timeout=self.events_timeout)

        if not isinstance(payload, list):
            raise FeedDecodeError(
                message=f"Expected a list of events from {endpoint}",
                details={'type': type(payload).__name__},
            )

        for index, item in enumerate(payload):
            if not isinstance(item, dict):
                raise FeedDecodeError(
                    message=f"Event at index {index} from {endpoint} is not an object",
                    details={'type': type(item).__name__},
                )

        return payload

    def get_venue(self, venue_slug: str) -> Dict[str, Any]:
        """
        Fetch venue metadata.

        Args:
            venue_slug: Venue slug

        Returns:
            Venue object

        Raises:
            FeedClientError: On any transport, status or payload failure
        """
        endpoint = VENUE_PATH.format(slug=quote(venue_slug, safe=''))
        payload = self.get(endpoint, timeout=self.venue_timeout)

        if not isinstance(payload, dict):
            raise FeedDecodeError(
                message=f"Expected a venue object from {endpoint}",
                details={'type': type(payload).__name__},
            )

        return payload

    def close(self) -> None:
        """Close the session and release resources."""
        self.session.close()
        logger.info("Feed client session closed")
