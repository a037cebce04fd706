"""
Configuration management for Signage Player.

Settings come from environment variables, optionally seeded from a
KEY=value env file (the same file systemd passes as EnvironmentFile).
Real environment variables take precedence over values in the file.

The controller base URL is a hard startup requirement: resolve_config()
raises ConfigurationError when it is missing or invalid. Numeric settings
never fail; out-of-range or malformed values are logged and replaced with
their defaults.
"""

import math
import os
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

from .env_file import read_env_file
from .logger import setup_logger

logger = setup_logger(__name__)


# Placeholder shipped in .env.example; treated the same as a missing value
PLACEHOLDER_BASE_URL = 'https://displays.example.com'

# Environment variable naming the env file to load
ENV_FILE_VARIABLE = 'SIGNAGE_ENV_FILE'

# Default configuration values
DEFAULT_CONFIG = {
    'port': 3000,
    'host': '0.0.0.0',
    'fetch_interval_s': 60,
    'display_rotation_s': 10,
    'max_events_display': 6,
    'offline_retention_hours': 24,
    'log_level': 'INFO',
}

# (config key, environment variable, minimum)
NUMERIC_SETTINGS = (
    ('fetch_interval_s', 'FETCH_INTERVAL_S', 15),
    ('display_rotation_s', 'DISPLAY_ROTATION_S', 5),
    ('max_events_display', 'MAX_EVENTS_DISPLAY', 1),
    ('offline_retention_hours', 'OFFLINE_RETENTION_HOURS', 1),
    ('port', 'PORT', 1),
)


class ConfigurationError(Exception):
    """Raised when a required setting is missing or invalid."""
    pass


class SignageConfig:
    """
    Validated, read-only runtime settings.

    Instances are produced by resolve_config(); every value has already been
    checked, so consumers never re-validate.
    """

    def __init__(self, values: Mapping[str, Any]):
        self._config: Dict[str, Any] = dict(DEFAULT_CONFIG)
        self._config.update(values)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by key."""
        return self._config.get(key, default)

    @property
    def controller_base_url(self) -> str:
        """Get controller base URL (no trailing slash)."""
        return self._config['controller_base_url']

    @property
    def controller_api_key(self) -> Optional[str]:
        """Get controller API key, or None for public access."""
        return self._config.get('controller_api_key')

    @property
    def venue_slug(self) -> Optional[str]:
        """Get venue slug, or None for all public events."""
        return self._config.get('venue_slug')

    @property
    def fetch_interval_s(self) -> int:
        """Get feed polling interval in seconds."""
        return self._config['fetch_interval_s']

    @property
    def display_rotation_s(self) -> int:
        """Get seconds each event stays on screen."""
        return self._config['display_rotation_s']

    @property
    def max_events_display(self) -> int:
        """Get maximum number of events rendered."""
        return self._config['max_events_display']

    @property
    def offline_retention_hours(self) -> int:
        """Get hours cached data stays valid after the last good fetch."""
        return self._config['offline_retention_hours']

    @property
    def port(self) -> int:
        """Get HTTP listen port."""
        return self._config['port']

    @property
    def host(self) -> str:
        """Get HTTP listen address."""
        return self._config['host']

    @property
    def log_level(self) -> str:
        """Get log level name."""
        return self._config['log_level']

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize configuration for the status endpoint.

        The API key itself is never exposed; only whether one is set.
        """
        return {
            'port': self.port,
            'host': self.host,
            'controllerBaseUrl': self.controller_base_url,
            'controllerApiKey': '***' if self.controller_api_key else None,
            'venueSlug': self.venue_slug,
            'fetchIntervalS': self.fetch_interval_s,
            'displayRotationS': self.display_rotation_s,
            'maxEventsDisplay': self.max_events_display,
            'offlineRetentionHours': self.offline_retention_hours,
            'logLevel': self.log_level,
        }

    def __repr__(self) -> str:
        """String representation."""
        return f"SignageConfig(controller={self.controller_base_url}, venue={self.venue_slug})"


def sanitize_url_trailing_slash(url: str) -> str:
    """Strip all trailing slashes from a URL."""
    return url.rstrip('/')


def coerce_integer(value: Any, fallback: int, label: str, minimum: int = 1) -> int:
    """
    Parse an integer setting, substituting the fallback when invalid.

    Finite numbers are floored, so '30.9' becomes 30. Missing, non-numeric
    and below-minimum values log a warning and return the fallback.

    Args:
        value: Raw value (string, number or None)
        fallback: Default to use when the value is invalid
        label: Setting name for the warning message
        minimum: Smallest accepted value

    Returns:
        Validated integer
    """
    numeric: Optional[int] = None

    if isinstance(value, bool):
        numeric = None
    elif isinstance(value, int):
        numeric = value
    elif isinstance(value, (float, str)):
        try:
            parsed = float(value)
        except ValueError:
            parsed = math.nan
        if math.isfinite(parsed):
            numeric = math.floor(parsed)

    if numeric is None or numeric < minimum:
        logger.warning(f"Invalid {label} value '{value}'. Falling back to {fallback}.")
        return fallback

    return numeric


def validate_base_url(raw_url: Optional[str]) -> str:
    """
    Validate and normalize the controller base URL.

    Args:
        raw_url: Raw CONTROLLER_BASE_URL value

    Returns:
        Normalized URL without trailing slash

    Raises:
        ConfigurationError: If the URL is missing, the placeholder, not
            absolute, or not http/https
    """
    url = (raw_url or '').strip()

    if not url or sanitize_url_trailing_slash(url) == PLACEHOLDER_BASE_URL:
        raise ConfigurationError(
            'CONTROLLER_BASE_URL must be configured. '
            'Update /opt/signage/.env or set the environment variable.'
        )

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ConfigurationError(f'CONTROLLER_BASE_URL is invalid: {e}')

    if parsed.scheme not in ('http', 'https'):
        raise ConfigurationError('CONTROLLER_BASE_URL must use http or https.')

    if not parsed.netloc or not parsed.hostname:
        raise ConfigurationError(f'CONTROLLER_BASE_URL is invalid: missing host in {url!r}')

    return sanitize_url_trailing_slash(url)


def _optional_string(value: Optional[str]) -> Optional[str]:
    """Trim a string setting; empty becomes None."""
    if value is None:
        return None
    trimmed = str(value).strip()
    return trimmed or None


def resolve_config(
    env: Optional[Mapping[str, str]] = None,
    env_file: Optional[str] = None,
) -> SignageConfig:
    """
    Build a validated configuration from environment input.

    Args:
        env: Environment mapping (default: os.environ)
        env_file: Optional env file to load first. If None, the path in
                  SIGNAGE_ENV_FILE is used when set.

    Returns:
        SignageConfig instance

    Raises:
        ConfigurationError: If CONTROLLER_BASE_URL is missing or invalid
    """
    if env is None:
        env = os.environ

    env_file = env_file or env.get(ENV_FILE_VARIABLE)

    # File values first, real environment wins
    source: Dict[str, str] = {}
    if env_file:
        source.update(read_env_file(env_file))
    source.update(env)

    values: Dict[str, Any] = {
        'controller_base_url': validate_base_url(source.get('CONTROLLER_BASE_URL')),
        'controller_api_key': _optional_string(source.get('CONTROLLER_API_KEY')),
        'venue_slug': _optional_string(source.get('VENUE_SLUG')),
        'host': _optional_string(source.get('HOST')) or DEFAULT_CONFIG['host'],
        'log_level': (_optional_string(source.get('LOG_LEVEL')) or DEFAULT_CONFIG['log_level']).upper(),
    }

    for key, variable, minimum in NUMERIC_SETTINGS:
        raw = source.get(variable)
        if raw is None or raw == '':
            values[key] = DEFAULT_CONFIG[key]
            continue
        values[key] = coerce_integer(raw, DEFAULT_CONFIG[key], variable, minimum)

    return SignageConfig(values)


# Global config instance (set by load_config)
_global_config: Optional[SignageConfig] = None


def load_config(
    env: Optional[Mapping[str, str]] = None,
    env_file: Optional[str] = None,
) -> SignageConfig:
    """
    Load and return the process-wide configuration.

    On first call this resolves the configuration; subsequent calls return
    the cached instance.

    Args:
        env: Environment mapping (only used on first call)
        env_file: Env file path (only used on first call)

    Returns:
        SignageConfig instance
    """
    global _global_config

    if _global_config is None:
        _global_config = resolve_config(env, env_file)

    return _global_config


def reset_config() -> None:
    """
    Reset the global config instance.

    Useful for testing when you need to reload configuration.
    """
    global _global_config
    _global_config = None
