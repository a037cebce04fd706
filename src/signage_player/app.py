"""
Flask Application Factory for Signage Player.

This module provides the create_app() factory function that creates and
configures the Flask application. It initializes:
- Feed client, snapshot store and event refresher
- Blueprint registration (display and health routes)
- The first, synchronous event refresh
- Background job scheduler (APScheduler)
- Logging configuration

Usage:
    # Kiosk service (systemd)
    signage-player

    # Development
    python -m signage_player
"""

import atexit
import logging
import os
import sys
from typing import Optional

from flask import Flask

from .cache import SnapshotStore, utc_now
from .config import ConfigurationError, SignageConfig, load_config
from .logger import PACKAGE_LOGGER, configure_logging, setup_logger
from .services import EventRefresher, FeedClient

logger = setup_logger(__name__)


def create_app(
    config: Optional[SignageConfig] = None,
    client: Optional[FeedClient] = None,
    store: Optional[SnapshotStore] = None,
    refresher: Optional[EventRefresher] = None,
    testing: bool = False,
) -> Flask:
    """
    Create and configure the Flask application.

    The first refresh runs before this function returns, so the display has
    data (or a recorded failure) before the server accepts connections.

    Args:
        config: Resolved configuration. If None, load_config() is used.
        client: Optional FeedClient (default: built from config)
        store: Optional SnapshotStore (default: built from config)
        refresher: Optional EventRefresher (default: built from the above)
        testing: Enable Flask testing mode and disable the scheduler

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app.config['TESTING'] = testing

    config = config or load_config()

    if store is None:
        store = SnapshotStore(retention_hours=config.offline_retention_hours)

    if refresher is None:
        if client is None:
            client = FeedClient(config.controller_base_url, api_key=config.controller_api_key)
            atexit.register(client.close)
        refresher = EventRefresher(client, store, venue_slug=config.venue_slug)

    # Store runtime objects in app config for access by routes
    app.config['SIGNAGE_CONFIG'] = config
    app.config['SNAPSHOT_STORE'] = store
    app.config['REFRESHER'] = refresher
    app.config['STARTED_AT'] = utc_now()

    # Configure logging
    _configure_logging(app, config.log_level)
    _log_configuration(config)

    # Register blueprints
    _register_blueprints(app)

    # Populate the cache before serving
    refresher.refresh()

    # Initialize and start background scheduler
    _init_scheduler(app, refresher, config.fetch_interval_s)

    return app


def _configure_logging(app: Flask, log_level: str) -> None:
    """
    Apply the configured log level to the package and Flask loggers.

    Args:
        app: Flask application instance
        log_level: Logging level name
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    app.logger.setLevel(level)


def _log_configuration(config: SignageConfig) -> None:
    """Log the effective configuration at startup."""
    logger.info("CoreGeek Signage Player Configuration:")
    logger.info(f"   Controller: {config.controller_base_url}")
    logger.info(
        f"   API Key: {'provided' if config.controller_api_key else 'not set (public endpoints)'}"
    )
    logger.info(f"   Venue: {config.venue_slug or '(all public events)'}")
    logger.info(f"   Fetch Interval: {config.fetch_interval_s}s")
    logger.info(f"   Display Rotation: {config.display_rotation_s}s")
    logger.info(f"   Max Events Display: {config.max_events_display}")
    logger.info(f"   Offline Retention: {config.offline_retention_hours}h")


def _register_blueprints(app: Flask) -> None:
    """
    Register route blueprints with the application.

    Both blueprints are served at the root: the kiosk page at / and the
    health endpoints at /healthz and /status.

    Args:
        app: Flask application instance
    """
    from .routes import display_bp, health_bp

    app.register_blueprint(display_bp)
    app.logger.info("Registered display blueprint")

    app.register_blueprint(health_bp)
    app.logger.info("Registered health blueprint")


def _init_scheduler(app: Flask, refresher: EventRefresher, interval_seconds: int) -> None:
    """
    Initialize and start the background job scheduler.

    The scheduler is only started if:
    - Not in testing mode (TESTING config is False)
    - Not disabled explicitly (SCHEDULER_ENABLED config is not False)

    Args:
        app: Flask application instance
        refresher: EventRefresher run by the interval job
        interval_seconds: Seconds between refreshes
    """
    # Skip scheduler in testing mode
    if app.config.get('TESTING', False):
        app.logger.info('Scheduler disabled in testing mode')
        return

    # Allow explicit disabling via config
    if app.config.get('SCHEDULER_ENABLED') is False:
        app.logger.info('Scheduler explicitly disabled')
        return

    from .scheduler import init_scheduler, register_jobs, shutdown_scheduler

    try:
        # Initialize scheduler (don't start yet)
        scheduler = init_scheduler(start=False)

        register_jobs(scheduler, refresher, interval_seconds)

        # Start the scheduler
        scheduler.start()
        app.logger.info('Background scheduler started')

        # Register shutdown handler
        atexit.register(lambda: shutdown_scheduler(wait=False))

    except Exception as e:
        app.logger.error(f'Failed to initialize scheduler: {e}')


def main() -> None:
    """Entry point for the signage-player console script."""
    configure_logging(os.environ.get('LOG_LEVEL', 'INFO'))

    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)

    application = create_app(config)

    logger.info(f"Starting signage server on http://localhost:{config.port}")
    logger.info(f"Health check available at http://localhost:{config.port}/healthz")

    application.run(
        host=config.host,
        port=config.port,
        threaded=True,
    )


if __name__ == '__main__':
    main()
