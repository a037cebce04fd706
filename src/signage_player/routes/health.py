"""
Health and status endpoints for Signage Player.

This module provides the JSON endpoints used by the kiosk watchdog and by
operators:
- GET /healthz - Liveness of the display data (200 or 503)
- GET /status - Full cache snapshot, configuration and process info
"""

import psutil
from flask import current_app, jsonify

from . import health_bp
from ..cache import isoformat, utc_now
from ..scheduler import list_jobs


@health_bp.route('/healthz')
def healthz():
    """
    Report whether the display has usable event data.

    Returns:
        200: Cache is valid or still holds events
            {
                "status": "healthy",
                "events": 12,
                "lastFetch": "2024-09-14T18:00:00.000Z",
                "isOffline": false,
                "cacheValid": true
            }
        503: Nothing to show
            {
                "status": "unhealthy",
                "error": "No valid event data available",
                "lastFetch": null
            }
    """
    store = current_app.config['SNAPSHOT_STORE']
    snapshot = store.get()
    last_fetch = isoformat(snapshot.last_successful_fetch)

    now = store.now()

    if store.is_healthy(now, snapshot):
        return jsonify({
            'status': 'healthy',
            'events': snapshot.event_count,
            'lastFetch': last_fetch,
            'isOffline': snapshot.is_offline,
            'cacheValid': store.is_cache_valid(now, snapshot),
        })

    return jsonify({
        'status': 'unhealthy',
        'error': 'No valid event data available',
        'lastFetch': last_fetch,
    }), 503


@health_bp.route('/status')
def status():
    """
    Detailed diagnostics: snapshot, masked config, uptime and memory.

    Returns:
        200: Snapshot fields plus "config", "uptime", "memory",
             "scheduler" and "refresher"
    """
    store = current_app.config['SNAPSHOT_STORE']
    config = current_app.config['SIGNAGE_CONFIG']
    refresher = current_app.config.get('REFRESHER')
    started_at = current_app.config.get('STARTED_AT')

    memory = psutil.Process().memory_info()

    payload = store.get().to_dict()
    payload.update({
        'config': config.to_dict(),
        'uptime': (utc_now() - started_at).total_seconds() if started_at else 0.0,
        'memory': {
            'rss': memory.rss,
            'vms': memory.vms,
        },
        'scheduler': list_jobs(),
    })

    if refresher is not None:
        payload['refresher'] = refresher.get_stats()

    return jsonify(payload)
