"""
Route Blueprints for Signage Player.

This module defines and exports Flask blueprints:
- display_bp: Kiosk event view (/)
- health_bp: Health check and debug status (/healthz, /status)

Routes only read the SnapshotStore; they never trigger a fetch.
"""

from flask import Blueprint

# Kiosk display blueprint
# Renders the cached events for the Chromium kiosk
display_bp = Blueprint('display', __name__)

# Health blueprint
# Serves platform health checks and the debug status document
health_bp = Blueprint('health', __name__)

# Import route handlers to register them with blueprints
# These imports must come AFTER blueprint definitions to avoid circular imports
from . import display  # noqa: F401, E402
from . import health  # noqa: F401, E402

__all__ = ['display_bp', 'health_bp']
