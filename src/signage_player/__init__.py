"""
Signage Player for Raspberry Pi kiosk displays.

Polls the public event feed of a displays controller, keeps the last good
result in memory, and serves a rotating event view plus health and status
endpoints for the Chromium kiosk client.
"""

__version__ = "1.0.0"
