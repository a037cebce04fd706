"""
Entry point for: python3 -m signage_player

Starts the signage web server.
"""

from .app import main

if __name__ == "__main__":
    main()
