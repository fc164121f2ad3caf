"""
Main entry point for the game server.

Usage:
    python -m server.main

Or, once installed:
    deal-server
"""

from server.network.server import main


if __name__ == "__main__":
    main()
