"""
Entry point for running slotengine with ``python -m slotengine``.

Usage: python -m slotengine [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
