"""
Convenience entry point for running ragebooking directly.

Usage: python -m ragebooking [command] [options]
"""

from ragebooking.cli.app import app

if __name__ == "__main__":
    app()
