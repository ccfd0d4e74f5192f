"""
HTTP layer - FastAPI routes over the availability service.
"""

from .app import create_app

__all__ = ["create_app"]
