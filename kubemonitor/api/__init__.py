"""REST API layer for kubemonitor.

Exposes:
    create_app -- FastAPI application factory.
"""

from kubemonitor.api.app import create_app

__all__ = ["create_app"]
