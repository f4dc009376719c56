"""
src/service - HTTP surface consumed by the web UI.

Run from the project root:
    python -m src.service
"""

from .app import create_app

__all__ = ["create_app"]
