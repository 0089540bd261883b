"""
HTTP boundary between the upload UI and the tagging core
"""

from .app import create_app

__all__ = ["create_app"]
