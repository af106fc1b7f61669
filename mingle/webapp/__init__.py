"""
JSON API for the Mingle social backend.
"""

from .api import create_webapp_api

__all__ = ["create_webapp_api"]
