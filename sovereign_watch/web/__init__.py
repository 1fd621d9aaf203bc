"""
Serving API.
"""

from sovereign_watch.web.app import create_app

__all__ = ["create_app"]
