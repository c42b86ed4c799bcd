"""
api/ - FastAPI surface of the gateway.
"""

from api.app import create_app

__all__ = ["create_app"]
