"""
API route handlers for the PropMatch API.
"""

from .properties import router as properties_router
from .lookups import router as lookups_router

__all__ = ["properties_router", "lookups_router"]
