"""API route package for the FastAPI application."""

from .internal import internal_router
from .hotspots import hotspots_router

__all__ = ["internal_router", "hotspots_router"]
