"""
API Routers
"""
from .gauge import router as gauge_router
from .export import router as export_router

__all__ = ["gauge_router", "export_router"]
