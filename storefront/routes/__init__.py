"""
Route package initialization.
"""
from .browse import router as browse_router
from .catalog import router as catalog_router
from .ui import router as ui_router

__all__ = ["browse_router", "catalog_router", "ui_router"]
