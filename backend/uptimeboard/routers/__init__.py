"""API routers."""
from .status import router as status_router
from .dashboard import router as dashboard_router

__all__ = ["status_router", "dashboard_router"]
