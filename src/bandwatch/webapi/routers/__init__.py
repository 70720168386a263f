"""API routers."""

from .charts import router as charts_router
from .scanner import router as scanner_router

__all__ = ["charts_router", "scanner_router"]
