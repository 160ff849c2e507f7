"""API routers."""

from .batches import router as batches_router
from .health import router as health_router

__all__ = [
    "batches_router",
    "health_router",
]
