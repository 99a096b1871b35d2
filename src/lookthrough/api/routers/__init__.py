"""API routers package."""

from lookthrough.api.routers.exposure import router as exposure_router
from lookthrough.api.routers.reference import router as reference_router

__all__ = [
    "exposure_router",
    "reference_router",
]
