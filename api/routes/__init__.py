"""API route modules."""

from routes.auth_routes import router as auth_router
from routes.health_routes import router as health_router
from routes.series_routes import router as series_router

__all__ = [
    "auth_router",
    "health_router",
    "series_router",
]
