"""
API Routes Package

This package contains all the route modules organized by functionality.
"""

from api.routes.generation import router as generation_router
from api.routes.history import router as history_router
from api.routes.providers import router as providers_router
from api.routes.system import router as system_router

__all__ = [
    "generation_router",
    "history_router",
    "providers_router",
    "system_router"
]
