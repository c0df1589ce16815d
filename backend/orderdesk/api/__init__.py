"""API routes."""

from .auth_routes import router as auth_router
from .orders import router as orders_router
from .folders import router as folders_router
from .files import router as files_router
from .claims import router as claims_router
from .users import router as users_router
from .roles import router as roles_router

__all__ = [
    "auth_router",
    "orders_router",
    "folders_router",
    "files_router",
    "claims_router",
    "users_router",
    "roles_router",
]
