"""FastAPI dependencies shared across routers."""

from app.dependencies.auth import AccessDeniedError, get_current_user, require_admin

__all__ = [
    "AccessDeniedError",
    "get_current_user",
    "require_admin",
]
