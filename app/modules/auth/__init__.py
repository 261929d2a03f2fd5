"""Identity for the API: fastapi-users wiring and the authenticated-user dependency."""

from .users import (
    UserCreate,
    UserRead,
    UserUpdate,
    auth_backend,
    current_active_user,
    fastapi_users,
)

__all__ = [
    "UserCreate",
    "UserRead",
    "UserUpdate",
    "auth_backend",
    "current_active_user",
    "fastapi_users",
]
