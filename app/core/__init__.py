from .config import settings, get_settings
from .security import (
    create_access_token,
    verify_access_token,
    verify_password,
    get_password_hash
)
from .exceptions import AppError, ValidationError, NotFoundError, ConflictError

__all__ = [
    "settings",
    "get_settings",
    "create_access_token",
    "verify_access_token",
    "verify_password",
    "get_password_hash",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "ConflictError"
]
