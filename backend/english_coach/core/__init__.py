"""Core configuration, errors and security for English Coach."""

from .config import Settings, get_settings
from .security import (
    create_access_token,
    verify_password,
    get_password_hash,
    verify_access_token,
)

__all__ = [
    "Settings",
    "get_settings",
    "create_access_token",
    "verify_password",
    "get_password_hash",
    "verify_access_token",
]
