"""Core module exports."""

from .security import (
    create_user_token,
    read_user_id,
    get_password_hash,
    verify_password,
    ALGORITHM,
)

__all__ = [
    "create_user_token",
    "read_user_id",
    "get_password_hash",
    "verify_password",
    "ALGORITHM",
]
