"""Custom exceptions for the Socialnet API."""

from fastapi import HTTPException, status


class NotFoundException(HTTPException):
    """Exception raised when a user, post, comment, message or notification is missing.

    Status Code: 404 Not Found

    Usage:
        >>> from app.core.exceptions import NotFoundException
        >>> raise NotFoundException("Post")

    Response Body:
        {
            "detail": "Post not found"
        }
    """

    def __init__(self, resource: str = "Resource", detail: str = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail or f"{resource} not found",
        )


class ForbiddenException(HTTPException):
    """Exception raised when acting on another user's resource."""

    def __init__(self, detail: str = "You do not have permission to perform this action"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


class BadRequestException(HTTPException):
    """Exception for well-formed requests the domain rules reject."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class SelfActionException(BadRequestException):
    """Exception when a user targets themselves (follow self, message self)."""

    def __init__(self, detail: str = "You cannot perform this action on yourself"):
        super().__init__(detail=detail)


class ConflictException(HTTPException):
    """Exception when a unique value (username, email) is already taken."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )


class AccountInactiveException(HTTPException):
    """Exception when the account is not active."""

    def __init__(self, detail: str = "Inactive user"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


__all__ = [
    "NotFoundException",
    "ForbiddenException",
    "BadRequestException",
    "SelfActionException",
    "ConflictException",
    "AccountInactiveException",
]
