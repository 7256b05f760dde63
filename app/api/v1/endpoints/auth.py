"""Authentication endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.api.deps import (
    get_current_active_user,
    get_db,
)
from app.core.exceptions import AccountInactiveException, ConflictException
from app.core.security import create_user_token
from app.crud import crud_user
from app.models.user import User
from app.schemas.user import (
    UserCreate,
    UserResponse,
    TokenResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
)


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
)
def register(
    user_in: UserCreate,
    db: Session = Depends(get_db),
) -> TokenResponse:
    """
    Register a new user and issue an access token.

    Raises:
        ConflictException: 409 if username or email is already taken
    """
    if crud_user.get_by_username(db, user_in.username):
        raise ConflictException("Username already taken")
    if crud_user.get_by_email(db, user_in.email):
        raise ConflictException("Email already registered")

    db_user = crud_user.create_user(db, user_in=user_in)
    logger.info(f"[AUTH] Registered user id={db_user.id} username={db_user.username}")

    return TokenResponse(
        access_token=create_user_token(db_user.id),
        token_type="bearer",
        user=UserResponse.model_validate(db_user),
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Login with username or email",
    description="""
    OAuth2 password flow. The `username` form field accepts either the
    username or the email address.
    """,
)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> TokenResponse:
    """Authenticate and return a bearer token."""
    user = crud_user.authenticate(db, login=form_data.username, password=form_data.password)
    if not user:
        logger.warning(f"[AUTH] Failed login for: {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise AccountInactiveException()

    logger.info(f"[AUTH] Login successful: id={user.id}")
    return TokenResponse(
        access_token=create_user_token(user.id),
        token_type="bearer",
        user=UserResponse.model_validate(user),
    )


@router.get(
    "/me",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current user",
)
def read_me(current_user: User = Depends(get_current_active_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)


__all__ = ["router"]
