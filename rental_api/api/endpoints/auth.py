from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rental_api.core.security import get_bearer_token, get_current_user
from rental_api.db.session import get_db
from rental_api.models import User
from rental_api.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    TokenPair,
)
from rental_api.schemas.common import Envelope
from rental_api.schemas.user import UserCreate, UserResponse
from rental_api.services import auth_service

router = APIRouter()

@router.post("/register", response_model=Envelope[AuthResponse], status_code=status.HTTP_201_CREATED)
def register(user_in: UserCreate, db: Session = Depends(get_db)):
    """
    Create a regular user account and log it in.
    """
    profile = user_in.model_dump(exclude={"email", "password"})
    user = auth_service.register_user(db, user_in.email, user_in.password, profile)
    tokens = auth_service.issue_tokens(user)
    return Envelope(
        data=AuthResponse(user=UserResponse.model_validate(user), **tokens),
        message="User registered successfully",
    )

@router.post("/login", response_model=Envelope[AuthResponse])
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, credentials.email, credentials.password)
    tokens = auth_service.issue_tokens(user)
    return Envelope(
        data=AuthResponse(user=UserResponse.model_validate(user), **tokens),
        message="Login successful",
    )

@router.post("/refresh", response_model=Envelope[TokenPair])
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    """
    Exchange a refresh token for a new access/refresh pair. The refresh
    token used here cannot be used again.
    """
    tokens = auth_service.refresh_tokens(db, body.refresh_token)
    return Envelope(data=TokenPair(**tokens), message="Token refreshed successfully")

@router.post("/logout", response_model=Envelope[None])
def logout(
    body: Optional[LogoutRequest] = None,
    token: str = Depends(get_bearer_token),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Revoke the current access token (and the refresh token, if given)."""
    auth_service.logout(db, token, body.refresh_token if body else None)
    return Envelope(message="Logged out successfully")

@router.get("/me", response_model=Envelope[UserResponse])
def me(current_user: User = Depends(get_current_user)):
    return Envelope(data=UserResponse.model_validate(current_user), message="User profile retrieved")

@router.post("/change-password", response_model=Envelope[None])
def change_password(
    body: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    auth_service.change_password(db, current_user, body.current_password, body.new_password)
    return Envelope(message="Password changed successfully")
