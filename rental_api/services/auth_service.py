"""
Registration, login, token refresh and revocation, and invitations.
"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from rental_api.core.config import settings
from rental_api.core.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from rental_api.core.security import (
    REFRESH_TOKEN,
    create_token,
    generate_verification_code,
    hash_password,
    is_token_revoked,
    revoke_token,
    verify_password,
    verify_token,
)
from rental_api.models import Invitation, User
from rental_api.models.enums import UserRole
from rental_api.services.common import utcnow
from rental_api.services.user_service import get_user_by_email

logger = logging.getLogger(__name__)


def issue_tokens(user: User) -> dict:
    return {
        "access_token": create_token(user),
        "refresh_token": create_token(user, REFRESH_TOKEN),
        "token_type": "bearer",
    }


def _create_user(db: Session, email: str, password: str, profile: dict, role: UserRole) -> User:
    email = email.strip().lower()
    if get_user_by_email(db, email) is not None:
        raise ConflictError("User with this email already exists")
    user = User(email=email, password=hash_password(password), role=role, **profile)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def register_user(db: Session, email: str, password: str, profile: dict) -> User:
    """Self-registration always creates a regular user."""
    user = _create_user(db, email, password, profile, UserRole.USER)
    logger.info(f"User registered successfully: {user.email}")
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password):
        logger.warning(f"Failed login attempt for {email}")
        raise UnauthorizedError("Invalid email or password")
    logger.info(f"User logged in: {user.email}")
    return user


def refresh_tokens(db: Session, refresh_token: str) -> dict:
    """Exchange a refresh token for a new pair; the old refresh token is revoked."""
    payload = verify_token(refresh_token, REFRESH_TOKEN)
    if is_token_revoked(db, refresh_token):
        raise UnauthorizedError("Token has been revoked")
    user = db.get(User, payload.sub)
    if user is None:
        raise UnauthorizedError("User no longer exists")

    revoke_token(db, refresh_token, user.email, payload.exp)
    logger.info(f"Tokens refreshed for user: {user.email}")
    return issue_tokens(user)


def logout(db: Session, access_token: str, refresh_token: Optional[str] = None) -> None:
    payload = verify_token(access_token)
    revoke_token(db, access_token, payload.email, payload.exp)
    if refresh_token:
        try:
            refresh_payload = verify_token(refresh_token, REFRESH_TOKEN)
        except UnauthorizedError:
            logger.warning(f"Ignoring invalid refresh token on logout for {payload.email}")
        else:
            revoke_token(db, refresh_token, refresh_payload.email, refresh_payload.exp)
    logger.info(f"User logged out: {payload.email}")


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password):
        raise ValidationError("Current password is incorrect")
    if current_password == new_password:
        raise ValidationError("New password must differ from the current password")
    user.password = hash_password(new_password)
    db.commit()
    logger.info(f"Password changed for user: {user.email}")


def purge_expired_invitations(db: Session) -> int:
    removed = (
        db.query(Invitation)
        .filter(Invitation.expires_at < utcnow())
        .delete(synchronize_session=False)
    )
    if removed:
        logger.info(f"Removed {removed} expired invitations")
    return removed


def create_invitation(db: Session, email: str, role: UserRole, invited_by: User) -> Invitation:
    """
    Issue a six-digit invitation code for ``email``. Any earlier invitation
    for the same address is replaced.
    """
    email = email.strip().lower()
    if get_user_by_email(db, email) is not None:
        raise ConflictError("User with this email already exists")

    purge_expired_invitations(db)
    db.query(Invitation).filter(Invitation.email == email).delete(synchronize_session=False)

    code = generate_verification_code()
    while db.get(Invitation, code) is not None:
        code = generate_verification_code()

    invitation = Invitation(
        code=code,
        email=email,
        role=role,
        invited_by=invited_by.user_id,
        expires_at=utcnow() + timedelta(hours=settings.INVITATION_EXPIRE_HOURS),
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)
    logger.info(f"Invitation for {email} ({role.value}) created by {invited_by.email}")
    return invitation


def get_invitation(db: Session, code: str) -> Invitation:
    invitation = db.get(Invitation, code)
    if invitation is None:
        raise NotFoundError("Invitation not found")
    if invitation.expires_at < utcnow():
        db.delete(invitation)
        db.commit()
        raise NotFoundError("Invitation has expired")
    return invitation


def accept_invitation(db: Session, code: str, password: str, profile: dict) -> User:
    """Create the invited account with the role chosen by the inviter."""
    invitation = get_invitation(db, code)
    user = _create_user(db, invitation.email, password, profile, UserRole(invitation.role))
    db.delete(invitation)
    db.commit()
    logger.info(f"Invitation {code} accepted by {user.email}")
    return user


def revoke_invitation(db: Session, code: str) -> None:
    invitation = db.get(Invitation, code)
    if invitation is None:
        raise NotFoundError("Invitation not found")
    db.delete(invitation)
    db.commit()
    logger.info(f"Invitation {code} revoked")
