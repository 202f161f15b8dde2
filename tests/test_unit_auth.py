"""
Token issuing, revocation and invitations.
"""

from datetime import timedelta

import pytest

from rental_api.core.errors import ConflictError, NotFoundError, UnauthorizedError
from rental_api.core.security import (
    REFRESH_TOKEN,
    create_token,
    hash_password,
    is_token_revoked,
    verify_password,
    verify_token,
)
from rental_api.models.enums import UserRole
from rental_api.services import auth_service
from rental_api.services.common import utcnow


def test_password_hash_round_trip():
    hashed = hash_password("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong", hashed)


def test_access_token_carries_claims(user):
    payload = verify_token(create_token(user))
    assert payload.sub == user.user_id
    assert payload.email == user.email
    assert payload.role == "user"
    assert payload.type == "access"


def test_refresh_token_is_not_an_access_token(user):
    with pytest.raises(UnauthorizedError):
        verify_token(create_token(user, REFRESH_TOKEN))


def test_expired_token_is_rejected(user):
    token = create_token(user, expires_delta=timedelta(seconds=-1))
    with pytest.raises(UnauthorizedError):
        verify_token(token)


def test_register_lowercases_and_rejects_duplicates(db):
    user = auth_service.register_user(db, "New.Person@Example.com", "password123", {"firstname": "New", "lastname": "Person"})
    assert user.email == "new.person@example.com"
    assert user.role == UserRole.USER
    with pytest.raises(ConflictError):
        auth_service.register_user(db, "new.person@example.com", "password123", {"firstname": "A", "lastname": "B"})


def test_login_with_wrong_password(db, user):
    with pytest.raises(UnauthorizedError):
        auth_service.authenticate(db, user.email, "not-the-password")


def test_refresh_rotates_tokens(db, user):
    refresh = auth_service.issue_tokens(user)["refresh_token"]
    tokens = auth_service.refresh_tokens(db, refresh)
    assert tokens["refresh_token"] != refresh
    assert is_token_revoked(db, refresh)
    with pytest.raises(UnauthorizedError):
        auth_service.refresh_tokens(db, refresh)


def test_logout_revokes_both_tokens(db, user):
    tokens = auth_service.issue_tokens(user)
    auth_service.logout(db, tokens["access_token"], tokens["refresh_token"])
    assert is_token_revoked(db, tokens["access_token"])
    assert is_token_revoked(db, tokens["refresh_token"])


def test_invitation_creates_account_with_role(db, admin):
    invitation = auth_service.create_invitation(db, "agent2@example.com", UserRole.SUPPORT_AGENT, admin)
    assert len(invitation.code) == 6

    user = auth_service.accept_invitation(
        db, invitation.code, "password123", {"firstname": "Sam", "lastname": "Agent"}
    )
    assert user.role == UserRole.SUPPORT_AGENT
    with pytest.raises(NotFoundError):
        auth_service.get_invitation(db, invitation.code)


def test_expired_invitation_is_not_found(db, admin):
    invitation = auth_service.create_invitation(db, "late@example.com", UserRole.USER, admin)
    invitation.expires_at = utcnow() - timedelta(minutes=1)
    db.commit()
    with pytest.raises(NotFoundError):
        auth_service.get_invitation(db, invitation.code)


def test_cannot_invite_existing_user(db, admin, user):
    with pytest.raises(ConflictError):
        auth_service.create_invitation(db, user.email, UserRole.USER, admin)
