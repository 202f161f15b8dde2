import logging
import secrets
import time
from datetime import timedelta
from typing import Optional

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from rental_api.core.config import settings
from rental_api.core.errors import ForbiddenError, UnauthorizedError
from rental_api.db.base_model import utcnow
from rental_api.db.session import get_db
from rental_api.models import RevokedToken, User
from rental_api.models.enums import UserRole

logger = logging.getLogger(__name__)

# Security scheme for Swagger UI; missing credentials are reported by get_current_user
security = HTTPBearer(auto_error=False)

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

class TokenPayload(BaseModel):
    """Model representing JWT token payload."""
    sub: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    type: Optional[str] = None
    exp: Optional[int] = None


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return check_password_hash(hashed, password)


def generate_verification_code() -> str:
    """Six-digit numeric code used for invitations."""
    return str(100000 + secrets.randbelow(900000))


def _secret_for(token_type: str) -> str:
    return settings.JWT_REFRESH_SECRET_KEY if token_type == REFRESH_TOKEN else settings.JWT_SECRET_KEY


def create_token(user: User, token_type: str = ACCESS_TOKEN, expires_delta: Optional[timedelta] = None) -> str:
    """Sign an access or refresh token for ``user``."""
    if expires_delta is None:
        if token_type == REFRESH_TOKEN:
            expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        else:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = utcnow() + expires_delta
    to_encode = {
        "sub": user.user_id,
        "email": user.email,
        "role": user.role.value if isinstance(user.role, UserRole) else user.role,
        "type": token_type,
        "exp": expire,
        # Unique per token so two tokens issued in the same second differ
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(to_encode, _secret_for(token_type), algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str, token_type: str = ACCESS_TOKEN) -> TokenPayload:
    """Verify and decode a JWT, checking signature, expiry and token type."""
    try:
        payload = jwt.decode(token, _secret_for(token_type), algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except JWTError:
        raise UnauthorizedError("Invalid token")

    token_data = TokenPayload(**payload)
    if token_data.type != token_type:
        raise UnauthorizedError("Invalid token type")
    if token_data.sub is None:
        raise UnauthorizedError("Could not validate credentials")
    return token_data


def is_token_revoked(db: Session, token: str) -> bool:
    return db.get(RevokedToken, token) is not None


def revoke_token(db: Session, token: str, email: str, expires_at: int) -> None:
    """Persist ``token`` in the blacklist until its own expiry."""
    if is_token_revoked(db, token):
        return
    db.add(RevokedToken(token=token, email=email, expires_at=expires_at))
    purge_expired_tokens(db)
    db.commit()
    logger.info(f"Token revoked for user: {email}")


def purge_expired_tokens(db: Session) -> int:
    """Drop blacklist entries whose tokens have expired anyway."""
    now = int(time.time())
    removed = (
        db.query(RevokedToken)
        .filter(RevokedToken.expires_at < now)
        .delete(synchronize_session=False)
    )
    if removed:
        logger.info(f"Cleaned up {removed} expired tokens from blacklist")
    return removed


def get_bearer_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> str:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Not authenticated")
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> User:
    """Dependency to get the current user from the bearer token."""
    payload = verify_token(token)

    if is_token_revoked(db, token):
        raise UnauthorizedError("Token has been revoked")

    user = db.get(User, payload.sub)
    if user is None:
        raise UnauthorizedError("Could not validate credentials")
    return user


def require_roles(*roles: UserRole):
    """Dependency factory restricting an endpoint to the given roles."""
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise ForbiddenError(
                f"Requires one of roles: {', '.join(r.value for r in roles)}"
            )
        return current_user
    return role_checker


admin_required = require_roles(UserRole.ADMIN)
staff_required = require_roles(UserRole.ADMIN, UserRole.SUPPORT_AGENT)
