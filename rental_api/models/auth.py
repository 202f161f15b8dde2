"""
Persistent auth state: revoked tokens and pending invitations.
Both are kept in the database so they survive restarts and are shared by
every API instance.
"""

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text

from rental_api.db.session import Base
from rental_api.db.base_model import TimestampMixin
from rental_api.models.enums import UserRole, enum_column_type

class RevokedToken(Base, TimestampMixin):
    __tablename__ = "revoked_tokens"

    token = Column(Text, primary_key=True)
    email = Column(String(255), nullable=False)
    expires_at = Column(Integer, nullable=False, index=True)  # UNIX timestamp


class Invitation(Base, TimestampMixin):
    __tablename__ = "invitations"

    code = Column(String(6), primary_key=True)
    email = Column(String(255), nullable=False, index=True)
    role = Column(enum_column_type(UserRole, "invitation_role"), nullable=False)
    invited_by = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    expires_at = Column(DateTime, nullable=False)
