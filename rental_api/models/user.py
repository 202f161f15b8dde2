"""
SQLAlchemy model for the users table.
"""

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from rental_api.db.session import Base
from rental_api.db.base_model import TimestampMixin, uuid_column
from rental_api.models.enums import UserRole, enum_column_type

class User(Base, TimestampMixin):
    """
    Platform account. The role only gates authorization.
    """
    __tablename__ = "users"

    user_id = uuid_column()
    firstname = Column(String(100), nullable=False)
    lastname = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    contact_phone = Column(String(20))
    address = Column(Text)
    role = Column(enum_column_type(UserRole, "user_role"), default=UserRole.USER, nullable=False)

    # Define relationships
    bookings = relationship("Booking", back_populates="user")
    payments = relationship("Payment", back_populates="user")
    support_tickets = relationship(
        "SupportTicket", back_populates="user", foreign_keys="SupportTicket.user_id"
    )

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.SUPPORT_AGENT)

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
