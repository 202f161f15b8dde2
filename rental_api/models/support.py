"""
SQLAlchemy model for customer support tickets.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from rental_api.db.session import Base
from rental_api.db.base_model import TimestampMixin, uuid_column
from rental_api.models.enums import (
    TicketCategory,
    TicketPriority,
    TicketStatus,
    enum_column_type,
)

class SupportTicket(Base, TimestampMixin):
    __tablename__ = "support_tickets"

    ticket_id = uuid_column()
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    subject = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(enum_column_type(TicketStatus, "ticket_status"), default=TicketStatus.OPEN, nullable=False)
    priority = Column(
        enum_column_type(TicketPriority, "ticket_priority"), default=TicketPriority.MEDIUM, nullable=False
    )
    category = Column(
        enum_column_type(TicketCategory, "ticket_category"), default=TicketCategory.GENERAL, nullable=False
    )
    assigned_to = Column(String(36), ForeignKey("users.user_id"), index=True)
    admin_notes = Column(Text)
    resolution = Column(Text)
    resolved_at = Column(DateTime)

    user = relationship("User", back_populates="support_tickets", foreign_keys=[user_id])
    assigned_agent = relationship("User", foreign_keys=[assigned_to])

    def __repr__(self):
        return f"<SupportTicket {self.ticket_id} {self.status}>"
