"""
SQLAlchemy models for bookings and payments.
"""

from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from rental_api.db.session import Base
from rental_api.db.base_model import TimestampMixin, uuid_column
from rental_api.models.enums import (
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    enum_column_type,
)

class Booking(Base, TimestampMixin):
    """
    A rental of one vehicle by one user over [booking_date, return_date).
    """
    __tablename__ = "bookings"

    booking_id = uuid_column()
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.vehicle_id"), nullable=False, index=True)
    location_id = Column(String(36), ForeignKey("locations.location_id"), nullable=False)
    booking_date = Column(DateTime, nullable=False)
    return_date = Column(DateTime, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    booking_status = Column(
        enum_column_type(BookingStatus, "booking_status"),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True,
    )
    cancellation_reason = Column(Text)

    # Define relationships
    user = relationship("User", back_populates="bookings")
    vehicle = relationship("Vehicle", back_populates="bookings")
    location = relationship("Location", back_populates="bookings")
    payments = relationship("Payment", back_populates="booking", order_by="Payment.created_at")

    def __repr__(self):
        return f"<Booking {self.booking_id} {self.booking_status}>"


class Payment(Base, TimestampMixin):
    """
    One payment attempt against a booking. Only completed payments count
    towards the booking's balance.
    """
    __tablename__ = "payments"

    payment_id = uuid_column()
    booking_id = Column(String(36), ForeignKey("bookings.booking_id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    payment_status = Column(
        enum_column_type(PaymentStatus, "payment_status"),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    payment_method = Column(enum_column_type(PaymentMethod, "payment_method"), nullable=False)
    payment_date = Column(DateTime)
    transaction_id = Column(String(255))
    failure_reason = Column(Text)
    refund_reason = Column(Text)

    # Define relationships
    booking = relationship("Booking", back_populates="payments")
    user = relationship("User", back_populates="payments")

    def __repr__(self):
        return f"<Payment {self.payment_id} {self.amount} {self.payment_status}>"
