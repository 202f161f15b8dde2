"""
SQLAlchemy model for the locations table.
"""

from sqlalchemy import Column, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from rental_api.db.session import Base
from rental_api.db.base_model import TimestampMixin, uuid_column

class Location(Base, TimestampMixin):
    """
    Pick-up/drop-off branch. The only entity that can be physically deleted.
    """
    __tablename__ = "locations"
    __table_args__ = (UniqueConstraint("name", "address", name="uq_locations_name_address"),)

    location_id = uuid_column()
    name = Column(String(150), nullable=False)
    address = Column(Text, nullable=False)
    contact_phone = Column(String(20))

    bookings = relationship("Booking", back_populates="location")
    vehicles = relationship("Vehicle", back_populates="location")
