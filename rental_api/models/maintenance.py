"""
SQLAlchemy model for vehicle maintenance records.
"""

from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from rental_api.db.session import Base
from rental_api.db.base_model import TimestampMixin, uuid_column
from rental_api.models.enums import MaintenanceStatus, MaintenanceType, enum_column_type

class MaintenanceRecord(Base, TimestampMixin):
    """
    Service work on a vehicle. An in-progress record takes the vehicle out
    of the rentable pool.
    """
    __tablename__ = "maintenance_records"

    maintenance_id = uuid_column()
    vehicle_id = Column(String(36), ForeignKey("vehicles.vehicle_id"), nullable=False, index=True)
    maintenance_type = Column(
        enum_column_type(MaintenanceType, "maintenance_type"), default=MaintenanceType.ROUTINE, nullable=False
    )
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    cost = Column(Numeric(10, 2), default=0, nullable=False)
    scheduled_date = Column(DateTime, nullable=False)
    completed_date = Column(DateTime)
    status = Column(
        enum_column_type(MaintenanceStatus, "maintenance_status"),
        default=MaintenanceStatus.SCHEDULED,
        nullable=False,
    )
    service_provider = Column(String(255))
    technician_name = Column(String(255))
    mileage_at_service = Column(Integer)
    notes = Column(Text)

    # Define relationship to vehicle
    vehicle = relationship("Vehicle", back_populates="maintenance_records")

    def __repr__(self):
        return f"<MaintenanceRecord {self.maintenance_id} {self.status}>"
