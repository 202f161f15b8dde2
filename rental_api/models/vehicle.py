"""
SQLAlchemy models for vehicle specifications and vehicles.
"""

from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, Text, Boolean
from sqlalchemy.orm import relationship

from rental_api.db.session import Base
from rental_api.db.base_model import TimestampMixin, uuid_column
from rental_api.models.enums import (
    FuelType,
    Transmission,
    VehicleCategory,
    VehicleStatus,
    enum_column_type,
)

class VehicleSpecification(Base, TimestampMixin):
    """
    Descriptive template shared by many vehicles. Never changed after creation.
    """
    __tablename__ = "vehicle_specifications"

    vehicleSpec_id = uuid_column()
    manufacturer = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    fuel_type = Column(enum_column_type(FuelType, "fuel_type"), nullable=False)
    engine_capacity = Column(String(50))
    transmission = Column(enum_column_type(Transmission, "transmission"), nullable=False)
    seating_capacity = Column(Integer, nullable=False)
    color = Column(String(50))
    features = Column(Text)  # JSON string or comma-separated features
    vehicle_category = Column(enum_column_type(VehicleCategory, "vehicle_category"), nullable=False)

    vehicles = relationship("Vehicle", back_populates="specification")

    def __repr__(self):
        return f"<VehicleSpecification {self.manufacturer} {self.model} {self.year}>"


class Vehicle(Base, TimestampMixin):
    """
    A rentable unit. ``status`` and ``availability`` are derived by
    ``services.status_sync``; the hold flags are the only manual inputs.
    """
    __tablename__ = "vehicles"

    vehicle_id = uuid_column()
    vehicleSpec_id = Column(String(36), ForeignKey("vehicle_specifications.vehicleSpec_id"), nullable=False)
    location_id = Column(String(36), ForeignKey("locations.location_id"))
    rental_rate = Column(Numeric(10, 2), nullable=False)
    availability = Column(Boolean, default=True, nullable=False)
    status = Column(
        enum_column_type(VehicleStatus, "vehicle_status"),
        default=VehicleStatus.AVAILABLE,
        nullable=False,
    )
    license_plate = Column(String(20), unique=True)
    mileage = Column(Integer, default=0)
    fuel_level = Column(Integer, default=100)
    last_service_date = Column(DateTime)
    next_service_due = Column(DateTime)
    insurance_expiry = Column(DateTime)
    condition_rating = Column(Integer, default=10)
    is_damaged = Column(Boolean, default=False, nullable=False)
    damage_description = Column(Text)
    is_out_of_service = Column(Boolean, default=False, nullable=False)
    notes = Column(Text)

    # Define relationships
    specification = relationship("VehicleSpecification", back_populates="vehicles")
    location = relationship("Location", back_populates="vehicles")
    bookings = relationship("Booking", back_populates="vehicle")
    maintenance_records = relationship("MaintenanceRecord", back_populates="vehicle")

    def __repr__(self):
        return f"<Vehicle {self.vehicle_id} {self.status}>"
