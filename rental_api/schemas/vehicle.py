from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from rental_api.models.enums import FuelType, Transmission, VehicleCategory, VehicleStatus

class VehicleSpecCreate(BaseModel):
    """Schema for registering a vehicle specification."""
    manufacturer: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=1900, le=2100)
    fuel_type: FuelType
    engine_capacity: Optional[str] = Field(None, max_length=50)
    transmission: Transmission
    seating_capacity: int = Field(..., ge=1, le=100)
    color: Optional[str] = Field(None, max_length=50)
    features: Optional[str] = Field(None, description="JSON string or comma-separated features")
    vehicle_category: VehicleCategory

class VehicleSpecResponse(VehicleSpecCreate):
    vehicleSpec_id: str
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True
    }

class VehicleCreate(BaseModel):
    vehicleSpec_id: str
    location_id: Optional[str] = None
    rental_rate: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, description="Daily rate")
    license_plate: Optional[str] = Field(None, max_length=20)
    mileage: int = Field(0, ge=0)
    fuel_level: int = Field(100, ge=0, le=100)
    last_service_date: Optional[datetime] = None
    next_service_due: Optional[datetime] = None
    insurance_expiry: Optional[datetime] = None
    condition_rating: int = Field(10, ge=1, le=10)
    notes: Optional[str] = None

class VehicleUpdate(BaseModel):
    """
    Operational attributes and the two manual hold flags. ``status`` itself
    is derived and cannot be written.
    """
    location_id: Optional[str] = None
    rental_rate: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    license_plate: Optional[str] = Field(None, max_length=20)
    mileage: Optional[int] = Field(None, ge=0)
    fuel_level: Optional[int] = Field(None, ge=0, le=100)
    last_service_date: Optional[datetime] = None
    next_service_due: Optional[datetime] = None
    insurance_expiry: Optional[datetime] = None
    condition_rating: Optional[int] = Field(None, ge=1, le=10)
    is_damaged: Optional[bool] = None
    damage_description: Optional[str] = None
    is_out_of_service: Optional[bool] = None
    notes: Optional[str] = None

class VehicleResponse(BaseModel):
    vehicle_id: str
    vehicleSpec_id: str
    location_id: Optional[str] = None
    rental_rate: Decimal
    availability: bool
    status: VehicleStatus
    license_plate: Optional[str] = None
    mileage: Optional[int] = None
    fuel_level: Optional[int] = None
    last_service_date: Optional[datetime] = None
    next_service_due: Optional[datetime] = None
    insurance_expiry: Optional[datetime] = None
    condition_rating: Optional[int] = None
    is_damaged: bool
    damage_description: Optional[str] = None
    is_out_of_service: bool
    notes: Optional[str] = None
    specification: Optional[VehicleSpecResponse] = None
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True
    }

class BookedPeriod(BaseModel):
    booking_id: str
    booking_date: datetime
    return_date: datetime
    booking_status: str

class AvailabilityResponse(BaseModel):
    vehicle_id: str
    available: bool
    vehicle_status: VehicleStatus
    conflicting_bookings: List[BookedPeriod] = []
