from decimal import Decimal
from typing import Dict, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from rental_api.models.enums import BookingStatus

class BookingCreate(BaseModel):
    """
    Schema for requesting a booking. ``user_id`` is only honoured for staff;
    regular users always book for themselves.
    """
    vehicle_id: str
    location_id: str
    booking_date: datetime = Field(..., description="Pick-up time")
    return_date: datetime = Field(..., description="Drop-off time, must be after booking_date")
    user_id: Optional[str] = None

class BookingUpdate(BaseModel):
    location_id: Optional[str] = None
    booking_date: Optional[datetime] = None
    return_date: Optional[datetime] = None

class BookingStatusUpdate(BaseModel):
    booking_status: BookingStatus
    reason: Optional[str] = Field(None, description="Cancellation reason when cancelling")

class BookingCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)

class BookingResponse(BaseModel):
    booking_id: str
    user_id: str
    vehicle_id: str
    location_id: str
    booking_date: datetime
    return_date: datetime
    total_amount: Decimal
    booking_status: BookingStatus
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "booking_id": "6c1f0a1e-0a51-4c1b-9a65-2d0c1c6a9f10",
                "user_id": "0b5b0f9c-42f4-4ad9-8a8e-2f8b3b3f3c11",
                "vehicle_id": "a3b2c1d0-1111-2222-3333-444455556666",
                "location_id": "f1e2d3c4-aaaa-bbbb-cccc-ddddeeeeffff",
                "booking_date": "2030-07-01T10:00:00",
                "return_date": "2030-07-05T10:00:00",
                "total_amount": "600.00",
                "booking_status": "pending",
                "cancellation_reason": None,
                "created_at": "2030-06-01T12:00:00",
                "updated_at": "2030-06-01T12:00:00"
            }
        }
    }

class BookingFilters(BaseModel):
    """Optional query filters for listing bookings."""
    user_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    location_id: Optional[str] = None
    booking_status: Optional[BookingStatus] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None

class BookingBalance(BaseModel):
    booking_id: str
    total_amount: Decimal
    amount_paid: Decimal
    outstanding: Decimal

class BookingStatistics(BaseModel):
    total_bookings: int
    monthly_bookings: int
    monthly_revenue: Decimal
    bookings_by_status: Dict[str, int]
