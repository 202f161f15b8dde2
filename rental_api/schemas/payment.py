from decimal import Decimal
from typing import Dict, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from rental_api.models.enums import PaymentMethod, PaymentStatus

class PaymentCreate(BaseModel):
    """Schema for recording a payment attempt against a booking."""
    booking_id: str
    amount: Decimal = Field(..., max_digits=10, decimal_places=2, description="Must not exceed the outstanding balance")
    payment_method: PaymentMethod
    currency: str = Field("USD", min_length=3, max_length=3)
    transaction_id: Optional[str] = Field(None, max_length=255)

class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus
    failure_reason: Optional[str] = None
    transaction_id: Optional[str] = Field(None, max_length=255)

class RefundRequest(BaseModel):
    reason: Optional[str] = None

class PaymentResponse(BaseModel):
    payment_id: str
    booking_id: str
    user_id: str
    amount: Decimal
    currency: str
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    payment_date: Optional[datetime] = None
    transaction_id: Optional[str] = None
    failure_reason: Optional[str] = None
    refund_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True
    }

class PaymentFilters(BaseModel):
    booking_id: Optional[str] = None
    user_id: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[PaymentMethod] = None

class PaymentStatistics(BaseModel):
    total_payments: int
    total_revenue: Decimal = Field(..., description="Sum of completed payments")
    total_refunded: Decimal
    payments_by_status: Dict[str, int]
    payments_by_method: Dict[str, int]
