from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rental_api.api.deps import page_params
from rental_api.core.security import get_current_user, staff_required
from rental_api.db.session import get_db
from rental_api.models import User
from rental_api.schemas.common import Envelope, PageParams, paginated
from rental_api.schemas.payment import (
    PaymentCreate,
    PaymentFilters,
    PaymentResponse,
    PaymentStatistics,
    PaymentStatusUpdate,
    RefundRequest,
)
from rental_api.services import payment_service

router = APIRouter()

@router.post("/", response_model=Envelope[PaymentResponse], status_code=status.HTTP_201_CREATED)
def create_payment(
    payment_in: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Record a payment attempt for a booking. It starts ``pending``; the
    payment provider callback (or staff) moves it on.
    """
    payment = payment_service.create_payment(
        db,
        booking_id=payment_in.booking_id,
        amount=payment_in.amount,
        payment_method=payment_in.payment_method,
        currency=payment_in.currency,
        transaction_id=payment_in.transaction_id,
        current_user=current_user,
    )
    return Envelope(data=PaymentResponse.model_validate(payment), message="Payment created successfully")

@router.get("/", response_model=Envelope[List[PaymentResponse]])
def list_payments(
    filters: PaymentFilters = Depends(),
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    page = payment_service.list_payments(db, params, filters, current_user)
    return paginated([PaymentResponse.model_validate(p) for p in page.items], page, "Payments retrieved successfully")

@router.get("/statistics", response_model=Envelope[PaymentStatistics])
def payment_statistics(db: Session = Depends(get_db), _: User = Depends(staff_required)):
    stats = payment_service.get_payment_statistics(db)
    return Envelope(data=PaymentStatistics(**stats), message="Payment statistics retrieved successfully")

@router.get("/{payment_id}", response_model=Envelope[PaymentResponse])
def get_payment(
    payment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    payment = payment_service.get_payment(db, payment_id, current_user)
    return Envelope(data=PaymentResponse.model_validate(payment), message="Payment retrieved successfully")

@router.patch("/{payment_id}/status", response_model=Envelope[PaymentResponse])
def update_payment_status(
    payment_id: str,
    body: PaymentStatusUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(staff_required),
):
    payment = payment_service.update_payment_status(
        db, payment_id, body.payment_status, body.failure_reason, body.transaction_id
    )
    return Envelope(data=PaymentResponse.model_validate(payment), message="Payment status updated successfully")

@router.post("/{payment_id}/refund", response_model=Envelope[PaymentResponse])
def refund_payment(
    payment_id: str,
    body: RefundRequest,
    db: Session = Depends(get_db),
    _: User = Depends(staff_required),
):
    payment = payment_service.refund_payment(db, payment_id, body.reason)
    return Envelope(data=PaymentResponse.model_validate(payment), message="Payment refunded successfully")
