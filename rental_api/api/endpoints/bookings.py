from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rental_api.api.deps import page_params
from rental_api.core.security import admin_required, get_current_user, staff_required
from rental_api.db.session import get_db
from rental_api.models import User
from rental_api.schemas.booking import (
    BookingBalance,
    BookingCancel,
    BookingCreate,
    BookingFilters,
    BookingResponse,
    BookingStatistics,
    BookingStatusUpdate,
    BookingUpdate,
)
from rental_api.schemas.common import Envelope, PageParams, paginated
from rental_api.services import booking_service

router = APIRouter()

@router.post("/", response_model=Envelope[BookingResponse], status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_in: BookingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Request a vehicle for a date range. The booking starts ``pending`` and
    the vehicle is not reserved until staff confirm it.
    """
    user_id = current_user.user_id
    if current_user.is_staff and booking_in.user_id:
        user_id = booking_in.user_id

    booking = booking_service.create_booking(
        db,
        user_id=user_id,
        vehicle_id=booking_in.vehicle_id,
        location_id=booking_in.location_id,
        booking_date=booking_in.booking_date,
        return_date=booking_in.return_date,
    )
    return Envelope(data=BookingResponse.model_validate(booking), message="Booking created successfully")

@router.get("/", response_model=Envelope[List[BookingResponse]])
def list_bookings(
    filters: BookingFilters = Depends(),
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Users get their own bookings; staff may filter across everyone."""
    page = booking_service.list_bookings(db, params, filters, current_user)
    return paginated([BookingResponse.model_validate(b) for b in page.items], page, "Bookings retrieved successfully")

@router.get("/upcoming", response_model=Envelope[List[BookingResponse]])
def upcoming_bookings(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    bookings = booking_service.get_upcoming_bookings(db, current_user.user_id, limit)
    return Envelope(
        data=[BookingResponse.model_validate(b) for b in bookings],
        message="Upcoming bookings retrieved successfully",
    )

@router.get("/statistics", response_model=Envelope[BookingStatistics])
def booking_statistics(db: Session = Depends(get_db), _: User = Depends(staff_required)):
    stats = booking_service.get_booking_statistics(db)
    return Envelope(data=BookingStatistics(**stats), message="Booking statistics retrieved successfully")

@router.get("/{booking_id}", response_model=Envelope[BookingResponse])
def get_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    booking = booking_service.get_booking(db, booking_id, current_user)
    return Envelope(data=BookingResponse.model_validate(booking), message="Booking retrieved successfully")

@router.put("/{booking_id}", response_model=Envelope[BookingResponse])
def update_booking(
    booking_id: str,
    booking_in: BookingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    booking = booking_service.update_booking(
        db, booking_id, booking_in.model_dump(exclude_unset=True, exclude_none=True), current_user
    )
    return Envelope(data=BookingResponse.model_validate(booking), message="Booking updated successfully")

@router.post("/{booking_id}/confirm", response_model=Envelope[BookingResponse])
def confirm_booking(booking_id: str, db: Session = Depends(get_db), _: User = Depends(staff_required)):
    booking = booking_service.confirm_booking(db, booking_id)
    return Envelope(data=BookingResponse.model_validate(booking), message="Booking confirmed successfully")

@router.post("/{booking_id}/activate", response_model=Envelope[BookingResponse])
def activate_booking(booking_id: str, db: Session = Depends(get_db), _: User = Depends(staff_required)):
    booking = booking_service.activate_booking(db, booking_id)
    return Envelope(data=BookingResponse.model_validate(booking), message="Booking activated successfully")

@router.post("/{booking_id}/cancel", response_model=Envelope[BookingResponse])
def cancel_booking(
    booking_id: str,
    body: Optional[BookingCancel] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    booking = booking_service.cancel_booking(db, booking_id, body.reason if body else None, current_user)
    return Envelope(data=BookingResponse.model_validate(booking), message="Booking cancelled successfully")

@router.post("/{booking_id}/complete", response_model=Envelope[BookingResponse])
def complete_booking(booking_id: str, db: Session = Depends(get_db), _: User = Depends(staff_required)):
    booking = booking_service.complete_booking(db, booking_id)
    return Envelope(data=BookingResponse.model_validate(booking), message="Booking completed successfully")

@router.patch("/{booking_id}/status", response_model=Envelope[BookingResponse])
def update_booking_status(
    booking_id: str,
    body: BookingStatusUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required),
):
    booking = booking_service.update_booking_status(db, booking_id, body.booking_status, body.reason)
    return Envelope(data=BookingResponse.model_validate(booking), message="Booking status updated successfully")

@router.get("/{booking_id}/balance", response_model=Envelope[BookingBalance])
def booking_balance(
    booking_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    balance = booking_service.get_booking_balance(db, booking_id, current_user)
    return Envelope(data=BookingBalance(**balance), message="Booking balance retrieved successfully")
