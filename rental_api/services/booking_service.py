"""
Booking lifecycle: request, confirm, activate, complete or cancel.

Status changes follow ``BOOKING_TRANSITIONS``. Each mutation locks the
vehicle row before its overlap check so two requests for the same vehicle
cannot both pass, then hands the vehicle to ``sync_vehicle_status``.
"""

import logging
from datetime import datetime
from decimal import Decimal
from math import ceil
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from rental_api.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from rental_api.models import Booking, Location, MaintenanceRecord, Payment, User, Vehicle
from rental_api.models.enums import BookingStatus, MaintenanceStatus, PaymentStatus
from rental_api.schemas.booking import BookingFilters
from rental_api.schemas.common import Page, PageParams
from rental_api.services.common import (
    get_or_404,
    paginate,
    round_money,
    to_naive_utc,
    utcnow,
)
from rental_api.services.status_sync import sync_vehicle_status

logger = logging.getLogger(__name__)

BOOKING_TRANSITIONS: Dict[BookingStatus, set] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.ACTIVE, BookingStatus.CANCELLED},
    BookingStatus.ACTIVE: {BookingStatus.COMPLETED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

# A new request is refused if it overlaps any of these
BLOCKING_STATES = (BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.ACTIVE)
# At most one booking in these states may cover any instant of a vehicle's calendar
COMMITTED_STATES = (BookingStatus.CONFIRMED, BookingStatus.ACTIVE)
EDITABLE_STATES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


def calculate_total(rate, booking_date: datetime, return_date: datetime) -> Decimal:
    """Daily rate times the number of started days."""
    days = ceil((return_date - booking_date).total_seconds() / 86400)
    return round_money(Decimal(rate) * days)


def _validate_range(booking_date: datetime, return_date: datetime) -> None:
    if return_date <= booking_date:
        raise ValidationError("Return date must be after booking date")
    if booking_date < utcnow():
        raise ValidationError("Booking date cannot be in the past")


def _lock_vehicle(db: Session, vehicle_id: str) -> Vehicle:
    """SELECT ... FOR UPDATE on the vehicle so overlap checks serialize per vehicle."""
    vehicle = (
        db.query(Vehicle)
        .filter(Vehicle.vehicle_id == vehicle_id)
        .with_for_update()
        .first()
    )
    if vehicle is None:
        raise NotFoundError("Vehicle not found")
    return vehicle


def _check_vehicle_holds(vehicle: Vehicle) -> None:
    if vehicle.is_out_of_service:
        raise ConflictError("Vehicle is out of service")
    if vehicle.is_damaged:
        raise ConflictError("Vehicle is damaged and cannot be booked")


def find_overlapping_bookings(
    db: Session,
    vehicle_id: str,
    start: datetime,
    end: datetime,
    statuses=BLOCKING_STATES,
    exclude_booking_id: Optional[str] = None,
) -> List[Booking]:
    """Bookings of ``vehicle_id`` in ``statuses`` intersecting [start, end)."""
    query = db.query(Booking).filter(
        Booking.vehicle_id == vehicle_id,
        Booking.booking_status.in_(statuses),
        Booking.booking_date < end,
        Booking.return_date > start,
    )
    if exclude_booking_id:
        query = query.filter(Booking.booking_id != exclude_booking_id)
    return query.order_by(Booking.booking_date).all()


def _ensure_access(booking: Booking, current_user: Optional[User]) -> None:
    if current_user is None or current_user.is_staff:
        return
    if booking.user_id != current_user.user_id:
        raise ForbiddenError("You do not have access to this booking")


def _check_transition(booking: Booking, target: BookingStatus) -> None:
    current = BookingStatus(booking.booking_status)
    if target not in BOOKING_TRANSITIONS[current]:
        raise ConflictError(
            f"Cannot change booking from '{current.value}' to '{target.value}'",
            details={"booking_status": current.value},
        )


def create_booking(
    db: Session,
    user_id: str,
    vehicle_id: str,
    location_id: str,
    booking_date: datetime,
    return_date: datetime,
) -> Booking:
    """
    Create a pending booking.

    Raises:
        ValidationError: inverted or past date range
        NotFoundError: unknown user, vehicle or location
        ConflictError: vehicle on hold, or already requested for overlapping dates
    """
    booking_date = to_naive_utc(booking_date)
    return_date = to_naive_utc(return_date)
    logger.info(f"Creating booking for user {user_id} on vehicle {vehicle_id}")

    _validate_range(booking_date, return_date)
    get_or_404(db, User, user_id, "User")
    get_or_404(db, Location, location_id, "Location")
    vehicle = _lock_vehicle(db, vehicle_id)
    _check_vehicle_holds(vehicle)

    conflicts = find_overlapping_bookings(db, vehicle_id, booking_date, return_date)
    if conflicts:
        logger.warning(f"Booking conflict on vehicle {vehicle_id}: {len(conflicts)} overlapping")
        raise ConflictError(
            "Vehicle is already booked for the selected dates",
            details={"conflicting_bookings": [b.booking_id for b in conflicts]},
        )

    booking = Booking(
        user_id=user_id,
        vehicle_id=vehicle_id,
        location_id=location_id,
        booking_date=booking_date,
        return_date=return_date,
        total_amount=calculate_total(vehicle.rental_rate, booking_date, return_date),
        booking_status=BookingStatus.PENDING,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)

    logger.info(f"Booking {booking.booking_id} created, total {booking.total_amount}")
    return booking


def get_booking(db: Session, booking_id: str, current_user: Optional[User] = None) -> Booking:
    booking = db.get(Booking, booking_id)
    if booking is None:
        logger.warning(f"Booking not found: {booking_id}")
        raise NotFoundError("Booking not found")
    _ensure_access(booking, current_user)
    return booking


def list_bookings(
    db: Session,
    params: PageParams,
    filters: BookingFilters,
    current_user: Optional[User] = None,
) -> Page:
    """Filtered, paginated bookings. Non-staff users only ever see their own."""
    query = db.query(Booking)

    user_id = filters.user_id
    if current_user is not None and not current_user.is_staff:
        user_id = current_user.user_id
    if user_id:
        query = query.filter(Booking.user_id == user_id)
    if filters.vehicle_id:
        query = query.filter(Booking.vehicle_id == filters.vehicle_id)
    if filters.location_id:
        query = query.filter(Booking.location_id == filters.location_id)
    if filters.booking_status:
        query = query.filter(Booking.booking_status == filters.booking_status)
    if filters.date_from:
        query = query.filter(Booking.booking_date >= to_naive_utc(filters.date_from))
    if filters.date_to:
        query = query.filter(Booking.return_date <= to_naive_utc(filters.date_to))
    if filters.min_amount is not None:
        query = query.filter(Booking.total_amount >= filters.min_amount)
    if filters.max_amount is not None:
        query = query.filter(Booking.total_amount <= filters.max_amount)

    page = paginate(query, Booking, params)
    logger.info(f"Bookings retrieved: {len(page.items)} of {page.total}")
    return page


def update_booking(
    db: Session,
    booking_id: str,
    changes: dict,
    current_user: Optional[User] = None,
) -> Booking:
    """
    Move a pending or confirmed booking to another location or date range.
    The total is recomputed and may not drop below what has already been paid.
    """
    booking = get_booking(db, booking_id, current_user)
    if booking.booking_status not in EDITABLE_STATES:
        raise ConflictError("Only pending or confirmed bookings can be updated")

    new_location = changes.get("location_id")
    if new_location is not None:
        get_or_404(db, Location, new_location, "Location")

    new_start = changes.get("booking_date")
    new_end = changes.get("return_date")
    if new_start is not None or new_end is not None:
        start = to_naive_utc(new_start) if new_start is not None else booking.booking_date
        end = to_naive_utc(new_end) if new_end is not None else booking.return_date
        _validate_range(start, end)

        vehicle = _lock_vehicle(db, booking.vehicle_id)
        conflicts = find_overlapping_bookings(
            db, booking.vehicle_id, start, end, exclude_booking_id=booking.booking_id
        )
        if conflicts:
            raise ConflictError("Vehicle is already booked for the selected dates")

        new_total = calculate_total(vehicle.rental_rate, start, end)
        paid = amount_paid(db, booking.booking_id)
        if new_total < paid:
            raise ConflictError(
                f"New total {new_total} is below the amount already paid ({paid})"
            )
        booking.booking_date = start
        booking.return_date = end
        booking.total_amount = new_total

    if new_location is not None:
        booking.location_id = new_location
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking_id} updated")
    return booking


def confirm_booking(db: Session, booking_id: str) -> Booking:
    """pending -> confirmed; the vehicle becomes reserved."""
    booking = get_booking(db, booking_id)
    _check_transition(booking, BookingStatus.CONFIRMED)
    vehicle = _lock_vehicle(db, booking.vehicle_id)
    _check_vehicle_holds(vehicle)

    conflicts = find_overlapping_bookings(
        db,
        booking.vehicle_id,
        booking.booking_date,
        booking.return_date,
        statuses=COMMITTED_STATES,
        exclude_booking_id=booking.booking_id,
    )
    if conflicts:
        raise ConflictError("Vehicle is already committed to another booking for these dates")

    booking.booking_status = BookingStatus.CONFIRMED
    sync_vehicle_status(db, booking.vehicle_id)
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking_id} confirmed")
    return booking


def activate_booking(db: Session, booking_id: str) -> Booking:
    """confirmed -> active, i.e. the vehicle has been handed over."""
    booking = get_booking(db, booking_id)
    _check_transition(booking, BookingStatus.ACTIVE)
    vehicle = _lock_vehicle(db, booking.vehicle_id)
    _check_vehicle_holds(vehicle)

    in_maintenance = (
        db.query(MaintenanceRecord)
        .filter(
            MaintenanceRecord.vehicle_id == vehicle.vehicle_id,
            MaintenanceRecord.status == MaintenanceStatus.IN_PROGRESS,
        )
        .first()
    )
    if in_maintenance is not None:
        raise ConflictError("Vehicle is under maintenance")

    other_active = (
        db.query(Booking)
        .filter(
            Booking.vehicle_id == vehicle.vehicle_id,
            Booking.booking_status == BookingStatus.ACTIVE,
            Booking.booking_id != booking.booking_id,
        )
        .first()
    )
    if other_active is not None:
        raise ConflictError("Vehicle has not been returned from a previous booking")

    booking.booking_status = BookingStatus.ACTIVE
    sync_vehicle_status(db, booking.vehicle_id)
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking_id} activated")
    return booking


def cancel_booking(
    db: Session,
    booking_id: str,
    reason: Optional[str] = None,
    current_user: Optional[User] = None,
) -> Booking:
    """
    Cancel a pending or confirmed booking. Active bookings cannot be
    cancelled; they end through ``complete_booking``.
    """
    booking = get_booking(db, booking_id, current_user)
    _check_transition(booking, BookingStatus.CANCELLED)
    booking.booking_status = BookingStatus.CANCELLED
    booking.cancellation_reason = reason

    sync_vehicle_status(db, booking.vehicle_id)
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking_id} cancelled")
    return booking


def complete_booking(db: Session, booking_id: str) -> Booking:
    """active -> completed; the vehicle returns to the pool (or its next reservation)."""
    booking = get_booking(db, booking_id)
    _check_transition(booking, BookingStatus.COMPLETED)
    booking.booking_status = BookingStatus.COMPLETED

    sync_vehicle_status(db, booking.vehicle_id)
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking_id} completed")
    return booking


def update_booking_status(
    db: Session,
    booking_id: str,
    status: BookingStatus,
    reason: Optional[str] = None,
) -> Booking:
    """Admin entry point routing a requested status to its transition."""
    if status == BookingStatus.CONFIRMED:
        return confirm_booking(db, booking_id)
    if status == BookingStatus.ACTIVE:
        return activate_booking(db, booking_id)
    if status == BookingStatus.COMPLETED:
        return complete_booking(db, booking_id)
    if status == BookingStatus.CANCELLED:
        return cancel_booking(db, booking_id, reason)
    raise ConflictError("Bookings cannot be moved back to 'pending'")


def amount_paid(db: Session, booking_id: str) -> Decimal:
    """Sum of completed payments for ``booking_id``."""
    total = (
        db.query(func.coalesce(func.sum(Payment.amount), 0))
        .filter(
            Payment.booking_id == booking_id,
            Payment.payment_status == PaymentStatus.COMPLETED,
        )
        .scalar()
    )
    return round_money(total or 0)


def get_booking_balance(db: Session, booking_id: str, current_user: Optional[User] = None) -> dict:
    booking = get_booking(db, booking_id, current_user)
    paid = amount_paid(db, booking_id)
    total = round_money(booking.total_amount)
    return {
        "booking_id": booking.booking_id,
        "total_amount": total,
        "amount_paid": paid,
        "outstanding": max(total - paid, Decimal("0.00")),
    }


def get_upcoming_bookings(db: Session, user_id: str, limit: int = 10) -> List[Booking]:
    """Pending or confirmed bookings of ``user_id`` that have not started yet."""
    return (
        db.query(Booking)
        .filter(
            Booking.user_id == user_id,
            Booking.booking_date >= utcnow(),
            Booking.booking_status.in_(EDITABLE_STATES),
        )
        .order_by(Booking.booking_date)
        .limit(limit)
        .all()
    )


def check_availability(db: Session, vehicle_id: str, start: datetime, end: datetime) -> dict:
    """Whether ``vehicle_id`` could be booked for [start, end), with the bookings in the way."""
    start = to_naive_utc(start)
    end = to_naive_utc(end)
    if end <= start:
        raise ValidationError("End date must be after start date")

    vehicle = get_or_404(db, Vehicle, vehicle_id, "Vehicle")
    conflicts = find_overlapping_bookings(db, vehicle_id, start, end)
    on_hold = bool(vehicle.is_out_of_service or vehicle.is_damaged)
    return {
        "vehicle_id": vehicle_id,
        "available": not conflicts and not on_hold,
        "vehicle_status": vehicle.status,
        "conflicting_bookings": [
            {
                "booking_id": b.booking_id,
                "booking_date": b.booking_date,
                "return_date": b.return_date,
                "booking_status": BookingStatus(b.booking_status).value,
            }
            for b in conflicts
        ],
    }


def get_booking_statistics(db: Session) -> dict:
    now = utcnow()
    start_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    total = db.query(func.count(Booking.booking_id)).scalar() or 0
    monthly = (
        db.query(func.count(Booking.booking_id))
        .filter(Booking.created_at >= start_of_month)
        .scalar()
        or 0
    )
    monthly_revenue = (
        db.query(func.coalesce(func.sum(Booking.total_amount), 0))
        .filter(
            Booking.created_at >= start_of_month,
            Booking.booking_status == BookingStatus.COMPLETED,
        )
        .scalar()
    )
    by_status = {status.value: 0 for status in BookingStatus}
    for status, count in (
        db.query(Booking.booking_status, func.count(Booking.booking_id))
        .group_by(Booking.booking_status)
        .all()
    ):
        by_status[BookingStatus(status).value] = count

    return {
        "total_bookings": total,
        "monthly_bookings": monthly,
        "monthly_revenue": round_money(monthly_revenue or 0),
        "bookings_by_status": by_status,
    }
