"""
Booking manager: pricing, overlap rejection and the status lifecycle, with
the vehicle status following each transition.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import JULY_1, JULY_3, JULY_5, JULY_7
from rental_api.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from rental_api.models.enums import BookingStatus, VehicleStatus
from rental_api.services import booking_service
from rental_api.services.common import utcnow


def _book(db, user, vehicle, start=JULY_1, end=JULY_5):
    return booking_service.create_booking(
        db,
        user_id=user.user_id,
        vehicle_id=vehicle.vehicle_id,
        location_id=vehicle.location_id,
        booking_date=start,
        return_date=end,
    )


def test_total_is_rate_times_days(db, user, vehicle):
    booking = _book(db, user, vehicle)
    assert booking.total_amount == Decimal("600.00")
    assert booking.booking_status == BookingStatus.PENDING


def test_partial_day_is_charged_as_full_day(db, user, vehicle):
    booking = _book(db, user, vehicle, JULY_1, JULY_1 + timedelta(days=1, hours=2))
    assert booking.total_amount == Decimal("300.00")


def test_pending_booking_does_not_reserve_vehicle(db, user, vehicle):
    _book(db, user, vehicle)
    db.refresh(vehicle)
    assert vehicle.status == VehicleStatus.AVAILABLE
    assert vehicle.availability is True


def test_overlapping_request_is_rejected(db, user, other_user, vehicle):
    _book(db, user, vehicle, JULY_1, JULY_5)
    with pytest.raises(ConflictError):
        _book(db, other_user, vehicle, JULY_3, JULY_7)


def test_back_to_back_bookings_do_not_overlap(db, user, other_user, vehicle):
    _book(db, user, vehicle, JULY_1, JULY_5)
    second = _book(db, other_user, vehicle, JULY_5, JULY_7)
    assert second.booking_status == BookingStatus.PENDING


def test_inverted_range_is_invalid(db, user, vehicle):
    with pytest.raises(ValidationError):
        _book(db, user, vehicle, JULY_5, JULY_1)


def test_past_booking_date_is_invalid(db, user, vehicle):
    start = utcnow() - timedelta(days=2)
    with pytest.raises(ValidationError):
        _book(db, user, vehicle, start, start + timedelta(days=1))


def test_unknown_location_is_not_found(db, user, vehicle):
    with pytest.raises(NotFoundError):
        booking_service.create_booking(
            db, user.user_id, vehicle.vehicle_id, "missing", JULY_1, JULY_5
        )


def test_damaged_vehicle_cannot_be_booked(db, user, vehicle):
    vehicle.is_damaged = True
    db.commit()
    with pytest.raises(ConflictError):
        _book(db, user, vehicle)


def test_full_lifecycle_drives_vehicle_status(db, user, vehicle):
    booking = _book(db, user, vehicle)

    booking_service.confirm_booking(db, booking.booking_id)
    db.refresh(vehicle)
    assert vehicle.status == VehicleStatus.RESERVED
    assert vehicle.availability is False

    booking_service.activate_booking(db, booking.booking_id)
    db.refresh(vehicle)
    assert vehicle.status == VehicleStatus.RENTED

    done = booking_service.complete_booking(db, booking.booking_id)
    db.refresh(vehicle)
    assert done.booking_status == BookingStatus.COMPLETED
    assert vehicle.status == VehicleStatus.AVAILABLE
    assert vehicle.availability is True


def test_cancel_confirmed_booking_frees_vehicle(db, user, vehicle):
    booking = _book(db, user, vehicle)
    booking_service.confirm_booking(db, booking.booking_id)

    cancelled = booking_service.cancel_booking(db, booking.booking_id, "plans changed", user)
    db.refresh(vehicle)
    assert cancelled.booking_status == BookingStatus.CANCELLED
    assert cancelled.cancellation_reason == "plans changed"
    assert vehicle.status == VehicleStatus.AVAILABLE


def test_cancelled_dates_can_be_booked_again(db, user, other_user, vehicle):
    booking = _book(db, user, vehicle)
    booking_service.cancel_booking(db, booking.booking_id)
    assert _book(db, other_user, vehicle, JULY_3, JULY_7).booking_id


def test_active_booking_cannot_be_cancelled(db, user, vehicle):
    booking = _book(db, user, vehicle)
    booking_service.confirm_booking(db, booking.booking_id)
    booking_service.activate_booking(db, booking.booking_id)

    with pytest.raises(ConflictError):
        booking_service.cancel_booking(db, booking.booking_id)
    db.refresh(booking)
    assert booking.booking_status == BookingStatus.ACTIVE


def test_illegal_transition_leaves_booking_unchanged(db, user, vehicle):
    booking = _book(db, user, vehicle)
    with pytest.raises(ConflictError):
        booking_service.complete_booking(db, booking.booking_id)
    with pytest.raises(ConflictError):
        booking_service.update_booking_status(db, booking.booking_id, BookingStatus.PENDING)
    db.refresh(booking)
    assert booking.booking_status == BookingStatus.PENDING


def test_completion_keeps_later_reservation(db, user, other_user, vehicle):
    first = _book(db, user, vehicle, JULY_1, JULY_3)
    later = _book(db, other_user, vehicle, JULY_5, JULY_7)
    booking_service.confirm_booking(db, first.booking_id)
    booking_service.confirm_booking(db, later.booking_id)
    booking_service.activate_booking(db, first.booking_id)

    booking_service.complete_booking(db, first.booking_id)
    db.refresh(vehicle)
    assert vehicle.status == VehicleStatus.RESERVED


def test_other_users_booking_is_forbidden(db, user, other_user, vehicle):
    booking = _book(db, user, vehicle)
    with pytest.raises(ForbiddenError):
        booking_service.get_booking(db, booking.booking_id, other_user)


def test_update_booking_recomputes_total(db, user, vehicle):
    booking = _book(db, user, vehicle)
    updated = booking_service.update_booking(
        db, booking.booking_id, {"return_date": JULY_7}, user
    )
    assert updated.total_amount == Decimal("900.00")


def test_update_booking_rejects_overlap(db, user, other_user, vehicle):
    booking = _book(db, user, vehicle, JULY_1, JULY_3)
    _book(db, other_user, vehicle, JULY_5, JULY_7)
    with pytest.raises(ConflictError):
        booking_service.update_booking(db, booking.booking_id, {"return_date": JULY_7}, user)
    db.refresh(booking)
    assert booking.return_date == JULY_3


def test_check_availability_reports_conflicts(db, user, vehicle):
    booking = _book(db, user, vehicle)
    result = booking_service.check_availability(db, vehicle.vehicle_id, JULY_3, JULY_7)
    assert result["available"] is False
    assert [b["booking_id"] for b in result["conflicting_bookings"]] == [booking.booking_id]

    free = booking_service.check_availability(db, vehicle.vehicle_id, JULY_5, JULY_7)
    assert free["available"] is True


def test_statistics_count_by_status(db, user, vehicle):
    booking = _book(db, user, vehicle)
    booking_service.cancel_booking(db, booking.booking_id)
    _book(db, user, vehicle)

    stats = booking_service.get_booking_statistics(db)
    assert stats["total_bookings"] == 2
    assert stats["bookings_by_status"]["cancelled"] == 1
    assert stats["bookings_by_status"]["pending"] == 1
