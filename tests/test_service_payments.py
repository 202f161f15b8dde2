"""
Payment recorder: balance rule, status transitions and refunds.
"""

from decimal import Decimal

import pytest

from conftest import JULY_1, JULY_5
from rental_api.core.errors import ConflictError, ForbiddenError, ValidationError
from rental_api.models.enums import PaymentMethod, PaymentStatus
from rental_api.services import booking_service, payment_service


@pytest.fixture
def booking(db, user, vehicle):
    return booking_service.create_booking(
        db, user.user_id, vehicle.vehicle_id, vehicle.location_id, JULY_1, JULY_5
    )


def _pay(db, booking, amount, user=None):
    return payment_service.create_payment(
        db, booking.booking_id, Decimal(amount), PaymentMethod.CASH, current_user=user
    )


def _complete(db, payment):
    payment_service.update_payment_status(db, payment.payment_id, PaymentStatus.PROCESSING)
    return payment_service.update_payment_status(db, payment.payment_id, PaymentStatus.COMPLETED)


def test_payment_starts_pending(db, user, booking):
    payment = _pay(db, booking, "200.00", user)
    assert payment.payment_status == PaymentStatus.PENDING
    assert payment.user_id == user.user_id
    assert payment.currency == "USD"


def test_non_positive_amount_is_invalid(db, booking):
    with pytest.raises(ValidationError):
        _pay(db, booking, "0")


def test_full_payment_then_second_attempt_rejected(db, booking):
    payment = _complete(db, _pay(db, booking, "600.00"))
    assert payment.payment_status == PaymentStatus.COMPLETED
    assert payment.payment_date is not None

    with pytest.raises(ConflictError):
        _pay(db, booking, "1.00")


def test_amount_above_outstanding_is_rejected(db, booking):
    _complete(db, _pay(db, booking, "500.00"))
    with pytest.raises(ConflictError):
        _pay(db, booking, "150.00")
    assert _pay(db, booking, "100.00").amount == Decimal("100.00")


def test_completing_twice_is_a_no_op(db, booking):
    payment = _complete(db, _pay(db, booking, "600.00"))
    again = payment_service.update_payment_status(db, payment.payment_id, PaymentStatus.COMPLETED)
    assert again.payment_status == PaymentStatus.COMPLETED
    assert booking_service.amount_paid(db, booking.booking_id) == Decimal("600.00")


def test_completion_rechecks_total(db, booking):
    first = _pay(db, booking, "400.00")
    second = _pay(db, booking, "400.00")
    _complete(db, first)
    payment_service.update_payment_status(db, second.payment_id, PaymentStatus.PROCESSING)

    with pytest.raises(ConflictError):
        payment_service.update_payment_status(db, second.payment_id, PaymentStatus.COMPLETED)
    assert booking_service.amount_paid(db, booking.booking_id) == Decimal("400.00")


def test_pending_cannot_jump_to_refunded(db, booking):
    payment = _pay(db, booking, "100.00")
    with pytest.raises(ConflictError):
        payment_service.update_payment_status(db, payment.payment_id, PaymentStatus.REFUNDED)


def test_failed_payment_records_reason(db, booking):
    payment = _pay(db, booking, "100.00")
    failed = payment_service.update_payment_status(
        db, payment.payment_id, PaymentStatus.FAILED, failure_reason="card declined"
    )
    assert failed.payment_status == PaymentStatus.FAILED
    assert failed.failure_reason == "card declined"
    with pytest.raises(ConflictError):
        payment_service.update_payment_status(db, payment.payment_id, PaymentStatus.PROCESSING)


def test_refund_restores_outstanding_balance(db, user, booking):
    payment = _complete(db, _pay(db, booking, "600.00"))
    refunded = payment_service.refund_payment(db, payment.payment_id, "trip cancelled")
    assert refunded.payment_status == PaymentStatus.REFUNDED
    assert refunded.refund_reason == "trip cancelled"

    balance = booking_service.get_booking_balance(db, booking.booking_id, user)
    assert balance["amount_paid"] == Decimal("0.00")
    assert balance["outstanding"] == Decimal("600.00")


def test_cancelled_booking_cannot_be_paid(db, booking):
    booking_service.cancel_booking(db, booking.booking_id)
    with pytest.raises(ConflictError):
        _pay(db, booking, "100.00")


def test_paying_someone_elses_booking_is_forbidden(db, other_user, booking):
    with pytest.raises(ForbiddenError):
        _pay(db, booking, "100.00", other_user)


def test_statistics(db, booking):
    _complete(db, _pay(db, booking, "250.00"))
    _pay(db, booking, "50.00")

    stats = payment_service.get_payment_statistics(db)
    assert stats["total_payments"] == 2
    assert stats["total_revenue"] == Decimal("250.00")
    assert stats["payments_by_status"]["pending"] == 1
    assert stats["payments_by_method"]["cash"] == 2


def test_payment_cannot_complete_after_booking_cancelled(db, booking):
    payment = _pay(db, booking, "600.00")
    payment_service.update_payment_status(db, payment.payment_id, PaymentStatus.PROCESSING)
    booking_service.cancel_booking(db, booking.booking_id)

    with pytest.raises(ConflictError):
        payment_service.update_payment_status(db, payment.payment_id, PaymentStatus.COMPLETED)
    db.refresh(payment)
    assert payment.payment_status == PaymentStatus.PROCESSING
    assert booking_service.amount_paid(db, booking.booking_id) == Decimal("0.00")
