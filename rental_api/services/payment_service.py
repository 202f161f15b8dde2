"""
Payment recording. Payment status moves independently of booking status;
the only link is the balance rule: completed payments for a booking never
add up to more than its total.
"""

import logging
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from rental_api.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from rental_api.models import Booking, Payment, User
from rental_api.models.enums import BookingStatus, PaymentMethod, PaymentStatus
from rental_api.schemas.common import Page, PageParams
from rental_api.schemas.payment import PaymentFilters
from rental_api.services.booking_service import amount_paid, get_booking
from rental_api.services.common import paginate, round_money, utcnow

logger = logging.getLogger(__name__)

PAYMENT_TRANSITIONS: Dict[PaymentStatus, set] = {
    PaymentStatus.PENDING: {PaymentStatus.PROCESSING, PaymentStatus.FAILED},
    PaymentStatus.PROCESSING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.REFUNDED: set(),
}


def _lock_booking(db: Session, booking_id: str) -> Booking:
    booking = (
        db.query(Booking)
        .filter(Booking.booking_id == booking_id)
        .with_for_update()
        .first()
    )
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def _check_transition(payment: Payment, target: PaymentStatus) -> None:
    current = PaymentStatus(payment.payment_status)
    if target not in PAYMENT_TRANSITIONS[current]:
        raise ConflictError(
            f"Cannot change payment from '{current.value}' to '{target.value}'",
            details={"payment_status": current.value},
        )


def create_payment(
    db: Session,
    booking_id: str,
    amount: Decimal,
    payment_method: PaymentMethod,
    currency: str = "USD",
    transaction_id: Optional[str] = None,
    current_user: Optional[User] = None,
) -> Payment:
    """
    Record a pending payment against ``booking_id``.

    Raises:
        NotFoundError: unknown booking
        ForbiddenError: booking belongs to someone else
        ValidationError: non-positive amount
        ConflictError: booking cancelled, or amount above the outstanding balance
    """
    amount = round_money(amount)
    if amount <= 0:
        raise ValidationError("Payment amount must be greater than zero")

    get_booking(db, booking_id, current_user)
    booking = _lock_booking(db, booking_id)
    if booking.booking_status == BookingStatus.CANCELLED:
        raise ConflictError("Cannot pay for a cancelled booking")

    outstanding = round_money(booking.total_amount) - amount_paid(db, booking_id)
    if amount > outstanding:
        logger.warning(
            f"Rejected payment of {amount} for booking {booking_id}, outstanding {outstanding}"
        )
        raise ConflictError(
            f"Payment amount {amount} exceeds outstanding balance {outstanding}",
            details={"outstanding": str(outstanding)},
        )

    payment = Payment(
        booking_id=booking_id,
        user_id=booking.user_id,
        amount=amount,
        currency=currency.upper(),
        payment_method=payment_method,
        payment_status=PaymentStatus.PENDING,
        transaction_id=transaction_id,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)

    logger.info(f"Payment {payment.payment_id} of {amount} recorded for booking {booking_id}")
    return payment


def get_payment(db: Session, payment_id: str, current_user: Optional[User] = None) -> Payment:
    payment = db.get(Payment, payment_id)
    if payment is None:
        logger.warning(f"Payment not found: {payment_id}")
        raise NotFoundError("Payment not found")
    if current_user is not None and not current_user.is_staff and payment.user_id != current_user.user_id:
        raise ForbiddenError("You do not have access to this payment")
    return payment


def list_payments(
    db: Session,
    params: PageParams,
    filters: PaymentFilters,
    current_user: Optional[User] = None,
) -> Page:
    query = db.query(Payment)

    user_id = filters.user_id
    if current_user is not None and not current_user.is_staff:
        user_id = current_user.user_id
    if user_id:
        query = query.filter(Payment.user_id == user_id)
    if filters.booking_id:
        query = query.filter(Payment.booking_id == filters.booking_id)
    if filters.payment_status:
        query = query.filter(Payment.payment_status == filters.payment_status)
    if filters.payment_method:
        query = query.filter(Payment.payment_method == filters.payment_method)

    return paginate(query, Payment, params)


def update_payment_status(
    db: Session,
    payment_id: str,
    status: PaymentStatus,
    failure_reason: Optional[str] = None,
    transaction_id: Optional[str] = None,
) -> Payment:
    """
    Move a payment along pending -> processing -> completed, to failed, or
    from completed to refunded. Completing an already completed payment
    returns it unchanged.
    """
    payment = get_payment(db, payment_id)

    if status == PaymentStatus.COMPLETED and payment.payment_status == PaymentStatus.COMPLETED:
        logger.info(f"Payment {payment_id} already completed")
        return payment
    if status == PaymentStatus.REFUNDED:
        return refund_payment(db, payment_id, failure_reason)

    _check_transition(payment, status)

    if status == PaymentStatus.COMPLETED:
        booking = _lock_booking(db, payment.booking_id)
        if booking.booking_status == BookingStatus.CANCELLED:
            raise ConflictError("Cannot complete a payment for a cancelled booking")
        paid = amount_paid(db, booking.booking_id)
        if paid + round_money(payment.amount) > round_money(booking.total_amount):
            raise ConflictError(
                "Completing this payment would exceed the booking total",
                details={"total_amount": str(booking.total_amount), "amount_paid": str(paid)},
            )
        payment.payment_date = utcnow()
    elif status == PaymentStatus.FAILED:
        payment.failure_reason = failure_reason

    if transaction_id:
        payment.transaction_id = transaction_id
    payment.payment_status = status
    db.commit()
    db.refresh(payment)

    logger.info(f"Payment {payment_id} status -> {status.value}")
    return payment


def refund_payment(db: Session, payment_id: str, reason: Optional[str] = None) -> Payment:
    """completed -> refunded; the amount no longer counts towards the booking."""
    payment = get_payment(db, payment_id)
    if payment.payment_status != PaymentStatus.COMPLETED:
        raise ConflictError("Only completed payments can be refunded")

    payment.payment_status = PaymentStatus.REFUNDED
    payment.refund_reason = reason
    db.commit()
    db.refresh(payment)

    logger.info(f"Payment {payment_id} refunded")
    return payment


def get_payment_statistics(db: Session) -> dict:
    def _sum(status: PaymentStatus) -> Decimal:
        value = (
            db.query(func.coalesce(func.sum(Payment.amount), 0))
            .filter(Payment.payment_status == status)
            .scalar()
        )
        return round_money(value or 0)

    by_status = {status.value: 0 for status in PaymentStatus}
    for status, count in (
        db.query(Payment.payment_status, func.count(Payment.payment_id))
        .group_by(Payment.payment_status)
        .all()
    ):
        by_status[PaymentStatus(status).value] = count

    by_method = {method.value: 0 for method in PaymentMethod}
    for method, count in (
        db.query(Payment.payment_method, func.count(Payment.payment_id))
        .group_by(Payment.payment_method)
        .all()
    ):
        by_method[PaymentMethod(method).value] = count

    return {
        "total_payments": sum(by_status.values()),
        "total_revenue": _sum(PaymentStatus.COMPLETED),
        "total_refunded": _sum(PaymentStatus.REFUNDED),
        "payments_by_status": by_status,
        "payments_by_method": by_method,
    }
