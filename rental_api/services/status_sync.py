"""
Vehicle status derivation.

A vehicle's ``status`` is never written by callers. It is recomputed here
from the vehicle's hold flags, in-progress maintenance and open bookings,
and every service that changes any of those calls ``sync_vehicle_status``
before committing.
"""

import logging

from sqlalchemy import exists
from sqlalchemy.orm import Session

from rental_api.models import Booking, MaintenanceRecord, Vehicle
from rental_api.models.enums import BookingStatus, MaintenanceStatus, VehicleStatus
from rental_api.services.common import get_or_404

logger = logging.getLogger(__name__)


def derive_vehicle_status(db: Session, vehicle: Vehicle) -> VehicleStatus:
    """
    Priority order: manual holds, maintenance, active rental, confirmed
    reservation, otherwise available.
    """
    if vehicle.is_out_of_service:
        return VehicleStatus.OUT_OF_SERVICE
    if vehicle.is_damaged:
        return VehicleStatus.DAMAGED

    in_maintenance = db.query(
        exists().where(
            MaintenanceRecord.vehicle_id == vehicle.vehicle_id,
            MaintenanceRecord.status == MaintenanceStatus.IN_PROGRESS,
        )
    ).scalar()
    if in_maintenance:
        return VehicleStatus.MAINTENANCE

    statuses = {
        row[0]
        for row in db.query(Booking.booking_status)
        .filter(
            Booking.vehicle_id == vehicle.vehicle_id,
            Booking.booking_status.in_([BookingStatus.ACTIVE, BookingStatus.CONFIRMED]),
        )
        .distinct()
    }
    if BookingStatus.ACTIVE in statuses:
        return VehicleStatus.RENTED
    if BookingStatus.CONFIRMED in statuses:
        return VehicleStatus.RESERVED
    return VehicleStatus.AVAILABLE


def sync_vehicle_status(db: Session, vehicle_id: str) -> Vehicle:
    """
    Recompute and store the status of ``vehicle_id``. Pending changes are
    flushed first so the derivation sees them; the caller commits.
    """
    db.flush()
    vehicle = get_or_404(db, Vehicle, vehicle_id, "Vehicle")
    new_status = derive_vehicle_status(db, vehicle)
    if vehicle.status != new_status:
        logger.info(f"Vehicle {vehicle_id} status -> {new_status.value}")
        vehicle.status = new_status
    vehicle.availability = new_status == VehicleStatus.AVAILABLE
    return vehicle
