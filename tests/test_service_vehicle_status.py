"""
Vehicle status derivation from hold flags, maintenance and bookings.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import JULY_1, JULY_5
from rental_api.core.errors import ConflictError
from rental_api.models.enums import MaintenanceStatus, VehicleStatus
from rental_api.schemas.common import PageParams
from rental_api.services import booking_service, location_service, maintenance_service, vehicle_service
from rental_api.services.common import utcnow
from rental_api.services.status_sync import sync_vehicle_status


def _schedule(db, vehicle, when=None):
    return maintenance_service.create_maintenance(
        db,
        {
            "vehicle_id": vehicle.vehicle_id,
            "title": "Oil change",
            "description": "5W-30",
            "scheduled_date": when or JULY_1,
        },
    )


def test_hold_flags_take_priority(db, user, vehicle):
    booking = booking_service.create_booking(
        db, user.user_id, vehicle.vehicle_id, vehicle.location_id, JULY_1, JULY_5
    )
    booking_service.confirm_booking(db, booking.booking_id)

    vehicle_service.update_vehicle(db, vehicle.vehicle_id, {"is_damaged": True, "damage_description": "dent"})
    db.refresh(vehicle)
    assert vehicle.status == VehicleStatus.DAMAGED

    vehicle_service.update_vehicle(db, vehicle.vehicle_id, {"is_out_of_service": True})
    db.refresh(vehicle)
    assert vehicle.status == VehicleStatus.OUT_OF_SERVICE
    assert vehicle.availability is False

    vehicle_service.update_vehicle(db, vehicle.vehicle_id, {"is_damaged": False, "is_out_of_service": False})
    db.refresh(vehicle)
    assert vehicle.status == VehicleStatus.RESERVED
    assert vehicle.damage_description is None


def test_maintenance_in_progress_blocks_vehicle(db, vehicle):
    record = _schedule(db, vehicle)
    db.refresh(vehicle)
    assert vehicle.status == VehicleStatus.AVAILABLE

    maintenance_service.update_maintenance_status(db, record.maintenance_id, MaintenanceStatus.IN_PROGRESS)
    db.refresh(vehicle)
    assert vehicle.status == VehicleStatus.MAINTENANCE

    done = maintenance_service.update_maintenance_status(db, record.maintenance_id, MaintenanceStatus.COMPLETED)
    db.refresh(vehicle)
    assert done.completed_date is not None
    assert vehicle.status == VehicleStatus.AVAILABLE
    assert vehicle.last_service_date is not None


def test_activation_refused_during_maintenance(db, user, vehicle):
    booking = booking_service.create_booking(
        db, user.user_id, vehicle.vehicle_id, vehicle.location_id, JULY_1, JULY_5
    )
    booking_service.confirm_booking(db, booking.booking_id)
    record = _schedule(db, vehicle)
    maintenance_service.update_maintenance_status(db, record.maintenance_id, MaintenanceStatus.IN_PROGRESS)

    with pytest.raises(ConflictError):
        booking_service.activate_booking(db, booking.booking_id)


def test_finished_maintenance_cannot_restart(db, vehicle):
    record = _schedule(db, vehicle)
    maintenance_service.update_maintenance_status(db, record.maintenance_id, MaintenanceStatus.CANCELLED)
    with pytest.raises(ConflictError):
        maintenance_service.update_maintenance_status(db, record.maintenance_id, MaintenanceStatus.IN_PROGRESS)


def test_upcoming_and_overdue(db, vehicle):
    now = utcnow()
    soon = _schedule(db, vehicle, now + timedelta(days=3))
    late = _schedule(db, vehicle, now - timedelta(days=3))
    _schedule(db, vehicle, now + timedelta(days=90))

    assert [r.maintenance_id for r in maintenance_service.get_upcoming_maintenance(db, 30)] == [soon.maintenance_id]
    assert [r.maintenance_id for r in maintenance_service.get_overdue_maintenance(db)] == [late.maintenance_id]


def test_sync_is_idempotent(db, vehicle):
    sync_vehicle_status(db, vehicle.vehicle_id)
    sync_vehicle_status(db, vehicle.vehicle_id)
    db.commit()
    db.refresh(vehicle)
    assert vehicle.status == VehicleStatus.AVAILABLE


def test_duplicate_license_plate(db, vehicle):
    with pytest.raises(ConflictError):
        vehicle_service.create_vehicle(
            db,
            {
                "vehicleSpec_id": vehicle.vehicleSpec_id,
                "rental_rate": Decimal("90.00"),
                "license_plate": vehicle.license_plate,
            },
        )


def test_rate_filter(db, vehicle):
    vehicle_service.create_vehicle(
        db,
        {"vehicleSpec_id": vehicle.vehicleSpec_id, "rental_rate": Decimal("50.00"), "license_plate": "CHEAP-1"},
    )
    page = vehicle_service.list_vehicles(db, PageParams(), max_rate=Decimal("100"))
    assert [v.license_plate for v in page.items] == ["CHEAP-1"]
    assert page.total == 1


def test_location_delete_guard(db, location, vehicle):
    with pytest.raises(ConflictError):
        location_service.delete_location(db, location.location_id)

    empty = location_service.create_location(db, "Airport", "Terminal 2")
    location_service.delete_location(db, empty.location_id)
    with pytest.raises(ConflictError):
        location_service.create_location(db, "Downtown", "1 Main St")
