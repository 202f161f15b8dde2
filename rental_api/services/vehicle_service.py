"""
Vehicle fleet and vehicle specifications.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from rental_api.core.errors import ConflictError, NotFoundError
from rental_api.models import Location, Vehicle, VehicleSpecification
from rental_api.models.enums import FuelType, Transmission, VehicleCategory, VehicleStatus
from rental_api.schemas.common import Page, PageParams
from rental_api.services.common import apply_changes, get_or_404, paginate, to_naive_utc
from rental_api.services.status_sync import sync_vehicle_status

logger = logging.getLogger(__name__)

DATE_FIELDS = ("last_service_date", "next_service_due", "insurance_expiry")


def create_specification(db: Session, data: dict) -> VehicleSpecification:
    spec = VehicleSpecification(**data)
    db.add(spec)
    db.commit()
    db.refresh(spec)
    logger.info(f"Vehicle specification {spec.vehicleSpec_id} created: {spec.manufacturer} {spec.model}")
    return spec


def get_specification(db: Session, spec_id: str) -> VehicleSpecification:
    return get_or_404(db, VehicleSpecification, spec_id, "Vehicle specification")


def list_specifications(
    db: Session,
    params: PageParams,
    manufacturer: Optional[str] = None,
    fuel_type: Optional[FuelType] = None,
    transmission: Optional[Transmission] = None,
    vehicle_category: Optional[VehicleCategory] = None,
) -> Page:
    query = db.query(VehicleSpecification)
    if manufacturer:
        query = query.filter(VehicleSpecification.manufacturer.ilike(f"%{manufacturer}%"))
    if fuel_type:
        query = query.filter(VehicleSpecification.fuel_type == fuel_type)
    if transmission:
        query = query.filter(VehicleSpecification.transmission == transmission)
    if vehicle_category:
        query = query.filter(VehicleSpecification.vehicle_category == vehicle_category)
    return paginate(query, VehicleSpecification, params)


def _check_plate(db: Session, license_plate: Optional[str], vehicle_id: Optional[str] = None) -> None:
    if not license_plate:
        return
    query = db.query(Vehicle).filter(Vehicle.license_plate == license_plate)
    if vehicle_id:
        query = query.filter(Vehicle.vehicle_id != vehicle_id)
    if query.first() is not None:
        raise ConflictError(f"License plate {license_plate} is already registered")


def _normalize_dates(data: dict) -> dict:
    for field in DATE_FIELDS:
        if data.get(field) is not None:
            data[field] = to_naive_utc(data[field])
    return data


def create_vehicle(db: Session, data: dict) -> Vehicle:
    """
    Register a vehicle for an existing specification. The new vehicle starts
    available.
    """
    data = _normalize_dates(dict(data))
    get_or_404(db, VehicleSpecification, data["vehicleSpec_id"], "Vehicle specification")
    if data.get("location_id"):
        get_or_404(db, Location, data["location_id"], "Location")
    _check_plate(db, data.get("license_plate"))

    vehicle = Vehicle(**data)
    db.add(vehicle)
    db.flush()
    sync_vehicle_status(db, vehicle.vehicle_id)
    db.commit()
    db.refresh(vehicle)
    logger.info(f"Vehicle {vehicle.vehicle_id} registered")
    return vehicle


def get_vehicle(db: Session, vehicle_id: str) -> Vehicle:
    vehicle = (
        db.query(Vehicle)
        .options(joinedload(Vehicle.specification))
        .filter(Vehicle.vehicle_id == vehicle_id)
        .first()
    )
    if vehicle is None:
        logger.warning(f"Vehicle not found: {vehicle_id}")
        raise NotFoundError("Vehicle not found")
    return vehicle


def list_vehicles(
    db: Session,
    params: PageParams,
    status: Optional[VehicleStatus] = None,
    location_id: Optional[str] = None,
    vehicle_category: Optional[VehicleCategory] = None,
    min_rate: Optional[Decimal] = None,
    max_rate: Optional[Decimal] = None,
    available_only: bool = False,
) -> Page:
    query = db.query(Vehicle).options(joinedload(Vehicle.specification))
    if status:
        query = query.filter(Vehicle.status == status)
    if available_only:
        query = query.filter(Vehicle.availability.is_(True))
    if location_id:
        query = query.filter(Vehicle.location_id == location_id)
    if vehicle_category:
        query = query.join(Vehicle.specification).filter(
            VehicleSpecification.vehicle_category == vehicle_category
        )
    if min_rate is not None:
        query = query.filter(Vehicle.rental_rate >= min_rate)
    if max_rate is not None:
        query = query.filter(Vehicle.rental_rate <= max_rate)
    return paginate(query, Vehicle, params)


def update_vehicle(db: Session, vehicle_id: str, changes: dict) -> Vehicle:
    """
    Update operational fields and the damage/out-of-service holds. The
    status is re-derived afterwards; rate changes do not touch existing
    bookings.
    """
    vehicle = get_vehicle(db, vehicle_id)
    changes = _normalize_dates(dict(changes))
    if changes.get("location_id"):
        get_or_404(db, Location, changes["location_id"], "Location")
    if "license_plate" in changes:
        _check_plate(db, changes["license_plate"], vehicle_id)
    if changes.get("is_damaged") is False and "damage_description" not in changes:
        changes["damage_description"] = None

    changed = apply_changes(vehicle, changes)
    sync_vehicle_status(db, vehicle_id)
    db.commit()
    db.refresh(vehicle)
    logger.info(f"Vehicle {vehicle_id} updated: {changed}")
    return vehicle
