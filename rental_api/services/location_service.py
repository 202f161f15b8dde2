"""
Rental locations (branches).
"""

import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from rental_api.core.errors import ConflictError
from rental_api.models import Booking, Location, Vehicle
from rental_api.schemas.common import Page, PageParams
from rental_api.services.common import apply_changes, get_or_404, paginate

logger = logging.getLogger(__name__)


def _check_unique(db: Session, name: str, address: str, location_id: Optional[str] = None) -> None:
    query = db.query(Location).filter(Location.name == name, Location.address == address)
    if location_id:
        query = query.filter(Location.location_id != location_id)
    if query.first() is not None:
        raise ConflictError("A location with this name and address already exists")


def create_location(db: Session, name: str, address: str, contact_phone: Optional[str] = None) -> Location:
    _check_unique(db, name, address)
    location = Location(name=name, address=address, contact_phone=contact_phone)
    db.add(location)
    db.commit()
    db.refresh(location)
    logger.info(f"Location {location.location_id} created: {name}")
    return location


def get_location(db: Session, location_id: str) -> Location:
    return get_or_404(db, Location, location_id, "Location")


def list_locations(db: Session, params: PageParams, search: Optional[str] = None) -> Page:
    query = db.query(Location)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Location.name.ilike(pattern), Location.address.ilike(pattern)))
    return paginate(query, Location, params)


def update_location(db: Session, location_id: str, changes: dict) -> Location:
    location = get_location(db, location_id)
    if "name" in changes or "address" in changes:
        _check_unique(
            db,
            changes.get("name", location.name),
            changes.get("address", location.address),
            location_id,
        )
    changed = apply_changes(location, changes)
    db.commit()
    db.refresh(location)
    logger.info(f"Location {location_id} updated: {changed}")
    return location


def delete_location(db: Session, location_id: str) -> None:
    """Delete a location nothing refers to any more."""
    location = get_location(db, location_id)

    bookings = db.query(Booking).filter(Booking.location_id == location_id).count()
    vehicles = db.query(Vehicle).filter(Vehicle.location_id == location_id).count()
    if bookings or vehicles:
        raise ConflictError(
            "Cannot delete a location that still has bookings or vehicles",
            details={"bookings": bookings, "vehicles": vehicles},
        )

    db.delete(location)
    db.commit()
    logger.info(f"Location {location_id} deleted")


def list_location_vehicles(db: Session, location_id: str, params: PageParams) -> Page:
    get_location(db, location_id)
    query = (
        db.query(Vehicle)
        .options(joinedload(Vehicle.specification))
        .filter(Vehicle.location_id == location_id)
    )
    return paginate(query, Vehicle, params)
