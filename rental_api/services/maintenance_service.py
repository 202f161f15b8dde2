"""
Maintenance scheduling. A record in progress takes its vehicle out of the
rentable pool; every status change re-derives the vehicle status.
"""

import logging
from datetime import timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from rental_api.core.errors import ConflictError, NotFoundError
from rental_api.models import MaintenanceRecord, Vehicle
from rental_api.models.enums import MaintenanceStatus, MaintenanceType
from rental_api.schemas.common import Page, PageParams
from rental_api.services.common import apply_changes, get_or_404, paginate, to_naive_utc, utcnow
from rental_api.services.status_sync import sync_vehicle_status

logger = logging.getLogger(__name__)

MAINTENANCE_TRANSITIONS: Dict[MaintenanceStatus, set] = {
    MaintenanceStatus.SCHEDULED: {MaintenanceStatus.IN_PROGRESS, MaintenanceStatus.CANCELLED},
    MaintenanceStatus.IN_PROGRESS: {MaintenanceStatus.COMPLETED, MaintenanceStatus.CANCELLED},
    MaintenanceStatus.COMPLETED: set(),
    MaintenanceStatus.CANCELLED: set(),
}

OPEN_STATES = (MaintenanceStatus.SCHEDULED, MaintenanceStatus.IN_PROGRESS)


def create_maintenance(db: Session, data: dict) -> MaintenanceRecord:
    get_or_404(db, Vehicle, data["vehicle_id"], "Vehicle")
    data = dict(data)
    data["scheduled_date"] = to_naive_utc(data["scheduled_date"])
    record = MaintenanceRecord(status=MaintenanceStatus.SCHEDULED, **data)
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(f"Maintenance {record.maintenance_id} scheduled for vehicle {record.vehicle_id}")
    return record


def get_maintenance(db: Session, maintenance_id: str) -> MaintenanceRecord:
    record = db.get(MaintenanceRecord, maintenance_id)
    if record is None:
        logger.warning(f"Maintenance record not found: {maintenance_id}")
        raise NotFoundError("Maintenance record not found")
    return record


def list_maintenance(
    db: Session,
    params: PageParams,
    vehicle_id: Optional[str] = None,
    status: Optional[MaintenanceStatus] = None,
    maintenance_type: Optional[MaintenanceType] = None,
) -> Page:
    query = db.query(MaintenanceRecord)
    if vehicle_id:
        query = query.filter(MaintenanceRecord.vehicle_id == vehicle_id)
    if status:
        query = query.filter(MaintenanceRecord.status == status)
    if maintenance_type:
        query = query.filter(MaintenanceRecord.maintenance_type == maintenance_type)
    return paginate(query, MaintenanceRecord, params)


def update_maintenance(db: Session, maintenance_id: str, changes: dict) -> MaintenanceRecord:
    """Edit details of a record that is not finished yet."""
    record = get_maintenance(db, maintenance_id)
    if record.status not in OPEN_STATES:
        raise ConflictError("Completed or cancelled maintenance cannot be edited")
    if changes.get("scheduled_date") is not None:
        changes["scheduled_date"] = to_naive_utc(changes["scheduled_date"])
    changed = apply_changes(record, changes)
    db.commit()
    db.refresh(record)
    logger.info(f"Maintenance {maintenance_id} updated: {changed}")
    return record


def update_maintenance_status(
    db: Session, maintenance_id: str, status: MaintenanceStatus
) -> MaintenanceRecord:
    record = get_maintenance(db, maintenance_id)
    current = MaintenanceStatus(record.status)
    if status not in MAINTENANCE_TRANSITIONS[current]:
        raise ConflictError(
            f"Cannot change maintenance from '{current.value}' to '{status.value}'",
            details={"status": current.value},
        )

    record.status = status
    if status == MaintenanceStatus.COMPLETED:
        now = utcnow()
        record.completed_date = now
        vehicle = get_or_404(db, Vehicle, record.vehicle_id, "Vehicle")
        vehicle.last_service_date = now
        if record.mileage_at_service is not None:
            vehicle.mileage = max(vehicle.mileage or 0, record.mileage_at_service)

    sync_vehicle_status(db, record.vehicle_id)
    db.commit()
    db.refresh(record)
    logger.info(f"Maintenance {maintenance_id} status -> {status.value}")
    return record


def get_upcoming_maintenance(db: Session, days: int = 30) -> List[MaintenanceRecord]:
    """Scheduled work due within the next ``days`` days."""
    now = utcnow()
    return (
        db.query(MaintenanceRecord)
        .filter(
            MaintenanceRecord.status == MaintenanceStatus.SCHEDULED,
            MaintenanceRecord.scheduled_date >= now,
            MaintenanceRecord.scheduled_date <= now + timedelta(days=days),
        )
        .order_by(MaintenanceRecord.scheduled_date)
        .all()
    )


def get_overdue_maintenance(db: Session) -> List[MaintenanceRecord]:
    """Scheduled work whose date has passed without being started."""
    return (
        db.query(MaintenanceRecord)
        .filter(
            MaintenanceRecord.status == MaintenanceStatus.SCHEDULED,
            MaintenanceRecord.scheduled_date < utcnow(),
        )
        .order_by(MaintenanceRecord.scheduled_date)
        .all()
    )
