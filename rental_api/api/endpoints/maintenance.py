from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rental_api.api.deps import page_params
from rental_api.core.security import staff_required
from rental_api.db.session import get_db
from rental_api.models import User
from rental_api.models.enums import MaintenanceStatus, MaintenanceType
from rental_api.schemas.common import Envelope, PageParams, paginated
from rental_api.schemas.maintenance import (
    MaintenanceCreate,
    MaintenanceResponse,
    MaintenanceStatusUpdate,
    MaintenanceUpdate,
)
from rental_api.services import maintenance_service

router = APIRouter()

@router.post("/", response_model=Envelope[MaintenanceResponse], status_code=status.HTTP_201_CREATED)
def create_maintenance(
    record_in: MaintenanceCreate,
    db: Session = Depends(get_db),
    _: User = Depends(staff_required),
):
    record = maintenance_service.create_maintenance(db, record_in.model_dump())
    return Envelope(data=MaintenanceResponse.model_validate(record), message="Maintenance scheduled successfully")

@router.get("/", response_model=Envelope[List[MaintenanceResponse]])
def list_maintenance(
    vehicle_id: Optional[str] = None,
    maintenance_status: Optional[MaintenanceStatus] = Query(None, alias="status"),
    maintenance_type: Optional[MaintenanceType] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    _: User = Depends(staff_required),
):
    page = maintenance_service.list_maintenance(
        db, params, vehicle_id=vehicle_id, status=maintenance_status, maintenance_type=maintenance_type
    )
    return paginated(
        [MaintenanceResponse.model_validate(r) for r in page.items], page, "Maintenance records retrieved successfully"
    )

@router.get("/upcoming", response_model=Envelope[List[MaintenanceResponse]])
def upcoming_maintenance(
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    _: User = Depends(staff_required),
):
    records = maintenance_service.get_upcoming_maintenance(db, days)
    return Envelope(
        data=[MaintenanceResponse.model_validate(r) for r in records],
        message="Upcoming maintenance retrieved successfully",
    )

@router.get("/overdue", response_model=Envelope[List[MaintenanceResponse]])
def overdue_maintenance(db: Session = Depends(get_db), _: User = Depends(staff_required)):
    records = maintenance_service.get_overdue_maintenance(db)
    return Envelope(
        data=[MaintenanceResponse.model_validate(r) for r in records],
        message="Overdue maintenance retrieved successfully",
    )

@router.get("/{maintenance_id}", response_model=Envelope[MaintenanceResponse])
def get_maintenance(maintenance_id: str, db: Session = Depends(get_db), _: User = Depends(staff_required)):
    record = maintenance_service.get_maintenance(db, maintenance_id)
    return Envelope(data=MaintenanceResponse.model_validate(record), message="Maintenance record retrieved successfully")

@router.put("/{maintenance_id}", response_model=Envelope[MaintenanceResponse])
def update_maintenance(
    maintenance_id: str,
    record_in: MaintenanceUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(staff_required),
):
    record = maintenance_service.update_maintenance(db, maintenance_id, record_in.model_dump(exclude_unset=True))
    return Envelope(data=MaintenanceResponse.model_validate(record), message="Maintenance record updated successfully")

@router.patch("/{maintenance_id}/status", response_model=Envelope[MaintenanceResponse])
def update_maintenance_status(
    maintenance_id: str,
    body: MaintenanceStatusUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(staff_required),
):
    """
    Start, complete or cancel maintenance. Starting takes the vehicle out of
    the rentable pool; completing or cancelling puts it back.
    """
    record = maintenance_service.update_maintenance_status(db, maintenance_id, body.status)
    return Envelope(data=MaintenanceResponse.model_validate(record), message="Maintenance status updated successfully")
