from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rental_api.api.deps import page_params
from rental_api.core.security import admin_required
from rental_api.db.session import get_db
from rental_api.models import User
from rental_api.models.enums import VehicleCategory, VehicleStatus
from rental_api.schemas.common import Envelope, PageParams, paginated
from rental_api.schemas.vehicle import AvailabilityResponse, VehicleCreate, VehicleResponse, VehicleUpdate
from rental_api.services import booking_service, vehicle_service

router = APIRouter()

@router.post("/", response_model=Envelope[VehicleResponse], status_code=status.HTTP_201_CREATED)
def create_vehicle(
    vehicle_in: VehicleCreate,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required),
):
    vehicle = vehicle_service.create_vehicle(db, vehicle_in.model_dump())
    return Envelope(data=VehicleResponse.model_validate(vehicle), message="Vehicle created successfully")

@router.get("/", response_model=Envelope[List[VehicleResponse]])
def list_vehicles(
    status: Optional[VehicleStatus] = None,
    location_id: Optional[str] = None,
    vehicle_category: Optional[VehicleCategory] = None,
    min_rate: Optional[Decimal] = Query(None, ge=0),
    max_rate: Optional[Decimal] = Query(None, ge=0),
    available_only: bool = False,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """
    List vehicles with their specifications.

    Supports filtering by status, location, category and daily rate range.
    """
    page = vehicle_service.list_vehicles(
        db,
        params,
        status=status,
        location_id=location_id,
        vehicle_category=vehicle_category,
        min_rate=min_rate,
        max_rate=max_rate,
        available_only=available_only,
    )
    return paginated([VehicleResponse.model_validate(v) for v in page.items], page, "Vehicles retrieved successfully")

@router.get("/{vehicle_id}", response_model=Envelope[VehicleResponse])
def get_vehicle(vehicle_id: str, db: Session = Depends(get_db)):
    vehicle = vehicle_service.get_vehicle(db, vehicle_id)
    return Envelope(data=VehicleResponse.model_validate(vehicle), message="Vehicle retrieved successfully")

@router.put("/{vehicle_id}", response_model=Envelope[VehicleResponse])
def update_vehicle(
    vehicle_id: str,
    vehicle_in: VehicleUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required),
):
    vehicle = vehicle_service.update_vehicle(db, vehicle_id, vehicle_in.model_dump(exclude_unset=True))
    return Envelope(data=VehicleResponse.model_validate(vehicle), message="Vehicle updated successfully")

@router.get("/{vehicle_id}/availability", response_model=Envelope[AvailabilityResponse])
def check_availability(
    vehicle_id: str,
    start_date: datetime,
    end_date: datetime,
    db: Session = Depends(get_db),
):
    result = booking_service.check_availability(db, vehicle_id, start_date, end_date)
    return Envelope(data=AvailabilityResponse(**result), message="Availability checked")
