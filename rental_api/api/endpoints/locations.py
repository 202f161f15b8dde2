from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rental_api.api.deps import page_params
from rental_api.core.security import admin_required
from rental_api.db.session import get_db
from rental_api.models import User
from rental_api.schemas.common import Envelope, PageParams, paginated
from rental_api.schemas.location import LocationCreate, LocationResponse, LocationUpdate
from rental_api.schemas.vehicle import VehicleResponse
from rental_api.services import location_service

router = APIRouter()

@router.post("/", response_model=Envelope[LocationResponse], status_code=status.HTTP_201_CREATED)
def create_location(
    location_in: LocationCreate,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required),
):
    location = location_service.create_location(db, **location_in.model_dump())
    return Envelope(data=LocationResponse.model_validate(location), message="Location created successfully")

@router.get("/", response_model=Envelope[List[LocationResponse]])
def list_locations(
    search: Optional[str] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Public list of branches, optionally searched by name or address."""
    page = location_service.list_locations(db, params, search=search)
    return paginated(
        [LocationResponse.model_validate(loc) for loc in page.items], page, "Locations retrieved successfully"
    )

@router.get("/{location_id}", response_model=Envelope[LocationResponse])
def get_location(location_id: str, db: Session = Depends(get_db)):
    location = location_service.get_location(db, location_id)
    return Envelope(data=LocationResponse.model_validate(location), message="Location retrieved successfully")

@router.put("/{location_id}", response_model=Envelope[LocationResponse])
def update_location(
    location_id: str,
    location_in: LocationUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required),
):
    location = location_service.update_location(db, location_id, location_in.model_dump(exclude_unset=True))
    return Envelope(data=LocationResponse.model_validate(location), message="Location updated successfully")

@router.delete("/{location_id}", response_model=Envelope[None])
def delete_location(
    location_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required),
):
    location_service.delete_location(db, location_id)
    return Envelope(message="Location deleted successfully")

@router.get("/{location_id}/vehicles", response_model=Envelope[List[VehicleResponse]])
def list_location_vehicles(
    location_id: str,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    page = location_service.list_location_vehicles(db, location_id, params)
    return paginated(
        [VehicleResponse.model_validate(v) for v in page.items], page, "Location vehicles retrieved successfully"
    )
