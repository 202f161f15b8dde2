from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rental_api.api.deps import page_params
from rental_api.core.security import admin_required
from rental_api.db.session import get_db
from rental_api.models import User
from rental_api.models.enums import FuelType, Transmission, VehicleCategory
from rental_api.schemas.common import Envelope, PageParams, paginated
from rental_api.schemas.vehicle import VehicleSpecCreate, VehicleSpecResponse
from rental_api.services import vehicle_service

router = APIRouter()

@router.post("/", response_model=Envelope[VehicleSpecResponse], status_code=status.HTTP_201_CREATED)
def create_specification(
    spec_in: VehicleSpecCreate,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required),
):
    """
    Register a vehicle specification. Specifications cannot be edited
    afterwards; vehicles reference them by ``vehicleSpec_id``.
    """
    spec = vehicle_service.create_specification(db, spec_in.model_dump())
    return Envelope(data=VehicleSpecResponse.model_validate(spec), message="Vehicle specification created successfully")

@router.get("/", response_model=Envelope[List[VehicleSpecResponse]])
def list_specifications(
    manufacturer: Optional[str] = None,
    fuel_type: Optional[FuelType] = None,
    transmission: Optional[Transmission] = None,
    vehicle_category: Optional[VehicleCategory] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    page = vehicle_service.list_specifications(
        db,
        params,
        manufacturer=manufacturer,
        fuel_type=fuel_type,
        transmission=transmission,
        vehicle_category=vehicle_category,
    )
    return paginated(
        [VehicleSpecResponse.model_validate(s) for s in page.items], page, "Vehicle specifications retrieved successfully"
    )

@router.get("/{spec_id}", response_model=Envelope[VehicleSpecResponse])
def get_specification(spec_id: str, db: Session = Depends(get_db)):
    spec = vehicle_service.get_specification(db, spec_id)
    return Envelope(data=VehicleSpecResponse.model_validate(spec), message="Vehicle specification retrieved successfully")
