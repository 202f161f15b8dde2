from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime

from rental_api.models.enums import MaintenanceStatus, MaintenanceType

class MaintenanceCreate(BaseModel):
    vehicle_id: str
    maintenance_type: MaintenanceType = MaintenanceType.ROUTINE
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    cost: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    scheduled_date: datetime
    service_provider: Optional[str] = Field(None, max_length=255)
    technician_name: Optional[str] = Field(None, max_length=255)
    mileage_at_service: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None

class MaintenanceUpdate(BaseModel):
    maintenance_type: Optional[MaintenanceType] = None
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    cost: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    scheduled_date: Optional[datetime] = None
    service_provider: Optional[str] = Field(None, max_length=255)
    technician_name: Optional[str] = Field(None, max_length=255)
    mileage_at_service: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None

class MaintenanceStatusUpdate(BaseModel):
    status: MaintenanceStatus

class MaintenanceResponse(BaseModel):
    maintenance_id: str
    vehicle_id: str
    maintenance_type: MaintenanceType
    title: str
    description: str
    cost: Decimal
    scheduled_date: datetime
    completed_date: Optional[datetime] = None
    status: MaintenanceStatus
    service_provider: Optional[str] = None
    technician_name: Optional[str] = None
    mileage_at_service: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True
    }
