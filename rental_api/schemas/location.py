from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime

class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    address: str = Field(..., min_length=1)
    contact_phone: Optional[str] = Field(None, max_length=20)

class LocationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    address: Optional[str] = Field(None, min_length=1)
    contact_phone: Optional[str] = Field(None, max_length=20)

class LocationResponse(LocationCreate):
    location_id: str
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True
    }
