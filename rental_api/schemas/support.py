from typing import Dict, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from rental_api.models.enums import TicketCategory, TicketPriority, TicketStatus

class TicketCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    priority: TicketPriority = TicketPriority.MEDIUM
    category: TicketCategory = TicketCategory.GENERAL

class TicketUpdate(BaseModel):
    """
    Owners may edit subject/description; staff may also edit priority,
    category, notes and resolution.
    """
    subject: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    priority: Optional[TicketPriority] = None
    category: Optional[TicketCategory] = None
    admin_notes: Optional[str] = None
    resolution: Optional[str] = None

class TicketStatusUpdate(BaseModel):
    status: TicketStatus
    resolution: Optional[str] = None

class TicketAssign(BaseModel):
    agent_id: str

class TicketResponse(BaseModel):
    ticket_id: str
    user_id: str
    subject: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    category: TicketCategory
    assigned_to: Optional[str] = None
    admin_notes: Optional[str] = None
    resolution: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True
    }

class TicketStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    by_category: Dict[str, int]
