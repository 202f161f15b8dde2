from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime

from rental_api.models.enums import UserRole

class UserBase(BaseModel):
    firstname: str = Field(..., min_length=1, max_length=100)
    lastname: str = Field(..., min_length=1, max_length=100)
    contact_phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None

class UserCreate(UserBase):
    """Schema for self-registration."""
    email: EmailStr
    password: str = Field(..., min_length=8, description="Plain-text password, hashed before storage")

class UserUpdate(BaseModel):
    """Profile fields a user may change on their own account."""
    firstname: Optional[str] = Field(None, min_length=1, max_length=100)
    lastname: Optional[str] = Field(None, min_length=1, max_length=100)
    contact_phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None

class RoleUpdate(BaseModel):
    role: UserRole

class UserResponse(UserBase):
    """Public view of a user; the password hash is never included."""
    user_id: str
    email: str
    role: UserRole
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True
    }

class AgentResponse(BaseModel):
    user_id: str
    firstname: str
    lastname: str
    email: str
    role: UserRole
    open_tickets: int = Field(0, description="Tickets assigned and not yet resolved")
