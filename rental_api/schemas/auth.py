from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime

from rental_api.models.enums import UserRole
from rental_api.schemas.user import UserBase, UserResponse

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class RefreshRequest(BaseModel):
    refresh_token: str

class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = Field(None, description="Also revoke this refresh token")

class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

class AuthResponse(TokenPair):
    user: UserResponse

class InvitationCreate(BaseModel):
    email: EmailStr
    role: UserRole = UserRole.USER

class InvitationAccept(UserBase):
    password: str = Field(..., min_length=8)

class InvitationResponse(BaseModel):
    code: str
    email: str
    role: UserRole
    invited_by: str
    expires_at: datetime

    model_config = {
        "from_attributes": True
    }
