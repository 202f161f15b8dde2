from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rental_api.core.security import admin_required
from rental_api.db.session import get_db
from rental_api.models import User
from rental_api.schemas.auth import InvitationAccept, InvitationCreate, InvitationResponse
from rental_api.schemas.common import Envelope
from rental_api.schemas.user import UserResponse
from rental_api.services import auth_service

router = APIRouter()

@router.post("/", response_model=Envelope[InvitationResponse], status_code=status.HTTP_201_CREATED)
def create_invitation(
    invitation_in: InvitationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    """
    Invite someone by email. The six-digit code is returned to the admin,
    who passes it on; no email is sent.
    """
    invitation = auth_service.create_invitation(db, invitation_in.email, invitation_in.role, current_user)
    return Envelope(data=InvitationResponse.model_validate(invitation), message="Invitation created successfully")

@router.get("/{code}", response_model=Envelope[InvitationResponse])
def get_invitation(code: str, db: Session = Depends(get_db)):
    invitation = auth_service.get_invitation(db, code)
    return Envelope(data=InvitationResponse.model_validate(invitation), message="Invitation is valid")

@router.post("/{code}/accept", response_model=Envelope[UserResponse], status_code=status.HTTP_201_CREATED)
def accept_invitation(code: str, body: InvitationAccept, db: Session = Depends(get_db)):
    profile = body.model_dump(exclude={"password"})
    user = auth_service.accept_invitation(db, code, body.password, profile)
    return Envelope(data=UserResponse.model_validate(user), message="Account created successfully")

@router.delete("/{code}", response_model=Envelope[None])
def revoke_invitation(
    code: str,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required),
):
    auth_service.revoke_invitation(db, code)
    return Envelope(message="Invitation revoked")
