from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rental_api.api.deps import page_params
from rental_api.core.security import admin_required, get_current_user, staff_required
from rental_api.db.session import get_db
from rental_api.models import User
from rental_api.models.enums import UserRole
from rental_api.schemas.common import Envelope, PageParams, paginated
from rental_api.schemas.user import AgentResponse, RoleUpdate, UserResponse, UserUpdate
from rental_api.services import user_service

router = APIRouter()

@router.get("/", response_model=Envelope[List[UserResponse]])
def list_users(
    role: Optional[UserRole] = None,
    search: Optional[str] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    _: User = Depends(admin_required),
):
    page = user_service.list_users(db, params, role=role, search=search)
    return paginated([UserResponse.model_validate(u) for u in page.items], page, "Users retrieved successfully")

@router.get("/agents", response_model=Envelope[List[AgentResponse]])
def list_agents(db: Session = Depends(get_db), _: User = Depends(staff_required)):
    """Staff members who can take support tickets, with their open workload."""
    agents = user_service.list_agents(db)
    return Envelope(data=[AgentResponse(**a) for a in agents], message="Agents retrieved successfully")

@router.get("/{user_id}", response_model=Envelope[UserResponse])
def get_user(user_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    user = user_service.get_user(db, user_id, current_user)
    return Envelope(data=UserResponse.model_validate(user), message="User retrieved successfully")

@router.put("/{user_id}", response_model=Envelope[UserResponse])
def update_user(
    user_id: str,
    user_in: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = user_service.update_user(db, user_id, user_in.model_dump(exclude_unset=True), current_user)
    return Envelope(data=UserResponse.model_validate(user), message="User updated successfully")

@router.patch("/{user_id}/role", response_model=Envelope[UserResponse])
def change_role(
    user_id: str,
    body: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    user = user_service.change_role(db, user_id, body.role, current_user)
    return Envelope(data=UserResponse.model_validate(user), message="User role updated successfully")
