from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rental_api.api.deps import page_params
from rental_api.core.security import get_current_user, staff_required
from rental_api.db.session import get_db
from rental_api.models import User
from rental_api.models.enums import TicketCategory, TicketPriority, TicketStatus
from rental_api.schemas.common import Envelope, PageParams, paginated
from rental_api.schemas.support import (
    TicketAssign,
    TicketCreate,
    TicketResponse,
    TicketStats,
    TicketStatusUpdate,
    TicketUpdate,
)
from rental_api.services import support_service

router = APIRouter()

@router.post("/", response_model=Envelope[TicketResponse], status_code=status.HTTP_201_CREATED)
def create_ticket(
    ticket_in: TicketCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ticket = support_service.create_ticket(db, current_user.user_id, **ticket_in.model_dump())
    return Envelope(data=TicketResponse.model_validate(ticket), message="Support ticket created successfully")

@router.get("/", response_model=Envelope[List[TicketResponse]])
def list_tickets(
    ticket_status: Optional[TicketStatus] = Query(None, alias="status"),
    priority: Optional[TicketPriority] = None,
    category: Optional[TicketCategory] = None,
    assigned_to: Optional[str] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    page = support_service.list_tickets(
        db,
        params,
        current_user,
        status=ticket_status,
        priority=priority,
        category=category,
        assigned_to=assigned_to,
    )
    return paginated([TicketResponse.model_validate(t) for t in page.items], page, "Support tickets retrieved successfully")

@router.get("/stats", response_model=Envelope[TicketStats])
def ticket_stats(db: Session = Depends(get_db), _: User = Depends(staff_required)):
    stats = support_service.get_ticket_stats(db)
    return Envelope(data=TicketStats(**stats), message="Support ticket statistics retrieved successfully")

@router.get("/{ticket_id}", response_model=Envelope[TicketResponse])
def get_ticket(
    ticket_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ticket = support_service.get_ticket(db, ticket_id, current_user)
    return Envelope(data=TicketResponse.model_validate(ticket), message="Support ticket retrieved successfully")

@router.put("/{ticket_id}", response_model=Envelope[TicketResponse])
def update_ticket(
    ticket_id: str,
    ticket_in: TicketUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ticket = support_service.update_ticket(db, ticket_id, ticket_in.model_dump(exclude_unset=True), current_user)
    return Envelope(data=TicketResponse.model_validate(ticket), message="Support ticket updated successfully")

@router.patch("/{ticket_id}/status", response_model=Envelope[TicketResponse])
def update_ticket_status(
    ticket_id: str,
    body: TicketStatusUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(staff_required),
):
    ticket = support_service.update_ticket_status(db, ticket_id, body.status, body.resolution)
    return Envelope(data=TicketResponse.model_validate(ticket), message="Support ticket status updated successfully")

@router.post("/{ticket_id}/assign", response_model=Envelope[TicketResponse])
def assign_ticket(
    ticket_id: str,
    body: TicketAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Assign a ticket to an admin or support agent. Admins only."""
    ticket = support_service.assign_agent(db, ticket_id, body.agent_id, current_user)
    return Envelope(data=TicketResponse.model_validate(ticket), message="Support ticket assigned successfully")
