"""
Support tickets and agent assignment.
"""

import logging
from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from rental_api.core.errors import ConflictError, ForbiddenError, NotFoundError
from rental_api.models import SupportTicket, User
from rental_api.models.enums import (
    TicketCategory,
    TicketPriority,
    TicketStatus,
    UserRole,
)
from rental_api.schemas.common import Page, PageParams
from rental_api.services.common import apply_changes, get_or_404, paginate, utcnow

logger = logging.getLogger(__name__)

TICKET_TRANSITIONS: Dict[TicketStatus, set] = {
    TicketStatus.OPEN: {TicketStatus.IN_PROGRESS},
    TicketStatus.IN_PROGRESS: {TicketStatus.RESOLVED},
    TicketStatus.RESOLVED: {TicketStatus.CLOSED, TicketStatus.IN_PROGRESS},
    TicketStatus.CLOSED: set(),
}

AGENT_ROLES = (UserRole.ADMIN, UserRole.SUPPORT_AGENT)
OWNER_FIELDS = {"subject", "description"}


def create_ticket(
    db: Session,
    user_id: str,
    subject: str,
    description: str,
    priority: TicketPriority = TicketPriority.MEDIUM,
    category: TicketCategory = TicketCategory.GENERAL,
) -> SupportTicket:
    get_or_404(db, User, user_id, "User")
    ticket = SupportTicket(
        user_id=user_id,
        subject=subject,
        description=description,
        priority=priority,
        category=category,
        status=TicketStatus.OPEN,
    )
    db.add(ticket)
    db.commit()
    db.refresh(ticket)
    logger.info(f"Support ticket {ticket.ticket_id} opened by user {user_id}")
    return ticket


def get_ticket(db: Session, ticket_id: str, current_user: Optional[User] = None) -> SupportTicket:
    ticket = db.get(SupportTicket, ticket_id)
    if ticket is None:
        raise NotFoundError("Support ticket not found")
    if current_user is not None and not current_user.is_staff and ticket.user_id != current_user.user_id:
        raise ForbiddenError("You do not have access to this ticket")
    return ticket


def list_tickets(
    db: Session,
    params: PageParams,
    current_user: Optional[User] = None,
    status: Optional[TicketStatus] = None,
    priority: Optional[TicketPriority] = None,
    category: Optional[TicketCategory] = None,
    assigned_to: Optional[str] = None,
) -> Page:
    """Users see their own tickets; staff see every ticket."""
    query = db.query(SupportTicket)
    if current_user is not None and not current_user.is_staff:
        query = query.filter(SupportTicket.user_id == current_user.user_id)
    if status:
        query = query.filter(SupportTicket.status == status)
    if priority:
        query = query.filter(SupportTicket.priority == priority)
    if category:
        query = query.filter(SupportTicket.category == category)
    if assigned_to:
        query = query.filter(SupportTicket.assigned_to == assigned_to)
    return paginate(query, SupportTicket, params)


def update_ticket(
    db: Session,
    ticket_id: str,
    changes: dict,
    current_user: Optional[User] = None,
) -> SupportTicket:
    """
    Owners may change the subject and description of a ticket that is still
    open; staff may change any editable field until the ticket is closed.
    """
    ticket = get_ticket(db, ticket_id, current_user)
    if ticket.status == TicketStatus.CLOSED:
        raise ConflictError("Closed tickets cannot be edited")

    if current_user is not None and not current_user.is_staff:
        restricted = set(changes) - OWNER_FIELDS
        if restricted:
            raise ForbiddenError(f"Only staff can change: {', '.join(sorted(restricted))}")
        if ticket.status != TicketStatus.OPEN:
            raise ConflictError("Tickets can only be edited while open")

    changed = apply_changes(ticket, changes)
    db.commit()
    db.refresh(ticket)
    logger.info(f"Support ticket {ticket_id} updated: {changed}")
    return ticket


def update_ticket_status(
    db: Session,
    ticket_id: str,
    status: TicketStatus,
    resolution: Optional[str] = None,
) -> SupportTicket:
    ticket = get_ticket(db, ticket_id)
    current = TicketStatus(ticket.status)
    if status not in TICKET_TRANSITIONS[current]:
        raise ConflictError(
            f"Cannot change ticket from '{current.value}' to '{status.value}'",
            details={"status": current.value},
        )

    if status == TicketStatus.RESOLVED:
        ticket.resolved_at = utcnow()
        if resolution:
            ticket.resolution = resolution
    elif status == TicketStatus.IN_PROGRESS and current == TicketStatus.RESOLVED:
        # reopened
        ticket.resolved_at = None

    ticket.status = status
    db.commit()
    db.refresh(ticket)
    logger.info(f"Support ticket {ticket_id} status -> {status.value}")
    return ticket


def assign_agent(db: Session, ticket_id: str, agent_id: str, current_user: User) -> SupportTicket:
    """
    Hand ``ticket_id`` to ``agent_id`` and mark it in progress.

    Raises:
        ForbiddenError: caller is not an admin, or the assignee is not staff
        NotFoundError: unknown ticket or agent
        ConflictError: ticket already closed
    """
    if current_user.role != UserRole.ADMIN:
        raise ForbiddenError("Only admins can assign tickets")

    ticket = get_ticket(db, ticket_id)
    agent = get_or_404(db, User, agent_id, "Agent")
    if agent.role not in AGENT_ROLES:
        raise ForbiddenError("Tickets can only be assigned to admins or support agents")
    if ticket.status == TicketStatus.CLOSED:
        raise ConflictError("Cannot assign a closed ticket")

    ticket.assigned_to = agent.user_id
    ticket.status = TicketStatus.IN_PROGRESS
    ticket.resolved_at = None
    db.commit()
    db.refresh(ticket)
    logger.info(f"Support ticket {ticket_id} assigned to {agent.email} by {current_user.email}")
    return ticket


def get_ticket_stats(db: Session) -> dict:
    def _counts(column, enum_cls) -> Dict[str, int]:
        counts = {member.value: 0 for member in enum_cls}
        for value, count in (
            db.query(column, func.count(SupportTicket.ticket_id)).group_by(column).all()
        ):
            counts[enum_cls(value).value] = count
        return counts

    by_status = _counts(SupportTicket.status, TicketStatus)
    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "by_priority": _counts(SupportTicket.priority, TicketPriority),
        "by_category": _counts(SupportTicket.category, TicketCategory),
    }
