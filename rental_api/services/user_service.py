"""
User accounts: profile reads and updates, role changes, agent listing.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from rental_api.core.errors import ConflictError, ForbiddenError, NotFoundError
from rental_api.models import SupportTicket, User
from rental_api.models.enums import TicketStatus, UserRole
from rental_api.schemas.common import Page, PageParams
from rental_api.services.common import apply_changes, paginate

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: str, current_user: Optional[User] = None) -> User:
    """Users may read their own record; staff may read anyone's."""
    if current_user is not None and not current_user.is_staff and current_user.user_id != user_id:
        raise ForbiddenError("You can only view your own profile")
    user = db.get(User, user_id)
    if user is None:
        logger.warning(f"User not found: {user_id}")
        raise NotFoundError("User not found")
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def list_users(
    db: Session,
    params: PageParams,
    role: Optional[UserRole] = None,
    search: Optional[str] = None,
) -> Page:
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                User.firstname.ilike(pattern),
                User.lastname.ilike(pattern),
                User.email.ilike(pattern),
            )
        )
    return paginate(query, User, params)


def update_user(db: Session, user_id: str, changes: dict, current_user: User) -> User:
    """Profile update. Only the owner or an admin may edit a profile."""
    if current_user.role != UserRole.ADMIN and current_user.user_id != user_id:
        raise ForbiddenError("You can only update your own profile")
    user = get_user(db, user_id)
    changed = apply_changes(user, changes)
    db.commit()
    db.refresh(user)
    logger.info(f"User {user_id} updated: {changed}")
    return user


def change_role(db: Session, user_id: str, role: UserRole, current_user: User) -> User:
    user = get_user(db, user_id)
    if user.user_id == current_user.user_id and role != UserRole.ADMIN:
        raise ConflictError("Admins cannot remove their own admin role")
    user.role = role
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.email} role -> {role.value} (by {current_user.email})")
    return user


def list_agents(db: Session) -> List[dict]:
    """Staff members with the number of unresolved tickets assigned to each."""
    open_counts = dict(
        db.query(SupportTicket.assigned_to, func.count(SupportTicket.ticket_id))
        .filter(
            SupportTicket.assigned_to.isnot(None),
            SupportTicket.status.in_([TicketStatus.OPEN, TicketStatus.IN_PROGRESS]),
        )
        .group_by(SupportTicket.assigned_to)
        .all()
    )
    agents = (
        db.query(User)
        .filter(User.role.in_([UserRole.ADMIN, UserRole.SUPPORT_AGENT]))
        .order_by(User.firstname, User.lastname)
        .all()
    )
    return [
        {
            "user_id": agent.user_id,
            "firstname": agent.firstname,
            "lastname": agent.lastname,
            "email": agent.email,
            "role": agent.role,
            "open_tickets": open_counts.get(agent.user_id, 0),
        }
        for agent in agents
    ]
