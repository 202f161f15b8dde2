"""
Support tickets: agent assignment rules and the ticket status workflow.
"""

import pytest

from rental_api.core.errors import ConflictError, ForbiddenError, NotFoundError
from rental_api.models.enums import TicketPriority, TicketStatus
from rental_api.services import support_service, user_service


@pytest.fixture
def ticket(db, user):
    return support_service.create_ticket(db, user.user_id, "Late refund", "Still waiting for my refund")


def test_new_ticket_is_open(ticket):
    assert ticket.status == TicketStatus.OPEN
    assert ticket.priority == TicketPriority.MEDIUM
    assert ticket.assigned_to is None


def test_admin_assigns_agent(db, admin, agent, ticket):
    assigned = support_service.assign_agent(db, ticket.ticket_id, agent.user_id, admin)
    assert assigned.assigned_to == agent.user_id
    assert assigned.status == TicketStatus.IN_PROGRESS


def test_non_admin_cannot_assign(db, agent, ticket):
    with pytest.raises(ForbiddenError):
        support_service.assign_agent(db, ticket.ticket_id, agent.user_id, agent)


def test_regular_user_cannot_be_assignee(db, admin, other_user, ticket):
    with pytest.raises(ForbiddenError):
        support_service.assign_agent(db, ticket.ticket_id, other_user.user_id, admin)
    db.refresh(ticket)
    assert ticket.assigned_to is None
    assert ticket.status == TicketStatus.OPEN


def test_unknown_agent_or_ticket(db, admin, agent, ticket):
    with pytest.raises(NotFoundError):
        support_service.assign_agent(db, ticket.ticket_id, "nobody", admin)
    with pytest.raises(NotFoundError):
        support_service.assign_agent(db, "missing", agent.user_id, admin)


def test_closed_ticket_cannot_be_assigned(db, admin, agent, ticket):
    support_service.update_ticket_status(db, ticket.ticket_id, TicketStatus.IN_PROGRESS)
    support_service.update_ticket_status(db, ticket.ticket_id, TicketStatus.RESOLVED, "refund sent")
    support_service.update_ticket_status(db, ticket.ticket_id, TicketStatus.CLOSED)
    with pytest.raises(ConflictError):
        support_service.assign_agent(db, ticket.ticket_id, agent.user_id, admin)


def test_resolve_and_reopen(db, ticket):
    support_service.update_ticket_status(db, ticket.ticket_id, TicketStatus.IN_PROGRESS)
    resolved = support_service.update_ticket_status(db, ticket.ticket_id, TicketStatus.RESOLVED, "refund sent")
    assert resolved.resolved_at is not None
    assert resolved.resolution == "refund sent"

    reopened = support_service.update_ticket_status(db, ticket.ticket_id, TicketStatus.IN_PROGRESS)
    assert reopened.status == TicketStatus.IN_PROGRESS
    assert reopened.resolved_at is None


def test_open_ticket_cannot_be_closed_directly(db, ticket):
    with pytest.raises(ConflictError):
        support_service.update_ticket_status(db, ticket.ticket_id, TicketStatus.CLOSED)


def test_owner_cannot_change_priority(db, user, ticket):
    with pytest.raises(ForbiddenError):
        support_service.update_ticket(db, ticket.ticket_id, {"priority": TicketPriority.URGENT}, user)
    updated = support_service.update_ticket(db, ticket.ticket_id, {"subject": "Refund missing"}, user)
    assert updated.subject == "Refund missing"


def test_users_only_see_their_own_tickets(db, user, other_user, ticket):
    from rental_api.schemas.common import PageParams

    support_service.create_ticket(db, other_user.user_id, "Other", "Someone else's problem")
    mine = support_service.list_tickets(db, PageParams(), user)
    assert [t.ticket_id for t in mine.items] == [ticket.ticket_id]
    with pytest.raises(ForbiddenError):
        support_service.get_ticket(db, ticket.ticket_id, other_user)


def test_agent_workload_and_stats(db, admin, agent, ticket):
    support_service.assign_agent(db, ticket.ticket_id, agent.user_id, admin)

    agents = {a["user_id"]: a for a in user_service.list_agents(db)}
    assert agents[agent.user_id]["open_tickets"] == 1
    assert agents[admin.user_id]["open_tickets"] == 0

    stats = support_service.get_ticket_stats(db)
    assert stats["total"] == 1
    assert stats["by_status"]["in_progress"] == 1
    assert stats["by_category"]["general"] == 1
