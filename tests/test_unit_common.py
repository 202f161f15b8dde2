"""
Shared service helpers: sort column resolution and partial updates.
"""

import pytest

from rental_api.core.errors import ValidationError
from rental_api.models import Booking, Location, User
from rental_api.services.common import apply_changes, sort_column, utcnow


def test_sort_column_accepts_table_columns():
    assert sort_column(Booking, "total_amount") is Booking.total_amount
    assert sort_column(User, "email") is User.email


@pytest.mark.parametrize("name", ["user", "payments", "is_staff", "password", "no_such_column"])
def test_sort_column_falls_back_to_created_at(name):
    model = User if name in ("is_staff", "password") else Booking
    assert sort_column(model, name) is model.created_at


def test_apply_changes_rejects_null_for_required_columns():
    location = Location(name="Downtown", address="1 Main St", contact_phone="555-0100")
    with pytest.raises(ValidationError) as exc:
        apply_changes(location, {"contact_phone": "555-0199", "name": None})
    assert exc.value.details == {"fields": ["name"]}
    # nothing applied
    assert location.contact_phone == "555-0100"


def test_apply_changes_allows_null_for_optional_columns():
    location = Location(name="Downtown", address="1 Main St", contact_phone="555-0100")
    assert apply_changes(location, {"contact_phone": None}) == ["contact_phone"]
    assert location.contact_phone is None


def test_utcnow_is_naive():
    assert utcnow().tzinfo is None
