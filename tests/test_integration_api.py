"""
HTTP level checks: envelopes, status codes, auth and the booking flow.
"""

from conftest import PASSWORD, auth_header

BOOKING = {
    "booking_date": "2030-07-01T10:00:00",
    "return_date": "2030-07-05T10:00:00",
}


def _booking_body(vehicle):
    return {"vehicle_id": vehicle.vehicle_id, "location_id": vehicle.location_id, **BOOKING}


def test_health(client):
    r = client.get("/api/health/")
    assert r.status_code == 200
    assert r.json()["database"] == "online"


def test_register_login_me_logout(client):
    r = client.post(
        "/api/auth/register",
        json={"email": "Carol@Example.com", "password": "password123", "firstname": "Carol", "lastname": "Doe"},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["data"]["user"]["email"] == "carol@example.com"
    assert "password" not in body["data"]["user"]

    r = client.post("/api/auth/login", json={"email": "carol@example.com", "password": "password123"})
    assert r.status_code == 200
    token = r.json()["data"]["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    assert client.get("/api/auth/me", headers=headers).json()["data"]["firstname"] == "Carol"

    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    r = client.get("/api/auth/me", headers=headers)
    assert r.status_code == 401
    assert r.json()["code"] == "UNAUTHORIZED"


def test_duplicate_registration_is_conflict(client, user):
    r = client.post(
        "/api/auth/register",
        json={"email": user.email, "password": PASSWORD, "firstname": "A", "lastname": "B"},
    )
    assert r.status_code == 409
    assert r.json() == {"success": False, "message": "User with this email already exists", "code": "CONFLICT"}


def test_missing_token_is_unauthorized(client):
    r = client.get("/api/bookings/")
    assert r.status_code == 401
    assert r.json()["success"] is False


def test_invalid_body_is_400(client, user_headers):
    r = client.post("/api/bookings/", json={"vehicle_id": "x"}, headers=user_headers)
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"


def test_unknown_booking_is_404(client, user_headers):
    r = client.get("/api/bookings/does-not-exist", headers=user_headers)
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"


def test_booking_flow_over_http(client, user_headers, admin_headers, vehicle):
    r = client.post("/api/bookings/", json=_booking_body(vehicle), headers=user_headers)
    assert r.status_code == 201
    booking = r.json()["data"]
    assert booking["total_amount"] == "600.00"
    assert booking["booking_status"] == "pending"

    overlapping = {**_booking_body(vehicle), "booking_date": "2030-07-03T10:00:00", "return_date": "2030-07-07T10:00:00"}
    r = client.post("/api/bookings/", json=overlapping, headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["code"] == "CONFLICT"

    # confirming is staff-only
    r = client.post(f"/api/bookings/{booking['booking_id']}/confirm", headers=user_headers)
    assert r.status_code == 403

    r = client.post(f"/api/bookings/{booking['booking_id']}/confirm", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["booking_status"] == "confirmed"

    vehicle_data = client.get(f"/api/vehicles/{vehicle.vehicle_id}").json()["data"]
    assert vehicle_data["status"] == "reserved"
    assert vehicle_data["availability"] is False

    r = client.post(f"/api/bookings/{booking['booking_id']}/cancel", json={"reason": "sick"}, headers=user_headers)
    assert r.status_code == 200
    vehicle_data = client.get(f"/api/vehicles/{vehicle.vehicle_id}").json()["data"]
    assert vehicle_data["status"] == "available"


def test_booking_list_is_paginated_and_scoped(client, db, user, other_user, vehicle):
    client.post("/api/bookings/", json=_booking_body(vehicle), headers=auth_header(user))

    r = client.get("/api/bookings/?page=1&limit=5", headers=auth_header(other_user))
    body = r.json()
    assert r.status_code == 200
    assert body["data"] == []
    assert body["pagination"]["total"] == 0

    body = client.get("/api/bookings/", headers=auth_header(user)).json()
    assert body["pagination"] == {
        "page": 1,
        "limit": 10,
        "total": 1,
        "totalPages": 1,
        "hasNext": False,
        "hasPrevious": False,
    }


def test_payment_and_balance_over_http(client, user_headers, admin_headers, vehicle):
    booking = client.post("/api/bookings/", json=_booking_body(vehicle), headers=user_headers).json()["data"]

    r = client.post(
        "/api/payments/",
        json={"booking_id": booking["booking_id"], "amount": "600.00", "payment_method": "mpesa"},
        headers=user_headers,
    )
    assert r.status_code == 201
    payment_id = r.json()["data"]["payment_id"]

    for status in ("processing", "completed"):
        r = client.patch(f"/api/payments/{payment_id}/status", json={"payment_status": status}, headers=admin_headers)
        assert r.status_code == 200

    balance = client.get(f"/api/bookings/{booking['booking_id']}/balance", headers=user_headers).json()["data"]
    assert balance["amount_paid"] == "600.00"
    assert balance["outstanding"] == "0.00"

    r = client.post(
        "/api/payments/",
        json={"booking_id": booking["booking_id"], "amount": "10.00", "payment_method": "cash"},
        headers=user_headers,
    )
    assert r.status_code == 409


def test_ticket_assignment_over_http(client, user_headers, admin_headers, agent):
    ticket = client.post(
        "/api/support-tickets/",
        json={"subject": "Help", "description": "Car will not start", "category": "vehicle"},
        headers=user_headers,
    ).json()["data"]

    r = client.post(f"/api/support-tickets/{ticket['ticket_id']}/assign", json={"agent_id": agent.user_id}, headers=user_headers)
    assert r.status_code == 403

    r = client.post(f"/api/support-tickets/{ticket['ticket_id']}/assign", json={"agent_id": agent.user_id}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "in_progress"
    assert r.json()["data"]["assigned_to"] == agent.user_id


def test_response_time_header(client):
    r = client.get("/")
    assert "X-Response-Time" in r.headers


def test_sort_by_relationship_falls_back_to_created_at(client, user_headers, vehicle):
    client.post("/api/bookings/", json=_booking_body(vehicle), headers=user_headers)
    r = client.get("/api/bookings/?sort_by=user", headers=user_headers)
    assert r.status_code == 200
    assert len(r.json()["data"]) == 1


def test_users_cannot_be_sorted_by_password(client, admin_headers, user):
    r = client.get("/api/users/?sort_by=password&sort_order=asc", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["pagination"]["total"] == 2


def test_null_for_required_field_is_400(client, admin_headers, vehicle, location):
    r = client.put(f"/api/vehicles/{vehicle.vehicle_id}", json={"rental_rate": None}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"
    assert r.json()["details"] == {"fields": ["rental_rate"]}

    r = client.put(f"/api/locations/{location.location_id}", json={"name": None}, headers=admin_headers)
    assert r.status_code == 400

    r = client.get(f"/api/vehicles/{vehicle.vehicle_id}")
    assert r.json()["data"]["rental_rate"] == "150.00"


def test_null_clears_optional_field(client, admin_headers, vehicle):
    r = client.put(
        f"/api/vehicles/{vehicle.vehicle_id}",
        json={"notes": "scratch on door"},
        headers=admin_headers,
    )
    assert r.json()["data"]["notes"] == "scratch on door"

    r = client.put(f"/api/vehicles/{vehicle.vehicle_id}", json={"notes": None}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["notes"] is None
