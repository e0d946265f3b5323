from fastapi.testclient import TestClient

from fedha.core.database import get_db
from fedha.main import app
from tests.fixtures_data import build_session_factory


def _build_client():
    db = build_session_factory()()
    app.dependency_overrides[get_db] = lambda: db
    return TestClient(app), db


def _register_and_login(client, email, full_name="Test User"):
    created = client.post("/auth/register", json={"full_name": full_name, "email": email, "password": "secret123"})
    assert created.status_code == 201
    token = client.post("/auth/token", data={"username": email, "password": "secret123"})
    assert token.status_code == 200
    return created.json()["id"], {"Authorization": f"Bearer {token.json()['access_token']}"}


def test_health_endpoints():
    client, _ = _build_client()

    assert client.get("/").json() == {"status": "ok"}
    assert client.get("/health").json() == {"status": "healthy"}


def test_register_rejects_duplicate_email_and_bad_password():
    client, _ = _build_client()
    _register_and_login(client, "owner@example.com")

    duplicate = client.post(
        "/auth/register", json={"full_name": "Again", "email": "OWNER@example.com", "password": "secret123"}
    )
    wrong = client.post("/auth/token", data={"username": "owner@example.com", "password": "nope"})

    assert duplicate.status_code == 409
    assert wrong.status_code == 401


def test_routes_require_a_token():
    client, _ = _build_client()

    assert client.get("/api/tenants").status_code == 401


def test_staff_and_sale_flow_maps_errors_to_status_codes():
    client, _ = _build_client()
    _, owner_headers = _register_and_login(client, "owner@example.com")
    _, cashier_headers = _register_and_login(client, "cashier@example.com")

    tenant = client.post("/api/tenants", json={"name": "Mjengo Hardware", "category": "hardware"}, headers=owner_headers)
    assert tenant.status_code == 201
    tenant_id = tenant.json()["id"]
    assert tenant.json()["is_owner"] is True

    missing = client.post(
        f"/api/tenants/{tenant_id}/staff/invitations",
        json={"email": "noone@example.com", "role": "cashier"},
        headers=owner_headers,
    )
    assert missing.status_code == 404
    assert missing.json()["code"] == "principal_not_found"

    invited = client.post(
        f"/api/tenants/{tenant_id}/staff/invitations",
        json={"email": "cashier@example.com", "role": "cashier"},
        headers=owner_headers,
    )
    assert invited.status_code == 201
    again = client.post(
        f"/api/tenants/{tenant_id}/staff/invitations",
        json={"email": "cashier@example.com", "role": "cashier"},
        headers=owner_headers,
    )
    assert again.status_code == 409
    assert again.json()["code"] == "already_member"

    item = client.post(
        f"/api/tenants/{tenant_id}/catalog",
        json={"name": "Cement 50kg", "sale_price_cents": 10, "stock_quantity": 5},
        headers=owner_headers,
    )
    assert item.status_code == 201
    item_id = item.json()["id"]

    forbidden = client.post(
        f"/api/tenants/{tenant_id}/catalog",
        json={"name": "Paint", "sale_price_cents": 10},
        headers=cashier_headers,
    )
    assert forbidden.status_code == 403
    assert forbidden.json() == {"detail": "Not authorized for this tenant", "code": "not_authorized"}

    sale = client.post(
        f"/api/tenants/{tenant_id}/sales",
        json={"lines": [{"catalog_item_id": item_id, "quantity": 3, "unit_price_cents": 10}]},
        headers=cashier_headers,
    )
    assert sale.status_code == 201
    assert sale.json()["total_cents"] == 30

    oversell = client.post(
        f"/api/tenants/{tenant_id}/sales",
        json={"lines": [{"catalog_item_id": item_id, "quantity": 4, "unit_price_cents": 10}]},
        headers=cashier_headers,
    )
    assert oversell.status_code == 409
    assert oversell.json()["code"] == "insufficient_stock"
    assert oversell.json()["item_id"] == item_id

    stats = client.get(f"/api/tenants/{tenant_id}/dashboard/stats", headers=cashier_headers)
    assert stats.status_code == 200
    assert stats.json()["total_revenue_cents"] == 30

    staff = client.get(f"/api/tenants/{tenant_id}/staff", headers=cashier_headers)
    assert [member["role"] for member in staff.json()] == ["owner", "cashier"]


def test_booking_routes_map_validation_and_missing_records():
    client, _ = _build_client()
    _, owner_headers = _register_and_login(client, "hotelier@example.com")
    tenant_id = client.post(
        "/api/tenants", json={"name": "Lakeview Hotel", "category": "hotel"}, headers=owner_headers
    ).json()["id"]
    payload = {
        "guest_name": "Amina",
        "guest_phone": "0711000000",
        "check_in": "2025-01-10",
        "check_out": "2025-01-12",
        "guests_count": 2,
        "total_amount_cents": 5000,
    }

    created = client.post(f"/api/tenants/{tenant_id}/reservations", json=payload, headers=owner_headers)
    assert created.status_code == 201
    assert created.json()["payment_status"] == "pending"

    backwards = client.post(
        f"/api/tenants/{tenant_id}/reservations",
        json={**payload, "check_in": "2025-01-12", "check_out": "2025-01-10"},
        headers=owner_headers,
    )
    assert backwards.status_code == 422
    assert backwards.json()["code"] == "validation_error"

    reservation_id = created.json()["id"]
    checked_in = client.post(
        f"/api/tenants/{tenant_id}/reservations/{reservation_id}/check-in", headers=owner_headers
    )
    assert checked_in.json()["status"] == "checked_in"

    missing = client.post(f"/api/tenants/{tenant_id}/reservations/9999/cancel", headers=owner_headers)
    assert missing.status_code == 404


def test_unknown_tenant_and_foreign_tenant_look_the_same():
    client, _ = _build_client()
    _, owner_headers = _register_and_login(client, "owner@example.com")
    _, outsider_headers = _register_and_login(client, "outsider@example.com")
    tenant_id = client.post(
        "/api/tenants", json={"name": "Mjengo Hardware", "category": "hardware"}, headers=owner_headers
    ).json()["id"]

    foreign = client.get(f"/api/tenants/{tenant_id}/dashboard/stats", headers=outsider_headers)
    unknown = client.get("/api/tenants/9999/dashboard/stats", headers=outsider_headers)

    assert foreign.status_code == unknown.status_code == 403
    assert foreign.json() == unknown.json()


def test_record_routes_create_lessees_students_and_units():
    client, _ = _build_client()
    _, owner_headers = _register_and_login(client, "landlord@example.com")
    rentals_id = client.post(
        "/api/tenants", json={"name": "Kilimani Apartments", "category": "rentals"}, headers=owner_headers
    ).json()["id"]

    lessee = client.post(
        f"/api/tenants/{rentals_id}/lessees",
        json={
            "name": "Baraka",
            "phone": "0722000000",
            "unit_number": "B4",
            "rent_amount_cents": 1500000,
            "lease_start": "2025-01-01",
        },
        headers=owner_headers,
    )
    assert lessee.status_code == 201
    assert lessee.json()["is_active"] is True
    assert [row["id"] for row in client.get(f"/api/tenants/{rentals_id}/lessees", headers=owner_headers).json()] == [
        lessee.json()["id"]
    ]

    ended = client.post(f"/api/tenants/{rentals_id}/lessees/{lessee.json()['id']}/deactivate", headers=owner_headers)
    assert ended.json()["is_active"] is False
    assert client.get(f"/api/tenants/{rentals_id}/lessees", headers=owner_headers).json() == []

    school_id = client.post(
        "/api/tenants", json={"name": "Baraka Academy", "category": "school"}, headers=owner_headers
    ).json()["id"]
    student_payload = {
        "admission_number": "ADM-001",
        "first_name": "Zawadi",
        "last_name": "Mwangi",
        "class_level": "Grade 4",
        "parent_name": "Halima Mwangi",
        "parent_phone": "0733000000",
        "fee_amount_cents": 2000000,
    }
    assert client.post(f"/api/tenants/{school_id}/students", json=student_payload, headers=owner_headers).status_code == 201
    duplicate = client.post(f"/api/tenants/{school_id}/students", json=student_payload, headers=owner_headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "duplicate_admission_number"
    assert len(client.get(f"/api/tenants/{school_id}/students", headers=owner_headers).json()) == 1

    hotel_id = client.post(
        "/api/tenants", json={"name": "Lakeview Hotel", "category": "hotel"}, headers=owner_headers
    ).json()["id"]
    unit = client.post(
        f"/api/tenants/{hotel_id}/resource-units",
        json={"kind": "room", "label": "Room 101", "rate_per_night_cents": 2500, "capacity": 2},
        headers=owner_headers,
    )
    assert unit.status_code == 201
    assert unit.json()["status"] == "available"
    listed = client.get(f"/api/tenants/{hotel_id}/resource-units?kind=room", headers=owner_headers).json()
    assert [row["id"] for row in listed] == [unit.json()["id"]]
