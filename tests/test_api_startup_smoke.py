import pytest
from fastapi.testclient import TestClient


REQUIRED_ROUTES = {
    "/auth/register",
    "/auth/token",
    "/api/tenants",
    "/api/tenants/{tenant_id}/staff/invitations",
    "/api/tenants/{tenant_id}/staff/{member_principal_id}",
    "/api/tenants/{tenant_id}/sales",
    "/api/tenants/{tenant_id}/reservations",
    "/api/tenants/{tenant_id}/reservations/{reservation_id}/check-in",
    "/api/tenants/{tenant_id}/dashboard/stats",
    "/api/tenants/{tenant_id}/lessees",
    "/api/tenants/{tenant_id}/students",
    "/api/tenants/{tenant_id}/resource-units",
}


def test_api_startup_and_router_registration(monkeypatch):
    from fedha import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)

    with TestClient(main.app) as client:
        response = client.get("/")
        openapi_response = client.get("/openapi.json")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"]
    assert openapi_response.status_code == 200

    paths = {route.path for route in main.app.routes}
    assert REQUIRED_ROUTES.issubset(paths)


def test_sqlite_is_refused_in_production(monkeypatch):
    from fedha.core import startup_checks

    monkeypatch.setattr(startup_checks, "IS_PROD", True)
    monkeypatch.setattr(startup_checks, "DATABASE_URL", "sqlite:///./prod.db")

    with pytest.raises(RuntimeError):
        startup_checks.validate_database_environment()
