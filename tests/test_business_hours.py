"""
Tests for the business hours endpoints.
"""

import inspect

from fastapi.routing import APIRoute

from app.main import app


def test_unset_business_hours(client, employee_headers):
    response = client.get("/api/v1/business-hours", headers=employee_headers)

    assert response.status_code == 200
    assert response.json()["data"] is None
    assert response.json()["message"] == "No business hours set yet"


def test_admin_sets_business_hours(client, admin_headers, employee_headers):
    # Act
    response = client.put(
        "/api/v1/business-hours",
        headers=admin_headers,
        json={"startTime": "08:30", "endTime": "17:30"},
    )

    # Assert
    assert response.status_code == 200
    assert response.json()["data"] == {"startTime": "08:30", "endTime": "17:30"}
    current = client.get("/api/v1/business-hours", headers=employee_headers).json()
    assert current["data"] == {"startTime": "08:30", "endTime": "17:30"}


def test_employee_cannot_set_business_hours(client, employee_headers):
    response = client.put(
        "/api/v1/business-hours",
        headers=employee_headers,
        json={"startTime": "08:30", "endTime": "17:30"},
    )

    assert response.status_code == 403


def test_business_hours_validation(client, admin_headers):
    malformed = client.put(
        "/api/v1/business-hours",
        headers=admin_headers,
        json={"startTime": "8:30", "endTime": "17:30"},
    )
    inverted = client.put(
        "/api/v1/business-hours",
        headers=admin_headers,
        json={"startTime": "18:00", "endTime": "09:00"},
    )

    assert malformed.status_code == 400
    assert inverted.status_code == 400


def test_health_endpoints(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/ready").json()["checks"]["database"] == "ok"


def test_api_handlers_are_coroutines():
    handlers = [r for r in app.routes if isinstance(r, APIRoute)]

    assert handlers
    for route in handlers:
        assert inspect.iscoroutinefunction(route.endpoint), route.path
