"""
Tests for dashboard aggregation and the admin stats endpoint.
"""

from datetime import datetime

from app.models.attendance import AttendanceRecord, AttendanceStatus


def add(store, user, timestamp, is_checkout=False, status=AttendanceStatus.PRESENT):
    return store.insert_record(
        AttendanceRecord(
            user_id=user.id,
            user_name=user.name,
            status=status.value,
            timestamp=timestamp,
            date=timestamp.date().isoformat(),
            is_checkout=is_checkout,
            location_name="Colombo",
        )
    )


def test_aggregates_with_default_hours(store, employee, other_employee, admin):
    # Arrange
    add(store, employee, datetime(2026, 3, 2, 8, 50))
    add(store, employee, datetime(2026, 3, 2, 16, 0), is_checkout=True)
    add(store, other_employee, datetime(2026, 3, 2, 9, 20))
    add(store, other_employee, datetime(2026, 3, 2, 17, 30), is_checkout=True)
    add(store, admin, datetime(2026, 3, 2, 8, 0), status=AttendanceStatus.LATE)

    # Act
    stats = store.compute_dashboard_aggregates("2026-03-01", "2026-03-07")

    # Assert
    assert stats.total_employees == 3
    assert stats.on_time_count == 1
    assert stats.late_arrivals == 2
    assert stats.early_departures == 1
    assert len(stats.attendance_trend) == 1
    point = stats.attendance_trend[0]
    assert point.date == "2026-03-02"
    assert point.on_time_percentage == 33.33
    assert point.late_percentage == 66.67
    assert [c.user_name for c in stats.recent_check_ins] == ["Bob", "Alice", "Admin"]


def test_absent_check_ins_are_neither_on_time_nor_late(store, employee):
    add(store, employee, datetime(2026, 3, 2, 10, 0), status=AttendanceStatus.ABSENT)

    stats = store.compute_dashboard_aggregates("2026-03-02", "2026-03-02")

    assert stats.on_time_count == 0
    assert stats.late_arrivals == 0


def test_configured_business_hours_apply(store, employee, admin):
    store.save_business_hours("10:00", "15:00", updated_by=admin.id)
    add(store, employee, datetime(2026, 3, 2, 9, 30))
    add(store, employee, datetime(2026, 3, 2, 15, 30), is_checkout=True)

    stats = store.compute_dashboard_aggregates("2026-03-02", "2026-03-02")

    assert stats.on_time_count == 1
    assert stats.late_arrivals == 0
    assert stats.early_departures == 0


def test_records_outside_range_ignored(store, employee):
    add(store, employee, datetime(2026, 2, 20, 9, 30))

    stats = store.compute_dashboard_aggregates("2026-03-01", "2026-03-07")

    assert stats.attendance_trend == []
    assert stats.recent_check_ins == []


def test_dashboard_endpoint_is_admin_only(client, employee_headers, admin_headers):
    denied = client.get("/api/v1/stats/dashboard", headers=employee_headers)
    allowed = client.get(
        "/api/v1/stats/dashboard",
        headers=admin_headers,
        params={"startDate": "2026-03-01", "endDate": "2026-03-07"},
    )

    assert denied.status_code == 403
    assert allowed.status_code == 200
    body = allowed.json()
    assert body["startDate"] == "2026-03-01"
    assert body["endDate"] == "2026-03-07"
    assert body["totalEmployees"] == 2
    assert body["newEmployeesToday"] == 2


def test_dashboard_rejects_inverted_range(client, admin_headers):
    response = client.get(
        "/api/v1/stats/dashboard",
        headers=admin_headers,
        params={"startDate": "2026-03-07", "endDate": "2026-03-01"},
    )

    assert response.status_code == 400
