from __future__ import annotations

from datetime import date, datetime
from types import SimpleNamespace

from fastapi.testclient import TestClient

from workforce_reports.models.entities import ExpenseStatus, TimesheetStatus

VIEW_BOTH = ("view-timesheets", "view-expenses")


def _seed_team(factory) -> SimpleNamespace:
    owner = factory.user("Olivia Owner", role="Owner")
    alice = factory.user("Alice", permissions=VIEW_BOTH)
    bob = factory.user("Bob", permissions=VIEW_BOTH)
    carol = factory.user("Carol", permissions=VIEW_BOTH)
    plant = factory.project("Plant")
    depot = factory.project("Depot")
    factory.member(plant, alice)
    factory.member(plant, bob)
    factory.member(depot, carol)
    return SimpleNamespace(
        owner=owner,
        alice=alice,
        bob=bob,
        carol=carol,
        alice_tech=factory.technician(alice),
        bob_tech=factory.technician(bob),
        carol_tech=factory.technician(carol),
        plant=plant,
        depot=depot,
    )


def _seed_december_hours(factory, team: SimpleNamespace) -> None:
    factory.time_entry(team.alice_tech, team.plant, date(2025, 12, 1), "8", TimesheetStatus.APPROVED)
    factory.time_entry(team.alice_tech, team.plant, date(2025, 12, 2), "4", TimesheetStatus.SUBMITTED)
    factory.time_entry(team.alice_tech, team.plant, date(2025, 12, 3), "2", TimesheetStatus.REJECTED)
    factory.time_entry(team.bob_tech, team.plant, date(2025, 12, 1), "6", TimesheetStatus.APPROVED)
    factory.time_entry(team.carol_tech, team.depot, date(2025, 12, 1), "5", TimesheetStatus.APPROVED)


def _summary_request(**overrides) -> dict[str, object]:
    payload: dict[str, object] = {"from": "2025-12-01", "to": "2025-12-03", "group_by": ["user"], "period": "day"}
    payload.update(overrides)
    return payload


def _pivot_request(**overrides) -> dict[str, object]:
    payload: dict[str, object] = {
        "period": "month",
        "range": {"from": "2025-12-01", "to": "2025-12-31"},
        "dimensions": {"rows": ["user"], "columns": ["project"]},
    }
    payload.update(overrides)
    return payload


def _error_fields(response) -> set[str]:
    return {item["field"] for item in response.json()["detail"]}


def test_timesheet_summary_by_user_and_day(client: TestClient, factory) -> None:
    team = _seed_team(factory)
    _seed_december_hours(factory, team)

    response = client.post(
        "/api/v1/reports/timesheets/summary",
        headers=factory.headers(team.alice),
        json=_summary_request(),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["meta"] == {
        "from": "2025-12-01",
        "to": "2025-12-03",
        "group_by": ["user"],
        "period": "day",
        "scoped": "membership",
    }
    rows = body["rows"]
    assert [(row["period"], row["user_name"]) for row in rows] == [
        ("2025-12-01", "Alice"),
        ("2025-12-01", "Bob"),
        ("2025-12-02", "Alice"),
        ("2025-12-03", "Alice"),
    ]
    assert rows[0]["total_minutes"] == 480
    assert rows[1]["total_minutes"] == 360
    assert rows[2]["pending_minutes"] == 240
    assert rows[3]["rejected_minutes"] == 120


def test_owner_summary_covers_the_whole_tenant(client: TestClient, factory) -> None:
    team = _seed_team(factory)
    _seed_december_hours(factory, team)

    response = client.post(
        "/api/v1/reports/timesheets/summary",
        headers=factory.headers(team.owner),
        json=_summary_request(group_by=["project"], period="month"),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["meta"]["scoped"] == "all"
    assert [(row["project_name"], row["total_minutes"]) for row in body["rows"]] == [
        ("Depot", 300),
        ("Plant", 1200),
    ]


def test_access_scope_reports_membership_visibility(client: TestClient, factory) -> None:
    team = _seed_team(factory)

    member_scope = client.get("/api/v1/access/scope", headers=factory.headers(team.alice)).json()
    owner_scope = client.get("/api/v1/access/scope", headers=factory.headers(team.owner)).json()

    assert member_scope == {
        "mode": "membership",
        "technician_ids": sorted([team.alice_tech.id, team.bob_tech.id]),
        "project_ids": [team.plant.id],
    }
    assert owner_scope["mode"] == "all"
    assert owner_scope["technician_ids"] == sorted([team.alice_tech.id, team.bob_tech.id, team.carol_tech.id])


def test_access_context_lists_permissions(client: TestClient, factory) -> None:
    team = _seed_team(factory)

    response = client.get("/api/v1/access/context", headers=factory.headers(team.alice))

    assert response.status_code == 200
    assert response.json()["permissions"] == ["view-expenses", "view-timesheets"]
    assert response.json()["is_owner"] is False


def test_user_filter_outside_membership_is_ignored(client: TestClient, factory) -> None:
    team = _seed_team(factory)
    _seed_december_hours(factory, team)

    response = client.post(
        "/api/v1/reports/timesheets/summary",
        headers=factory.headers(team.alice),
        json=_summary_request(user_id=team.carol.id),
    )

    assert response.status_code == 200
    assert {row["user_name"] for row in response.json()["rows"]} == {"Alice", "Bob"}


def test_user_filter_inside_membership_narrows(client: TestClient, factory) -> None:
    team = _seed_team(factory)
    _seed_december_hours(factory, team)

    response = client.post(
        "/api/v1/reports/timesheets/summary",
        headers=factory.headers(team.alice),
        json=_summary_request(user_id=team.bob.id),
    )

    rows = response.json()["rows"]
    assert len(rows) == 1
    assert rows[0]["user_id"] == team.bob.id


def test_report_requires_view_permission(client: TestClient, factory) -> None:
    team = _seed_team(factory)
    dave = factory.user("Dave")
    factory.member(team.plant, dave)

    response = client.post(
        "/api/v1/reports/timesheets/summary",
        headers=factory.headers(dave),
        json=_summary_request(),
    )

    assert response.status_code == 403
    assert "rows" not in response.json()


def test_unknown_identity_is_unauthorized(client: TestClient, factory) -> None:
    _seed_team(factory)

    unknown = client.post(
        "/api/v1/reports/timesheets/summary",
        headers={"X-USER-EMAIL": "nobody@test.local"},
        json=_summary_request(),
    )
    missing = client.post("/api/v1/reports/timesheets/summary", json=_summary_request())

    assert unknown.status_code == 401
    assert missing.status_code == 401


def test_summary_validation_reports_every_field(client: TestClient, factory) -> None:
    team = _seed_team(factory)

    response = client.post(
        "/api/v1/reports/timesheets/summary",
        headers=factory.headers(team.alice),
        json=_summary_request(**{"from": "2025-12-05", "group_by": ["category"], "period": "year"}),
    )

    assert response.status_code == 422
    assert _error_fields(response) == {"from", "group_by.0", "period"}


def test_expense_summary_by_category(client: TestClient, factory) -> None:
    team = _seed_team(factory)
    factory.expense(team.alice_tech, team.plant, date(2025, 12, 1), "12.40", ExpenseStatus.PAID, category="meals")
    factory.expense(team.bob_tech, team.plant, date(2025, 12, 2), "7.60", ExpenseStatus.SUBMITTED, category="meals")
    factory.expense(team.bob_tech, team.plant, date(2025, 12, 2), "100.00", ExpenseStatus.REJECTED)
    factory.expense(team.carol_tech, team.depot, date(2025, 12, 2), "55.00", ExpenseStatus.PAID)

    response = client.post(
        "/api/v1/reports/expenses/summary",
        headers=factory.headers(team.alice),
        json=_summary_request(group_by=["category"], period="month"),
    )

    assert response.status_code == 200
    rows = response.json()["rows"]
    assert rows == [
        {
            "period": "2025-12",
            "category": "meals",
            "total_amount": 20.0,
            "approved_amount": 12.4,
            "pending_amount": 7.6,
            "rejected_amount": 0.0,
            "total_entries": 2,
        },
        {
            "period": "2025-12",
            "category": "travel",
            "total_amount": 100.0,
            "approved_amount": 0.0,
            "pending_amount": 0.0,
            "rejected_amount": 100.0,
            "total_entries": 1,
        },
    ]


def test_timesheet_pivot_totals(client: TestClient, factory) -> None:
    team = _seed_team(factory)
    factory.time_entry(team.alice_tech, team.plant, date(2025, 12, 1), "8")
    factory.time_entry(team.bob_tech, team.plant, date(2025, 12, 2), "6")
    factory.time_entry(team.bob_tech, team.depot, date(2025, 12, 3), "1.5")

    response = client.post(
        "/api/v1/reports/timesheets/pivot",
        headers=factory.headers(team.owner),
        json=_pivot_request(),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["meta"] == {
        "period": "month",
        "from": "2025-12-01",
        "to": "2025-12-31",
        "metrics": ["hours"],
        "scoped": "all",
    }
    assert body["totals"]["grand"]["hours"] == 15.5
    bob_total = next(item for item in body["totals"]["rows"] if item["row_id"] == str(team.bob.id))
    assert bob_total["hours"] == 7.5
    assert sum(cell["hours"] for cell in body["cells"]) == 15.5
    assert sum(item["hours"] for item in body["totals"]["columns"]) == 15.5
    assert [row["label"] for row in body["rows"]] == ["Alice", "Bob"]


def test_pivot_status_filter_uses_pending_class(client: TestClient, factory) -> None:
    team = _seed_team(factory)
    factory.time_entry(team.alice_tech, team.plant, date(2025, 12, 1), "8", TimesheetStatus.APPROVED)
    factory.time_entry(team.alice_tech, team.plant, date(2025, 12, 2), "3", TimesheetStatus.DRAFT)
    factory.time_entry(team.alice_tech, team.plant, date(2025, 12, 3), "2", TimesheetStatus.SUBMITTED)

    response = client.post(
        "/api/v1/reports/timesheets/pivot",
        headers=factory.headers(team.alice),
        json=_pivot_request(filters={"status": "pending"}),
    )

    assert response.status_code == 200
    assert response.json()["totals"]["grand"] == {"hours": 5.0}
    assert response.json()["meta"]["scoped"] == "membership"


def test_pivot_rejects_unsupported_row_dimension(client: TestClient, factory) -> None:
    team = _seed_team(factory)

    response = client.post(
        "/api/v1/reports/timesheets/pivot",
        headers=factory.headers(team.owner),
        json=_pivot_request(dimensions={"rows": ["task"], "columns": ["project"]}),
    )

    assert response.status_code == 422
    assert _error_fields(response) == {"dimensions.rows.0"}


def test_pivot_validates_range_and_metrics(client: TestClient, factory) -> None:
    team = _seed_team(factory)

    response = client.post(
        "/api/v1/reports/expenses/pivot",
        headers=factory.headers(team.owner),
        json=_pivot_request(range={"from": "2024-01-01", "to": "2025-12-31"}, metrics=["hours"]),
    )

    assert response.status_code == 422
    assert _error_fields(response) == {"range", "metrics.0"}


def test_expense_pivot_sums_amounts(client: TestClient, factory) -> None:
    team = _seed_team(factory)
    factory.expense(team.alice_tech, team.plant, date(2025, 12, 1), "10.25")
    factory.expense(team.alice_tech, team.plant, date(2025, 12, 9), "4.75", category="meals")

    response = client.post(
        "/api/v1/reports/expenses/pivot",
        headers=factory.headers(team.alice),
        json=_pivot_request(filters={"category": "meals"}, include={"row_totals": False}),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["cells"] == [{"row_id": str(team.alice.id), "column_id": str(team.plant.id), "amount": 4.75}]
    assert body["totals"]["rows"] == []
    assert body["totals"]["grand"] == {"amount": 4.75}


def test_approval_heatmap_counts_by_creation_day(client: TestClient, factory) -> None:
    team = _seed_team(factory)
    created = datetime(2025, 12, 1, 8, 30)
    factory.time_entry(team.alice_tech, team.plant, date(2025, 11, 28), "8", TimesheetStatus.SUBMITTED, created_at=created)
    factory.time_entry(team.bob_tech, team.plant, date(2025, 11, 27), "6", TimesheetStatus.APPROVED, created_at=created)
    factory.time_entry(team.bob_tech, team.plant, date(2025, 11, 27), "1", TimesheetStatus.REJECTED, created_at=created)
    factory.expense(team.carol_tech, team.depot, date(2025, 11, 30), "20.00", created_at=created)

    response = client.post(
        "/api/v1/reports/approvals/heatmap",
        headers=factory.headers(team.owner),
        json={"range": {"from": "2025-12-01", "to": "2025-12-07"}, "include": {"timesheets": True, "expenses": True}},
    )

    assert response.status_code == 200
    assert response.json() == {
        "meta": {"from": "2025-12-01", "to": "2025-12-07", "scoped": "all"},
        "days": {
            "2025-12-01": {
                "timesheets": {"pending": 1, "approved": 1},
                "expenses": {"pending": 1, "approved": 0},
                "total_pending": 2,
            }
        },
    }


def test_heatmap_counts_only_kinds_the_caller_may_approve(client: TestClient, factory) -> None:
    team = _seed_team(factory)
    manager = factory.user("Mia Manager", role="Manager", permissions=("approve-timesheets",))
    created = datetime(2025, 12, 2, 9, 0)
    factory.time_entry(team.alice_tech, team.plant, date(2025, 12, 2), "8", TimesheetStatus.SUBMITTED, created_at=created)
    factory.expense(team.alice_tech, team.plant, date(2025, 12, 2), "20.00", created_at=created)

    response = client.post(
        "/api/v1/reports/approvals/heatmap",
        headers=factory.headers(manager),
        json={"range": {"from": "2025-12-01", "to": "2025-12-07"}},
    )

    assert response.status_code == 200
    day = response.json()["days"]["2025-12-02"]
    assert day["timesheets"] == {"pending": 1, "approved": 0}
    assert day["expenses"] == {"pending": 0, "approved": 0}
    assert day["total_pending"] == 1


def test_heatmap_with_no_activity_is_empty(client: TestClient, factory) -> None:
    team = _seed_team(factory)

    response = client.post(
        "/api/v1/reports/approvals/heatmap",
        headers=factory.headers(team.owner),
        json={"range": {"from": "2025-12-01", "to": "2025-12-07"}},
    )

    assert response.status_code == 200
    assert response.json()["days"] == {}


def test_heatmap_requires_approval_role(client: TestClient, factory) -> None:
    _seed_team(factory)
    approver = factory.user("Tom", permissions=("approve-timesheets", "approve-expenses"))

    response = client.post(
        "/api/v1/reports/approvals/heatmap",
        headers=factory.headers(approver),
        json={"range": {"from": "2025-12-01", "to": "2025-12-07"}},
    )

    assert response.status_code == 403


def test_heatmap_validation(client: TestClient, factory) -> None:
    team = _seed_team(factory)

    response = client.post(
        "/api/v1/reports/approvals/heatmap",
        headers=factory.headers(team.owner),
        json={
            "range": {"from": "2025-01-01", "to": "2025-12-31"},
            "include": {"timesheets": False, "expenses": False},
        },
    )

    assert response.status_code == 422
    assert _error_fields(response) == {"range", "include"}
