"""Tests for the administrative moderation endpoints."""

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from civic_report.services.moderation import AUTO_HIDE_REASON, REVIEW_HIDE_REASON


@pytest.fixture()
def filed_flag(lifecycle, issue, citizen):
    """A Pending flag raised by ``citizen`` against ``issue``."""
    return lifecycle.file_flag(
        issue.issue.id,
        citizen,
        reason="False Information",
        description="This pothole was filled last month",
    ).flag


def _review(client, flag_id, headers, **body):
    payload = {"status": "Reviewed", "action_taken": "No Action", **body}
    return client.put(f"/api/v1/admin/flags/{flag_id}/review", json=payload, headers=headers)


def test_list_flags(client: TestClient, filed_flag, admin_headers) -> None:
    response = client.get("/api/v1/admin/flags", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["pagination"]["total"] == 1
    assert data["items"][0]["id"] == filed_flag.id
    assert data["items"][0]["reason"] == "False Information"

    dismissed = client.get(
        "/api/v1/admin/flags", params={"status": "Dismissed"}, headers=admin_headers
    ).json()
    assert dismissed["items"] == []


@pytest.mark.parametrize("headers_fixture", ["citizen_headers", "agent_headers"])
def test_admin_routes_require_admin(
    request, client: TestClient, filed_flag, issue, headers_fixture
) -> None:
    headers = request.getfixturevalue(headers_fixture)
    calls = [
        client.get("/api/v1/admin/flags", headers=headers),
        client.get("/api/v1/admin/flags/stats", headers=headers),
        _review(client, filed_flag.id, headers),
        client.delete(f"/api/v1/admin/flags/{filed_flag.id}", headers=headers),
        client.put(
            f"/api/v1/admin/issues/{issue.issue.id}/visibility",
            json={"is_hidden": True},
            headers=headers,
        ),
    ]
    assert [r.status_code for r in calls] == [status.HTTP_403_FORBIDDEN] * len(calls)


def test_flag_stats(client: TestClient, filed_flag, admin_headers) -> None:
    response = client.get("/api/v1/admin/flags/stats", headers=admin_headers)
    assert response.json() == {
        "by_status": {"Pending": 1},
        "by_reason": {"False Information": 1},
    }


def test_review_hides_issue(client: TestClient, filed_flag, issue, admin_headers, admin) -> None:
    """An "Issue Hidden" decision hides the issue regardless of its flag count."""
    response = _review(
        client,
        filed_flag.id,
        admin_headers,
        action_taken="Issue Hidden",
        review_notes="Misleading report",
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["issue_hidden"] is True
    assert data["flag"]["status"] == "Reviewed"
    assert data["flag"]["reviewed_by"] == admin.id
    assert data["flag"]["review_notes"] == "Misleading report"

    detail = client.get(f"/api/v1/issues/{issue.issue.id}", headers=admin_headers).json()
    assert detail["is_hidden"] is True
    assert detail["hidden_reason"] == REVIEW_HIDE_REASON
    assert detail["flag_count"] == 1


def test_review_missing_flag(client: TestClient, admin_headers) -> None:
    response = _review(client, 5555, admin_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_review_rejects_pending(client: TestClient, filed_flag, admin_headers) -> None:
    response = _review(client, filed_flag.id, admin_headers, status="Pending")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_delete_flag_keeps_issue_hidden(
    client: TestClient, lifecycle, issue, make_citizens, admin_headers
) -> None:
    flags = [
        lifecycle.file_flag(issue.issue.id, flagger, reason="Spam", description="spam spam").flag
        for flagger in make_citizens(5)
    ]

    response = client.delete(f"/api/v1/admin/flags/{flags[0].id}", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK

    detail = client.get(f"/api/v1/issues/{issue.issue.id}", headers=admin_headers).json()
    assert detail["flag_count"] == 4
    assert detail["is_hidden"] is True
    assert detail["hidden_reason"] == AUTO_HIDE_REASON


def test_visibility_round_trip(client: TestClient, issue, admin_headers, admin) -> None:
    url = f"/api/v1/admin/issues/{issue.issue.id}/visibility"

    hidden = client.put(
        url, json={"is_hidden": True, "hidden_reason": "duplicate"}, headers=admin_headers
    ).json()
    assert (hidden["is_hidden"], hidden["hidden_reason"]) == (True, "duplicate")

    shown = client.put(url, json={"is_hidden": False}, headers=admin_headers).json()
    assert (shown["is_hidden"], shown["hidden_reason"]) == (False, None)


def test_recent_status_updates(
    client: TestClient, lifecycle, issue, agent, agent_headers, citizen_headers
) -> None:
    lifecycle.transition_status(issue.issue.id, agent, "In Progress", comment="Crew dispatched")

    response = client.get(
        "/api/v1/admin/status-updates", params={"limit": 5}, headers=agent_headers
    )
    assert response.status_code == status.HTTP_200_OK
    entries = response.json()
    assert [entry["status"] for entry in entries] == ["In Progress", "Reported"]
    assert entries[0]["comment"] == "Crew dispatched"

    forbidden = client.get("/api/v1/admin/status-updates", headers=citizen_headers)
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN


def test_visibility_response_keeps_tags(
    client: TestClient, make_issue, citizen_headers, admin_headers
) -> None:
    tagged = make_issue(tags=["Lighting", "night"])
    url = f"/api/v1/admin/issues/{tagged.issue.id}/visibility"

    hidden = client.put(url, json={"is_hidden": True}, headers=admin_headers).json()
    shown = client.put(url, json={"is_hidden": False}, headers=admin_headers).json()
    assert hidden["tags"] == shown["tags"] == ["lighting", "night"]
