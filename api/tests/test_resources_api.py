from __future__ import annotations

from fastapi.testclient import TestClient

from ats_api.core.auth import AccessScope
from ats_api.services.entities import COMPANY, JOB

HEADERS = {"x-clerk-user-id": "u1"}


def test_list_companies_returns_envelope_with_pagination(api_client: TestClient, fake_repo) -> None:
    fake_repo.scopes["u1"] = AccessScope.organizations(["org-1"])
    fake_repo.seed(COMPANY, {"id": "co-1", "name": "Acme", "identity_organization_id": "org-1"})

    response = api_client.get("/api/v2/companies", params={"page": "x", "limit": "500"}, headers=HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["pagination"] == {"total": 1, "page": 1, "limit": 100, "total_pages": 1}
    assert body["data"][0]["name"] == "Acme"


def test_list_jobs_passes_filters_and_sort(api_client: TestClient, fake_repo) -> None:
    fake_repo.scopes["u1"] = AccessScope.all()

    response = api_client.get(
        "/api/v2/jobs",
        params={"status": "active", "company_id": "co-1", "sort_by": "title", "sort_order": "ASC"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    call = fake_repo.list_calls[-1]
    assert call["entity"] == "job"
    assert call["filters"]["status"] == "active"
    assert call["filters"]["company_id"] == "co-1"
    assert call["sort_by"] == "title"
    assert call["sort_order"] == "ASC"


def test_list_without_caller_is_400(api_client: TestClient) -> None:
    response = api_client.get("/api/v2/candidates")

    assert response.status_code == 400
    assert response.json()["error"]["message"].startswith("missing user context")


def test_get_missing_job_is_404(api_client: TestClient) -> None:
    response = api_client.get("/api/v2/jobs/does-not-exist", headers=HEADERS)

    assert response.status_code == 404
    assert response.json() == {"error": {"message": "job not found"}}


def test_create_candidate_with_invalid_email_is_400(api_client: TestClient, fake_repo) -> None:
    response = api_client.post(
        "/api/v2/candidates",
        json={"first_name": "Ada", "last_name": "Lovelace", "email": "not-an-email"},
        headers=HEADERS,
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "candidate email is invalid"
    assert fake_repo.writes == []


def test_create_and_soft_delete_candidate(api_client: TestClient, fake_repo) -> None:
    created = api_client.post(
        "/api/v2/candidates",
        json={"first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.com"},
        headers=HEADERS,
    )
    assert created.status_code == 201
    candidate_id = created.json()["data"]["id"]

    deleted = api_client.delete(f"/api/v2/candidates/{candidate_id}", headers=HEADERS)
    assert deleted.status_code == 204

    fetched = api_client.get(f"/api/v2/candidates/{candidate_id}", headers=HEADERS)
    assert fetched.status_code == 200
    assert fetched.json()["data"]["status"] == "archived"
    assert [event.event_type for event in fake_repo.events] == ["candidate.created", "candidate.deleted"]
    assert fake_repo.events[0].payload["created_by"] == "u1"


def test_patch_missing_company_is_404(api_client: TestClient, fake_repo) -> None:
    response = api_client.patch("/api/v2/companies/nope", json={"name": "New"}, headers=HEADERS)

    assert response.status_code == 404
    assert fake_repo.writes == []


def test_patch_closed_job_is_409(api_client: TestClient, fake_repo) -> None:
    fake_repo.seed(JOB, {"id": "job-1", "company_id": "co-1", "title": "Engineer", "status": "closed"})

    response = api_client.patch("/api/v2/jobs/job-1", json={"title": "Senior Engineer"}, headers=HEADERS)

    assert response.status_code == 409


def test_patch_with_empty_body_is_400(api_client: TestClient, fake_repo) -> None:
    fake_repo.seed(JOB, {"id": "job-1", "company_id": "co-1", "title": "Engineer"})

    response = api_client.patch("/api/v2/jobs/job-1", json={}, headers=HEADERS)

    assert response.status_code == 400


def test_request_validation_errors_use_error_envelope(api_client: TestClient) -> None:
    response = api_client.post("/api/v2/companies", json={"name": "Acme", "status": "bogus"}, headers=HEADERS)

    assert response.status_code == 400
    assert "status" in response.json()["error"]["message"]
