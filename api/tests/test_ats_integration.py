from __future__ import annotations

import asyncio
import os
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, TypeVar
from uuid import uuid4

import asyncpg  # type: ignore[import-untyped]
import pytest
from fastapi.testclient import TestClient

from ats_api.core.config import get_settings
from ats_api.main import app
from ats_api.services.entities import JOB_REQUIREMENT
from ats_api.services.repository import PostgresRepository, get_repository

MIGRATION_PATH = Path(__file__).resolve().parents[2] / "db" / "migrations" / "0001_ats_core.sql"
ORG_ID = "00000000-0000-0000-0000-0000000000a1"
MEMBER_HEADERS = {"x-clerk-user-id": "member-1"}
STRANGER_HEADERS = {"x-clerk-user-id": "stranger-1"}

T = TypeVar("T")


@pytest.fixture(scope="session")
def database_url() -> str:
    url = os.getenv("ATS_DATABASE_URL") or os.getenv("DATABASE_URL")
    if not url:
        pytest.skip("integration tests require ATS_DATABASE_URL or DATABASE_URL")
    _run(_apply_migration(url))
    return url


@pytest.fixture(autouse=True)
def reset_tables(database_url: str) -> None:
    _run(_truncate_integration_tables(database_url))


@pytest.fixture
def db_client(database_url: str) -> TestClient:
    os.environ["ATS_DATABASE_URL"] = database_url
    get_settings.cache_clear()
    get_repository.cache_clear()

    with TestClient(app) as client:
        yield client

    get_repository.cache_clear()
    get_settings.cache_clear()


def _create_job(client: TestClient) -> str:
    company = client.post(
        "/api/v2/companies",
        json={"name": "Acme Recruiting", "identity_organization_id": ORG_ID},
        headers=MEMBER_HEADERS,
    )
    assert company.status_code == 201
    job = client.post(
        "/api/v2/jobs",
        json={"company_id": company.json()["data"]["id"], "title": "Platform Engineer", "salary_min": 100},
        headers=MEMBER_HEADERS,
    )
    assert job.status_code == 201
    return job.json()["data"]["id"]


def test_scoped_listing_and_soft_delete(db_client: TestClient, database_url: str) -> None:
    job_id = _create_job(db_client)

    member_jobs = db_client.get("/api/v2/jobs", headers=MEMBER_HEADERS)
    assert member_jobs.status_code == 200
    assert [row["id"] for row in member_jobs.json()["data"]] == [job_id]
    assert member_jobs.json()["data"][0]["company"]["name"] == "Acme Recruiting"
    assert member_jobs.json()["pagination"]["total"] == 1

    stranger_jobs = db_client.get("/api/v2/jobs", headers=STRANGER_HEADERS)
    assert stranger_jobs.json()["data"] == []
    assert stranger_jobs.json()["pagination"]["total"] == 0

    deleted = db_client.delete(f"/api/v2/jobs/{job_id}", headers=MEMBER_HEADERS)
    assert deleted.status_code == 204

    fetched = db_client.get(f"/api/v2/jobs/{job_id}", headers=MEMBER_HEADERS)
    assert fetched.status_code == 200
    assert fetched.json()["data"]["status"] == "closed"

    conflict = db_client.patch(f"/api/v2/jobs/{job_id}", json={"title": "Too late"}, headers=MEMBER_HEADERS)
    assert conflict.status_code == 409

    missing = db_client.patch(f"/api/v2/jobs/{uuid4()}", json={"title": "Nobody"}, headers=MEMBER_HEADERS)
    assert missing.status_code == 404

    event_types = _run(_fetch_outbox_event_types(database_url))
    assert event_types == ["company.created", "job.created", "job.deleted"]


def test_candidate_visibility_follows_applications(db_client: TestClient) -> None:
    job_id = _create_job(db_client)
    candidate = db_client.post(
        "/api/v2/candidates",
        json={"first_name": "Grace", "last_name": "Hopper", "email": "grace@example.com"},
        headers=MEMBER_HEADERS,
    ).json()["data"]

    before = db_client.get("/api/v2/candidates", headers=MEMBER_HEADERS).json()
    assert before["data"] == []

    application = db_client.post(
        "/api/v2/applications",
        json={"candidate_id": candidate["id"], "job_id": job_id},
        headers=MEMBER_HEADERS,
    )
    assert application.status_code == 201
    assert application.json()["data"]["stage"] == "draft"

    after = db_client.get("/api/v2/candidates", headers=MEMBER_HEADERS).json()
    assert [row["id"] for row in after["data"]] == [candidate["id"]]
    assert after["pagination"]["total"] == 1


def test_concurrent_bulk_replace_leaves_exactly_one_set(db_client: TestClient, database_url: str) -> None:
    job_id = _create_job(db_client)
    first = [
        {"requirement_type": "skill", "description": f"first-{index}", "sort_order": index} for index in range(5)
    ]
    second = [
        {"requirement_type": "skill", "description": f"second-{index}", "sort_order": index} for index in range(3)
    ]

    async def replace_concurrently() -> None:
        repository = PostgresRepository(database_url=database_url, min_pool_size=2, max_pool_size=4)
        try:
            await asyncio.gather(
                *(
                    repository.replace_job_children(JOB_REQUIREMENT, job_id, items)
                    for items in (first, second, first, second)
                )
            )
        finally:
            await repository.close()

    _run(replace_concurrently())

    response = db_client.get("/api/v2/job-requirements", params={"job_id": job_id}, headers=MEMBER_HEADERS)
    assert response.status_code == 200
    descriptions = [row["description"] for row in response.json()["data"]]
    assert descriptions in (
        [item["description"] for item in first],
        [item["description"] for item in second],
    )


def test_bulk_replace_pre_screen_questions_via_api(db_client: TestClient) -> None:
    job_id = _create_job(db_client)

    response = db_client.put(
        f"/api/v2/job-pre-screen-questions/job/{job_id}/bulk-replace",
        json={
            "questions": [
                {"question": "Notice period?", "question_type": "text", "sort_order": 1},
                {
                    "question": "Open to hybrid?",
                    "question_type": "multiple_choice",
                    "options": ["yes", "no"],
                    "is_required": True,
                    "sort_order": 2,
                },
            ]
        },
        headers=MEMBER_HEADERS,
    )

    assert response.status_code == 200
    rows = response.json()["data"]
    assert [row["question_text"] for row in rows] == ["Notice period?", "Open to hybrid?"]
    assert rows[1]["options"] == ["yes", "no"]
    assert rows[1]["is_required"] is True


def _run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


async def _apply_migration(database_url: str) -> None:
    conn = await asyncpg.connect(database_url)
    try:
        await conn.execute(MIGRATION_PATH.read_text())
    finally:
        await conn.close()


async def _truncate_integration_tables(database_url: str) -> None:
    conn = await asyncpg.connect(database_url)
    try:
        await conn.execute(
            """
            truncate table
              ats.job_pre_screen_questions,
              ats.job_requirements,
              ats.placements,
              ats.applications,
              ats.candidates,
              ats.jobs,
              ats.companies,
              ats.outbox_events,
              identity.memberships
            cascade
            """
        )
        await conn.execute(
            "insert into identity.memberships (user_id, organization_id, role) values ($1, $2::uuid, 'member')",
            MEMBER_HEADERS["x-clerk-user-id"],
            ORG_ID,
        )
    finally:
        await conn.close()


async def _fetch_outbox_event_types(database_url: str) -> list[str]:
    conn = await asyncpg.connect(database_url)
    try:
        rows = await conn.fetch("select event_type from ats.outbox_events order by created_at asc, event_type asc")
    finally:
        await conn.close()
    return [row["event_type"] for row in rows]
