from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from ats_api.core.auth import AccessScope
from ats_api.core.config import get_settings
from ats_api.main import app
from ats_api.services.entities import EntityDescriptor, JobChildDescriptor
from ats_api.services.events import DomainEvent
from ats_api.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    get_repository,
)


class FakeAtsRepository:
    """In-memory stand-in for PostgresRepository that records writes and events."""

    def __init__(self) -> None:
        self.resources: dict[str, dict[str, dict[str, Any]]] = {}
        self.children: dict[str, dict[str, dict[str, Any]]] = {}
        self.scopes: dict[str, AccessScope] = {}
        self.writes: list[tuple[str, str, str]] = []
        self.events: list[DomainEvent] = []
        self.list_calls: list[dict[str, Any]] = []
        self.replace_calls: list[tuple[str, str, list[dict[str, Any]]]] = []

    def seed(self, entity: EntityDescriptor, row: dict[str, Any]) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        stored = {"status": entity.default_status, "created_at": now, "updated_at": now, **row}
        self.resources.setdefault(entity.name, {})[stored["id"]] = stored
        return stored

    async def resolve_access_scope(self, clerk_user_id: str) -> AccessScope:
        return self.scopes.get(clerk_user_id, AccessScope.organizations([]))

    async def list_resources(
        self,
        entity: EntityDescriptor,
        *,
        scope: AccessScope,
        filters: Mapping[str, Any],
        page: int,
        limit: int,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> dict[str, Any]:
        self.list_calls.append(
            {
                "entity": entity.name,
                "scope": scope,
                "filters": dict(filters),
                "page": page,
                "limit": limit,
                "sort_by": sort_by,
                "sort_order": sort_order,
            }
        )
        if scope.is_empty:
            return {"data": [], "total": 0}
        rows = list(self.resources.get(entity.name, {}).values())
        status_filter = filters.get("status")
        if status_filter:
            rows = [row for row in rows if row.get("status") == status_filter]
        offset = (page - 1) * limit
        return {"data": rows[offset : offset + limit], "total": len(rows)}

    async def get_resource(self, entity: EntityDescriptor, resource_id: str) -> dict[str, Any] | None:
        return self.resources.get(entity.name, {}).get(resource_id)

    async def create_resource(
        self,
        entity: EntityDescriptor,
        payload: Mapping[str, Any],
        *,
        event: DomainEvent,
    ) -> dict[str, Any]:
        row = dict(payload)
        self.resources.setdefault(entity.name, {})[row["id"]] = row
        self.writes.append(("create", entity.name, row["id"]))
        self.events.append(event)
        return row

    async def update_resource(
        self,
        entity: EntityDescriptor,
        resource_id: str,
        updates: Mapping[str, Any],
        *,
        event: DomainEvent,
    ) -> dict[str, Any]:
        row = self.resources.get(entity.name, {}).get(resource_id)
        if row is None:
            raise RepositoryNotFoundError(f"{entity.name} not found")
        if row["status"] == entity.terminal_status and "status" not in updates:
            raise RepositoryConflictError(f"{entity.name} is {entity.terminal_status}")
        row.update(updates)
        row["updated_at"] = datetime.now(timezone.utc)
        self.writes.append(("update", entity.name, resource_id))
        self.events.append(event)
        return row

    async def soft_delete_resource(
        self,
        entity: EntityDescriptor,
        resource_id: str,
        *,
        event: DomainEvent,
    ) -> dict[str, Any]:
        row = self.resources.get(entity.name, {}).get(resource_id)
        if row is None:
            raise RepositoryNotFoundError(f"{entity.name} not found")
        if row["status"] == entity.terminal_status:
            return row
        row["status"] = entity.terminal_status
        row["updated_at"] = datetime.now(timezone.utc)
        self.writes.append(("delete", entity.name, resource_id))
        self.events.append(event)
        return row

    async def list_job_children(self, child: JobChildDescriptor, job_id: str) -> list[dict[str, Any]]:
        rows = [row for row in self.children.get(child.name, {}).values() if row["job_id"] == job_id]
        return sorted(rows, key=lambda row: row["sort_order"])

    async def get_job_child(self, child: JobChildDescriptor, child_id: str) -> dict[str, Any] | None:
        return self.children.get(child.name, {}).get(child_id)

    async def create_job_child(self, child: JobChildDescriptor, payload: Mapping[str, Any]) -> dict[str, Any]:
        row = dict(payload)
        self.children.setdefault(child.name, {})[row["id"]] = row
        self.writes.append(("create", child.name, row["id"]))
        return row

    async def update_job_child(
        self,
        child: JobChildDescriptor,
        child_id: str,
        updates: Mapping[str, Any],
    ) -> dict[str, Any]:
        row = self.children.get(child.name, {}).get(child_id)
        if row is None:
            raise RepositoryNotFoundError(f"{child.name} not found")
        row.update(updates)
        row["updated_at"] = datetime.now(timezone.utc)
        self.writes.append(("update", child.name, child_id))
        return row

    async def delete_job_child(self, child: JobChildDescriptor, child_id: str) -> None:
        if self.children.get(child.name, {}).pop(child_id, None) is None:
            raise RepositoryNotFoundError(f"{child.name} not found")
        self.writes.append(("delete", child.name, child_id))

    async def replace_job_children(
        self,
        child: JobChildDescriptor,
        job_id: str,
        items: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        self.replace_calls.append((child.name, job_id, items))
        bucket = self.children.setdefault(child.name, {})
        for child_id in [key for key, row in bucket.items() if row["job_id"] == job_id]:
            del bucket[child_id]
        now = datetime.now(timezone.utc)
        inserted = []
        for item in items:
            row = {"id": str(uuid4()), "job_id": job_id, "created_at": now, "updated_at": now, **item}
            bucket[row["id"]] = row
            inserted.append(row)
        return sorted(inserted, key=lambda row: row["sort_order"])

    async def close(self) -> None:
        return None


@pytest.fixture
def fake_repo() -> FakeAtsRepository:
    return FakeAtsRepository()


@pytest.fixture
def api_client(fake_repo: FakeAtsRepository) -> TestClient:
    get_settings.cache_clear()
    app.dependency_overrides[get_repository] = lambda: fake_repo

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
    get_settings.cache_clear()
