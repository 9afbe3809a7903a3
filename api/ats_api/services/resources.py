"""Resource services: validation, not-found translation and domain events.

One ``ResourceService`` serves all five ATS entities; what differs per entity is
the descriptor (storage shape) and the validator (input rules).
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol
from uuid import uuid4

from fastapi import Depends

from ats_api.core.auth import UserContext
from ats_api.core.pagination import build_pagination_response, validate_pagination_params
from ats_api.services.entities import APPLICATION, CANDIDATE, COMPANY, JOB, PLACEMENT, EntityDescriptor
from ats_api.services.events import DomainEvent
from ats_api.services.repository import (
    PostgresRepository,
    RepositoryNotFoundError,
    RepositoryValidationError,
    get_repository,
)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ResourceValidator(Protocol):
    def validate_create(self, data: Mapping[str, Any]) -> None: ...

    def validate_update(self, updates: Mapping[str, Any]) -> None: ...


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _strip_text(data: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value.strip() if isinstance(value, str) else value for key, value in data.items()}


def _require_fields(entity_name: str, data: Mapping[str, Any], fields: tuple[str, ...]) -> None:
    missing = [name for name in fields if _is_blank(data.get(name))]
    if missing:
        raise RepositoryValidationError(f"{entity_name} requires: {', '.join(missing)}")


def _reject_blank_if_present(entity_name: str, updates: Mapping[str, Any], fields: tuple[str, ...]) -> None:
    for name in fields:
        if name in updates and _is_blank(updates[name]):
            raise RepositoryValidationError(f"{entity_name} {name} cannot be empty")


def _check_non_negative(entity_name: str, data: Mapping[str, Any], fields: tuple[str, ...]) -> None:
    for name in fields:
        value = data.get(name)
        if value is not None and value < 0:
            raise RepositoryValidationError(f"{entity_name} {name} cannot be negative")


class CandidateValidator:
    def validate_create(self, data: Mapping[str, Any]) -> None:
        _require_fields("candidate", data, ("first_name", "last_name", "email"))
        self._check_email(data["email"])

    def validate_update(self, updates: Mapping[str, Any]) -> None:
        _reject_blank_if_present("candidate", updates, ("first_name", "last_name"))
        if "email" in updates:
            self._check_email(updates["email"])

    @staticmethod
    def _check_email(email: Any) -> None:
        if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
            raise RepositoryValidationError("candidate email is invalid")


class CompanyValidator:
    def validate_create(self, data: Mapping[str, Any]) -> None:
        _require_fields("company", data, ("name", "identity_organization_id"))

    def validate_update(self, updates: Mapping[str, Any]) -> None:
        _reject_blank_if_present("company", updates, ("name",))


class JobValidator:
    def validate_create(self, data: Mapping[str, Any]) -> None:
        _require_fields("job", data, ("company_id", "title"))
        self._check_salary(data)

    def validate_update(self, updates: Mapping[str, Any]) -> None:
        _reject_blank_if_present("job", updates, ("title",))
        self._check_salary(updates)

    @staticmethod
    def _check_salary(data: Mapping[str, Any]) -> None:
        _check_non_negative("job", data, ("salary_min", "salary_max"))
        salary_min = data.get("salary_min")
        salary_max = data.get("salary_max")
        if salary_min is not None and salary_max is not None and salary_min > salary_max:
            raise RepositoryValidationError("job salary_min cannot exceed salary_max")


class ApplicationValidator:
    def validate_create(self, data: Mapping[str, Any]) -> None:
        _require_fields("application", data, ("candidate_id", "job_id"))

    def validate_update(self, updates: Mapping[str, Any]) -> None:
        return None


class PlacementValidator:
    def validate_create(self, data: Mapping[str, Any]) -> None:
        _require_fields("placement", data, ("candidate_id", "job_id", "application_id"))
        self._check_amounts(data)

    def validate_update(self, updates: Mapping[str, Any]) -> None:
        self._check_amounts(updates)

    @staticmethod
    def _check_amounts(data: Mapping[str, Any]) -> None:
        _check_non_negative("placement", data, ("salary", "fee_percentage"))
        fee = data.get("fee_percentage")
        if fee is not None and fee > 100:
            raise RepositoryValidationError("placement fee_percentage cannot exceed 100")


class ResourceService:
    def __init__(
        self,
        entity: EntityDescriptor,
        validator: ResourceValidator,
        repository: PostgresRepository,
    ) -> None:
        self.entity = entity
        self.validator = validator
        self.repository = repository

    async def get_many(
        self,
        user: UserContext,
        filters: Mapping[str, Any],
        *,
        page: Any = None,
        limit: Any = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> dict[str, Any]:
        normalized_page, normalized_limit = validate_pagination_params(page, limit)
        scope = await self.repository.resolve_access_scope(user.clerk_user_id)
        result = await self.repository.list_resources(
            self.entity,
            scope=scope,
            filters=filters,
            page=normalized_page,
            limit=normalized_limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return {
            "data": result["data"],
            "pagination": build_pagination_response(result["total"], normalized_page, normalized_limit),
        }

    async def get_one(self, resource_id: str) -> dict[str, Any]:
        row = await self.repository.get_resource(self.entity, resource_id)
        if row is None:
            raise RepositoryNotFoundError(f"{self.entity.name} not found")
        return row

    async def create(self, data: Mapping[str, Any], clerk_user_id: str | None = None) -> dict[str, Any]:
        data = _strip_text(data)
        self.validator.validate_create(data)

        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {key: value for key, value in data.items() if value is not None}
        for key, value in self.entity.create_defaults.items():
            payload.setdefault(key, value)
        payload.setdefault("status", self.entity.default_status)
        payload["id"] = str(uuid4())
        payload["created_at"] = now
        payload["updated_at"] = now

        event = DomainEvent(
            event_type=f"{self.entity.name}.created",
            payload={f"{self.entity.name}_id": payload["id"], "created_by": clerk_user_id},
        )
        return await self.repository.create_resource(self.entity, payload, event=event)

    async def update(
        self,
        resource_id: str,
        updates: Mapping[str, Any],
        clerk_user_id: str | None = None,
    ) -> dict[str, Any]:
        if not updates:
            raise RepositoryValidationError(f"{self.entity.name} update requires at least one field")
        updates = _strip_text(updates)
        self.validator.validate_update(updates)

        event = DomainEvent(
            event_type=f"{self.entity.name}.updated",
            payload={
                f"{self.entity.name}_id": resource_id,
                "updated_fields": sorted(updates),
                "updated_by": clerk_user_id,
            },
        )
        return await self.repository.update_resource(self.entity, resource_id, updates, event=event)

    async def delete(self, resource_id: str, clerk_user_id: str | None = None) -> dict[str, Any]:
        event = DomainEvent(
            event_type=f"{self.entity.name}.deleted",
            payload={f"{self.entity.name}_id": resource_id, "deleted_by": clerk_user_id},
        )
        return await self.repository.soft_delete_resource(self.entity, resource_id, event=event)


def get_job_service(repository: PostgresRepository = Depends(get_repository)) -> ResourceService:
    return ResourceService(JOB, JobValidator(), repository)


def get_company_service(repository: PostgresRepository = Depends(get_repository)) -> ResourceService:
    return ResourceService(COMPANY, CompanyValidator(), repository)


def get_candidate_service(repository: PostgresRepository = Depends(get_repository)) -> ResourceService:
    return ResourceService(CANDIDATE, CandidateValidator(), repository)


def get_application_service(repository: PostgresRepository = Depends(get_repository)) -> ResourceService:
    return ResourceService(APPLICATION, ApplicationValidator(), repository)


def get_placement_service(repository: PostgresRepository = Depends(get_repository)) -> ResourceService:
    return ResourceService(PLACEMENT, PlacementValidator(), repository)
