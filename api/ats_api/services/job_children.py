from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping
from uuid import uuid4

from fastapi import Depends

from ats_api.services.entities import JOB_PRE_SCREEN_QUESTION, JOB_REQUIREMENT, JobChildDescriptor
from ats_api.services.repository import (
    PostgresRepository,
    RepositoryNotFoundError,
    RepositoryValidationError,
    get_repository,
)

CHOICE_QUESTION_TYPES = {"multiple_choice", "select", "multi_select"}


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class JobChildService:
    """CRUD plus atomic bulk replace for one per-job child collection."""

    child: JobChildDescriptor
    required_fields: tuple[str, ...] = ()

    def __init__(self, repository: PostgresRepository) -> None:
        self.repository = repository

    async def list(self, job_id: str | None) -> list[dict[str, Any]]:
        if _is_missing(job_id):
            raise RepositoryValidationError("job_id is required")
        rows = await self.repository.list_job_children(self.child, job_id.strip())
        return [self.present(row) for row in rows]

    async def get_by_id(self, child_id: str) -> dict[str, Any]:
        row = await self.repository.get_job_child(self.child, child_id)
        if row is None:
            raise RepositoryNotFoundError(f"{self.child.name} not found")
        return self.present(row)

    async def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        if _is_missing(data.get("job_id")):
            raise RepositoryValidationError("job_id is required")
        self.validate_item(data)

        now = datetime.now(timezone.utc)
        payload = {key: value for key, value in data.items() if value is not None}
        payload["id"] = str(uuid4())
        payload["created_at"] = now
        payload["updated_at"] = now
        row = await self.repository.create_job_child(self.child, payload)
        return self.present(row)

    async def update(self, child_id: str, updates: Mapping[str, Any]) -> dict[str, Any]:
        if not updates:
            raise RepositoryValidationError(f"{self.child.name} update requires at least one field")
        await self.validate_update(child_id, updates)
        row = await self.repository.update_job_child(self.child, child_id, updates)
        return self.present(row)

    async def validate_update(self, child_id: str, updates: Mapping[str, Any]) -> None:
        for name in self.required_fields:
            if name in updates and _is_missing(updates[name]):
                raise RepositoryValidationError(f"{self.child.name} {name} cannot be empty")

    async def delete(self, child_id: str) -> None:
        await self.repository.delete_job_child(self.child, child_id)

    async def bulk_replace_by_job(self, job_id: str | None, items: Any) -> list[dict[str, Any]]:
        if _is_missing(job_id):
            raise RepositoryValidationError("job_id is required")
        if not isinstance(items, list):
            raise RepositoryValidationError(f"{self.child.name} items must be an array")
        for index, item in enumerate(items):
            if not isinstance(item, Mapping):
                raise RepositoryValidationError(f"{self.child.name} item {index} must be an object")
            self.validate_item(item, index=index)

        normalized = [self.normalize_item(item) for item in items]
        rows = await self.repository.replace_job_children(self.child, job_id.strip(), normalized)
        return [self.present(row) for row in rows]

    def validate_item(self, item: Mapping[str, Any], *, index: int | None = None) -> None:
        missing = [name for name in self.required_fields if _is_missing(item.get(name))]
        if missing:
            where = f" item {index}" if index is not None else ""
            raise RepositoryValidationError(f"{self.child.name}{where} requires: {', '.join(missing)}")

    def normalize_item(self, item: Mapping[str, Any]) -> dict[str, Any]:
        return {key: item.get(key) for key in self.required_fields}

    def present(self, row: dict[str, Any]) -> dict[str, Any]:
        return row


class JobRequirementService(JobChildService):
    child = JOB_REQUIREMENT
    required_fields = ("requirement_type", "description", "sort_order")


class JobPreScreenQuestionService(JobChildService):
    child = JOB_PRE_SCREEN_QUESTION
    required_fields = ("question", "question_type", "sort_order")

    def validate_item(self, item: Mapping[str, Any], *, index: int | None = None) -> None:
        super().validate_item(item, index=index)
        if item.get("question_type") in CHOICE_QUESTION_TYPES:
            options = item.get("options")
            if not isinstance(options, list) or not options:
                where = f" item {index}" if index is not None else ""
                raise RepositoryValidationError(
                    f"{self.child.name}{where} of type {item['question_type']} requires a non-empty options array"
                )

    async def validate_update(self, child_id: str, updates: Mapping[str, Any]) -> None:
        await super().validate_update(child_id, updates)
        if "question_type" not in updates and "options" not in updates:
            return

        # A partial update is checked against the stored row it will be merged into.
        current = await self.repository.get_job_child(self.child, child_id)
        if current is None:
            raise RepositoryNotFoundError(f"{self.child.name} not found")
        self.validate_item({**current, **updates})

    def normalize_item(self, item: Mapping[str, Any]) -> dict[str, Any]:
        normalized = super().normalize_item(item)
        normalized["options"] = item.get("options")
        normalized["is_required"] = bool(item.get("is_required", False))
        return normalized

    def present(self, row: dict[str, Any]) -> dict[str, Any]:
        # API consumers read question_text; storage keeps question.
        return {**row, "question_text": row.get("question")}


def get_job_requirement_service(repository: PostgresRepository = Depends(get_repository)) -> JobRequirementService:
    return JobRequirementService(repository)


def get_job_pre_screen_question_service(
    repository: PostgresRepository = Depends(get_repository),
) -> JobPreScreenQuestionService:
    return JobPreScreenQuestionService(repository)
