from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Any, Mapping

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from ats_api.core.auth import AccessScope
from ats_api.core.config import get_settings
from ats_api.services.entities import (
    EntityDescriptor,
    JobChildDescriptor,
    QueryBuildError,
    build_list_query,
)
from ats_api.services.events import DomainEvent

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable or not configured."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when the requested entity does not exist."""


class RepositoryConflictError(RepositoryError):
    """Raised when an operation violates state transition rules."""


class RepositoryValidationError(RepositoryError):
    """Raised when payload validation fails before persistence."""


@dataclass(slots=True)
class OutboxEventRecord:
    id: str
    event_type: str
    payload: dict[str, Any]
    attempts: int
    created_at: datetime


class PostgresRepository:
    def __init__(
        self,
        database_url: str | None,
        min_pool_size: int,
        max_pool_size: int,
        command_timeout_seconds: float = 15.0,
        platform_admin_role: str = "platform_admin",
    ) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self.command_timeout_seconds = command_timeout_seconds
        self.platform_admin_role = platform_admin_role
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    # -- access scope -------------------------------------------------------

    async def resolve_access_scope(self, clerk_user_id: str) -> AccessScope:
        pool = await self._get_pool()
        rows = await pool.fetch(
            """
            select
              organization_id::text as organization_id,
              role
            from identity.memberships
            where user_id = $1
            """,
            clerk_user_id,
        )
        if any(row["role"] == self.platform_admin_role for row in rows):
            return AccessScope.all()
        return AccessScope.organizations([row["organization_id"] for row in rows])

    # -- scoped resources ---------------------------------------------------

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
        try:
            query = build_list_query(
                entity,
                scope=scope,
                filters=filters,
                page=page,
                limit=limit,
                sort_by=sort_by,
                sort_order=sort_order,
            )
        except QueryBuildError as exc:
            raise RepositoryValidationError(str(exc)) from exc

        if scope.is_empty:
            return {"data": [], "total": 0}

        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction(readonly=True, isolation="repeatable_read"):
                    rows = await conn.fetch(query.select_sql, *query.select_params)
                    total = await conn.fetchval(query.count_sql, *query.count_params)
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryValidationError(f"invalid {entity.plural} filter value") from exc

        return {
            "data": [self._resource_row_to_dict(entity, row) for row in rows],
            "total": int(total or 0),
        }

    async def get_resource(self, entity: EntityDescriptor, resource_id: str) -> dict[str, Any] | None:
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                select
                  {entity.row_select_sql}
                from {entity.table} {entity.alias}
                {entity.detail_joins_sql}
                where {entity.alias}.id = $1::uuid
                """,
                resource_id,
            )
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError):
            return None
        if not row:
            return None
        return self._resource_row_to_dict(entity, row)

    async def create_resource(
        self,
        entity: EntityDescriptor,
        payload: Mapping[str, Any],
        *,
        event: DomainEvent | None = None,
    ) -> dict[str, Any]:
        allowed = entity.writable_columns | {"id", "created_at", "updated_at"}
        columns = [column for column in payload if column in allowed]
        if not columns:
            raise RepositoryValidationError(f"{entity.name} payload has no writable fields")

        values = [self._prepare_value(entity, column, payload[column]) for column in columns]
        placeholders = [self._placeholder(entity, column, index) for index, column in enumerate(columns, start=1)]
        pool = await self._get_pool()

        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(
                        f"""
                        insert into {entity.table} as {entity.alias} ({", ".join(columns)})
                        values ({", ".join(placeholders)})
                        returning
                          {entity.base_select_sql}
                        """,
                        *values,
                    )
                    if not row:
                        raise RepositoryConflictError(f"failed to create {entity.name}")
                    if event is not None:
                        await self._enqueue_event(conn, event)
        except pg_exc.IntegrityConstraintViolationError as exc:
            raise self._translate_integrity_error(entity.name, exc) from exc
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryValidationError(f"invalid {entity.name} field value") from exc

        return self._resource_row_to_dict(entity, row)

    async def update_resource(
        self,
        entity: EntityDescriptor,
        resource_id: str,
        updates: Mapping[str, Any],
        *,
        event: DomainEvent | None = None,
    ) -> dict[str, Any]:
        if not self._is_uuid(resource_id):
            raise RepositoryNotFoundError(f"{entity.name} not found")
        columns = [column for column in updates if column in entity.writable_columns]
        if not columns:
            raise RepositoryValidationError(f"{entity.name} update has no writable fields")

        params: list[Any] = [resource_id]
        assignments: list[str] = []
        for column in columns:
            params.append(self._prepare_value(entity, column, updates[column]))
            assignments.append(f"{column} = {self._placeholder(entity, column, len(params))}")
        params.append(datetime.now(timezone.utc))
        assignments.append(f"updated_at = ${len(params)}")

        # Rows in their terminal status only change when the update sets status itself.
        guard_sql = ""
        if "status" not in columns:
            params.append(entity.terminal_status)
            guard_sql = f"and {entity.alias}.status is distinct from ${len(params)}"

        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(
                        f"""
                        update {entity.table} as {entity.alias}
                        set {", ".join(assignments)}
                        where {entity.alias}.id = $1::uuid
                          {guard_sql}
                        returning
                          {entity.base_select_sql}
                        """,
                        *params,
                    )
                    if not row:
                        current_status = await conn.fetchval(
                            f"select status from {entity.table} where id = $1::uuid",
                            resource_id,
                        )
                        if current_status is None:
                            raise RepositoryNotFoundError(f"{entity.name} not found")
                        raise RepositoryConflictError(f"{entity.name} is {current_status}")
                    if event is not None:
                        await self._enqueue_event(conn, event)
        except pg_exc.IntegrityConstraintViolationError as exc:
            raise self._translate_integrity_error(entity.name, exc) from exc
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryValidationError(f"invalid {entity.name} field value") from exc

        return self._resource_row_to_dict(entity, row)

    async def soft_delete_resource(
        self,
        entity: EntityDescriptor,
        resource_id: str,
        *,
        event: DomainEvent | None = None,
    ) -> dict[str, Any]:
        if not self._is_uuid(resource_id):
            raise RepositoryNotFoundError(f"{entity.name} not found")
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(
                        f"""
                        update {entity.table} as {entity.alias}
                        set status = $2, updated_at = $3
                        where {entity.alias}.id = $1::uuid
                          and {entity.alias}.status is distinct from $2
                        returning
                          {entity.base_select_sql}
                        """,
                        resource_id,
                        entity.terminal_status,
                        datetime.now(timezone.utc),
                    )
                    if row:
                        if event is not None:
                            await self._enqueue_event(conn, event)
                    else:
                        row = await conn.fetchrow(
                            f"""
                            select
                              {entity.base_select_sql}
                            from {entity.table} {entity.alias}
                            where {entity.alias}.id = $1::uuid
                            """,
                            resource_id,
                        )
                        if not row:
                            raise RepositoryNotFoundError(f"{entity.name} not found")
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryValidationError(f"invalid {entity.name} field value") from exc

        return self._resource_row_to_dict(entity, row)

    # -- job child collections ----------------------------------------------

    async def list_job_children(self, child: JobChildDescriptor, job_id: str) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        try:
            rows = await pool.fetch(
                f"""
                select
                  {child.select_sql}
                from {child.table}
                where job_id = $1::uuid
                order by sort_order asc, created_at asc
                """,
                job_id,
            )
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryValidationError("job_id must be a valid id") from exc
        return [self._child_row_to_dict(child, row) for row in rows]

    async def get_job_child(self, child: JobChildDescriptor, child_id: str) -> dict[str, Any] | None:
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                select
                  {child.select_sql}
                from {child.table}
                where id = $1::uuid
                """,
                child_id,
            )
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError):
            return None
        if not row:
            return None
        return self._child_row_to_dict(child, row)

    async def create_job_child(self, child: JobChildDescriptor, payload: Mapping[str, Any]) -> dict[str, Any]:
        allowed = child.writable_columns | {"id", "created_at", "updated_at"}
        columns = [column for column in payload if column in allowed]
        values = [self._prepare_child_value(child, column, payload[column]) for column in columns]
        placeholders = [
            self._child_placeholder(child, column, index) for index, column in enumerate(columns, start=1)
        ]
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                insert into {child.table} ({", ".join(columns)})
                values ({", ".join(placeholders)})
                returning
                  {child.select_sql}
                """,
                *values,
            )
        except pg_exc.IntegrityConstraintViolationError as exc:
            raise self._translate_integrity_error(child.name, exc) from exc
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryValidationError(f"invalid {child.name} field value") from exc
        if not row:
            raise RepositoryConflictError(f"failed to create {child.name}")
        return self._child_row_to_dict(child, row)

    async def update_job_child(
        self,
        child: JobChildDescriptor,
        child_id: str,
        updates: Mapping[str, Any],
    ) -> dict[str, Any]:
        if not self._is_uuid(child_id):
            raise RepositoryNotFoundError(f"{child.name} not found")
        columns = [column for column in updates if column in child.writable_columns]
        if not columns:
            raise RepositoryValidationError(f"{child.name} update has no writable fields")

        params: list[Any] = [child_id]
        assignments: list[str] = []
        for column in columns:
            params.append(self._prepare_child_value(child, column, updates[column]))
            assignments.append(f"{column} = {self._child_placeholder(child, column, len(params))}")
        params.append(datetime.now(timezone.utc))
        assignments.append(f"updated_at = ${len(params)}")

        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                update {child.table}
                set {", ".join(assignments)}
                where id = $1::uuid
                returning
                  {child.select_sql}
                """,
                *params,
            )
        except pg_exc.IntegrityConstraintViolationError as exc:
            raise self._translate_integrity_error(child.name, exc) from exc
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryValidationError(f"invalid {child.name} field value") from exc
        if not row:
            raise RepositoryNotFoundError(f"{child.name} not found")
        return self._child_row_to_dict(child, row)

    async def delete_job_child(self, child: JobChildDescriptor, child_id: str) -> None:
        if not self._is_uuid(child_id):
            raise RepositoryNotFoundError(f"{child.name} not found")
        pool = await self._get_pool()
        deleted = await pool.fetchval(
            f"delete from {child.table} where id = $1::uuid returning id",
            child_id,
        )
        if deleted is None:
            raise RepositoryNotFoundError(f"{child.name} not found")

    async def replace_job_children(
        self,
        child: JobChildDescriptor,
        job_id: str,
        items: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        try:
            rows = await pool.fetch(
                f"""
                select
                  {child.select_sql}
                from {child.replace_function}($1::uuid, $2::jsonb)
                order by sort_order asc
                """,
                job_id,
                json.dumps(items, default=str),
            )
        except pg_exc.IntegrityConstraintViolationError as exc:
            logger.error("bulk replace rejected table=%s job_id=%s: %s", child.table, job_id, exc)
            raise self._translate_integrity_error(child.name, exc) from exc
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            logger.error("bulk replace rejected table=%s job_id=%s: %s", child.table, job_id, exc)
            raise RepositoryValidationError(f"invalid {child.name} payload") from exc
        except asyncpg.PostgresError:
            logger.exception("bulk replace failed table=%s job_id=%s", child.table, job_id)
            raise
        return [self._child_row_to_dict(child, row) for row in rows]

    # -- outbox -------------------------------------------------------------

    async def claim_outbox_events(self, *, limit: int, lease_seconds: int) -> list[OutboxEventRecord]:
        pool = await self._get_pool()
        bounded_limit = max(1, min(limit, 1000))
        async with pool.acquire() as conn:
            async with conn.transaction():
                rows = await conn.fetch(
                    """
                    with due as (
                      select id
                      from ats.outbox_events
                      where status = 'pending'
                        and next_attempt_at <= now()
                        and (locked_until is null or locked_until <= now())
                      order by created_at asc
                      limit $1
                      for update skip locked
                    )
                    update ats.outbox_events o
                    set
                      locked_until = now() + ($2::int * interval '1 second'),
                      attempts = o.attempts + 1
                    from due
                    where o.id = due.id
                    returning
                      o.id::text as id,
                      o.event_type,
                      o.payload,
                      o.attempts,
                      o.created_at
                    """,
                    bounded_limit,
                    lease_seconds,
                )
        records = [
            OutboxEventRecord(
                id=row["id"],
                event_type=row["event_type"],
                payload=self._coerce_json_dict(row["payload"]),
                attempts=int(row["attempts"]),
                created_at=row["created_at"],
            )
            for row in rows
        ]
        records.sort(key=lambda record: record.created_at)
        return records

    async def mark_outbox_event_published(self, event_id: str) -> None:
        pool = await self._get_pool()
        await pool.execute(
            """
            update ats.outbox_events
            set
              status = 'published',
              published_at = now(),
              locked_until = null,
              last_error = null
            where id = $1::uuid
            """,
            event_id,
        )

    async def mark_outbox_event_failed(
        self,
        event_id: str,
        *,
        error: str,
        retry_delay_seconds: int,
        dead_letter: bool,
    ) -> None:
        pool = await self._get_pool()
        await pool.execute(
            """
            update ats.outbox_events
            set
              status = case when $4 then 'dead_letter' else 'pending' end,
              last_error = $2,
              next_attempt_at = now() + ($3::int * interval '1 second'),
              locked_until = null
            where id = $1::uuid
            """,
            event_id,
            error[:2000],
            max(0, retry_delay_seconds),
            dead_letter,
        )

    async def _enqueue_event(self, conn: asyncpg.Connection, event: DomainEvent) -> None:
        await conn.execute(
            """
            insert into ats.outbox_events (id, event_type, payload, created_at, next_attempt_at)
            values ($1::uuid, $2, $3::jsonb, $4, $4)
            """,
            event.id,
            event.event_type,
            json.dumps(event.payload, default=str),
            event.occurred_at,
        )

    # -- helpers ------------------------------------------------------------

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise RepositoryUnavailableError("ATS_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=self.command_timeout_seconds,
            )
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            raise RepositoryUnavailableError("database unavailable") from exc

    @staticmethod
    def _is_uuid(value: Any) -> bool:
        try:
            uuid.UUID(str(value))
        except ValueError:
            return False
        return True

    @staticmethod
    def _placeholder(entity: EntityDescriptor, column: str, index: int) -> str:
        if column in entity.uuid_columns:
            return f"${index}::uuid"
        return f"${index}"

    @staticmethod
    def _child_placeholder(child: JobChildDescriptor, column: str, index: int) -> str:
        if column in child.uuid_columns:
            return f"${index}::uuid"
        if column in child.json_columns:
            return f"${index}::jsonb"
        return f"${index}"

    @classmethod
    def _prepare_value(cls, entity: EntityDescriptor, column: str, value: Any) -> Any:
        if column in entity.numeric_columns:
            return cls._coerce_decimal(value)
        return value

    @staticmethod
    def _prepare_child_value(child: JobChildDescriptor, column: str, value: Any) -> Any:
        if column in child.json_columns:
            return None if value is None else json.dumps(value)
        return value

    @classmethod
    def _resource_row_to_dict(cls, entity: EntityDescriptor, row: asyncpg.Record) -> dict[str, Any]:
        data = dict(row)
        for column in entity.nested_columns:
            if column in data:
                data[column] = cls._decode_json_object(data[column])
        return data

    @classmethod
    def _child_row_to_dict(cls, child: JobChildDescriptor, row: asyncpg.Record) -> dict[str, Any]:
        data = dict(row)
        for column in child.json_columns:
            if column in data:
                data[column] = cls._decode_json_value(data[column])
        return data

    @staticmethod
    def _translate_integrity_error(name: str, exc: pg_exc.IntegrityConstraintViolationError) -> RepositoryError:
        constraint = getattr(exc, "constraint_name", None) or "constraint"
        if isinstance(exc, pg_exc.UniqueViolationError):
            return RepositoryConflictError(f"{name} violates {constraint}")
        if isinstance(exc, pg_exc.ForeignKeyViolationError):
            return RepositoryValidationError(f"{name} references a missing record ({constraint})")
        return RepositoryValidationError(f"{name} violates {constraint}")

    @staticmethod
    def _coerce_decimal(value: Any) -> Decimal | None:
        if value is None:
            return None
        if isinstance(value, Decimal):
            return value
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise RepositoryValidationError(f"invalid numeric value: {value!r}") from exc

    @staticmethod
    def _decode_json_value(value: Any) -> Any:
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return None
        return value

    @classmethod
    def _decode_json_object(cls, value: Any) -> dict[str, Any] | None:
        decoded = cls._decode_json_value(value)
        if isinstance(decoded, dict):
            return decoded
        return None

    @classmethod
    def _coerce_json_dict(cls, value: Any) -> dict[str, Any]:
        return cls._decode_json_object(value) or {}


@lru_cache
def get_repository() -> PostgresRepository:
    settings = get_settings()
    return PostgresRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
        command_timeout_seconds=settings.database_command_timeout_seconds,
        platform_admin_role=settings.platform_admin_role,
    )
