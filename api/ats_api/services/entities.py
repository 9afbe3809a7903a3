"""Entity descriptors for the ATS resources and the scoped list-query builder.

Each descriptor captures what differs between jobs, companies, candidates,
applications and placements: the table, the ownership path used to reach
``identity_organization_id``, the nested objects returned with a row, the
filters a caller may apply and the terminal status used for soft delete.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from ats_api.core.auth import AccessScope

SORT_ORDERS = {"asc", "desc"}


class QueryBuildError(ValueError):
    """Raised when list parameters cannot be turned into a query."""


@dataclass(frozen=True, eq=False)
class EntityDescriptor:
    name: str
    plural: str
    table: str
    alias: str
    columns: tuple[str, ...]
    writable_columns: frozenset[str]
    uuid_columns: frozenset[str]
    default_status: str
    terminal_status: str
    search_columns: tuple[str, ...]
    default_sort_by: str = "created_at"
    default_sort_order: str = "desc"
    sortable_columns: frozenset[str] = frozenset({"created_at", "updated_at"})
    exact_filters: tuple[str, ...] = ("status",)
    partial_filters: tuple[str, ...] = ()
    numeric_columns: frozenset[str] = frozenset()
    list_joins_sql: str = ""
    detail_joins_sql: str = ""
    nested_select_sql: str = ""
    nested_columns: tuple[str, ...] = ()
    org_column: str | None = None
    scope_exists_sql: str | None = None
    create_defaults: Mapping[str, Any] = field(default_factory=dict)

    def column_sql(self, column: str) -> str:
        qualified = f"{self.alias}.{column}"
        if column in self.uuid_columns:
            return f"{qualified}::text as {column}"
        return qualified

    @property
    def base_select_sql(self) -> str:
        return ",\n              ".join(self.column_sql(column) for column in self.columns)

    @property
    def row_select_sql(self) -> str:
        if not self.nested_select_sql:
            return self.base_select_sql
        return f"{self.base_select_sql},\n              {self.nested_select_sql}"

    def scope_predicate(self, token: str) -> str:
        if self.scope_exists_sql:
            return self.scope_exists_sql.format(orgs=token)
        if not self.org_column:
            raise QueryBuildError(f"{self.name} has no ownership path")
        return f"{self.org_column} = any({token}::uuid[])"

    def resolve_sort(self, sort_by: str | None, sort_order: str | None) -> tuple[str, str]:
        column = (sort_by or "").strip() or self.default_sort_by
        if column not in self.sortable_columns:
            raise QueryBuildError(f"invalid sort_by for {self.plural}: {column}")
        direction = (sort_order or "").strip().lower()
        if direction not in SORT_ORDERS:
            direction = self.default_sort_order
        return column, direction


@dataclass(slots=True)
class ListQuery:
    select_sql: str
    select_params: list[Any]
    count_sql: str
    count_params: list[Any]


def build_list_query(
    entity: EntityDescriptor,
    *,
    scope: AccessScope,
    filters: Mapping[str, Any],
    page: int,
    limit: int,
    sort_by: str | None = None,
    sort_order: str | None = None,
) -> ListQuery:
    conditions: list[str] = []
    params: list[Any] = []
    alias = entity.alias

    def bind(value: Any) -> str:
        params.append(value)
        return f"${len(params)}"

    if scope.restricted:
        conditions.append(entity.scope_predicate(bind(list(scope.organization_ids))))

    search = _coerce_text(filters.get("search"))
    if search and entity.search_columns:
        token = bind(f"%{search}%")
        clauses = [f"coalesce({alias}.{column}, '') ilike {token}" for column in entity.search_columns]
        conditions.append(f"({' or '.join(clauses)})")

    for name in entity.exact_filters:
        value = _coerce_text(filters.get(name))
        if value is None:
            continue
        cast = "::uuid" if name in entity.uuid_columns else ""
        conditions.append(f"{alias}.{name} = {bind(value)}{cast}")

    for name in entity.partial_filters:
        value = _coerce_text(filters.get(name))
        if value is None:
            continue
        conditions.append(f"{alias}.{name} ilike {bind(f'%{value}%')}")

    column, direction = entity.resolve_sort(sort_by, sort_order)
    where_sql = " and ".join(conditions) if conditions else "true"
    count_params = list(params)

    limit_token = bind(limit)
    offset_token = bind((page - 1) * limit)

    select_sql = f"""
            select
              {entity.row_select_sql}
            from {entity.table} {alias}
            {entity.list_joins_sql}
            where {where_sql}
            order by {alias}.{column} {direction} nulls last, {alias}.id asc
            limit {limit_token}
            offset {offset_token}
            """
    count_sql = f"""
            select count(*)
            from {entity.table} {alias}
            {entity.list_joins_sql}
            where {where_sql}
            """
    return ListQuery(
        select_sql=select_sql,
        select_params=params,
        count_sql=count_sql,
        count_params=count_params,
    )


def _coerce_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return str(value)


_COMPANY_SUMMARY_SQL = (
    "jsonb_build_object('id', c.id, 'name', c.name, 'identity_organization_id', c.identity_organization_id)"
)
_CANDIDATE_SUMMARY_SQL = """case when cand.id is null then null else jsonb_build_object(
                'id', cand.id,
                'first_name', cand.first_name,
                'last_name', cand.last_name,
                'email', cand.email,
                'phone', cand.phone
              ) end as candidate"""
_JOB_SUMMARY_SQL = """case when j.id is null then null else jsonb_build_object(
                'id', j.id,
                'title', j.title,
                'status', j.status,
                'company', case when c.id is null then null else """ + _COMPANY_SUMMARY_SQL + """ end
              ) end as job"""


COMPANY = EntityDescriptor(
    name="company",
    plural="companies",
    table="ats.companies",
    alias="c",
    columns=(
        "id",
        "name",
        "description",
        "website",
        "status",
        "identity_organization_id",
        "created_at",
        "updated_at",
    ),
    writable_columns=frozenset({"name", "description", "website", "status", "identity_organization_id"}),
    uuid_columns=frozenset({"id", "identity_organization_id"}),
    default_status="active",
    terminal_status="inactive",
    search_columns=("name", "description"),
    default_sort_by="name",
    default_sort_order="asc",
    sortable_columns=frozenset({"name", "status", "created_at", "updated_at"}),
    org_column="c.identity_organization_id",
)

JOB = EntityDescriptor(
    name="job",
    plural="jobs",
    table="ats.jobs",
    alias="j",
    columns=(
        "id",
        "company_id",
        "title",
        "description",
        "requirements",
        "responsibilities",
        "location",
        "employment_type",
        "salary_min",
        "salary_max",
        "salary_currency",
        "status",
        "closed_reason",
        "created_at",
        "updated_at",
    ),
    writable_columns=frozenset(
        {
            "company_id",
            "title",
            "description",
            "requirements",
            "responsibilities",
            "location",
            "employment_type",
            "salary_min",
            "salary_max",
            "salary_currency",
            "status",
            "closed_reason",
        }
    ),
    uuid_columns=frozenset({"id", "company_id"}),
    numeric_columns=frozenset({"salary_min", "salary_max"}),
    default_status="active",
    terminal_status="closed",
    search_columns=("title", "description"),
    sortable_columns=frozenset(
        {"title", "status", "location", "salary_min", "salary_max", "created_at", "updated_at"}
    ),
    exact_filters=("status", "employment_type", "company_id"),
    partial_filters=("location",),
    list_joins_sql="join ats.companies c on c.id = j.company_id",
    detail_joins_sql="left join ats.companies c on c.id = j.company_id",
    nested_select_sql=f"case when c.id is null then null else {_COMPANY_SUMMARY_SQL} end as company",
    nested_columns=("company",),
    org_column="c.identity_organization_id",
)

CANDIDATE = EntityDescriptor(
    name="candidate",
    plural="candidates",
    table="ats.candidates",
    alias="cand",
    columns=(
        "id",
        "first_name",
        "last_name",
        "email",
        "phone",
        "location",
        "status",
        "created_at",
        "updated_at",
    ),
    writable_columns=frozenset({"first_name", "last_name", "email", "phone", "location", "status"}),
    uuid_columns=frozenset({"id"}),
    default_status="active",
    terminal_status="archived",
    search_columns=("first_name", "last_name", "email"),
    sortable_columns=frozenset({"first_name", "last_name", "email", "status", "created_at", "updated_at"}),
    exact_filters=("status",),
    partial_filters=("location",),
    scope_exists_sql="""exists (
                select 1
                from ats.applications sa
                join ats.jobs sj on sj.id = sa.job_id
                join ats.companies sc on sc.id = sj.company_id
                where sa.candidate_id = cand.id
                  and sc.identity_organization_id = any({orgs}::uuid[])
              )""",
)

APPLICATION = EntityDescriptor(
    name="application",
    plural="applications",
    table="ats.applications",
    alias="a",
    columns=(
        "id",
        "candidate_id",
        "job_id",
        "status",
        "stage",
        "notes",
        "created_at",
        "updated_at",
    ),
    writable_columns=frozenset({"candidate_id", "job_id", "status", "stage", "notes"}),
    uuid_columns=frozenset({"id", "candidate_id", "job_id"}),
    default_status="active",
    terminal_status="withdrawn",
    search_columns=("notes",),
    sortable_columns=frozenset({"status", "stage", "created_at", "updated_at"}),
    exact_filters=("status", "stage", "job_id", "candidate_id"),
    list_joins_sql="""join ats.jobs j on j.id = a.job_id
            join ats.companies c on c.id = j.company_id
            left join ats.candidates cand on cand.id = a.candidate_id""",
    detail_joins_sql="""left join ats.jobs j on j.id = a.job_id
            left join ats.companies c on c.id = j.company_id
            left join ats.candidates cand on cand.id = a.candidate_id""",
    nested_select_sql=f"{_CANDIDATE_SUMMARY_SQL},\n              {_JOB_SUMMARY_SQL}",
    nested_columns=("candidate", "job"),
    org_column="c.identity_organization_id",
    create_defaults={"stage": "draft"},
)

PLACEMENT = EntityDescriptor(
    name="placement",
    plural="placements",
    table="ats.placements",
    alias="p",
    columns=(
        "id",
        "candidate_id",
        "job_id",
        "application_id",
        "status",
        "start_date",
        "salary",
        "fee_percentage",
        "notes",
        "created_at",
        "updated_at",
    ),
    writable_columns=frozenset(
        {"candidate_id", "job_id", "application_id", "status", "start_date", "salary", "fee_percentage", "notes"}
    ),
    uuid_columns=frozenset({"id", "candidate_id", "job_id", "application_id"}),
    numeric_columns=frozenset({"salary", "fee_percentage"}),
    default_status="active",
    terminal_status="cancelled",
    search_columns=("notes",),
    sortable_columns=frozenset({"status", "start_date", "salary", "created_at", "updated_at"}),
    exact_filters=("status", "job_id", "candidate_id"),
    list_joins_sql="""join ats.jobs j on j.id = p.job_id
            join ats.companies c on c.id = j.company_id
            left join ats.candidates cand on cand.id = p.candidate_id
            left join ats.applications app on app.id = p.application_id""",
    detail_joins_sql="""left join ats.jobs j on j.id = p.job_id
            left join ats.companies c on c.id = j.company_id
            left join ats.candidates cand on cand.id = p.candidate_id
            left join ats.applications app on app.id = p.application_id""",
    nested_select_sql=(
        f"{_CANDIDATE_SUMMARY_SQL},\n              {_JOB_SUMMARY_SQL},\n              "
        "case when app.id is null then null else jsonb_build_object("
        "'id', app.id, 'stage', app.stage, 'status', app.status) end as application"
    ),
    nested_columns=("candidate", "job", "application"),
    org_column="c.identity_organization_id",
)

ENTITIES: dict[str, EntityDescriptor] = {
    entity.name: entity for entity in (COMPANY, JOB, CANDIDATE, APPLICATION, PLACEMENT)
}


@dataclass(frozen=True, eq=False)
class JobChildDescriptor:
    """A per-job ordered child collection replaced wholesale by a stored procedure."""

    name: str
    table: str
    columns: tuple[str, ...]
    writable_columns: frozenset[str]
    replace_function: str
    json_columns: frozenset[str] = frozenset()
    uuid_columns: frozenset[str] = frozenset({"id", "job_id"})

    @property
    def select_sql(self) -> str:
        parts = []
        for column in self.columns:
            if column in self.uuid_columns:
                parts.append(f"{column}::text as {column}")
            else:
                parts.append(column)
        return ",\n              ".join(parts)


JOB_REQUIREMENT = JobChildDescriptor(
    name="job requirement",
    table="ats.job_requirements",
    columns=("id", "job_id", "requirement_type", "description", "sort_order", "created_at", "updated_at"),
    writable_columns=frozenset({"job_id", "requirement_type", "description", "sort_order"}),
    replace_function="ats.replace_job_requirements",
)

JOB_PRE_SCREEN_QUESTION = JobChildDescriptor(
    name="job pre-screen question",
    table="ats.job_pre_screen_questions",
    columns=(
        "id",
        "job_id",
        "question",
        "question_type",
        "options",
        "is_required",
        "sort_order",
        "created_at",
        "updated_at",
    ),
    writable_columns=frozenset({"job_id", "question", "question_type", "options", "is_required", "sort_order"}),
    replace_function="ats.replace_job_pre_screen_questions",
    json_columns=frozenset({"options"}),
)
