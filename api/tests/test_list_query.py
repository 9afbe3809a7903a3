import pytest

from ats_api.core.auth import AccessScope
from ats_api.services.entities import CANDIDATE, COMPANY, JOB, QueryBuildError, build_list_query


def test_company_list_defaults_to_name_ascending() -> None:
    query = build_list_query(COMPANY, scope=AccessScope.all(), filters={}, page=1, limit=25)

    assert "order by c.name asc nulls last, c.id asc" in query.select_sql
    assert "where true" in query.select_sql
    assert query.select_params == [25, 0]
    assert query.count_params == []


def test_job_list_applies_scope_search_and_filters() -> None:
    scope = AccessScope.organizations(["org-1", "org-2", "org-1"])
    query = build_list_query(
        JOB,
        scope=scope,
        filters={"search": " engineer ", "status": "active", "company_id": "c-1", "location": "Berlin"},
        page=3,
        limit=10,
        sort_by="title",
        sort_order="ASC",
    )

    assert "c.identity_organization_id = any($1::uuid[])" in query.select_sql
    assert "coalesce(j.title, '') ilike $2 or coalesce(j.description, '') ilike $2" in query.select_sql
    assert "j.status = $3" in query.select_sql
    assert "j.company_id = $4::uuid" in query.select_sql
    assert "j.location ilike $5" in query.select_sql
    assert "order by j.title asc" in query.select_sql
    assert query.count_params == [["org-1", "org-2"], "%engineer%", "active", "c-1", "%Berlin%"]
    assert query.select_params[-2:] == [10, 20]
    assert "limit" not in query.count_sql


def test_candidate_scope_is_filtered_in_the_database() -> None:
    query = build_list_query(
        CANDIDATE,
        scope=AccessScope.organizations(["org-1"]),
        filters={},
        page=1,
        limit=25,
    )

    assert "exists (" in query.select_sql
    assert "sc.identity_organization_id = any($1::uuid[])" in query.count_sql
    assert "order by cand.created_at desc" in query.select_sql


def test_invalid_sort_order_falls_back_to_entity_default() -> None:
    query = build_list_query(JOB, scope=AccessScope.all(), filters={}, page=1, limit=25, sort_order="sideways")
    assert "order by j.created_at desc" in query.select_sql


def test_unknown_sort_column_is_rejected() -> None:
    with pytest.raises(QueryBuildError):
        build_list_query(JOB, scope=AccessScope.all(), filters={}, page=1, limit=25, sort_by="salary; drop table")
