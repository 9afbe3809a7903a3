#!/usr/bin/env python3
"""Emit idempotent SQL granting a user access to an organization's ATS data."""

from __future__ import annotations

import argparse
import uuid


def _quote_sql(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def render_sql(*, user_id: str, organization_id: str, role: str) -> str:
    user_value = _quote_sql(user_id)
    organization_value = _quote_sql(organization_id)
    role_value = _quote_sql(role)

    return f"""-- ATS organization membership grant
-- Run this in a privileged Postgres session against the ATS database.

insert into identity.memberships (user_id, organization_id, role)
values ({user_value}, {organization_value}::uuid, {role_value})
on conflict (user_id, organization_id) do update
set role = excluded.role;
"""


def _organization_id(value: str) -> str:
    try:
        return str(uuid.UUID(value))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid organization id: {value}") from exc


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit SQL to grant an ATS organization membership.")
    parser.add_argument("--user-id", required=True, help="Caller id as sent in the x-clerk-user-id header")
    parser.add_argument(
        "--organization-id",
        required=True,
        type=_organization_id,
        help="identity organization id (UUID)",
    )
    parser.add_argument(
        "--role",
        default="member",
        help="Membership role; platform_admin grants visibility across all organizations",
    )
    args = parser.parse_args()

    print(
        render_sql(
            user_id=args.user_id,
            organization_id=args.organization_id,
            role=args.role,
        )
    )


if __name__ == "__main__":
    main()
