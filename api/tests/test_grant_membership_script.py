from __future__ import annotations

import subprocess
import sys
from pathlib import Path


SCRIPT_PATH = Path(__file__).resolve().parents[2] / "scripts" / "grant_membership.py"


def _run_script(*args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, str(SCRIPT_PATH), *args],
        check=check,
        capture_output=True,
        text=True,
    )


def test_grant_script_emits_upsert_sql() -> None:
    org_id = "00000000-0000-0000-0000-000000000abc"
    output = _run_script("--user-id", "user_2abc", "--organization-id", org_id, "--role", "platform_admin").stdout

    assert "insert into identity.memberships (user_id, organization_id, role)" in output
    assert f"values ('user_2abc', '{org_id}'::uuid, 'platform_admin')" in output
    assert "on conflict (user_id, organization_id) do update" in output


def test_grant_script_escapes_quotes_and_defaults_role() -> None:
    output = _run_script(
        "--user-id",
        "o'brien",
        "--organization-id",
        "00000000-0000-0000-0000-000000000001",
    ).stdout

    assert "'o''brien'" in output
    assert "'member')" in output


def test_grant_script_rejects_invalid_organization_id() -> None:
    completed = _run_script("--user-id", "u1", "--organization-id", "not-a-uuid", check=False)

    assert completed.returncode != 0
    assert "invalid organization id" in completed.stderr
