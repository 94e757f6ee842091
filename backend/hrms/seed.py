"""Seed script for development data.

Run with:  python -m hrms.seed

The employee directory is in-memory, so re-run this after every API restart.
"""

from __future__ import annotations

import asyncio
import sys
import uuid
from datetime import date

import httpx

from hrms.models.enums import Role
from hrms.security import create_access_token

BASE_URL = "http://localhost:8000"
ADMIN_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")

# Well-known employee UUIDs
ASHA_ID = "00000000-0000-0000-0000-000000000002"
RAVI_ID = "00000000-0000-0000-0000-000000000003"
MEERA_ID = "00000000-0000-0000-0000-000000000004"
KARAN_ID = "00000000-0000-0000-0000-000000000005"

EMPLOYEES = [
    {
        "id": ASHA_ID,
        "employee_code": "EMP001",
        "full_name": "Asha Rao",
        "email": "asha.rao@example.com",
        "department": "Engineering",
        "designation": "Engineering Manager",
        "joining_date": "2021-04-01",
    },
    {
        "id": RAVI_ID,
        "employee_code": "EMP002",
        "full_name": "Ravi Kumar",
        "email": "ravi.kumar@example.com",
        "department": "Engineering",
        "designation": "Senior Engineer",
        "joining_date": "2022-07-11",
    },
    {
        "id": MEERA_ID,
        "employee_code": "EMP003",
        "full_name": "Meera Iyer",
        "email": "meera.iyer@example.com",
        "department": "Engineering",
        "designation": "Engineer",
        "joining_date": "2024-01-15",
    },
    {
        "id": KARAN_ID,
        "employee_code": "EMP004",
        "full_name": "Karan Shah",
        "email": "karan.shah@example.com",
        "department": "People Operations",
        "designation": "HR Generalist",
        "joining_date": "2023-09-04",
    },
]

DEPARTMENTS = [
    {"name": "Engineering", "description": "Product engineering", "head_id": ASHA_ID},
    {"name": "People Operations", "description": "HR and people programs", "head_id": KARAN_ID},
]

POLICIES = [
    {
        "leave_type": "ANNUAL",
        "annual_limit": 18,
        "carry_forward_allowed": True,
        "carry_forward_limit": 5,
        "min_notice_days": 7,
        "max_consecutive_days": 15,
    },
    {"leave_type": "SICK", "annual_limit": 10, "min_notice_days": 0},
    {"leave_type": "CASUAL", "annual_limit": 8, "min_notice_days": 1, "max_consecutive_days": 3},
    {"leave_type": "MATERNITY", "annual_limit": 182, "min_notice_days": 30, "approval_level": "HR"},
    {"leave_type": "PATERNITY", "annual_limit": 15, "min_notice_days": 14, "approval_level": "HR"},
]

# (employee, manager)
REPORTING_LINES = [
    (RAVI_ID, ASHA_ID),
    (MEERA_ID, RAVI_ID),
]

HEADERS = {
    "Content-Type": "application/json",
    "Authorization": f"Bearer {create_access_token(ADMIN_USER_ID, Role.ADMIN.value)}",
}


async def _safe_post(client: httpx.AsyncClient, url: str, json: dict | None, label: str) -> dict | None:
    """POST with 409-conflict tolerance for idempotency."""
    resp = await client.post(url, json=json, headers=HEADERS)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json().get("data")
    if resp.status_code == 409:
        print(f"  [SKIP] {label} (already exists)")
        return None
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def _safe_put(client: httpx.AsyncClient, url: str, json: dict, label: str) -> dict | None:
    """PUT (upsert), naturally idempotent."""
    resp = await client.put(url, json=json, headers=HEADERS)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json().get("data")
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def seed_employees(client: httpx.AsyncClient) -> None:
    """Seed the in-memory employee directory via PUT (upsert)."""
    print("\n--- Seeding employees ---")
    for employee in EMPLOYEES:
        body = {k: v for k, v in employee.items() if k != "id"}
        await _safe_put(client, f"{BASE_URL}/api/employees/{employee['id']}", body, employee["full_name"])


async def seed_departments(client: httpx.AsyncClient) -> None:
    print("\n--- Seeding departments ---")
    for department in DEPARTMENTS:
        await _safe_post(client, f"{BASE_URL}/api/organization/departments", department, department["name"])


async def seed_policies(client: httpx.AsyncClient) -> None:
    print("\n--- Seeding leave policies ---")
    for policy in POLICIES:
        await _safe_post(client, f"{BASE_URL}/api/policies/leave-policies", policy, policy["leave_type"])


async def seed_reporting_lines(client: httpx.AsyncClient) -> None:
    """Assign managers. Re-assigning the same manager just restarts the edge."""
    print("\n--- Seeding reporting lines ---")
    for employee_id, manager_id in REPORTING_LINES:
        await _safe_post(
            client,
            f"{BASE_URL}/api/organization/assign-manager",
            {"employee_id": employee_id, "manager_id": manager_id},
            f"{employee_id[-4:]} reports to {manager_id[-4:]}",
        )


async def seed_holidays_and_settings(client: httpx.AsyncClient) -> None:
    print("\n--- Seeding holidays and settings ---")
    year = date.today().year
    await _safe_post(
        client,
        f"{BASE_URL}/api/policies/holidays/create-defaults?year={year}",
        None,
        f"Default holidays {year}",
    )
    await _safe_post(client, f"{BASE_URL}/api/settings/initialize-defaults", None, "Default settings")


async def seed_balances(client: httpx.AsyncClient) -> None:
    print("\n--- Initializing leave balances ---")
    for employee in EMPLOYEES:
        await _safe_post(
            client,
            f"{BASE_URL}/api/policies/employee/{employee['id']}/initialize-balances",
            None,
            f"Balances for {employee['full_name']}",
        )


async def main() -> None:
    print("=" * 60)
    print("  Dayflow HRMS: Development Seed Script")
    print("=" * 60)

    async with httpx.AsyncClient(timeout=30.0) as client:
        # Health check
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            print("Start it with: uvicorn hrms.main:app --reload")
            sys.exit(1)

        await seed_employees(client)
        await seed_departments(client)
        await seed_policies(client)
        await seed_reporting_lines(client)
        await seed_holidays_and_settings(client)
        await seed_balances(client)

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
