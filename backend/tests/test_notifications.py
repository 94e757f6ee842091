"""Tests for the notification inbox and admin broadcast endpoints."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from hrms.models.enums import Role

if TYPE_CHECKING:
    from collections.abc import Callable

    from httpx import AsyncClient

BASE_URL = "/api/notifications"

EMPLOYEE_ID = uuid.UUID("00000000-0000-0000-0000-000000000501")
OTHER_ID = uuid.UUID("00000000-0000-0000-0000-000000000502")


async def _send(
    client: AsyncClient,
    headers: dict[str, str],
    user_id: uuid.UUID,
    title: str = "Welcome",
    **extra: Any,
) -> dict[str, Any]:
    resp = await client.post(
        BASE_URL,
        json={"user_id": str(user_id), "title": title, "message": f"{title} message", **extra},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def test_send_notification(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    resp = await async_client.post(
        BASE_URL,
        json={"user_id": str(EMPLOYEE_ID), "title": "Payslip", "message": "Ready", "type": "PAYROLL_GENERATED"},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    assert resp.json()["message"] == "Notification sent successfully"
    data = resp.json()["data"]
    assert data["type"] == "PAYROLL_GENERATED"
    assert data["is_read"] is False


async def test_send_defaults_to_general(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    data = await _send(async_client, admin_headers, EMPLOYEE_ID)
    assert data["type"] == "GENERAL"


async def test_send_requires_admin(
    async_client: AsyncClient,
    make_headers: Callable[..., dict[str, str]],
) -> None:
    resp = await async_client.post(
        BASE_URL,
        json={"user_id": str(OTHER_ID), "title": "Hi", "message": "Hello"},
        headers=make_headers(Role.EMPLOYEE, EMPLOYEE_ID),
    )
    assert resp.status_code == 403


async def test_bulk_send_deduplicates_recipients(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    payload = {
        "user_ids": [str(EMPLOYEE_ID), str(OTHER_ID), str(EMPLOYEE_ID)],
        "title": "Town hall",
        "message": "Friday at 4pm",
    }
    resp = await async_client.post(f"{BASE_URL}/bulk", json=payload, headers=admin_headers)
    assert resp.status_code == 201
    assert resp.json()["message"] == "2 notifications sent successfully"
    assert [n["user_id"] for n in resp.json()["data"]] == [str(EMPLOYEE_ID), str(OTHER_ID)]


async def test_bulk_send_rejects_empty_recipients(async_client: AsyncClient, admin_headers: dict[str, str]) -> None:
    resp = await async_client.post(
        f"{BASE_URL}/bulk",
        json={"user_ids": [], "title": "Town hall", "message": "Friday"},
        headers=admin_headers,
    )
    assert resp.status_code == 400


async def test_inbox_and_unread_count(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    make_headers: Callable[..., dict[str, str]],
) -> None:
    await _send(async_client, admin_headers, EMPLOYEE_ID, "First")
    await _send(async_client, admin_headers, EMPLOYEE_ID, "Second")
    await _send(async_client, admin_headers, OTHER_ID, "Not mine")
    headers = make_headers(Role.EMPLOYEE, EMPLOYEE_ID)

    inbox = await async_client.get(f"{BASE_URL}/my-notifications", headers=headers)
    assert inbox.status_code == 200
    data = inbox.json()["data"]
    assert data["total"] == 2
    assert data["unread_count"] == 2
    assert {n["title"] for n in data["items"]} == {"First", "Second"}

    limited = await async_client.get(f"{BASE_URL}/my-notifications", params={"limit": 1}, headers=headers)
    assert len(limited.json()["data"]["items"]) == 1
    assert limited.json()["data"]["total"] == 2

    count = await async_client.get(f"{BASE_URL}/unread-count", headers=headers)
    assert count.json()["data"]["unread_count"] == 2


async def test_user_without_profile_uses_user_id(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    make_headers: Callable[..., dict[str, str]],
) -> None:
    user_id = uuid.uuid4()
    await _send(async_client, admin_headers, user_id)

    resp = await async_client.get(f"{BASE_URL}/unread-count", headers=make_headers(Role.HR, user_id=user_id))
    assert resp.json()["data"]["unread_count"] == 1


async def test_mark_as_read(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    make_headers: Callable[..., dict[str, str]],
) -> None:
    first = await _send(async_client, admin_headers, EMPLOYEE_ID, "First")
    await _send(async_client, admin_headers, EMPLOYEE_ID, "Second")
    headers = make_headers(Role.EMPLOYEE, EMPLOYEE_ID)

    resp = await async_client.put(f"{BASE_URL}/{first['id']}/read", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["is_read"] is True

    unread = await async_client.get(f"{BASE_URL}/my-notifications", params={"unread_only": True}, headers=headers)
    assert [n["title"] for n in unread.json()["data"]["items"]] == ["Second"]


async def test_mark_other_users_notification_returns_404(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    make_headers: Callable[..., dict[str, str]],
) -> None:
    theirs = await _send(async_client, admin_headers, OTHER_ID)
    resp = await async_client.put(f"{BASE_URL}/{theirs['id']}/read", headers=make_headers(Role.EMPLOYEE, EMPLOYEE_ID))
    assert resp.status_code == 404


async def test_mark_all_as_read(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    make_headers: Callable[..., dict[str, str]],
) -> None:
    await _send(async_client, admin_headers, EMPLOYEE_ID, "First")
    await _send(async_client, admin_headers, EMPLOYEE_ID, "Second")
    await _send(async_client, admin_headers, OTHER_ID, "Not mine")
    headers = make_headers(Role.EMPLOYEE, EMPLOYEE_ID)

    resp = await async_client.put(f"{BASE_URL}/mark-all-read", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["updated_count"] == 2

    again = await async_client.put(f"{BASE_URL}/mark-all-read", headers=headers)
    assert again.json()["data"]["updated_count"] == 0

    other = await async_client.get(f"{BASE_URL}/unread-count", headers=make_headers(Role.EMPLOYEE, OTHER_ID))
    assert other.json()["data"]["unread_count"] == 1


async def test_delete_notification(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    make_headers: Callable[..., dict[str, str]],
) -> None:
    mine = await _send(async_client, admin_headers, EMPLOYEE_ID)
    theirs = await _send(async_client, admin_headers, OTHER_ID)
    headers = make_headers(Role.EMPLOYEE, EMPLOYEE_ID)

    denied = await async_client.delete(f"{BASE_URL}/{theirs['id']}", headers=headers)
    assert denied.status_code == 404
    assert denied.json()["message"] == "Notification not found"

    deleted = await async_client.delete(f"{BASE_URL}/{mine['id']}", headers=headers)
    assert deleted.status_code == 200

    inbox = await async_client.get(f"{BASE_URL}/my-notifications", headers=headers)
    assert inbox.json()["data"]["total"] == 0
