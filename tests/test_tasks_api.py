from __future__ import annotations

import asyncio

import pytest
from bson import ObjectId
from fastapi import status
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _create_task(client: AsyncClient, user, **payload) -> dict:
    body = {"title": "Draft", **payload}
    response = await client.post("/api/tasks", json=body, headers=user.headers)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


async def _share(client: AsyncClient, owner, task_id: str, *members) -> dict:
    response = await client.put(
        f"/api/tasks/{task_id}/share",
        json={"user_ids": [member.id for member in members]},
        headers=owner.headers,
    )
    assert response.status_code == status.HTTP_200_OK, response.text
    return response.json()


async def test_tasks_require_authentication(client: AsyncClient) -> None:
    response = await client.get("/api/tasks")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["message"] == "Not authorized, no token"


async def test_create_task_applies_defaults(client: AsyncClient, authenticated_user) -> None:
    owner = await authenticated_user()

    task = await _create_task(client, owner, title="  Write report  ", description="Quarterly numbers")

    assert task["title"] == "Write report"
    assert task["description"] == "Quarterly numbers"
    assert task["status"] == "Pending"
    assert task["owner_id"] == owner.id
    assert task["shared_with"] == []
    assert task["attachments"] == []
    assert task["due_date"] is None
    assert task["created_at"]
    assert task["updated_at"]


async def test_create_task_keeps_attachment_metadata(client: AsyncClient, authenticated_user) -> None:
    owner = await authenticated_user()
    attachment = {
        "filename": "1716550000-report.pdf",
        "original_name": "report.pdf",
        "mimetype": "application/pdf",
        "size": 2048,
        "url": "/uploads/1716550000-report.pdf",
    }

    task = await _create_task(client, owner, attachments=[attachment], due_date="2030-01-15T09:00:00Z")

    assert task["attachments"] == [attachment]
    assert task["due_date"].startswith("2030-01-15T09:00:00")


@pytest.mark.parametrize(
    "payload",
    [
        {"title": ""},
        {"title": "   "},
        {"description": "No title"},
        {"title": "Bad status", "status": "Done"},
    ],
)
async def test_create_task_rejects_invalid_payloads(client: AsyncClient, authenticated_user, payload: dict) -> None:
    owner = await authenticated_user()

    response = await client.post("/api/tasks", json=payload, headers=owner.headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "validation_error"


async def test_list_tasks_returns_owned_and_shared_in_insertion_order(
    client: AsyncClient, authenticated_user
) -> None:
    alice = await authenticated_user()
    bob = await authenticated_user()
    first = await _create_task(client, alice, title="First")
    bobs = await _create_task(client, bob, title="Bob's")
    second = await _create_task(client, alice, title="Second")
    await _share(client, bob, bobs["id"], alice)

    response = await client.get("/api/tasks", headers=alice.headers)

    assert response.status_code == status.HTTP_200_OK
    assert [task["id"] for task in response.json()] == [first["id"], bobs["id"], second["id"]]


async def test_list_tasks_hides_unrelated_tasks(client: AsyncClient, authenticated_user) -> None:
    alice = await authenticated_user()
    bob = await authenticated_user()
    await _create_task(client, alice, title="Private")

    response = await client.get("/api/tasks", headers=bob.headers)

    assert response.json() == []


async def test_shared_endpoint_lists_only_tasks_shared_with_caller(
    client: AsyncClient, authenticated_user
) -> None:
    alice = await authenticated_user()
    bob = await authenticated_user()
    shared = await _create_task(client, alice, title="Shared")
    await _create_task(client, alice, title="Not shared")
    await _create_task(client, bob, title="Bob's own")
    await _share(client, alice, shared["id"], bob)

    response = await client.get("/api/tasks/shared", headers=bob.headers)

    assert [task["title"] for task in response.json()] == ["Shared"]


async def test_get_task_hides_existence_from_strangers(client: AsyncClient, authenticated_user) -> None:
    alice = await authenticated_user()
    mallory = await authenticated_user()
    task = await _create_task(client, alice)

    hidden = await client.get(f"/api/tasks/{task['id']}", headers=mallory.headers)
    missing = await client.get(f"/api/tasks/{ObjectId()}", headers=alice.headers)
    malformed = await client.get("/api/tasks/not-an-id", headers=alice.headers)

    for response in (hidden, missing, malformed):
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["message"] == "Task not found"


async def test_owner_can_update_task_fields(client: AsyncClient, authenticated_user) -> None:
    owner = await authenticated_user()
    task = await _create_task(client, owner, description="Old")

    response = await client.put(
        f"/api/tasks/{task['id']}",
        json={"title": "Final", "description": "New", "status": "In Progress"},
        headers=owner.headers,
    )

    assert response.status_code == status.HTTP_200_OK
    updated = response.json()
    assert updated["title"] == "Final"
    assert updated["description"] == "New"
    assert updated["status"] == "In Progress"


async def test_update_skips_falsy_values(client: AsyncClient, authenticated_user) -> None:
    owner = await authenticated_user()
    task = await _create_task(client, owner, title="Keep me", description="Keep this too")

    response = await client.put(
        f"/api/tasks/{task['id']}",
        json={"title": "", "description": ""},
        headers=owner.headers,
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["title"] == "Keep me"
    assert response.json()["description"] == "Keep this too"


@pytest.mark.parametrize("payload", [{}, {"title": None}, {"title": None, "status": None}])
async def test_update_without_values_leaves_task_unchanged(
    client: AsyncClient, authenticated_user, payload: dict
) -> None:
    owner = await authenticated_user()
    task = await _create_task(client, owner, title="Keep me")
    before = await client.get(f"/api/tasks/{task['id']}", headers=owner.headers)

    response = await client.put(f"/api/tasks/{task['id']}", json=payload, headers=owner.headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == before.json()


async def test_update_cannot_reassign_owner(client: AsyncClient, authenticated_user) -> None:
    owner = await authenticated_user()
    other = await authenticated_user()
    task = await _create_task(client, owner)

    response = await client.put(
        f"/api/tasks/{task['id']}",
        json={"title": "Renamed", "owner_id": other.id, "shared_with": [other.id]},
        headers=owner.headers,
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["owner_id"] == owner.id
    assert response.json()["shared_with"] == []


async def test_shared_member_can_update_but_stranger_cannot(client: AsyncClient, authenticated_user) -> None:
    owner = await authenticated_user()
    member = await authenticated_user()
    stranger = await authenticated_user()
    task = await _create_task(client, owner)
    await _share(client, owner, task["id"], member)

    by_member = await client.put(f"/api/tasks/{task['id']}", json={"title": "Edited"}, headers=member.headers)
    by_stranger = await client.put(f"/api/tasks/{task['id']}", json={"title": "Hijack"}, headers=stranger.headers)

    assert by_member.status_code == status.HTTP_200_OK
    assert by_member.json()["title"] == "Edited"
    assert by_member.json()["owner_id"] == owner.id
    assert by_stranger.status_code == status.HTTP_404_NOT_FOUND


async def test_concurrent_status_updates_are_last_writer_wins(client: AsyncClient, authenticated_user) -> None:
    owner = await authenticated_user()
    member = await authenticated_user()
    task = await _create_task(client, owner)
    await _share(client, owner, task["id"], member)

    first, second = await asyncio.gather(
        client.put(f"/api/tasks/{task['id']}", json={"status": "In Progress"}, headers=owner.headers),
        client.put(f"/api/tasks/{task['id']}", json={"status": "Completed"}, headers=owner.headers),
    )
    stored = await client.get(f"/api/tasks/{task['id']}", headers=owner.headers)
    inbox = await client.get("/api/notifications", headers=member.headers)

    assert first.status_code == second.status_code == status.HTTP_200_OK
    assert stored.json()["status"] in {"In Progress", "Completed"}
    # The second write's pre-image holds the first write's status, so both notify.
    assert sorted(item["type"] for item in inbox.json()) == ["task_completed", "task_shared", "task_updated"]


async def test_only_owner_can_delete(client: AsyncClient, authenticated_user) -> None:
    owner = await authenticated_user()
    member = await authenticated_user()
    task = await _create_task(client, owner)
    await _share(client, owner, task["id"], member)

    by_member = await client.delete(f"/api/tasks/{task['id']}", headers=member.headers)
    still_there = await client.get(f"/api/tasks/{task['id']}", headers=owner.headers)
    by_owner = await client.delete(f"/api/tasks/{task['id']}", headers=owner.headers)
    gone = await client.get(f"/api/tasks/{task['id']}", headers=owner.headers)

    assert by_member.status_code == status.HTTP_404_NOT_FOUND
    assert still_there.status_code == status.HTTP_200_OK
    assert by_owner.status_code == status.HTTP_200_OK
    assert by_owner.json() == {"message": "Task removed"}
    assert gone.status_code == status.HTTP_404_NOT_FOUND


async def test_deleting_task_keeps_notifications(client: AsyncClient, authenticated_user) -> None:
    owner = await authenticated_user()
    member = await authenticated_user()
    task = await _create_task(client, owner, title="Ephemeral")
    await _share(client, owner, task["id"], member)

    await client.delete(f"/api/tasks/{task['id']}", headers=owner.headers)
    inbox = await client.get("/api/notifications", headers=member.headers)

    assert inbox.status_code == status.HTTP_200_OK
    [entry] = inbox.json()
    assert entry["task"] == {"id": task["id"], "title": "Deleted task", "exists": False}
    assert entry["message"] == f'{owner.name} shared the task "Ephemeral" with you'
