from __future__ import annotations

import asyncio

import pytest
from bson import ObjectId
from fastapi import status
from httpx import AsyncClient
from pymongo.errors import PyMongoError

pytestmark = pytest.mark.asyncio


async def _create_task(client: AsyncClient, user, title: str = "Draft") -> dict:
    response = await client.post("/api/tasks", json={"title": title}, headers=user.headers)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


async def _share(client: AsyncClient, owner, task_id: str, user_ids: list[str]):
    return await client.put(f"/api/tasks/{task_id}/share", json={"user_ids": user_ids}, headers=owner.headers)


async def _inbox(client: AsyncClient, user) -> list[dict]:
    response = await client.get("/api/notifications", headers=user.headers)
    assert response.status_code == status.HTTP_200_OK
    return response.json()


async def test_shared_task_is_visible_to_both_users(client: AsyncClient, authenticated_user) -> None:
    alice = await authenticated_user(name="Alice")
    bob = await authenticated_user(name="Bob")
    task = await _create_task(client, alice)

    shared = await _share(client, alice, task["id"], [bob.id])
    alice_view = await client.get(f"/api/tasks/{task['id']}", headers=alice.headers)
    bob_view = await client.get(f"/api/tasks/{task['id']}", headers=bob.headers)

    assert shared.status_code == status.HTTP_200_OK
    assert shared.json()["shared_with"] == [bob.id]
    assert alice_view.json()["shared_with"] == [bob.id]
    assert bob_view.json()["shared_with"] == [bob.id]
    assert bob_view.json()["owner_id"] == alice.id

    [notification] = await _inbox(client, bob)
    assert notification["type"] == "task_shared"
    assert notification["message"] == 'Alice shared the task "Draft" with you'
    assert notification["read"] is False
    assert notification["sender"]["id"] == alice.id
    assert notification["sender"]["name"] == "Alice"
    assert notification["task"] == {"id": task["id"], "title": "Draft", "exists": True}
    assert await _inbox(client, alice) == []


async def test_share_deduplicates_requested_users(client: AsyncClient, authenticated_user) -> None:
    alice = await authenticated_user()
    bob = await authenticated_user()
    carol = await authenticated_user()
    task = await _create_task(client, alice)
    await _share(client, alice, task["id"], [bob.id])

    response = await _share(client, alice, task["id"], [bob.id, carol.id, carol.id])

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["shared_with"] == [bob.id, carol.id]
    assert len(await _inbox(client, bob)) == 1
    assert len(await _inbox(client, carol)) == 1


async def test_only_owner_can_share(client: AsyncClient, authenticated_user) -> None:
    alice = await authenticated_user()
    bob = await authenticated_user()
    carol = await authenticated_user()
    stranger = await authenticated_user()
    task = await _create_task(client, alice)
    await _share(client, alice, task["id"], [bob.id])

    by_member = await _share(client, bob, task["id"], [carol.id])
    by_stranger = await _share(client, stranger, task["id"], [carol.id])

    assert by_member.status_code == status.HTTP_403_FORBIDDEN
    assert by_member.json()["message"] == "Only the task owner can share this task"
    assert by_stranger.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.parametrize(
    ("targets", "message"),
    [
        (lambda owner, other: [], "Please provide at least one user to share with"),
        (lambda owner, other: [owner.id], "You cannot share a task with yourself"),
        (lambda owner, other: [str(ObjectId())], "One or more users were not found"),
        (lambda owner, other: ["not-an-id"], "Invalid user id: not-an-id"),
    ],
)
async def test_share_validation_errors(client: AsyncClient, authenticated_user, targets, message: str) -> None:
    alice = await authenticated_user()
    bob = await authenticated_user()
    task = await _create_task(client, alice)

    response = await _share(client, alice, task["id"], targets(alice, bob))

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == message
    stored = await client.get(f"/api/tasks/{task['id']}", headers=alice.headers)
    assert stored.json()["shared_with"] == []


async def test_sharing_again_with_same_users_is_rejected(client: AsyncClient, authenticated_user) -> None:
    alice = await authenticated_user()
    bob = await authenticated_user()
    task = await _create_task(client, alice)
    await _share(client, alice, task["id"], [bob.id])

    response = await _share(client, alice, task["id"], [bob.id])

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Task is already shared with the selected users"
    assert len(await _inbox(client, bob)) == 1


async def test_concurrent_shares_add_target_once(client: AsyncClient, authenticated_user) -> None:
    alice = await authenticated_user()
    bob = await authenticated_user()
    task = await _create_task(client, alice)

    responses = await asyncio.gather(
        _share(client, alice, task["id"], [bob.id]),
        _share(client, alice, task["id"], [bob.id]),
    )
    stored = await client.get(f"/api/tasks/{task['id']}", headers=alice.headers)

    assert sorted(response.status_code for response in responses) == [
        status.HTTP_200_OK,
        status.HTTP_400_BAD_REQUEST,
    ]
    loser = next(response for response in responses if response.status_code == status.HTTP_400_BAD_REQUEST)
    assert loser.json()["message"] == "Task is already shared with the selected users"
    assert stored.json()["shared_with"] == [bob.id]
    assert [item["type"] for item in await _inbox(client, bob)] == ["task_shared"]


async def test_status_change_notifies_every_other_shared_member(client: AsyncClient, authenticated_user) -> None:
    alice = await authenticated_user()
    bob = await authenticated_user()
    carol = await authenticated_user()
    task = await _create_task(client, alice, title="Release")
    await _share(client, alice, task["id"], [bob.id, carol.id])

    progress = await client.put(f"/api/tasks/{task['id']}", json={"status": "In Progress"}, headers=bob.headers)
    done = await client.put(f"/api/tasks/{task['id']}", json={"status": "Completed"}, headers=alice.headers)

    assert progress.status_code == done.status_code == status.HTTP_200_OK
    bob_types = [item["type"] for item in await _inbox(client, bob)]
    carol_types = [item["type"] for item in await _inbox(client, carol)]
    assert bob_types == ["task_completed", "task_shared"]
    assert carol_types == ["task_completed", "task_updated", "task_shared"]
    assert await _inbox(client, alice) == []

    latest = (await _inbox(client, carol))[0]
    assert latest["message"] == 'Task "Release" status changed to Completed'


async def test_unchanged_status_sends_no_notification(client: AsyncClient, authenticated_user) -> None:
    alice = await authenticated_user()
    bob = await authenticated_user()
    task = await _create_task(client, alice)
    await _share(client, alice, task["id"], [bob.id])

    await client.put(f"/api/tasks/{task['id']}", json={"status": "Pending"}, headers=alice.headers)
    await client.put(f"/api/tasks/{task['id']}", json={"title": "Renamed"}, headers=alice.headers)

    assert [item["type"] for item in await _inbox(client, bob)] == ["task_shared"]


async def test_notification_write_failure_keeps_share(
    client: AsyncClient, authenticated_user, database, monkeypatch: pytest.MonkeyPatch
) -> None:
    alice = await authenticated_user()
    bob = await authenticated_user()
    task = await _create_task(client, alice)
    collection_type = type(database["notifications"])
    insert_many = collection_type.insert_many

    async def _failing_insert_many(self, documents, *args, **kwargs):
        if self.name == "notifications":
            raise PyMongoError("write concern failed")
        return await insert_many(self, documents, *args, **kwargs)

    monkeypatch.setattr(collection_type, "insert_many", _failing_insert_many)

    response = await _share(client, alice, task["id"], [bob.id])

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["code"] == "server_error"
    stored = await client.get(f"/api/tasks/{task['id']}", headers=alice.headers)
    assert stored.json()["shared_with"] == [bob.id]
    assert await _inbox(client, bob) == []
