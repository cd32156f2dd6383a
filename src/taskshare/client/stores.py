"""Client-side state containers mirroring the REST resources.

Every mutating method returns a :class:`~taskshare.client.results.Result`
and records the failure message on ``store.error`` so a UI can render it as
a dismissible alert.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Iterable, TypeVar

import httpx

from .http import ApiClient, ApiError
from .results import Result

logger = logging.getLogger(__name__)

T = TypeVar("T")

ALL_STATUSES = "all"
COMPLETED_STATUS = "Completed"


class _Store:
    def __init__(self, api: ApiClient) -> None:
        self._api = api
        self.error: str | None = None
        self.loading = False

    def clear_error(self) -> None:
        self.error = None

    async def _call(self, awaitable: Awaitable[T]) -> Result[T]:
        self.loading = True
        try:
            value = await awaitable
        except ApiError as exc:
            self.error = exc.message
            logger.debug("API call failed", extra={"status_code": exc.status_code, "code": exc.code})
            return Result.failure(exc.message)
        finally:
            self.loading = False
        self.error = None
        return Result.success(value)


class AuthStore(_Store):
    """Session state: the signed-in user and their token."""

    def __init__(self, api: ApiClient) -> None:
        super().__init__(api)
        self.user: dict[str, Any] | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and bool(self._api.token)

    async def register(self, *, name: str, email: str, password: str) -> Result[dict[str, Any]]:
        result = await self._call(
            self._api.post("/users", json={"name": name, "email": email, "password": password})
        )
        return self._accept_session(result)

    async def login(self, *, email: str, password: str) -> Result[dict[str, Any]]:
        result = await self._call(self._api.post("/users/login", json={"email": email, "password": password}))
        return self._accept_session(result)

    async def load_profile(self) -> Result[dict[str, Any]]:
        result = await self._call(self._api.get("/users/profile"))
        if result.ok:
            self.user = result.value
        return result

    def logout(self) -> None:
        self._api.token = None
        self.user = None
        self.error = None

    def _accept_session(self, result: Result[dict[str, Any]]) -> Result[dict[str, Any]]:
        if not result.ok or result.value is None:
            return result
        self._api.token = result.value["token"]
        self.user = result.value["user"]
        return Result.success(self.user)


class TaskStore(_Store):
    """Cached task lists plus pure filtering helpers."""

    def __init__(self, api: ApiClient) -> None:
        super().__init__(api)
        self.tasks: list[dict[str, Any]] = []
        self.shared_tasks: list[dict[str, Any]] = []

    async def load(self) -> Result[list[dict[str, Any]]]:
        result = await self._call(self._api.get("/tasks"))
        if result.ok:
            self.tasks = list(result.value or [])
        return result

    async def load_shared(self) -> Result[list[dict[str, Any]]]:
        result = await self._call(self._api.get("/tasks/shared"))
        if result.ok:
            self.shared_tasks = list(result.value or [])
        return result

    async def get(self, task_id: str) -> Result[dict[str, Any]]:
        return await self._call(self._api.get(f"/tasks/{task_id}"))

    async def create(self, **fields: Any) -> Result[dict[str, Any]]:
        result = await self._call(self._api.post("/tasks", json=fields))
        if result.ok and result.value is not None:
            self.tasks.append(result.value)
        return result

    async def update(self, task_id: str, **fields: Any) -> Result[dict[str, Any]]:
        result = await self._call(self._api.put(f"/tasks/{task_id}", json=fields))
        if result.ok and result.value is not None:
            self._replace(result.value)
        return result

    async def delete(self, task_id: str) -> Result[None]:
        result = await self._call(self._api.delete(f"/tasks/{task_id}"))
        if result.ok:
            self.tasks = [task for task in self.tasks if task["id"] != task_id]
            self.shared_tasks = [task for task in self.shared_tasks if task["id"] != task_id]
            return Result.success(None)
        return Result.failure(result.error or "")

    async def share(self, task_id: str, user_ids: Iterable[str]) -> Result[dict[str, Any]]:
        result = await self._call(self._api.put(f"/tasks/{task_id}/share", json={"user_ids": list(user_ids)}))
        if result.ok and result.value is not None:
            self._replace(result.value)
        return result

    async def share_by_email(self, task_id: str, emails: Iterable[str]) -> Result[dict[str, Any]]:
        """Resolve each email to a user id, then share with all of them."""

        user_ids: list[str] = []
        for email in emails:
            lookup = await self._call(self._api.get("/users/lookup", params={"email": email.strip()}))
            if not lookup.ok or lookup.value is None:
                message = f"{email}: {lookup.error}"
                self.error = message
                return Result.failure(message)
            user_ids.append(lookup.value["id"])
        return await self.share(task_id, user_ids)

    def filter_by_status(self, status: str = ALL_STATUSES) -> list[dict[str, Any]]:
        if status == ALL_STATUSES:
            return list(self.tasks)
        return [task for task in self.tasks if task.get("status") == status]

    def search(self, query: str) -> list[dict[str, Any]]:
        """Case-insensitive match against title and description."""

        needle = query.strip().lower()
        if not needle:
            return list(self.tasks)
        return [
            task
            for task in self.tasks
            if needle in (task.get("title") or "").lower()
            or needle in (task.get("description") or "").lower()
        ]

    def progress(self) -> dict[str, int]:
        total = len(self.tasks)
        completed = sum(1 for task in self.tasks if task.get("status") == COMPLETED_STATUS)
        percentage = math.floor(completed / total * 100 + 0.5) if total else 0
        return {"total": total, "completed": completed, "percentage": percentage}

    def _replace(self, updated: dict[str, Any]) -> None:
        for index, task in enumerate(self.tasks):
            if task["id"] == updated["id"]:
                self.tasks[index] = updated
                return
        self.tasks.append(updated)


class NotificationStore(_Store):
    """Inbox cache fed by fetches and realtime pushes."""

    def __init__(self, api: ApiClient) -> None:
        super().__init__(api)
        self.notifications: list[dict[str, Any]] = []

    @property
    def unread_count(self) -> int:
        return sum(1 for item in self.notifications if not item.get("read"))

    async def load(self) -> Result[list[dict[str, Any]]]:
        result = await self._call(self._api.get("/notifications"))
        if result.ok:
            self.notifications = list(result.value or [])
        return result

    async def mark_read(self, notification_id: str) -> Result[dict[str, Any]]:
        result = await self._call(self._api.put(f"/notifications/{notification_id}/read"))
        if result.ok and result.value is not None:
            self.notifications = [
                result.value if item.get("id") == notification_id else item for item in self.notifications
            ]
        return result

    async def mark_all_read(self) -> Result[dict[str, Any]]:
        result = await self._call(self._api.put("/notifications/read-all"))
        if result.ok:
            self.notifications = [{**item, "read": True} for item in self.notifications]
        return result

    def receive_push(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Prepend an entry built from a realtime ``notification`` frame.

        Pushed entries carry no id until the inbox is reloaded.
        """

        data = payload.get("data", payload)
        task_id = data.get("task_id")
        entry = {
            "id": None,
            "type": data.get("type"),
            "message": data.get("message", ""),
            "read": False,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "task": {"id": task_id} if task_id else None,
            "transient": True,
        }
        self.notifications.insert(0, entry)
        return entry


class AnalyticsStore(_Store):
    def __init__(self, api: ApiClient) -> None:
        super().__init__(api)
        self.overview: dict[str, Any] | None = None
        self.trends: dict[str, Any] | None = None

    async def load_overview(self) -> Result[dict[str, Any]]:
        result = await self._call(self._api.get("/analytics/overview"))
        if result.ok:
            self.overview = result.value
        return result

    async def load_trends(self, period: str = "weekly") -> Result[dict[str, Any]]:
        result = await self._call(self._api.get("/analytics/trends", params={"period": period}))
        if result.ok:
            self.trends = result.value
        return result


@dataclass
class AppState:
    """All client stores sharing a single :class:`ApiClient`."""

    api: ApiClient
    auth: AuthStore = field(init=False)
    tasks: TaskStore = field(init=False)
    notifications: NotificationStore = field(init=False)
    analytics: AnalyticsStore = field(init=False)

    def __post_init__(self) -> None:
        self.auth = AuthStore(self.api)
        self.tasks = TaskStore(self.api)
        self.notifications = NotificationStore(self.api)
        self.analytics = AnalyticsStore(self.api)

    @classmethod
    def connect(
        cls,
        base_url: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "AppState":
        return cls(api=ApiClient(base_url, transport=transport))

    def logout(self) -> None:
        """Forget the session and every cached resource."""

        self.auth.logout()
        self.tasks = TaskStore(self.api)
        self.notifications = NotificationStore(self.api)
        self.analytics = AnalyticsStore(self.api)

    async def aclose(self) -> None:
        await self.api.aclose()


__all__ = [
    "AnalyticsStore",
    "AppState",
    "AuthStore",
    "NotificationStore",
    "TaskStore",
]
