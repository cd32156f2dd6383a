"""Routes handling task CRUD and sharing."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...deps import CurrentUserDependency, TaskServiceDependency
from ...models import TaskDocument
from ...schemas import MessageResponse, TaskCreate, TaskRead, TaskShareRequest, TaskUpdate

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _map_task(task: TaskDocument) -> TaskRead:
    return TaskRead.model_validate(task)


@router.get("", response_model=list[TaskRead], summary="List tasks owned by or shared with the caller")
async def list_tasks(service: TaskServiceDependency, current_user: CurrentUserDependency) -> list[TaskRead]:
    return [_map_task(task) for task in await service.list_tasks(current_user)]


@router.get("/shared", response_model=list[TaskRead], summary="List tasks shared with the caller")
async def list_shared_tasks(
    service: TaskServiceDependency,
    current_user: CurrentUserDependency,
) -> list[TaskRead]:
    return [_map_task(task) for task in await service.list_shared_tasks(current_user)]


@router.post(
    "",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new task",
)
async def create_task(
    payload: TaskCreate,
    service: TaskServiceDependency,
    current_user: CurrentUserDependency,
) -> TaskRead:
    task = await service.create_task(
        current_user,
        title=payload.title,
        description=payload.description,
        status=payload.status,
        due_date=payload.due_date,
        attachments=payload.attachments,
    )
    return _map_task(task)


@router.get("/{task_id}", response_model=TaskRead, summary="Retrieve a task by id")
async def get_task(
    task_id: str,
    service: TaskServiceDependency,
    current_user: CurrentUserDependency,
) -> TaskRead:
    return _map_task(await service.get_task(task_id, current_user))


@router.put("/{task_id}", response_model=TaskRead, summary="Partially update a task")
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    service: TaskServiceDependency,
    current_user: CurrentUserDependency,
) -> TaskRead:
    updates = payload.model_dump(exclude_unset=True)
    if payload.attachments is not None:
        updates["attachments"] = payload.attachments
    task = await service.update_task(task_id, current_user, **updates)
    return _map_task(task)


@router.delete("/{task_id}", response_model=MessageResponse, summary="Delete a task")
async def delete_task(
    task_id: str,
    service: TaskServiceDependency,
    current_user: CurrentUserDependency,
) -> MessageResponse:
    await service.delete_task(task_id, current_user)
    return MessageResponse(message="Task removed")


@router.put("/{task_id}/share", response_model=TaskRead, summary="Share a task with other users")
async def share_task(
    task_id: str,
    payload: TaskShareRequest,
    service: TaskServiceDependency,
    current_user: CurrentUserDependency,
) -> TaskRead:
    task = await service.share_task(task_id, current_user, payload.user_ids)
    return _map_task(task)
