"""
Task API routes.

The whole router depends on ``require_identity``: no task endpoint can run
for an anonymous caller, and the owner of every operation is the id from the
bound identity. Task ids arrive as plain strings so that a malformed id gets
the same 404 as an unknown one.
"""

from fastapi import APIRouter, Depends, Response, status

from app.api.responses import ERROR_RESPONSES, NOT_FOUND_RESPONSE, raise_for_result
from app.dependencies.auth import Identity, get_identity, require_identity
from app.dependencies.services import get_task_service
from app.schemas import TaskCreate, TaskResponse, TaskStatusUpdate, TaskUpdate
from app.services.task_service import TaskService

router = APIRouter(
    prefix="/api/tasks",
    tags=["Tasks"],
    dependencies=[Depends(require_identity)],
    responses=ERROR_RESPONSES,
)


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    identity: Identity = Depends(get_identity),
    task_service: TaskService = Depends(get_task_service),
):
    """All tasks of the caller, newest first."""
    result = await task_service.list_by_owner(identity.user_id)
    return raise_for_result(result)


@router.get("/status/{task_status}", response_model=list[TaskResponse])
async def list_tasks_by_status(
    task_status: str,
    identity: Identity = Depends(get_identity),
    task_service: TaskService = Depends(get_task_service),
):
    result = await task_service.list_by_owner(identity.user_id, task_status)
    return raise_for_result(result)


@router.get("/{task_id}", response_model=TaskResponse, responses=NOT_FOUND_RESPONSE)
async def get_task(
    task_id: str,
    identity: Identity = Depends(get_identity),
    task_service: TaskService = Depends(get_task_service),
):
    result = await task_service.get_by_id(task_id, identity.user_id)
    return raise_for_result(result)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    identity: Identity = Depends(get_identity),
    task_service: TaskService = Depends(get_task_service),
):
    """Create a task owned by the caller. Any owner id in the body is ignored."""
    result = await task_service.create(task_data, identity.user_id)
    return raise_for_result(result)


@router.put("/{task_id}", response_model=TaskResponse, responses=NOT_FOUND_RESPONSE)
async def update_task(
    task_id: str,
    task_data: TaskUpdate,
    identity: Identity = Depends(get_identity),
    task_service: TaskService = Depends(get_task_service),
):
    result = await task_service.update(task_id, task_data, identity.user_id)
    return raise_for_result(result)


@router.patch(
    "/{task_id}/status", response_model=TaskResponse, responses=NOT_FOUND_RESPONSE
)
async def update_task_status(
    task_id: str,
    status_data: TaskStatusUpdate,
    identity: Identity = Depends(get_identity),
    task_service: TaskService = Depends(get_task_service),
):
    result = await task_service.update_status(
        task_id, status_data.status, identity.user_id
    )
    return raise_for_result(result)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=NOT_FOUND_RESPONSE,
)
async def delete_task(
    task_id: str,
    identity: Identity = Depends(get_identity),
    task_service: TaskService = Depends(get_task_service),
):
    raise_for_result(await task_service.delete(task_id, identity.user_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
