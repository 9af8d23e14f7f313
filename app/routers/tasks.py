"""Task endpoints - CRUD operations for tasks."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.database import get_database
from app.models.task import Task, TaskCreate, TaskPriority, TaskUpdate
from app.models.user import User
from app.routers.auth import get_current_user
from app.services.errors import ConflictError, NotFoundError
from app.services.task_service import TaskService


router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=list[Task])
async def list_tasks(
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    client_id: Optional[str] = Query(None),
    category_id: Optional[str] = Query(None),
    halo_ticket_id: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    List tasks, newest first.

    - status accepts a comma-separated list
    - halo_ticket_id matches as a substring
    """
    service = TaskService(db)
    return await service.list_tasks(
        status=status_filter,
        priority=priority.value if priority else None,
        client_id=client_id,
        category_id=category_id,
        halo_ticket_id=halo_ticket_id,
    )


@router.get("/halo/{ticket_id}", response_model=list[Task])
async def list_tasks_by_halo_ticket(
    ticket_id: str,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """List tasks linked to a Halo ticket."""
    return await TaskService(db).list_by_halo_ticket(ticket_id)


@router.get("/{task_id}", response_model=Task)
async def get_task(
    task_id: str,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Get a task by ID."""
    try:
        return await TaskService(db).get_task(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_create: TaskCreate,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Create a new task.

    - client_id and category_id must exist when given
    """
    try:
        return await TaskService(db).create_task(user.id, task_create)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{task_id}", response_model=Task)
async def update_task(
    task_id: str,
    task_update: TaskUpdate,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Update a task."""
    try:
        return await TaskService(db).update_task(task_id, task_update)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: str,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Delete a task.

    - Refused while time logs reference it
    """
    try:
        await TaskService(db).delete_task(task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
