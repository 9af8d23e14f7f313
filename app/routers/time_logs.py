"""Time log endpoints - timer, manual and bulk time tracking."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.database import get_database
from app.models.time_log import (
    TimeLog,
    TimeLogBulkCreate,
    TimeLogCreate,
    TimeLogStart,
    TimeLogStop,
    TimeLogUpdate,
)
from app.models.user import User
from app.routers.auth import get_current_user, resolve_user_id
from app.services.errors import IntervalRejected, NotFoundError
from app.services.time_log_service import TimeLogService


router = APIRouter(prefix="/time-logs", tags=["time-logs"])


def _to_http(e: ValueError) -> HTTPException:
    """Map service errors to HTTP errors."""
    if isinstance(e, IntervalRejected):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_detail())
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=list[TimeLog])
async def list_time_logs(
    task_id: Optional[str] = Query(None),
    day: Optional[date] = Query(None, alias="date"),
    active: Optional[bool] = Query(None),
    user_id: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    List time logs, most recent first.

    - Optional filters: task_id, date (local day), active
    - Admins may pass user_id to see another user's logs
    """
    service = TimeLogService(db)
    return await service.list_time_logs(
        user_id=resolve_user_id(user, user_id),
        task_id=task_id,
        day=day,
        active=active,
    )


@router.get("/active", response_model=Optional[TimeLog])
async def get_active_time_log(
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Get the running time log, or null."""
    return await TimeLogService(db).get_active(user.id)


@router.get("/range", response_model=list[TimeLog])
async def list_time_logs_in_range(
    start_date: date = Query(...),
    end_date: date = Query(...),
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """List time logs started between start_date and end_date (inclusive)."""
    try:
        return await TimeLogService(db).list_range(user.id, start_date, end_date)
    except ValueError as e:
        raise _to_http(e)


@router.post("/start", response_model=TimeLog, status_code=status.HTTP_201_CREATED)
async def start_timer(
    timer_start: TimeLogStart,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Start a new timer.

    - Only one timer can run at a time
    - Task must exist; a pending task moves to in_progress
    """
    try:
        return await TimeLogService(db).start(user.id, timer_start)
    except ValueError as e:
        raise _to_http(e)


@router.post("/stop", response_model=TimeLog)
async def stop_timer(
    timer_stop: TimeLogStop,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Stop the running timer.

    - end_time defaults to now
    - The closed interval must not overlap other logs
    """
    try:
        return await TimeLogService(db).stop(user.id, timer_stop)
    except ValueError as e:
        raise _to_http(e)


@router.post("/manual", response_model=TimeLog, status_code=status.HTTP_201_CREATED)
async def create_manual_time_log(
    entry: TimeLogCreate,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Create a closed time log (past dates allowed).

    - 400 with {"error": "invalid_order"} if start >= end
    - 400 with {"error": "overlap", "conflicts": [...]} on overlap
    """
    try:
        return await TimeLogService(db).create_manual(user.id, entry)
    except ValueError as e:
        raise _to_http(e)


@router.post("/bulk", response_model=list[TimeLog], status_code=status.HTTP_201_CREATED)
async def create_bulk_time_logs(
    bulk: TimeLogBulkCreate,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Create one closed time log per day.

    - All-or-nothing; a rejection names the failing entry's index
    """
    try:
        return await TimeLogService(db).create_bulk(user.id, bulk)
    except ValueError as e:
        raise _to_http(e)


@router.get("/{log_id}", response_model=TimeLog)
async def get_time_log(
    log_id: str,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Get one of the current user's time logs."""
    try:
        return await TimeLogService(db).get_time_log(user.id, log_id)
    except ValueError as e:
        raise _to_http(e)


@router.put("/{log_id}", response_model=TimeLog)
async def update_time_log(
    log_id: str,
    log_update: TimeLogUpdate,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Update a time log.

    - Changed times are re-validated (the log itself excluded)
    - Duration is recomputed
    """
    try:
        return await TimeLogService(db).update(user.id, log_id, log_update)
    except ValueError as e:
        raise _to_http(e)


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_time_log(
    log_id: str,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Delete a time log (permanent)."""
    try:
        await TimeLogService(db).delete(user.id, log_id)
    except ValueError as e:
        raise _to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
