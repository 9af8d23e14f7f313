"""Report endpoints - daily, weekly, range and Halo export."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.database import get_database
from app.models.report import DailyReport, HaloExport, RangeReport
from app.models.user import User
from app.routers.auth import get_current_user, resolve_user_id
from app.services.report_service import ReportService


router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/daily", response_model=DailyReport)
async def daily_report(
    day: Optional[date] = Query(None, alias="date"),
    user_id: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Daily summary by category, client and task.

    - date defaults to today in the report time zone
    - Admins may pass user_id
    """
    service = ReportService(db)
    return await service.daily_report(resolve_user_id(user, user_id), day)


@router.get("/weekly", response_model=RangeReport)
async def weekly_report(
    start_date: Optional[date] = Query(None),
    user_id: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Seven-day summary starting at start_date.

    - Defaults to the last seven days including today
    """
    service = ReportService(db)
    return await service.weekly_report(resolve_user_id(user, user_id), start_date)


@router.get("/range", response_model=RangeReport)
async def range_report(
    start_date: date = Query(...),
    end_date: date = Query(...),
    client_id: Optional[str] = Query(None),
    category_id: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Summary over an inclusive date range with a per-day breakdown.

    - Optional client_id / category_id filters
    """
    service = ReportService(db)
    try:
        return await service.range_report(
            resolve_user_id(user, user_id),
            start_date,
            end_date,
            client_id=client_id,
            category_id=category_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/halo-export", response_model=HaloExport)
async def halo_export(
    start_date: date = Query(...),
    end_date: date = Query(...),
    user_id: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    One row per closed time log, oldest first, for Halo ticket reconciliation.

    - Running timers are excluded
    """
    service = ReportService(db)
    try:
        return await service.halo_export(resolve_user_id(user, user_id), start_date, end_date)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
