"""Report service - fetches closed time logs and hands them to the aggregator."""
from datetime import date, timedelta
from typing import Optional

from app.models.report import DailyReport, HaloExport, RangeReport, ReportPeriod
from app.models.time_log import TimeLog
from app.services.time_log_service import TimeLogService
from app.utils.aggregation import (
    ReportEntry,
    build_daily_summary,
    build_halo_export,
    build_range_summary,
)
from app.utils.dates import local_day_bounds, local_today, report_timezone
from app.utils.object_ids import canonical_id


class ReportService:
    """Service for building reports over a user's time logs."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.time_logs = db["time_logs"]
        self.tz = report_timezone()

    async def _closed_logs(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        client_id: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> list[TimeLog]:
        """
        Closed logs started within local days start_date..end_date, oldest first.

        Raises:
            ValueError: If start_date is after end_date
        """
        if start_date > end_date:
            raise ValueError("Start date must not be after end date")

        start, end = local_day_bounds(start_date, end_date, self.tz)
        cursor = self.time_logs.find({
            "user_id": user_id,
            "start_time": {"$gte": start, "$lt": end},
            "end_time": {"$ne": None},
        }).sort("start_time", 1)
        docs = await cursor.to_list(length=None)
        logs = await TimeLogService(self.db).to_time_logs(docs)
        client_id = canonical_id(client_id)
        category_id = canonical_id(category_id)

        if client_id:
            logs = [log for log in logs if log.task and log.task.client_id == client_id]
        if category_id:
            logs = [log for log in logs if log.task and log.task.category_id == category_id]
        return logs

    async def daily_report(self, user_id: str, day: Optional[date] = None) -> DailyReport:
        """
        Daily summary grouped by category, client and task.

        Args:
            user_id: User ID
            day: Local day (defaults to today)

        Returns:
            DailyReport with summary and the day's time logs
        """
        day = day or local_today(self.tz)
        logs = await self._closed_logs(user_id, day, day)
        summary = build_daily_summary(
            day.isoformat(),
            [ReportEntry.from_time_log(log) for log in logs],
            self.tz,
        )
        return DailyReport(summary=summary, time_logs=logs)

    async def range_report(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        client_id: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> RangeReport:
        """
        Range summary with per-day breakdown, optionally for one client or category.

        Raises:
            ValueError: If start_date is after end_date
        """
        logs = await self._closed_logs(user_id, start_date, end_date, client_id, category_id)
        summary = build_range_summary([ReportEntry.from_time_log(log) for log in logs], self.tz)
        return RangeReport(
            period=ReportPeriod(start_date=start_date, end_date=end_date),
            summary=summary,
            time_logs=logs,
        )

    async def weekly_report(self, user_id: str, start_date: Optional[date] = None) -> RangeReport:
        """Seven days from start_date; defaults to the last seven days including today."""
        if start_date is None:
            start_date = local_today(self.tz) - timedelta(days=6)
        return await self.range_report(user_id, start_date, start_date + timedelta(days=6))

    async def halo_export(self, user_id: str, start_date: date, end_date: date) -> HaloExport:
        """
        One row per closed time log, for reconciliation with Halo tickets.

        Raises:
            ValueError: If start_date is after end_date
        """
        logs = await self._closed_logs(user_id, start_date, end_date)
        rows, summary = build_halo_export(
            [ReportEntry.from_time_log(log) for log in logs], self.tz
        )
        return HaloExport(
            period=ReportPeriod(start_date=start_date, end_date=end_date),
            export=rows,
            summary=summary,
        )
