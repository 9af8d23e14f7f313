"""Report model definitions.

Reports are built fresh on every request and never stored.
"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from app.models.time_log import TimeLog


class ReportBucket(BaseModel):
    """Totals for one group (category, client or day)."""

    minutes: int = 0
    hours: float = 0.0
    count: int = 0


class TaskBucket(ReportBucket):
    """Totals for one task title."""

    halo_ticket_id: Optional[str] = None


class DayBreakdown(BaseModel):
    """Totals for one day of a range report."""

    hours: float = 0.0
    minutes: int = 0
    entries: int = 0
    tasks: int = 0


class AggregateResult(BaseModel):
    """Grouped totals; groupings that were not requested stay None."""

    total_minutes: int = 0
    total_hours: float = 0.0
    entries_count: int = 0
    tasks_count: int = 0
    days_worked: int = 0
    by_day: Optional[dict[str, ReportBucket]] = None
    tasks_per_day: Optional[dict[str, int]] = None
    by_category: Optional[dict[str, ReportBucket]] = None
    by_client: Optional[dict[str, ReportBucket]] = None
    by_task: Optional[dict[str, TaskBucket]] = None


class DailySummary(BaseModel):
    """Summary of a single day."""

    date: str
    total_hours: float
    total_minutes: int
    entries_count: int
    by_category: dict[str, ReportBucket]
    by_client: dict[str, ReportBucket]
    by_task: dict[str, TaskBucket]


class RangeSummary(BaseModel):
    """Summary of an arbitrary date range."""

    total_minutes: int
    total_hours: float
    entries_count: int
    tasks_count: int
    days_worked: int
    daily_breakdown: dict[str, DayBreakdown]
    by_category: dict[str, ReportBucket]
    by_client: dict[str, ReportBucket]
    by_task: dict[str, TaskBucket]


class HaloExportRow(BaseModel):
    """One closed time log, flattened for the Halo ticketing system."""

    ticket_id: str
    task_title: str
    client: str
    category: str
    date: str
    start_time: str
    end_time: str
    duration_minutes: int
    duration_hours: float
    description: str


class HaloExportSummary(BaseModel):
    """Totals over a Halo export."""

    total_entries: int
    total_minutes: int
    total_hours: float


class ReportPeriod(BaseModel):
    """Inclusive date range a report covers."""

    start_date: date
    end_date: date


class DailyReport(BaseModel):
    """Response for the daily report endpoint."""

    summary: DailySummary
    time_logs: list[TimeLog] = Field(default_factory=list)


class RangeReport(BaseModel):
    """Response for the range and weekly report endpoints."""

    period: ReportPeriod
    summary: RangeSummary
    time_logs: list[TimeLog] = Field(default_factory=list)


class HaloExport(BaseModel):
    """Response for the Halo export endpoint."""

    period: ReportPeriod
    export: list[HaloExportRow]
    summary: HaloExportSummary
