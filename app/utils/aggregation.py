"""Report aggregation over closed time logs.

Hours are always derived once from a bucket's accumulated minutes, never by
summing per-entry rounded hours.
"""
from collections import defaultdict
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel

from app.models.report import (
    AggregateResult,
    DailySummary,
    DayBreakdown,
    HaloExportRow,
    HaloExportSummary,
    RangeSummary,
    ReportBucket,
    TaskBucket,
)
from app.models.time_log import TimeLog
from app.utils.intervals import compute_minutes

UNCATEGORIZED = "Uncategorized"
NO_CLIENT = "No Client"


class ReportGrouping(str, Enum):
    """Dimensions a report can be grouped by."""

    DAY = "day"
    CATEGORY = "category"
    CLIENT = "client"
    TASK = "task"


ALL_GROUPINGS = frozenset(ReportGrouping)


class ReportEntry(BaseModel):
    """A time log with its task, client and category names joined in."""

    id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    description: Optional[str] = None
    task_title: str
    halo_ticket_id: Optional[str] = None
    client_name: Optional[str] = None
    category_name: Optional[str] = None

    @classmethod
    def from_time_log(cls, log: TimeLog) -> "ReportEntry":
        task = log.task
        return cls(
            id=log.id,
            start_time=log.start_time,
            end_time=log.end_time,
            duration_minutes=log.duration_minutes,
            description=log.description,
            task_title=task.title if task else "",
            halo_ticket_id=task.halo_ticket_id if task else None,
            client_name=task.client_name if task else None,
            category_name=task.category_name if task else None,
        )

    @property
    def minutes(self) -> int:
        """Stored duration, falling back to the interval itself; 0 while running."""
        if self.duration_minutes is not None:
            return self.duration_minutes
        if self.end_time is None:
            return 0
        return compute_minutes(self.start_time, self.end_time)


def hours_from_minutes(minutes: int) -> float:
    """
    Convert minutes to hours rounded to 2 decimal places.

    Examples:
        >>> hours_from_minutes(60)
        1.0
        >>> hours_from_minutes(20)
        0.33
    """
    return round(minutes / 60, 2)


def to_local(value: datetime, tz: tzinfo) -> datetime:
    """Interpret a naive timestamp as UTC and convert it to ``tz``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz)


def _sorted(entries: Iterable[ReportEntry]) -> list[ReportEntry]:
    return sorted(entries, key=lambda entry: (to_local(entry.start_time, timezone.utc), entry.id))


def _buckets(minutes: dict[str, int], counts: dict[str, int]) -> dict[str, ReportBucket]:
    return {
        key: ReportBucket(minutes=total, hours=hours_from_minutes(total), count=counts[key])
        for key, total in minutes.items()
    }


def aggregate(
    entries: Iterable[ReportEntry],
    groupings: Iterable[ReportGrouping] = ALL_GROUPINGS,
    tz: tzinfo = timezone.utc,
) -> AggregateResult:
    """
    Roll entries up into per-group totals.

    Entries are processed in start time order, so bucket ordering and the
    output as a whole depend only on the input set.

    Args:
        entries: Closed time logs, already filtered to one user and window
        groupings: Dimensions to group by
        tz: Zone used to decide which day an entry belongs to

    Returns:
        AggregateResult with the requested groupings filled in
    """
    wanted = set(groupings)
    ordered = _sorted(entries)

    minutes_by = {grouping: defaultdict(int) for grouping in ReportGrouping}
    counts_by = {grouping: defaultdict(int) for grouping in ReportGrouping}
    tickets: dict[str, Optional[str]] = {}
    titles_by_day: dict[str, set[str]] = defaultdict(set)

    total_minutes = 0
    for entry in ordered:
        minutes = entry.minutes
        total_minutes += minutes

        day = to_local(entry.start_time, tz).strftime("%Y-%m-%d")
        keys = {
            ReportGrouping.DAY: day,
            ReportGrouping.CATEGORY: entry.category_name or UNCATEGORIZED,
            ReportGrouping.CLIENT: entry.client_name or NO_CLIENT,
            ReportGrouping.TASK: entry.task_title,
        }
        for grouping, key in keys.items():
            minutes_by[grouping][key] += minutes
            counts_by[grouping][key] += 1

        tickets.setdefault(entry.task_title, entry.halo_ticket_id)
        titles_by_day[day].add(entry.task_title)

    result = AggregateResult(
        total_minutes=total_minutes,
        total_hours=hours_from_minutes(total_minutes),
        entries_count=len(ordered),
        tasks_count=len({entry.task_title for entry in ordered}),
        days_worked=len(titles_by_day),
    )

    if ReportGrouping.DAY in wanted:
        result.by_day = _buckets(minutes_by[ReportGrouping.DAY], counts_by[ReportGrouping.DAY])
        result.tasks_per_day = {day: len(titles) for day, titles in titles_by_day.items()}
    if ReportGrouping.CATEGORY in wanted:
        result.by_category = _buckets(
            minutes_by[ReportGrouping.CATEGORY], counts_by[ReportGrouping.CATEGORY]
        )
    if ReportGrouping.CLIENT in wanted:
        result.by_client = _buckets(
            minutes_by[ReportGrouping.CLIENT], counts_by[ReportGrouping.CLIENT]
        )
    if ReportGrouping.TASK in wanted:
        result.by_task = {
            title: TaskBucket(
                minutes=total,
                hours=hours_from_minutes(total),
                count=counts_by[ReportGrouping.TASK][title],
                halo_ticket_id=tickets.get(title),
            )
            for title, total in minutes_by[ReportGrouping.TASK].items()
        }

    return result


def build_daily_summary(
    day: str, entries: Iterable[ReportEntry], tz: tzinfo = timezone.utc
) -> DailySummary:
    """Summary of one day grouped by category, client and task."""
    result = aggregate(
        entries,
        {ReportGrouping.CATEGORY, ReportGrouping.CLIENT, ReportGrouping.TASK},
        tz,
    )
    return DailySummary(
        date=day,
        total_hours=result.total_hours,
        total_minutes=result.total_minutes,
        entries_count=result.entries_count,
        by_category=result.by_category,
        by_client=result.by_client,
        by_task=result.by_task,
    )


def build_range_summary(
    entries: Iterable[ReportEntry], tz: tzinfo = timezone.utc
) -> RangeSummary:
    """Summary of a date range with a per-day breakdown."""
    result = aggregate(entries, ALL_GROUPINGS, tz)
    daily_breakdown = {
        day: DayBreakdown(
            hours=bucket.hours,
            minutes=bucket.minutes,
            entries=bucket.count,
            tasks=result.tasks_per_day[day],
        )
        for day, bucket in result.by_day.items()
    }
    return RangeSummary(
        total_minutes=result.total_minutes,
        total_hours=result.total_hours,
        entries_count=result.entries_count,
        tasks_count=result.tasks_count,
        days_worked=result.days_worked,
        daily_breakdown=daily_breakdown,
        by_category=result.by_category,
        by_client=result.by_client,
        by_task=result.by_task,
    )


def build_halo_export(
    entries: Iterable[ReportEntry], tz: tzinfo = timezone.utc
) -> tuple[list[HaloExportRow], HaloExportSummary]:
    """
    One row per closed entry, oldest first. Running entries are skipped.

    Returns:
        Tuple of (rows, summary)
    """
    rows = []
    for entry in _sorted(entries):
        if entry.end_time is None:
            continue
        start = to_local(entry.start_time, tz)
        end = to_local(entry.end_time, tz)
        minutes = entry.minutes
        rows.append(
            HaloExportRow(
                ticket_id=entry.halo_ticket_id or "",
                task_title=entry.task_title,
                client=entry.client_name or NO_CLIENT,
                category=entry.category_name or UNCATEGORIZED,
                date=start.strftime("%Y-%m-%d"),
                start_time=start.strftime("%H:%M"),
                end_time=end.strftime("%H:%M"),
                duration_minutes=minutes,
                duration_hours=hours_from_minutes(minutes),
                description=entry.description or "",
            )
        )

    total_minutes = sum(row.duration_minutes for row in rows)
    summary = HaloExportSummary(
        total_entries=len(rows),
        total_minutes=total_minutes,
        total_hours=hours_from_minutes(total_minutes),
    )
    return rows, summary
