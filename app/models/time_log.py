"""Time log model definitions."""
from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from app.models.task import TaskSummary
from app.utils.intervals import UtcDatetime


class TimeLogBase(BaseModel):
    """Base time log fields."""

    task_id: str
    description: Optional[str] = None
    start_time: UtcDatetime
    end_time: Optional[UtcDatetime] = None
    duration_minutes: Optional[int] = None


class TimeLogStart(BaseModel):
    """Request model for starting a timer."""

    task_id: str
    description: Optional[str] = None


class TimeLogStop(BaseModel):
    """Request model for stopping the running timer."""

    id: Optional[str] = None
    end_time: Optional[datetime] = None
    description: Optional[str] = None


class TimeLogCreate(BaseModel):
    """Manual (closed) time log creation model."""

    task_id: str
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None


class BulkDayEntry(BaseModel):
    """One day of a bulk entry."""

    date: date
    hours: float = Field(gt=0, le=24)
    description: Optional[str] = None


class TimeLogBulkCreate(BaseModel):
    """Bulk creation: one closed log per day, all starting at the same local time."""

    task_id: str
    start_time_of_day: time = time(9, 0)
    entries: list[BulkDayEntry] = Field(min_length=1)


class TimeLogUpdate(BaseModel):
    """Time log update model."""

    task_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    description: Optional[str] = None

    @model_validator(mode="after")
    def check_not_empty(self):
        if not self.model_fields_set:
            raise ValueError("No fields to update")
        return self


class TimeLog(TimeLogBase):
    """Full time log model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    user_id: str
    task: Optional[TaskSummary] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime

    model_config = {"populate_by_name": True}

    @property
    def is_running(self) -> bool:
        return self.end_time is None
