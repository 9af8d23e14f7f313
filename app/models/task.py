"""Task model definitions."""
from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from app.utils.intervals import UtcDatetime


class TaskStatus(str, Enum):
    """Task workflow states."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    """Task priorities."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskBase(BaseModel):
    """Base task fields."""

    title: str = Field(min_length=1)
    description: Optional[str] = None
    halo_ticket_id: Optional[str] = None  # ticket in the Halo service desk
    client_id: Optional[str] = None
    category_id: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[date] = None


class TaskCreate(TaskBase):
    """Task creation model."""

    pass


class TaskUpdate(BaseModel):
    """Task update model - all fields optional."""

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    halo_ticket_id: Optional[str] = None
    client_id: Optional[str] = None
    category_id: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None


class Task(TaskBase):
    """Full task model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    user_id: str
    status: TaskStatus = TaskStatus.PENDING
    client_name: Optional[str] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
    time_log_count: int = 0
    created_at: UtcDatetime
    updated_at: UtcDatetime

    model_config = {"populate_by_name": True}


class TaskSummary(BaseModel):
    """Denormalized task fields attached to time logs and reports."""

    id: str
    title: str
    halo_ticket_id: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
