"""Client model definitions."""
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.utils.intervals import UtcDatetime


class ClientBase(BaseModel):
    """Base client fields."""

    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Client name cannot be empty")
        return value


class ClientCreate(ClientBase):
    """Client creation model."""

    pass


class ClientUpdate(ClientBase):
    """Client update model."""

    pass


class Client(ClientBase):
    """Full client model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    task_count: int = 0
    created_at: UtcDatetime
    updated_at: UtcDatetime

    model_config = {"populate_by_name": True}
