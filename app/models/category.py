"""Category model definitions."""
from pydantic import BaseModel, Field, field_validator

from app.utils.intervals import UtcDatetime

DEFAULT_CATEGORY_COLOR = "#6B7280"


class CategoryBase(BaseModel):
    """Base category fields."""

    name: str = Field(min_length=1, max_length=50)
    color: str = Field(default=DEFAULT_CATEGORY_COLOR, pattern=r"^#[0-9A-Fa-f]{6}$")

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Category name cannot be empty")
        return value


class CategoryCreate(CategoryBase):
    """Category creation model."""

    pass


class CategoryUpdate(CategoryBase):
    """Category update model."""

    pass


class Category(CategoryBase):
    """Full category model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    task_count: int = 0
    created_at: UtcDatetime
    updated_at: UtcDatetime

    model_config = {"populate_by_name": True}
