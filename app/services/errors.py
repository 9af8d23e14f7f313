"""Service-layer exceptions.

All subclass ValueError so routers can fall back to a plain 400.
"""
from typing import Optional, Union

from app.utils.intervals import OrderError, OverlapError


class NotFoundError(ValueError):
    """Requested document does not exist (or belongs to another user)."""


class ConflictError(ValueError):
    """Write would break a uniqueness or reference rule."""


class PermissionDeniedError(ValueError):
    """Caller may not perform this action."""


class IntervalRejected(ValueError):
    """A time log failed order or overlap validation."""

    def __init__(
        self,
        result: Union[OrderError, OverlapError],
        index: Optional[int] = None,
    ):
        super().__init__(result.message)
        self.result = result
        self.index = index

    def to_detail(self) -> dict:
        """JSON body describing the rejection."""
        detail = self.result.model_dump(mode="json")
        if self.index is not None:
            detail["index"] = self.index
        return detail
