"""ObjectId parsing shared by the services."""
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId

from app.services.errors import NotFoundError


def to_object_id(value: str, label: str = "Document") -> ObjectId:
    """
    Parse a string ID, treating malformed IDs as missing documents.

    Raises:
        NotFoundError: If the value is not a valid ObjectId
    """
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFoundError(f"Invalid {label.lower()} ID format")


def canonical_id(value: Optional[str]) -> Optional[str]:
    """
    The stored string form of an ID, used when matching references.

    Values that are not ObjectIds are returned unchanged, so a malformed
    filter simply matches nothing.

    Examples:
        >>> canonical_id("65A000000000000000000001")
        '65a000000000000000000001'
    """
    if value and ObjectId.is_valid(value):
        return str(ObjectId(value))
    return value
