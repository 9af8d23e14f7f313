"""User administration endpoints (admin only)."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from app.database import get_database
from app.models.user import AdminUserCreate, PasswordReset, User, UserUpdate
from app.routers.auth import require_admin
from app.services.errors import ConflictError, NotFoundError, PermissionDeniedError
from app.services.user_service import UserService


router = APIRouter(prefix="/users", tags=["users"])


class UserActionResponse(BaseModel):
    """Message plus the affected user, if it still exists."""

    message: str
    user: Optional[User] = None


def _to_http(e: ValueError) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=list[User])
async def list_users(
    admin: User = Depends(require_admin),
    db=Depends(get_database),
):
    """List all users, newest first."""
    return await UserService(db).list_users()


@router.post("", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_create: AdminUserCreate,
    admin: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Create a user with any role."""
    try:
        return await UserService(db).create_user(user_create)
    except ValueError as e:
        raise _to_http(e)


@router.put("/{user_id}", response_model=User)
async def update_user(
    user_id: str,
    user_update: UserUpdate,
    admin: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Update a user's name, email, role, active flag or password."""
    try:
        return await UserService(db).update_user(user_id, user_update)
    except ValueError as e:
        raise _to_http(e)


@router.delete("/{user_id}", response_model=UserActionResponse)
async def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db=Depends(get_database),
):
    """
    Delete a user.

    - Users who own tasks or time logs are deactivated instead
    - Admins cannot delete themselves
    """
    try:
        message, user = await UserService(db).delete_user(admin.id, user_id)
    except ValueError as e:
        raise _to_http(e)
    return UserActionResponse(message=message, user=user)


@router.post("/{user_id}/unlock", response_model=UserActionResponse)
async def unlock_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Clear a login lockout."""
    try:
        user = await UserService(db).unlock_user(user_id)
    except ValueError as e:
        raise _to_http(e)
    return UserActionResponse(message="User account unlocked successfully", user=user)


@router.post("/{user_id}/reset-password", response_model=UserActionResponse)
async def reset_password(
    user_id: str,
    reset: PasswordReset,
    admin: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Set a new password for a user."""
    try:
        user = await UserService(db).reset_password(user_id, reset.new_password)
    except ValueError as e:
        raise _to_http(e)
    return UserActionResponse(message="Password reset successfully", user=user)


@router.post("/{user_id}/toggle-status", response_model=UserActionResponse)
async def toggle_status(
    user_id: str,
    admin: User = Depends(require_admin),
    db=Depends(get_database),
):
    """
    Activate or deactivate a user.

    - Admins cannot change their own status
    """
    try:
        user = await UserService(db).toggle_status(admin.id, user_id)
    except ValueError as e:
        raise _to_http(e)
    action = "activated" if user.is_active else "deactivated"
    return UserActionResponse(message=f"User {action} successfully", user=user)
