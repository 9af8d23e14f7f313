"""Auth router - API endpoints for authentication."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from pydantic import BaseModel

from app.database import get_database
from app.models.user import PasswordChange, ProfileUpdate, User, UserCreate
from app.services.auth_service import AuthService
from app.services.errors import ConflictError, NotFoundError
from app.utils.auth import verify_access_token
from app.utils.object_ids import canonical_id


router = APIRouter(prefix="/auth", tags=["auth"])
security = HTTPBearer(auto_error=False)


class LoginRequest(BaseModel):
    """Login request model."""

    email: str
    password: str


class TokenResponse(BaseModel):
    """Token response model."""

    access_token: str
    token_type: str = "bearer"
    user: User


class MessageResponse(BaseModel):
    """Plain message response."""

    message: str


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """
    Dependency to get current user ID from JWT token.

    Args:
        credentials: HTTP bearer credentials

    Returns:
        User ID from token

    Raises:
        HTTPException: If token is invalid (401)
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        return verify_access_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )


async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
) -> User:
    """
    Dependency to load the authenticated user.

    Raises:
        HTTPException: If the user no longer exists or is deactivated (401)
    """
    try:
        user = await AuthService(db).get_user_by_id(user_id)
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is deactivated",
        )
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """
    Dependency that only lets admins through.

    Raises:
        HTTPException: If the user is not an admin (403)
    """
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


def resolve_user_id(current_user: User, requested_user_id: Optional[str]) -> str:
    """Admins may act on another user's data; everyone else gets their own."""
    if requested_user_id and current_user.is_admin:
        return canonical_id(requested_user_id)
    return current_user.id


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
async def register(user: UserCreate, db=Depends(get_database)):
    """
    Register a new user.

    Raises:
        HTTPException: If email is already registered (409)
    """
    service = AuthService(db)

    try:
        return await service.register_user(
            email=user.email,
            password=user.password,
            name=user.name,
        )
    except ConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )


@router.post("/login", response_model=TokenResponse)
async def login(login_req: LoginRequest, db=Depends(get_database)):
    """
    Login user and return access token.

    Raises:
        HTTPException: If credentials are invalid or the account is locked (401)
    """
    service = AuthService(db)

    try:
        token, user = await service.login(
            email=login_req.email,
            password=login_req.password,
        )
        return TokenResponse(access_token=token, user=user)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )


@router.get("/me", response_model=User)
async def get_me(user: User = Depends(get_current_user)):
    """Get current authenticated user."""
    return user


@router.put("/profile", response_model=User)
async def update_profile(
    profile: ProfileUpdate,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Update the current user's name or email.

    Raises:
        HTTPException: If the email is taken (409)
    """
    try:
        return await AuthService(db).update_profile(user.id, profile)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/password", response_model=MessageResponse)
async def change_password(
    change: PasswordChange,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Change the current user's password.

    Raises:
        HTTPException: If the current password is wrong (400)
    """
    try:
        await AuthService(db).change_password(user.id, change)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return MessageResponse(message="Password updated successfully")
