"""Category endpoints - CRUD operations for task categories."""
from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.database import get_database
from app.models.category import Category, CategoryCreate, CategoryUpdate
from app.models.user import User
from app.routers.auth import get_current_user
from app.services.category_service import CategoryService
from app.services.errors import ConflictError, NotFoundError


router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[Category])
async def list_categories(
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """List categories sorted by name."""
    return await CategoryService(db).list_categories()


@router.get("/{category_id}", response_model=Category)
async def get_category(
    category_id: str,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Get a category by ID."""
    try:
        return await CategoryService(db).get_category(category_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("", response_model=Category, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_create: CategoryCreate,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Create a category.

    - Names are unique (case-insensitive), 1-50 characters
    - color is #RRGGBB, default #6B7280
    """
    try:
        return await CategoryService(db).create_category(category_create)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.put("/{category_id}", response_model=Category)
async def update_category(
    category_id: str,
    category_update: CategoryUpdate,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Update a category."""
    try:
        return await CategoryService(db).update_category(category_id, category_update)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: str,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Delete a category.

    - Refused while tasks reference it
    """
    try:
        await CategoryService(db).delete_category(category_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
