"""Export endpoints - JSON export of all data and client/category import."""
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.database import get_database
from app.models.user import User
from app.routers.auth import require_admin
from app.services.export_service import ExportService, ImportResults


router = APIRouter(prefix="/export", tags=["export"])


class ImportOptions(BaseModel):
    """Import behaviour switches."""

    overwrite: bool = False


class ImportRequest(BaseModel):
    """Import payload: {"clients": [...], "categories": [...]}."""

    data: dict[str, Any]
    options: ImportOptions = ImportOptions()


class ImportResponse(BaseModel):
    """Import outcome."""

    success: bool = True
    message: str = "Data imported successfully"
    results: ImportResults


@router.get("/data")
async def export_data(
    admin: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Export all users, clients, categories, tasks and time logs."""
    return await ExportService(db).export_data(exported_by=admin.name)


@router.get("/clients")
async def export_clients(
    admin: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Export clients."""
    return await ExportService(db).export_clients()


@router.get("/categories")
async def export_categories(
    admin: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Export categories."""
    return await ExportService(db).export_categories()


@router.post("/import", response_model=ImportResponse)
async def import_data(
    request: ImportRequest,
    admin: User = Depends(require_admin),
    db=Depends(get_database),
):
    """
    Import clients and categories, matched by name.

    - Existing names are skipped unless options.overwrite is true
    - Invalid rows are counted as errors, not fatal
    """
    results = await ExportService(db).import_data(
        request.data, overwrite=request.options.overwrite
    )
    return ImportResponse(results=results)
