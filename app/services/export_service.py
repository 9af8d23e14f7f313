"""Export service - JSON dumps of the data and client/category import."""
import logging
import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.models.category import DEFAULT_CATEGORY_COLOR
from app.services.auth_service import doc_to_user
from app.services.category_service import CategoryService
from app.services.client_service import ClientService
from app.services.task_service import TaskService
from app.services.time_log_service import TimeLogService

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0.0"
_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


class ImportCounts(BaseModel):
    """Outcome counts for one imported collection."""

    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0


class ImportResults(BaseModel):
    """Outcome counts per imported collection."""

    clients: ImportCounts = Field(default_factory=ImportCounts)
    categories: ImportCounts = Field(default_factory=ImportCounts)


class ExportService:
    """Service for exporting and importing reference data."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.users = db["users"]
        self.clients = db["clients"]
        self.categories = db["categories"]
        self.tasks = db["tasks"]
        self.time_logs = db["time_logs"]

    async def export_data(self, exported_by: str) -> dict:
        """
        Export every collection; password hashes are never included.

        Args:
            exported_by: Name of the requesting user

        Returns:
            JSON-ready export document with per-collection counts
        """
        user_docs = await self.users.find({}).to_list(length=None)
        users = [doc_to_user(doc).model_dump(mode="json", by_alias=True) for doc in user_docs]
        clients = [
            c.model_dump(mode="json", by_alias=True)
            for c in await ClientService(self.db).list_clients()
        ]
        categories = [
            c.model_dump(mode="json", by_alias=True)
            for c in await CategoryService(self.db).list_categories()
        ]
        tasks = [
            t.model_dump(mode="json", by_alias=True)
            for t in await TaskService(self.db).list_tasks()
        ]
        log_docs = await self.time_logs.find({}).sort("start_time", 1).to_list(length=None)
        time_logs = [
            log.model_dump(mode="json", by_alias=True)
            for log in await TimeLogService(self.db).to_time_logs(log_docs)
        ]

        return {
            "exported_at": datetime.utcnow().isoformat(),
            "exported_by": exported_by,
            "version": EXPORT_VERSION,
            "data": {
                "users": users,
                "clients": clients,
                "categories": categories,
                "tasks": tasks,
                "time_logs": time_logs,
            },
            "counts": {
                "users": len(users),
                "clients": len(clients),
                "categories": len(categories),
                "tasks": len(tasks),
                "time_logs": len(time_logs),
            },
        }

    async def export_clients(self) -> dict:
        """Export clients with task counts."""
        clients = await ClientService(self.db).list_clients()
        return {
            "exported_at": datetime.utcnow().isoformat(),
            "type": "clients",
            "data": [c.model_dump(mode="json", by_alias=True) for c in clients],
            "count": len(clients),
        }

    async def export_categories(self) -> dict:
        """Export categories with task counts."""
        categories = await CategoryService(self.db).list_categories()
        return {
            "exported_at": datetime.utcnow().isoformat(),
            "type": "categories",
            "data": [c.model_dump(mode="json", by_alias=True) for c in categories],
            "count": len(categories),
        }

    async def import_data(self, data: dict[str, Any], overwrite: bool = False) -> ImportResults:
        """
        Import clients and categories matched by name.

        Rows with a missing or blank name are counted as errors and skipped;
        an invalid category colour falls back to the default.

        Args:
            data: Mapping with optional "clients" and "categories" lists
            overwrite: Update rows whose name already exists instead of skipping

        Returns:
            ImportResults with per-collection counts
        """
        results = ImportResults()

        for row in data.get("clients") or []:
            name = _clean_name(row)
            if name is None:
                logger.warning("Skipping client row without a name: %r", row)
                results.clients.errors += 1
                continue
            description = row.get("description")
            fields = {"name": name, "description": description.strip() if description else None}
            await self._upsert(self.clients, fields, overwrite, results.clients)

        for row in data.get("categories") or []:
            name = _clean_name(row)
            if name is None or len(name) > 50:
                logger.warning("Skipping invalid category row: %r", row)
                results.categories.errors += 1
                continue
            color = row.get("color")
            if not (isinstance(color, str) and _COLOR_PATTERN.match(color.strip())):
                color = DEFAULT_CATEGORY_COLOR
            fields = {"name": name, "color": color.strip().upper()}
            await self._upsert(self.categories, fields, overwrite, results.categories)

        logger.info("Import finished: %s", results.model_dump())
        return results

    async def _upsert(self, collection, fields: dict, overwrite: bool, counts: ImportCounts) -> None:
        now = datetime.utcnow()
        existing = await collection.find_one(
            {"name": {"$regex": f"^{re.escape(fields['name'])}$", "$options": "i"}}
        )
        if existing:
            if overwrite:
                await collection.update_one(
                    {"_id": existing["_id"]},
                    {"$set": {**fields, "updated_at": now}},
                )
                counts.updated += 1
            else:
                counts.skipped += 1
            return

        await collection.insert_one({**fields, "created_at": now, "updated_at": now})
        counts.created += 1


def _clean_name(row: Any) -> str | None:
    if not isinstance(row, dict):
        return None
    name = row.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    return name.strip()
