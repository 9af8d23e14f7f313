"""Task service - business logic for task management."""
import logging
import re
from datetime import date, datetime
from typing import Iterable, Optional

from bson import ObjectId
from pymongo import ReturnDocument

from app.models.task import Task, TaskCreate, TaskStatus, TaskSummary, TaskUpdate
from app.services.errors import ConflictError, NotFoundError
from app.utils.object_ids import canonical_id, to_object_id

logger = logging.getLogger(__name__)


def _valid_object_ids(values: Iterable[Optional[str]]) -> list[ObjectId]:
    return [ObjectId(value) for value in set(values) if value and ObjectId.is_valid(value)]


async def _docs_by_id(collection, ids: Iterable[Optional[str]]) -> dict[str, dict]:
    object_ids = _valid_object_ids(ids)
    if not object_ids:
        return {}
    docs = await collection.find({"_id": {"$in": object_ids}}).to_list(length=None)
    return {str(doc["_id"]): doc for doc in docs}


async def load_task_summaries(db, task_ids: Iterable[str]) -> dict[str, TaskSummary]:
    """
    Load tasks with their client and category names joined in.

    Args:
        db: Database handle
        task_ids: Task IDs to resolve; unknown IDs are left out

    Returns:
        Mapping of task ID to TaskSummary
    """
    tasks = await _docs_by_id(db["tasks"], task_ids)
    if not tasks:
        return {}
    clients = await _docs_by_id(db["clients"], [t.get("client_id") for t in tasks.values()])
    categories = await _docs_by_id(
        db["categories"], [t.get("category_id") for t in tasks.values()]
    )

    summaries = {}
    for task_id, task in tasks.items():
        client = clients.get(task.get("client_id") or "")
        category = categories.get(task.get("category_id") or "")
        summaries[task_id] = TaskSummary(
            id=task_id,
            title=task["title"],
            halo_ticket_id=task.get("halo_ticket_id"),
            client_id=task.get("client_id"),
            client_name=client["name"] if client else None,
            category_id=task.get("category_id"),
            category_name=category["name"] if category else None,
            category_color=category.get("color") if category else None,
        )
    return summaries


class TaskService:
    """Service for handling task operations."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.tasks = db["tasks"]
        self.clients = db["clients"]
        self.categories = db["categories"]
        self.time_logs = db["time_logs"]

    def _doc_to_task(
        self,
        doc: dict,
        client: Optional[dict] = None,
        category: Optional[dict] = None,
        time_log_count: int = 0,
    ) -> Task:
        """
        Convert database document to Task model.

        Handles datetime to date conversion for the due date.
        """
        due = doc.get("due_date")
        return Task(
            _id=str(doc["_id"]),
            user_id=doc["user_id"],
            title=doc["title"],
            description=doc.get("description"),
            halo_ticket_id=doc.get("halo_ticket_id"),
            client_id=doc.get("client_id"),
            category_id=doc.get("category_id"),
            status=doc["status"],
            priority=doc["priority"],
            due_date=due.date() if isinstance(due, datetime) else due,
            client_name=client["name"] if client else None,
            category_name=category["name"] if category else None,
            category_color=category.get("color") if category else None,
            time_log_count=time_log_count,
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def _to_tasks(self, docs: list[dict]) -> list[Task]:
        clients = await _docs_by_id(self.clients, [d.get("client_id") for d in docs])
        categories = await _docs_by_id(self.categories, [d.get("category_id") for d in docs])
        tasks = []
        for doc in docs:
            count = await self.time_logs.count_documents({"task_id": str(doc["_id"])})
            tasks.append(self._doc_to_task(
                doc,
                clients.get(doc.get("client_id") or ""),
                categories.get(doc.get("category_id") or ""),
                count,
            ))
        return tasks

    async def _check_references(
        self, client_id: Optional[str], category_id: Optional[str]
    ) -> None:
        if client_id and not await self.clients.find_one(
            {"_id": to_object_id(client_id, "Client")}
        ):
            raise NotFoundError("Client not found")
        if category_id and not await self.categories.find_one(
            {"_id": to_object_id(category_id, "Category")}
        ):
            raise NotFoundError("Category not found")

    async def list_tasks(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        client_id: Optional[str] = None,
        category_id: Optional[str] = None,
        halo_ticket_id: Optional[str] = None,
    ) -> list[Task]:
        """
        List tasks, newest first.

        Args:
            status: Comma-separated statuses, e.g. "pending,in_progress"
            priority: Optional priority filter
            client_id: Optional client filter
            category_id: Optional category filter
            halo_ticket_id: Substring of the Halo ticket ID

        Returns:
            List of tasks
        """
        query = {}
        if status:
            query["status"] = {"$in": [s.strip() for s in status.split(",") if s.strip()]}
        if priority:
            query["priority"] = priority
        if client_id:
            query["client_id"] = canonical_id(client_id)
        if category_id:
            query["category_id"] = canonical_id(category_id)
        if halo_ticket_id:
            query["halo_ticket_id"] = {"$regex": re.escape(halo_ticket_id)}

        cursor = self.tasks.find(query).sort("created_at", -1)
        docs = await cursor.to_list(length=None)
        return await self._to_tasks(docs)

    async def get_task(self, task_id: str) -> Task:
        """
        Get a task by ID.

        Raises:
            NotFoundError: If the task doesn't exist
        """
        doc = await self.tasks.find_one({"_id": to_object_id(task_id, "Task")})
        if not doc:
            raise NotFoundError("Task not found")
        return (await self._to_tasks([doc]))[0]

    async def list_by_halo_ticket(self, ticket_id: str) -> list[Task]:
        """List tasks linked to an exact Halo ticket ID."""
        cursor = self.tasks.find({"halo_ticket_id": ticket_id}).sort("created_at", -1)
        docs = await cursor.to_list(length=None)
        return await self._to_tasks(docs)

    async def create_task(self, user_id: str, task_create: TaskCreate) -> Task:
        """
        Create a new task.

        Args:
            user_id: User ID of the creator
            task_create: Task creation data

        Returns:
            Created task

        Raises:
            NotFoundError: If the client or category doesn't exist
        """
        await self._check_references(task_create.client_id, task_create.category_id)

        now = datetime.utcnow()
        task_doc = {
            "user_id": user_id,
            "title": task_create.title.strip(),
            "description": task_create.description,
            "halo_ticket_id": task_create.halo_ticket_id or None,
            "client_id": canonical_id(task_create.client_id),
            "category_id": canonical_id(task_create.category_id),
            "status": TaskStatus.PENDING.value,
            "priority": task_create.priority.value,
            "due_date": _date_to_datetime(task_create.due_date),
            "created_at": now,
            "updated_at": now,
        }

        result = await self.tasks.insert_one(task_doc)
        task_doc["_id"] = result.inserted_id

        return (await self._to_tasks([task_doc]))[0]

    async def update_task(self, task_id: str, task_update: TaskUpdate) -> Task:
        """
        Update a task.

        Raises:
            NotFoundError: If the task, client or category doesn't exist
        """
        object_id = to_object_id(task_id, "Task")
        await self._check_references(task_update.client_id, task_update.category_id)

        update_doc = {"updated_at": datetime.utcnow()}
        for field, value in task_update.model_dump(exclude_unset=True).items():
            if field == "due_date":
                value = _date_to_datetime(value)
            elif field in ("client_id", "category_id"):
                value = canonical_id(value)
            elif field in ("status", "priority") and value is not None:
                value = value.value
            update_doc[field] = value

        updated = await self.tasks.find_one_and_update(
            {"_id": object_id},
            {"$set": update_doc},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError("Task not found")

        return (await self._to_tasks([updated]))[0]

    async def delete_task(self, task_id: str) -> None:
        """
        Delete a task that has no time logs.

        Raises:
            NotFoundError: If the task doesn't exist
            ConflictError: If time logs reference the task
        """
        object_id = to_object_id(task_id, "Task")
        if not await self.tasks.find_one({"_id": object_id}):
            raise NotFoundError("Task not found")

        if await self.time_logs.count_documents({"task_id": str(object_id)}) > 0:
            raise ConflictError("Cannot delete task with existing time logs")

        await self.tasks.delete_one({"_id": object_id})
        logger.info("Deleted task %s", object_id)


def _date_to_datetime(value: Optional[date]) -> Optional[datetime]:
    """MongoDB stores dates as datetimes at midnight."""
    if value is None:
        return None
    return datetime.combine(value, datetime.min.time())
