"""Category service - business logic for task categories."""
import logging
import re
from datetime import datetime

from pymongo import ReturnDocument

from app.models.category import Category, CategoryCreate, CategoryUpdate
from app.services.errors import ConflictError, NotFoundError
from app.utils.object_ids import to_object_id

logger = logging.getLogger(__name__)


class CategoryService:
    """Service for handling category operations."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.categories = db["categories"]
        self.tasks = db["tasks"]

    def _doc_to_category(self, doc: dict, task_count: int = 0) -> Category:
        """Convert database document to Category model."""
        return Category(
            _id=str(doc["_id"]),
            name=doc["name"],
            color=doc["color"],
            task_count=task_count,
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def _name_taken(self, name: str, exclude_id=None) -> bool:
        query = {"name": {"$regex": f"^{re.escape(name)}$", "$options": "i"}}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        return await self.categories.find_one(query) is not None

    async def list_categories(self) -> list[Category]:
        """List all categories sorted by name, with task counts."""
        cursor = self.categories.find({}).sort("name", 1)
        docs = await cursor.to_list(length=None)
        categories = []
        for doc in docs:
            count = await self.tasks.count_documents({"category_id": str(doc["_id"])})
            categories.append(self._doc_to_category(doc, count))
        return categories

    async def get_category(self, category_id: str) -> Category:
        """
        Get a category by ID.

        Raises:
            NotFoundError: If the category doesn't exist
        """
        doc = await self.categories.find_one({"_id": to_object_id(category_id, "Category")})
        if not doc:
            raise NotFoundError("Category not found")
        count = await self.tasks.count_documents({"category_id": str(doc["_id"])})
        return self._doc_to_category(doc, count)

    async def create_category(self, category_create: CategoryCreate) -> Category:
        """
        Create a category.

        Raises:
            ConflictError: If the name is already taken
        """
        if await self._name_taken(category_create.name):
            raise ConflictError("A category with this name already exists")

        now = datetime.utcnow()
        doc = {
            "name": category_create.name,
            "color": category_create.color.upper(),
            "created_at": now,
            "updated_at": now,
        }
        result = await self.categories.insert_one(doc)
        doc["_id"] = result.inserted_id
        return self._doc_to_category(doc)

    async def update_category(
        self, category_id: str, category_update: CategoryUpdate
    ) -> Category:
        """
        Update a category.

        Raises:
            NotFoundError: If the category doesn't exist
            ConflictError: If the new name is already taken
        """
        object_id = to_object_id(category_id, "Category")
        if await self._name_taken(category_update.name, exclude_id=object_id):
            raise ConflictError("A category with this name already exists")

        updated = await self.categories.find_one_and_update(
            {"_id": object_id},
            {"$set": {
                "name": category_update.name,
                "color": category_update.color.upper(),
                "updated_at": datetime.utcnow(),
            }},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError("Category not found")
        count = await self.tasks.count_documents({"category_id": str(updated["_id"])})
        return self._doc_to_category(updated, count)

    async def delete_category(self, category_id: str) -> None:
        """
        Delete a category with no tasks.

        Raises:
            NotFoundError: If the category doesn't exist
            ConflictError: If tasks reference the category
        """
        object_id = to_object_id(category_id, "Category")
        if not await self.categories.find_one({"_id": object_id}):
            raise NotFoundError("Category not found")

        if await self.tasks.count_documents({"category_id": str(object_id)}) > 0:
            raise ConflictError("Cannot delete category with existing tasks")

        await self.categories.delete_one({"_id": object_id})
        logger.info("Deleted category %s", category_id)
