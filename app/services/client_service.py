"""Client service - business logic for client management."""
import logging
import re
from datetime import datetime

from pymongo import ReturnDocument

from app.models.client import Client, ClientCreate, ClientUpdate
from app.services.errors import ConflictError, NotFoundError
from app.utils.object_ids import to_object_id

logger = logging.getLogger(__name__)


class ClientService:
    """Service for handling client operations."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.clients = db["clients"]
        self.tasks = db["tasks"]

    def _doc_to_client(self, doc: dict, task_count: int = 0) -> Client:
        """Convert database document to Client model."""
        return Client(
            _id=str(doc["_id"]),
            name=doc["name"],
            description=doc.get("description"),
            task_count=task_count,
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def _with_count(self, doc: dict) -> Client:
        count = await self.tasks.count_documents({"client_id": str(doc["_id"])})
        return self._doc_to_client(doc, count)

    async def _ensure_unique_name(self, name: str, exclude_id=None) -> None:
        # Case-insensitive exact match
        query = {"name": {"$regex": f"^{re.escape(name)}$", "$options": "i"}}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        if await self.clients.find_one(query):
            raise ConflictError("A client with this name already exists")

    async def list_clients(self) -> list[Client]:
        """List all clients sorted by name, with task counts."""
        cursor = self.clients.find({}).sort("name", 1)
        docs = await cursor.to_list(length=None)
        return [await self._with_count(doc) for doc in docs]

    async def get_client(self, client_id: str) -> Client:
        """
        Get a client by ID.

        Raises:
            NotFoundError: If the client doesn't exist
        """
        doc = await self.clients.find_one({"_id": to_object_id(client_id, "Client")})
        if not doc:
            raise NotFoundError("Client not found")
        return await self._with_count(doc)

    async def create_client(self, client_create: ClientCreate) -> Client:
        """
        Create a client.

        Raises:
            ConflictError: If the name is already taken
        """
        await self._ensure_unique_name(client_create.name)

        now = datetime.utcnow()
        doc = {
            "name": client_create.name,
            "description": client_create.description,
            "created_at": now,
            "updated_at": now,
        }
        result = await self.clients.insert_one(doc)
        doc["_id"] = result.inserted_id
        return self._doc_to_client(doc)

    async def update_client(self, client_id: str, client_update: ClientUpdate) -> Client:
        """
        Rename or re-describe a client.

        Raises:
            NotFoundError: If the client doesn't exist
            ConflictError: If the new name is already taken
        """
        object_id = to_object_id(client_id, "Client")
        await self._ensure_unique_name(client_update.name, exclude_id=object_id)

        updated = await self.clients.find_one_and_update(
            {"_id": object_id},
            {"$set": {
                "name": client_update.name,
                "description": client_update.description,
                "updated_at": datetime.utcnow(),
            }},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError("Client not found")
        return await self._with_count(updated)

    async def delete_client(self, client_id: str) -> None:
        """
        Delete a client with no tasks.

        Raises:
            NotFoundError: If the client doesn't exist
            ConflictError: If tasks reference the client
        """
        object_id = to_object_id(client_id, "Client")
        if not await self.clients.find_one({"_id": object_id}):
            raise NotFoundError("Client not found")

        if await self.tasks.count_documents({"client_id": str(object_id)}) > 0:
            raise ConflictError("Cannot delete client with existing tasks")

        await self.clients.delete_one({"_id": object_id})
        logger.info("Deleted client %s", client_id)
