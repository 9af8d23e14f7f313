"""User administration service - admin-only account management."""
import logging
from datetime import datetime

from pymongo import ReturnDocument

from app.models.user import AdminUserCreate, User, UserUpdate
from app.services.auth_service import doc_to_user, new_user_doc
from app.services.errors import ConflictError, NotFoundError, PermissionDeniedError
from app.utils.auth import hash_password
from app.utils.object_ids import to_object_id

logger = logging.getLogger(__name__)


class UserService:
    """Service for admin operations on user accounts."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.users = db["users"]
        self.tasks = db["tasks"]
        self.time_logs = db["time_logs"]

    async def _set(self, user_id: str, fields: dict) -> User:
        fields["updated_at"] = datetime.utcnow()
        updated = await self.users.find_one_and_update(
            {"_id": to_object_id(user_id, "User")},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError("User not found")
        return doc_to_user(updated)

    async def list_users(self) -> list[User]:
        """List all users, newest first."""
        cursor = self.users.find({}).sort("created_at", -1)
        docs = await cursor.to_list(length=None)
        return [doc_to_user(doc) for doc in docs]

    async def create_user(self, user_create: AdminUserCreate) -> User:
        """
        Create a user with any role.

        Raises:
            ConflictError: If the email already exists
        """
        if await self.users.find_one({"email": user_create.email.lower()}):
            raise ConflictError("Email already exists")

        doc = new_user_doc(
            user_create.email, user_create.password, user_create.name, user_create.role
        )
        result = await self.users.insert_one(doc)
        doc["_id"] = result.inserted_id

        logger.info("Admin created user %s with role %s", doc["email"], doc["role"])
        return doc_to_user(doc)

    async def update_user(self, user_id: str, user_update: UserUpdate) -> User:
        """
        Update name, email, role, active flag or password.

        Raises:
            ConflictError: If the new email belongs to another account
            NotFoundError: If user not found
        """
        fields = {}
        if user_update.name:
            fields["name"] = user_update.name
        if user_update.email:
            email = user_update.email.lower()
            clash = await self.users.find_one({
                "email": email,
                "_id": {"$ne": to_object_id(user_id, "User")},
            })
            if clash:
                raise ConflictError("Email already exists")
            fields["email"] = email
        if user_update.role:
            fields["role"] = user_update.role.value
        if user_update.is_active is not None:
            fields["is_active"] = user_update.is_active
        if user_update.password:
            fields["hashed_password"] = hash_password(user_update.password)
            fields["password_changed_at"] = datetime.utcnow()

        return await self._set(user_id, fields)

    async def delete_user(self, acting_user_id: str, user_id: str) -> tuple[str, User | None]:
        """
        Delete a user, or deactivate them if they own tasks or time logs.

        Args:
            acting_user_id: Admin performing the deletion
            user_id: User to delete

        Returns:
            Tuple of (message, deactivated user or None if deleted)

        Raises:
            PermissionDeniedError: If admins try to delete themselves
            NotFoundError: If user not found
        """
        if acting_user_id == user_id:
            raise PermissionDeniedError("Cannot delete your own account")

        object_id = to_object_id(user_id, "User")
        if not await self.users.find_one({"_id": object_id}):
            raise NotFoundError("User not found")

        owned = (
            await self.tasks.count_documents({"user_id": user_id})
            + await self.time_logs.count_documents({"user_id": user_id})
        )
        if owned > 0:
            user = await self._set(user_id, {"is_active": False})
            logger.info("Deactivated user %s instead of deleting (owns data)", user_id)
            return "User deactivated", user

        await self.users.delete_one({"_id": object_id})
        logger.info("Deleted user %s", user_id)
        return "User deleted successfully", None

    async def unlock_user(self, user_id: str) -> User:
        """Clear failed login attempts and any lockout."""
        return await self._set(user_id, {"login_attempts": 0, "locked_until": None})

    async def reset_password(self, user_id: str, new_password: str) -> User:
        """Set a new password and clear any lockout."""
        user = await self._set(user_id, {
            "hashed_password": hash_password(new_password),
            "password_changed_at": datetime.utcnow(),
            "login_attempts": 0,
            "locked_until": None,
        })
        logger.info("Password reset for user %s", user_id)
        return user

    async def toggle_status(self, acting_user_id: str, user_id: str) -> User:
        """
        Flip a user's active flag.

        Raises:
            PermissionDeniedError: If admins try to change their own status
            NotFoundError: If user not found
        """
        if acting_user_id == user_id:
            raise PermissionDeniedError("Cannot change your own account status")

        doc = await self.users.find_one({"_id": to_object_id(user_id, "User")})
        if not doc:
            raise NotFoundError("User not found")

        return await self._set(user_id, {"is_active": not doc.get("is_active", True)})
