"""Authentication service - business logic for user auth."""
import logging
from datetime import datetime, timedelta

from pymongo import ReturnDocument

from app.config import settings
from app.models.user import PasswordChange, ProfileUpdate, User, UserRole
from app.services.errors import ConflictError, NotFoundError
from app.utils.auth import create_access_token, hash_password, verify_password
from app.utils.object_ids import to_object_id

logger = logging.getLogger(__name__)


def doc_to_user(doc: dict) -> User:
    """Convert a users document to the public User model."""
    return User(
        _id=str(doc["_id"]),
        email=doc["email"],
        name=doc["name"],
        role=doc.get("role", UserRole.STANDARD.value),
        is_active=doc.get("is_active", True),
        last_login=doc.get("last_login"),
        login_attempts=doc.get("login_attempts", 0),
        locked_until=doc.get("locked_until"),
        password_changed_at=doc.get("password_changed_at"),
        created_at=doc["created_at"],
        updated_at=doc["updated_at"],
    )


def new_user_doc(email: str, password: str, name: str, role: UserRole) -> dict:
    """Build a users document with a hashed password."""
    now = datetime.utcnow()
    return {
        "email": email.lower(),
        "hashed_password": hash_password(password),
        "name": name,
        "role": role.value,
        "is_active": True,
        "last_login": None,
        "login_attempts": 0,
        "locked_until": None,
        "password_changed_at": now,
        "created_at": now,
        "updated_at": now,
    }


class AuthService:
    """Service for handling user authentication."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.users = db["users"]

    async def register_user(self, email: str, password: str, name: str) -> User:
        """
        Register a new standard user.

        Args:
            email: User email address
            password: Plain text password
            name: User's name

        Returns:
            User object (without password)

        Raises:
            ConflictError: If email is already registered
        """
        existing = await self.users.find_one({"email": email.lower()})
        if existing:
            raise ConflictError("Email already registered")

        user_doc = new_user_doc(email, password, name, UserRole.STANDARD)
        result = await self.users.insert_one(user_doc)
        user_doc["_id"] = result.inserted_id

        logger.info("Registered user %s", user_doc["email"])
        return doc_to_user(user_doc)

    async def login(self, email: str, password: str) -> tuple[str, User]:
        """
        Login user and return a JWT token.

        Consecutive failures lock the account for a while; a successful
        login resets the counter.

        Args:
            email: User email
            password: Plain text password

        Returns:
            Tuple of (access token, user)

        Raises:
            ValueError: If credentials are invalid, or the account is
                locked or deactivated
        """
        user_doc = await self.users.find_one({"email": email.lower()})
        if not user_doc:
            raise ValueError("Invalid email or password")

        now = datetime.utcnow()
        locked_until = user_doc.get("locked_until")
        if locked_until and locked_until > now:
            raise ValueError("Account is temporarily locked. Try again later.")

        if not user_doc.get("is_active", True):
            raise ValueError("Account is deactivated")

        if not verify_password(password, user_doc["hashed_password"]):
            attempts = user_doc.get("login_attempts", 0) + 1
            update = {"login_attempts": attempts}
            if attempts >= settings.login_max_attempts:
                update["login_attempts"] = 0
                update["locked_until"] = now + timedelta(minutes=settings.login_lockout_minutes)
                logger.warning("Locked account %s after %d failed logins", email, attempts)
            await self.users.update_one({"_id": user_doc["_id"]}, {"$set": update})
            raise ValueError("Invalid email or password")

        await self.users.update_one(
            {"_id": user_doc["_id"]},
            {"$set": {"login_attempts": 0, "locked_until": None, "last_login": now}},
        )
        user_doc.update(login_attempts=0, locked_until=None, last_login=now)

        token = create_access_token(user_id=str(user_doc["_id"]))
        return token, doc_to_user(user_doc)

    async def get_user_by_id(self, user_id: str) -> User:
        """
        Get user by ID.

        Raises:
            NotFoundError: If user not found
        """
        user_doc = await self.users.find_one({"_id": to_object_id(user_id, "User")})
        if not user_doc:
            raise NotFoundError("User not found")

        return doc_to_user(user_doc)

    async def update_profile(self, user_id: str, profile: ProfileUpdate) -> User:
        """
        Change the current user's name or email.

        Raises:
            ConflictError: If the email belongs to another account
            NotFoundError: If user not found
        """
        object_id = to_object_id(user_id, "User")
        update_doc = {"updated_at": datetime.utcnow()}
        if profile.name:
            update_doc["name"] = profile.name
        if profile.email:
            email = profile.email.lower()
            if await self.users.find_one({"email": email, "_id": {"$ne": object_id}}):
                raise ConflictError("Email already in use by another account")
            update_doc["email"] = email

        updated = await self.users.find_one_and_update(
            {"_id": object_id},
            {"$set": update_doc},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError("User not found")
        return doc_to_user(updated)

    async def change_password(self, user_id: str, change: PasswordChange) -> None:
        """
        Change the current user's password.

        Raises:
            ValueError: If the current password is wrong
            NotFoundError: If user not found
        """
        user_doc = await self.users.find_one({"_id": to_object_id(user_id, "User")})
        if not user_doc:
            raise NotFoundError("User not found")

        if not verify_password(change.current_password, user_doc["hashed_password"]):
            raise ValueError("Current password is incorrect")

        now = datetime.utcnow()
        await self.users.update_one(
            {"_id": user_doc["_id"]},
            {"$set": {
                "hashed_password": hash_password(change.new_password),
                "password_changed_at": now,
                "updated_at": now,
            }},
        )
