"""Tests for AuthService."""
import pytest
from datetime import datetime, timedelta

from bson import ObjectId

from conftest import make_collection
from app.models.user import PasswordChange, ProfileUpdate
from app.services.auth_service import AuthService
from app.services.errors import ConflictError, NotFoundError
from app.utils.auth import hash_password, verify_access_token


def user_doc(password="correctpassword", **extra):
    doc = {
        "_id": ObjectId(),
        "email": "dana@example.com",
        "name": "Dana",
        "hashed_password": hash_password(password),
        "role": "standard",
        "is_active": True,
        "login_attempts": 0,
        "locked_until": None,
        "created_at": datetime.utcnow(),
        "updated_at": datetime.utcnow(),
    }
    doc.update(extra)
    return doc


@pytest.mark.asyncio
class TestAuthServiceRegister:
    """Tests for user registration."""

    async def test_register_user_success(self, make_db):
        users = make_collection()
        service = AuthService(make_db(users=users))

        user = await service.register_user(
            email="Dana@Example.com",
            password="securepassword123",
            name="Dana",
        )

        assert user.email == "dana@example.com"
        assert user.name == "Dana"
        assert user.role == "standard"
        assert user.is_active is True
        assert not hasattr(user, "hashed_password")
        users.insert_one.assert_called_once()

    async def test_register_duplicate_email(self, make_db):
        users = make_collection(find_one=user_doc())
        service = AuthService(make_db(users=users))

        with pytest.raises(ConflictError, match="Email already registered"):
            await service.register_user(
                email="dana@example.com", password="password123", name="Dana"
            )

        users.insert_one.assert_not_called()

    async def test_register_hashes_password(self, make_db):
        users = make_collection()
        service = AuthService(make_db(users=users))

        await service.register_user(email="dana@example.com", password="plaintext", name="Dana")

        inserted = users.insert_one.call_args[0][0]
        assert inserted["hashed_password"] != "plaintext"
        assert inserted["hashed_password"].startswith("$2b$")


@pytest.mark.asyncio
class TestAuthServiceLogin:
    """Tests for login and lockout."""

    async def test_login_success(self, make_db):
        doc = user_doc(login_attempts=3)
        users = make_collection(find_one=doc)
        service = AuthService(make_db(users=users))

        token, user = await service.login(email="dana@example.com", password="correctpassword")

        assert verify_access_token(token) == str(doc["_id"])
        assert user.login_attempts == 0
        assert user.last_login is not None
        update = users.update_one.call_args[0][1]["$set"]
        assert update["login_attempts"] == 0
        assert update["locked_until"] is None

    async def test_login_user_not_found(self, make_db):
        service = AuthService(make_db(users=make_collection()))

        with pytest.raises(ValueError, match="Invalid email or password"):
            await service.login(email="nobody@example.com", password="password123")

    async def test_login_wrong_password_counts_attempt(self, make_db):
        users = make_collection(find_one=user_doc(login_attempts=1))
        service = AuthService(make_db(users=users))

        with pytest.raises(ValueError, match="Invalid email or password"):
            await service.login(email="dana@example.com", password="wrongpassword")

        update = users.update_one.call_args[0][1]["$set"]
        assert update == {"login_attempts": 2}

    async def test_fifth_failure_locks_account(self, make_db):
        users = make_collection(find_one=user_doc(login_attempts=4))
        service = AuthService(make_db(users=users))

        with pytest.raises(ValueError, match="Invalid email or password"):
            await service.login(email="dana@example.com", password="wrongpassword")

        update = users.update_one.call_args[0][1]["$set"]
        assert update["login_attempts"] == 0
        lockout = update["locked_until"] - datetime.utcnow()
        assert timedelta(minutes=14) < lockout <= timedelta(minutes=15)

    async def test_locked_account_rejects_correct_password(self, make_db):
        doc = user_doc(locked_until=datetime.utcnow() + timedelta(minutes=10))
        users = make_collection(find_one=doc)
        service = AuthService(make_db(users=users))

        with pytest.raises(ValueError, match="temporarily locked"):
            await service.login(email="dana@example.com", password="correctpassword")

        users.update_one.assert_not_called()

    async def test_expired_lock_allows_login(self, make_db):
        doc = user_doc(locked_until=datetime.utcnow() - timedelta(minutes=1))
        service = AuthService(make_db(users=make_collection(find_one=doc)))

        token, _ = await service.login(email="dana@example.com", password="correctpassword")

        assert token

    async def test_deactivated_account(self, make_db):
        service = AuthService(make_db(users=make_collection(find_one=user_doc(is_active=False))))

        with pytest.raises(ValueError, match="deactivated"):
            await service.login(email="dana@example.com", password="correctpassword")


@pytest.mark.asyncio
class TestAuthServiceProfile:
    """Tests for user lookup and self-service changes."""

    async def test_get_user_by_id_found(self, make_db):
        doc = user_doc()
        service = AuthService(make_db(users=make_collection(find_one=doc)))

        user = await service.get_user_by_id(str(doc["_id"]))

        assert user.id == str(doc["_id"])
        assert user.email == "dana@example.com"

    async def test_get_user_by_id_not_found(self, make_db):
        service = AuthService(make_db(users=make_collection()))

        with pytest.raises(NotFoundError, match="User not found"):
            await service.get_user_by_id(str(ObjectId()))

    async def test_get_user_by_malformed_id(self, make_db):
        service = AuthService(make_db(users=make_collection()))

        with pytest.raises(NotFoundError, match="Invalid user ID format"):
            await service.get_user_by_id("nonexistent")

    async def test_update_profile_email_taken(self, make_db):
        users = make_collection(find_one=user_doc(email="taken@example.com"))
        service = AuthService(make_db(users=users))

        with pytest.raises(ConflictError, match="already in use"):
            await service.update_profile(
                str(ObjectId()), ProfileUpdate(email="taken@example.com")
            )

    async def test_change_password_wrong_current(self, make_db):
        doc = user_doc()
        users = make_collection(find_one=doc)
        service = AuthService(make_db(users=users))

        with pytest.raises(ValueError, match="Current password is incorrect"):
            await service.change_password(
                str(doc["_id"]),
                PasswordChange(current_password="notmypassword", new_password="newsecret"),
            )

        users.update_one.assert_not_called()

    async def test_change_password(self, make_db):
        doc = user_doc()
        users = make_collection(find_one=doc)
        service = AuthService(make_db(users=users))

        await service.change_password(
            str(doc["_id"]),
            PasswordChange(current_password="correctpassword", new_password="newsecret"),
        )

        update = users.update_one.call_args[0][1]["$set"]
        assert update["hashed_password"].startswith("$2b$")
        assert update["password_changed_at"] == update["updated_at"]
