"""Pytest configuration and fixtures."""
import os

os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("REPORT_TIMEZONE", "UTC")

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import AsyncClient, ASGITransport
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from app.main import app
from app.config import settings


def make_collection(docs=None, find_one=None):
    """
    Build a Motor collection mock.

    ``find()`` returns a cursor whose ``sort()`` returns itself and whose
    ``to_list()`` resolves to ``docs``.
    """
    collection = MagicMock()
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(docs or []))
    collection.find.return_value = cursor

    collection.find_one = AsyncMock(return_value=find_one)
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
    collection.insert_many = AsyncMock(
        side_effect=lambda batch: MagicMock(inserted_ids=[ObjectId() for _ in batch])
    )
    collection.update_one = AsyncMock()
    collection.update_many = AsyncMock()
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    collection.count_documents = AsyncMock(return_value=0)
    return collection


@pytest.fixture
def make_db():
    """
    Factory for a mock database.

    Named collections are used as given; any other collection is an empty mock.
    """
    def _make_db(**collections):
        db = MagicMock()
        known = dict(collections)

        def get_collection(name):
            if name not in known:
                known[name] = make_collection()
            return known[name]

        db.__getitem__.side_effect = get_collection
        return db

    return _make_db


@pytest_asyncio.fixture
async def app_client():
    """
    Create a test client with a clean test database.

    This fixture:
    - Skips the test when MongoDB is not reachable
    - Yields an async HTTP client for testing
    - Cleans up the test database after each test
    """
    test_client = AsyncIOMotorClient(settings.mongodb_url, serverSelectionTimeoutMS=2000)
    try:
        await test_client.admin.command("ping")
    except PyMongoError:
        test_client.close()
        pytest.skip("MongoDB is not reachable")

    test_db_name = f"{settings.mongodb_db_name}_test"
    test_db = test_client[test_db_name]

    # Override the database dependency
    from app.database import database, ensure_indexes
    original_db = database.db
    database.db = test_db
    await ensure_indexes(test_db)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    # Cleanup: drop test database
    await test_client.drop_database(test_db_name)

    database.db = original_db
    test_client.close()


@pytest_asyncio.fixture
async def auth_headers(app_client):
    """Register and log in a standard user; returns bearer headers."""
    return await login_as(app_client, "worker@example.com")


async def login_as(client, email, password="password123", name="Test User", admin=False):
    """Register (if needed) and log in a user, optionally promoting them to admin."""
    await client.post(
        "/auth/register",
        json={"email": email, "password": password, "name": name},
    )
    if admin:
        from app.database import database
        await database.db["users"].update_one(
            {"email": email}, {"$set": {"role": "admin"}}
        )

    response = await client.post("/auth/login", json={"email": email, "password": password})
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def login(app_client):
    """Log in as any user: ``headers = await login("a@example.com", admin=True)``."""
    async def _login(email, admin=False):
        return await login_as(app_client, email, admin=admin)

    return _login
