"""Seed an empty database with an admin account and default reference data.

Usage:
    python scripts/seed.py --admin-email admin@example.com --admin-password changeme

Safe to re-run: existing users, categories and clients are left alone.
"""
import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient

from app.config import settings
from app.database import ensure_indexes
from app.logging_config import setup_logging
from app.models.user import UserRole
from app.services.auth_service import new_user_doc

logger = logging.getLogger("seed")

DEFAULT_CATEGORIES = [
    ("Admin", "#EF4444"),
    ("Automation", "#10B981"),
    ("L4 Escalations", "#F59E0B"),
    ("Project Work", "#3B82F6"),
    ("Client Support", "#8B5CF6"),
    ("Maintenance", "#6B7280"),
]

DEFAULT_CLIENTS = [
    ("Internal", "Internal company tasks"),
]


async def seed(mongodb_url: str, db_name: str, admin_email: str, admin_password: str, admin_name: str):
    """Create indexes, the admin user, default categories and clients."""
    client = AsyncIOMotorClient(mongodb_url)
    db = client[db_name]
    await ensure_indexes(db)

    if await db["users"].find_one({"email": admin_email.lower()}):
        logger.info("Admin %s already exists", admin_email)
    else:
        await db["users"].insert_one(
            new_user_doc(admin_email, admin_password, admin_name, UserRole.ADMIN)
        )
        logger.info("Created admin %s", admin_email)

    now = datetime.utcnow()
    for name, color in DEFAULT_CATEGORIES:
        if not await db["categories"].find_one({"name": name}):
            await db["categories"].insert_one(
                {"name": name, "color": color, "created_at": now, "updated_at": now}
            )
            logger.info("Created category %s", name)

    for name, description in DEFAULT_CLIENTS:
        if not await db["clients"].find_one({"name": name}):
            await db["clients"].insert_one(
                {"name": name, "description": description, "created_at": now, "updated_at": now}
            )
            logger.info("Created client %s", name)

    client.close()


def main():
    parser = argparse.ArgumentParser(description="Seed the time tracker database")
    parser.add_argument("--mongodb-url", default=settings.mongodb_url)
    parser.add_argument("--db-name", default=settings.mongodb_db_name)
    parser.add_argument("--admin-email", required=True)
    parser.add_argument("--admin-password", required=True)
    parser.add_argument("--admin-name", default="Administrator")
    args = parser.parse_args()

    if len(args.admin_password) < 6:
        parser.error("--admin-password must be at least 6 characters")

    setup_logging()
    asyncio.run(seed(
        args.mongodb_url,
        args.db_name,
        args.admin_email,
        args.admin_password,
        args.admin_name,
    ))


if __name__ == "__main__":
    main()
