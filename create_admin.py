"""
Create the admin account if it does not exist yet.

Usage: DATABASE_URL=mongodb://localhost:27017 python create_admin.py
"""
import logging
import sys

from pymongo.database import Database

from auth import hash_password
from config import Settings, get_settings
from database import close_db, create_document, init_db
from schemas import User as UserSchema

logger = logging.getLogger(__name__)


def ensure_admin(db: Database, settings: Settings) -> bool:
    """Return True when a new admin was created, False when one already existed."""
    if db["user"].find_one({"email": settings.admin_email}):
        logger.info("Admin user already exists: %s", settings.admin_email)
        return False
    admin = UserSchema(
        name="Admin User",
        email=settings.admin_email,
        password_hash=hash_password(settings.admin_password, settings.auth_salt),
        role="admin",
    )
    create_document(db, "user", admin)
    logger.info("Admin user created: %s (change the password after first login)", settings.admin_email)
    return True


def main() -> int:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(message)s")
    db = init_db(settings)
    if db is None:
        logger.error("DATABASE_URL must be set to create the admin user")
        return 1
    try:
        ensure_admin(db, settings)
    finally:
        close_db()
    return 0


if __name__ == "__main__":
    sys.exit(main())
