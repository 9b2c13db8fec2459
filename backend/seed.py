"""
Seed the users table with one account per role.

Usage::

    python seed.py
"""

import asyncio
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.user import UserRole
from infrastructure.config import get_settings
from infrastructure.database import close_db, get_db_context, init_db
from infrastructure.database.models import User
from infrastructure.logging_config import setup_logging

logger = logging.getLogger(__name__)

SEED_USERS = [
    ("admin@contentflow.local", "Admin User", UserRole.ADMIN),
    ("editor@contentflow.local", "Editor User", UserRole.EDITOR),
    ("reviewer@contentflow.local", "Reviewer User", UserRole.REVIEWER),
]


async def seed_users(session: AsyncSession) -> list[User]:
    """Create the seed users unless any user already exists.

    Returns the users created, or an empty list when seeding was skipped.
    """
    existing = (await session.execute(select(func.count()).select_from(User))).scalar() or 0
    if existing:
        logger.info("Users already exist (%d), skipping seed", existing)
        return []

    users = [User(email=email, name=name, role=role.value) for email, name, role in SEED_USERS]
    session.add_all(users)
    await session.flush()
    for user in users:
        logger.info("Created user %s (%s) - ID: %s", user.email, user.role, user.id)
    return users


async def main() -> None:
    settings = get_settings()
    setup_logging(json_output=settings.use_json_logs)
    await init_db()
    try:
        async with get_db_context() as session:
            await seed_users(session)
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
