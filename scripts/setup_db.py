"""
Database setup script - create tables and an admin account

Usage:
    python -m scripts.setup_db <username> <password>
"""
import asyncio
import sys

from sqlalchemy import select

from menu_planner.database import engine, Base, AsyncSessionLocal
from menu_planner.models import User, UserRole
from menu_planner.api.auth import get_password_hash
from menu_planner.utils.validators import normalize_username, is_strong_password, PASSWORD_REQUIREMENTS


async def setup_database(username: str, password: str):
    """Create tables and seed the admin user"""
    print("Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Tables created")

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.username == username))
        if result.scalar_one_or_none():
            print(f"User {username!r} already exists, nothing to do")
            return

        session.add(User(
            username=username,
            password_hash=get_password_hash(password),
            role=UserRole.ADMIN,
        ))
        await session.commit()
        print(f"Admin user {username!r} created")


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)

    name = normalize_username(sys.argv[1])
    if not is_strong_password(sys.argv[2]):
        print(PASSWORD_REQUIREMENTS)
        sys.exit(1)

    asyncio.run(setup_database(name, sys.argv[2]))
