"""
Script to create (or promote) an ADMIN user with a password for local testing.

Usage:
    python -m app.scripts.create_local_admin --email admin@example.com --password 'Secret123' --name Admin
"""

import asyncio
import argparse

from sqlmodel import select

from app.core.auth import hash_password
from app.core.database import get_session_context, init_db
from app.models.user import User
from devshowcase_shared.schemas.common import Role


async def create_admin(email: str, password: str, full_name: str) -> User:
    await init_db()

    async with get_session_context() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if not user:
            user = User(
                full_name=full_name,
                email=email,
                password_hash=hash_password(password),
                role=Role.ADMIN.value,
            )
            session.add(user)
            print(f"Created admin user: {email}")
        elif user.role != Role.ADMIN.value:
            user.role = Role.ADMIN.value
            session.add(user)
            print(f"Promoted {email} to admin.")
        else:
            print(f"User {email} is already an admin.")

    print("Done.")
    return user


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a local admin user.")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument("--password", required=True, help="Password for the user")
    parser.add_argument("--name", default="Admin", help="Full name for the user")

    args = parser.parse_args()

    asyncio.run(create_admin(args.email, args.password, args.name))
