"""
Create (or promote) the first admin account.

Self-registration only files approval requests, so a fresh install needs one
admin created out of band. Running this twice is safe: an existing account
with the same email is promoted to an approved admin instead.

Usage:
    python scripts/create_admin_user.py --email admin@example.com --name Admin
    NOTEVAULT_ADMIN_PASSWORD=... python scripts/create_admin_user.py --email ...
"""

import argparse
import asyncio
import getpass
import os
import sys

sys.path.insert(0, ".")

from sqlalchemy import func, select
from notevault.database import async_session_maker
from notevault.models import User
from notevault.utils.security import get_password_hash


async def create_admin(email: str, name: str, password: str) -> None:
    async with async_session_maker() as db:
        email = email.lower()
        result = await db.execute(select(User).where(func.lower(User.email) == email))
        user = result.scalar_one_or_none()

        if user is None:
            user = User(
                email=email,
                name=name,
                password_hash=get_password_hash(password),
                role="admin",
                status="approved",
            )
            db.add(user)
            print(f"Created admin user: {email}")
        else:
            user.role = "admin"
            user.status = "approved"
            print(f"User {email} already exists, promoted to admin")

        await db.commit()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the first admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", default="Administrator")
    args = parser.parse_args()

    password = os.environ.get("NOTEVAULT_ADMIN_PASSWORD") or getpass.getpass("Password: ")
    if len(password) < 8:
        parser.error("password must be at least 8 characters")

    asyncio.run(create_admin(args.email, args.name, password))


if __name__ == "__main__":
    main()
