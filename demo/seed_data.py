#!/usr/bin/env python3
"""
Seed script for the Database Host Panel demo.

This script creates sample data in the panel database:
- An administrator account that can call the application API
- A regular account that is refused by the application API
- A node that database hosts can be registered against

Database hosts themselves are not seeded: registering one requires a
reachable database server, so use POST /api/application/database-hosts.

Usage:
    cd backend
    python ../demo/seed_data.py

Or from the project root:
    PYTHONPATH=backend python demo/seed_data.py
"""

import asyncio
import os
import sys
from pathlib import Path

# Add backend to path for imports
backend_path = Path(__file__).parent.parent / "backend"
if backend_path.exists():
    sys.path.insert(0, str(backend_path))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import hash_password
from app.database import async_session_maker
from app.models.node import Node
from app.models.user import User


ADMIN_EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "admin-password")

SAMPLE_USERS = [
    {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "root_admin": True},
    {"email": "user@example.com", "password": "user-password", "root_admin": False},
]

SAMPLE_NODES = [
    {"name": "Node 1", "fqdn": "node1.example.com"},
]


async def seed_users(session: AsyncSession) -> list[User]:
    """Create sample users, skipping any email that already exists."""
    print("Creating users...")
    users = []
    for data in SAMPLE_USERS:
        result = await session.execute(select(User).where(User.email == data["email"]))
        existing = result.scalar_one_or_none()
        if existing is not None:
            print(f"  User already exists: {existing.email}")
            users.append(existing)
            continue

        user = User(
            email=data["email"],
            password_hash=hash_password(data["password"]),
            root_admin=data["root_admin"],
        )
        session.add(user)
        users.append(user)
        print(f"  Created user: {user.email} (admin: {user.root_admin})")

    await session.flush()
    return users


async def seed_nodes(session: AsyncSession) -> list[Node]:
    """Create sample nodes."""
    print("Creating nodes...")
    nodes = []
    for data in SAMPLE_NODES:
        node = Node(name=data["name"], fqdn=data["fqdn"])
        session.add(node)
        nodes.append(node)

    await session.flush()
    for node in nodes:
        print(f"  Created node: {node.name} (ID: {node.id})")
    return nodes


async def main() -> None:
    """Main function to seed the database."""
    print("=" * 60)
    print("Database Host Panel - Demo Data Seeder")
    print("=" * 60)
    print()

    try:
        async with async_session_maker() as session:
            users = await seed_users(session)
            nodes = await seed_nodes(session)

            await session.commit()

            print()
            print("=" * 60)
            print("Demo data seeded successfully!")
            print("=" * 60)
            print()
            print("Summary:")
            print(f"  - {len(users)} users ({sum(1 for u in users if u.root_admin)} admin)")
            print(f"  - {len(nodes)} nodes")
            print()

    except Exception as e:
        print(f"Error seeding data: {e}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
