"""
Database seeding script for the office directory.

Creates two offices, an agent at each and a boss, then prints a bearer
token for every seeded user (tokens normally come from the auth provider).
Run this script after the database is set up but before first use.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gk_express.app.db.session import AsyncSessionLocal, engine, Base
from gk_express.app.core.exceptions import ConflictError
from gk_express.app.core.jwt import create_access_token
from gk_express.app.models.enums import UserRole
from gk_express.app.services.directory import Directory
from gk_express.app import main  # noqa: F401  registers models with Base


async def seed_directory():
    """
    Seed offices and users.

    Creates:
    - Abidjan and Paris offices
    - 1 agent per office
    - 1 boss without office
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        directory = Directory(db)
        print("🌱 Starting directory seeding...")

        if await directory.list_offices():
            print("ℹ️  Offices already exist, skipping seeding")
            return

        abidjan = await directory.add_office(name="Abidjan", country="Côte d'Ivoire", country_code="CI")
        paris = await directory.add_office(name="Paris", country="France", country_code="FR")
        print(f"✅ Created offices: {abidjan.name} ({abidjan.id}), {paris.name} ({paris.id})")

        seeds = [
            ("boss@gk-express.com", "GK Boss", UserRole.BOSS, None),
            ("abidjan@gk-express.com", "Abidjan Agent", UserRole.AGENT, abidjan.id),
            ("paris@gk-express.com", "Paris Agent", UserRole.AGENT, paris.id),
        ]

        print("\nSeeded users:")
        for email, full_name, role, office_id in seeds:
            try:
                user = await directory.add_user(email=email, full_name=full_name, role=role, office_id=office_id)
            except ConflictError:
                print(f"ℹ️  {email} already registered, skipping")
                continue

            token = create_access_token(data={
                "sub": user.email,
                "user_id": user.id,
                "role": user.role.value,
                "office_id": user.office_id
            })
            print(f"  - {role.value.upper():5} {email}\n    token: {token}")

        print("\n🎉 Directory seeding completed successfully!")


if __name__ == "__main__":
    asyncio.run(seed_directory())
