"""
Office and user directory.

Read access to offices and users for the core services. The insert helpers
are used by the seeding script and by tests.
"""

from typing import Dict, Iterable, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from gk_express.app.core.exceptions import ConflictError, NotFoundError
from gk_express.app.models.enums import UserRole
from gk_express.app.models.office import Office
from gk_express.app.models.user import User


class Directory:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_offices(self) -> List[Office]:
        result = await self.db.execute(select(Office).order_by(Office.name.asc()))
        return list(result.scalars().all())

    async def get_office(self, office_id: str) -> Optional[Office]:
        return await self.db.get(Office, office_id)

    async def require_office(self, office_id: str) -> Office:
        office = await self.get_office(office_id)
        if office is None:
            raise NotFoundError("Office", office_id)
        return office

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def offices_by_id(self, office_ids: Iterable[str]) -> Dict[str, Office]:
        ids = {oid for oid in office_ids if oid}
        if not ids:
            return {}
        result = await self.db.execute(select(Office).where(Office.id.in_(ids)))
        return {office.id: office for office in result.scalars().all()}

    async def users_by_id(self, user_ids: Iterable[str]) -> Dict[str, User]:
        ids = {uid for uid in user_ids if uid}
        if not ids:
            return {}
        result = await self.db.execute(select(User).where(User.id.in_(ids)))
        return {user.id: user for user in result.scalars().all()}

    async def add_office(
        self,
        name: str,
        country: str,
        country_code: Optional[str] = None,
        address: Optional[str] = None,
        phone: Optional[str] = None
    ) -> Office:
        office = Office(
            name=name,
            country=country,
            country_code=country_code,
            address=address,
            phone=phone
        )
        self.db.add(office)
        await self.db.commit()
        await self.db.refresh(office)
        return office

    async def add_user(
        self,
        email: str,
        full_name: str,
        role: UserRole = UserRole.AGENT,
        office_id: Optional[str] = None
    ) -> User:
        """
        Add a user to the directory.

        Raises:
            ConflictError: Email already registered
        """
        existing = await self.db.execute(select(User.id).where(User.email == email))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("Email already registered", details={"email": email})

        user = User(email=email, full_name=full_name, role=role, office_id=office_id, is_active=True)
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user
