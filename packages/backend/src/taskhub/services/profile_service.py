"""Profile service — the `users` rows that mirror provider identities.

Provisioning is idempotent: the insert uses ON CONFLICT (id) DO NOTHING,
so two concurrent first logins for the same identity still leave
exactly one row behind.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.db.models import User
from taskhub.schemas.auth import ProfileCreate

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ProfileService:
    """Lookup and first-login provisioning of user profiles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_profile(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalars().first()

    async def insert_profile(self, profile: ProfileCreate) -> bool:
        """Insert a profile unless one already exists for the id.

        Returns True if this call created the row, False if it was
        already there.
        """
        dialect = self.db.get_bind().dialect.name
        insert = _INSERTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Profile upsert not supported on {dialect}")

        stmt = (
            insert(User)
            .values(
                id=profile.id,
                email=profile.email,
                full_name=profile.full_name,
                avatar_url=profile.avatar_url,
            )
            .on_conflict_do_nothing(index_elements=[User.id])
            .returning(User.id)
        )
        result = await self.db.execute(stmt)
        created = result.scalar_one_or_none() is not None
        await self.db.commit()
        return created
