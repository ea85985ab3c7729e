# socialnet/UAA/repository.py
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel import select, col
from .models import User
from typing import Dict, Iterable, Optional

from socialnet.models.post import utcnow


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[User]:
        q = select(User).where(User.email == email, User.is_deleted == False)  # noqa: E712
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def get_by_id(self, user_id: str) -> Optional[User]:
        q = select(User).where(User.id == user_id, User.is_deleted == False)  # noqa: E712
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def get_many(self, user_ids: Iterable[str]) -> Dict[str, User]:
        ids = {i for i in user_ids if i}
        if not ids:
            return {}
        q = select(User).where(col(User.id).in_(list(ids)), User.is_deleted == False)  # noqa: E712
        res = await self.session.execute(q)
        return {u.id: u for u in res.scalars().all()}

    async def create(self, user: User) -> User:
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def update(self, user: User) -> User:
        user.updated_at = utcnow()
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user
