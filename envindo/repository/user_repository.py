from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import or_, update
from envindo.models import user_model
from envindo.repository.base_repository import BaseRepository
from typing import Optional, List

class UserRepository(BaseRepository[user_model.Users]):
    def __init__(self):
        super().__init__(user_model.Users)

    async def get_user(self, db: AsyncSession, user_id: int) -> Optional[user_model.Users]:
        return await self.get(db, user_id)

    async def get_user_by_username(self, db: AsyncSession, username: str) -> Optional[user_model.Users]:
        result = await db.execute(select(self.model).filter(self.model.username == username))
        return result.scalar_one_or_none()

    async def get_user_by_login(self, db: AsyncSession, login: str) -> Optional[user_model.Users]:
        """Login accepts either the username or the e-mail address."""
        result = await db.execute(
            select(self.model).filter(or_(self.model.username == login, self.model.email == login))
        )
        return result.scalars().first()

    async def exists_username_or_email(self, db: AsyncSession, username: str, email: str) -> bool:
        result = await db.execute(
            select(self.model.id).filter(or_(self.model.username == username, self.model.email == email))
        )
        return result.first() is not None

    async def get_users(
        self, db: AsyncSession, role: Optional[str] = None, skip: int = 0, limit: int = 100
    ) -> List[user_model.Users]:
        stmt = select(self.model)
        if role:
            stmt = stmt.filter(self.model.role == role)
        result = await db.execute(stmt.order_by(self.model.id).offset(skip).limit(limit))
        return result.scalars().all()

    async def update_user_status(self, db: AsyncSession, user: user_model.Users, is_active: bool) -> user_model.Users:
        user.is_active = is_active
        await db.flush()
        await db.refresh(user)
        return user

    async def add_envipoin(self, db: AsyncSession, user_id: int, amount: int) -> None:
        """Atomic increment; never read-modify-write the balance in Python."""
        await db.execute(
            update(self.model)
            .where(self.model.id == user_id)
            .values(envipoin=self.model.envipoin + amount)
            .execution_options(synchronize_session=False)
        )
        user = await db.get(self.model, user_id)
        if user is not None:
            await db.refresh(user)

user_repository = UserRepository()
