from typing import Any, Dict, TypeVar, Type, List, Optional, Generic
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import update
from envindo.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)

class BaseRepository(Generic[ModelType]):
    """Row access for one model.

    Repositories never commit: the calling service owns the unit of work and
    commits once, so a failed guard leaves nothing half-written.
    """

    status_column: str = "status"

    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def add(self, db: AsyncSession, db_obj: ModelType) -> ModelType:
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def get(self, db: AsyncSession, id: int) -> Optional[ModelType]:
        result = await db.execute(select(self.model).filter(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_multi(self, db: AsyncSession, skip: int = 0, limit: int = 100) -> List[ModelType]:
        result = await db.execute(select(self.model).order_by(self.model.id.desc()).offset(skip).limit(limit))
        return result.scalars().all()

    async def list_by_user(
        self, db: AsyncSession, user_id: Optional[int], status: Optional[str] = None
    ) -> List[ModelType]:
        """Rows owned by ``user_id`` (all rows when ``None``), optionally filtered by status."""
        stmt = select(self.model)
        if user_id is not None:
            stmt = stmt.filter(self.model.user_id == user_id)
        if status:
            stmt = stmt.filter(getattr(self.model, self.status_column) == status)
        result = await db.execute(stmt.order_by(self.model.id.desc()))
        return result.scalars().all()

    async def compare_and_swap(
        self,
        db: AsyncSession,
        id: int,
        expected_status: str,
        guards: Optional[Dict[str, Any]] = None,
        **values: Any,
    ) -> bool:
        """UPDATE ... WHERE id = :id AND status = :expected [AND column = :guard ...].

        Returns ``False`` when no row matched, meaning another request moved the
        row first. The in-session object is refreshed so callers see the new
        values.
        """
        conditions = [self.model.id == id, getattr(self.model, self.status_column) == expected_status]
        for column, value in (guards or {}).items():
            conditions.append(getattr(self.model, column) == value)
        stmt = (
            update(self.model)
            .where(*conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        if result.rowcount != 1:
            return False
        obj = await db.get(self.model, id)
        if obj is not None:
            await db.refresh(obj)
        return True

    async def delete(self, db: AsyncSession, db_obj: ModelType) -> None:
        await db.delete(db_obj)
        await db.flush()
