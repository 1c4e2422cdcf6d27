from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from envindo.models.layanan_model import Layanan
from envindo.models.transaksi_model import TransaksiLayanan
from envindo.repository.base_repository import BaseRepository


class LayananRepository(BaseRepository[Layanan]):
    def __init__(self):
        super().__init__(Layanan)

    async def list_active(self, db: AsyncSession) -> List[Layanan]:
        result = await db.execute(
            select(Layanan).filter(Layanan.is_active.is_(True)).order_by(Layanan.harga)
        )
        return result.scalars().all()

    async def list_all(self, db: AsyncSession, is_active: Optional[bool] = None) -> List[Layanan]:
        stmt = select(Layanan)
        if is_active is not None:
            stmt = stmt.filter(Layanan.is_active.is_(is_active))
        result = await db.execute(stmt.order_by(Layanan.id))
        return result.scalars().all()

    async def get_by_kode(self, db: AsyncSession, kode_layanan: str) -> Optional[Layanan]:
        result = await db.execute(select(Layanan).filter(Layanan.kode_layanan == kode_layanan))
        return result.scalar_one_or_none()

    async def count_subscriptions(self, db: AsyncSession, layanan_id: int, status: Optional[str] = None) -> int:
        stmt = select(func.count(TransaksiLayanan.id)).where(TransaksiLayanan.layanan_id == layanan_id)
        if status:
            stmt = stmt.where(TransaksiLayanan.status == status)
        result = await db.execute(stmt)
        return result.scalar_one()


layanan_repository = LayananRepository()
