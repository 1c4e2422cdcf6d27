from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from envindo.models.transaksi_model import TransaksiLayanan
from envindo.repository.base_repository import BaseRepository

class TransaksiRepository(BaseRepository[TransaksiLayanan]):
    def __init__(self):
        super().__init__(TransaksiLayanan)

    async def kode_exists(self, db: AsyncSession, kode_transaksi: str) -> bool:
        result = await db.execute(
            select(TransaksiLayanan.id).filter(TransaksiLayanan.kode_transaksi == kode_transaksi)
        )
        return result.first() is not None

    async def claim_reward_marker(self, db: AsyncSession, transaksi_id: int) -> bool:
        """Flips ``envipoin_dikreditkan`` false -> true. Only one caller ever wins."""
        result = await db.execute(
            update(TransaksiLayanan)
            .where(
                TransaksiLayanan.id == transaksi_id,
                TransaksiLayanan.envipoin_dikreditkan.is_(False),
            )
            .values(envipoin_dikreditkan=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

transaksi_repository = TransaksiRepository()
