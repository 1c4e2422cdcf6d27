from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from envindo.models.pengangkutan_model import RiwayatPengangkutan
from envindo.repository.base_repository import BaseRepository


class PengangkutanRepository(BaseRepository[RiwayatPengangkutan]):
    def __init__(self):
        super().__init__(RiwayatPengangkutan)

    async def nomor_exists(self, db: AsyncSession, nomor_manifest: str) -> bool:
        result = await db.execute(
            select(RiwayatPengangkutan.id).filter(RiwayatPengangkutan.nomor_manifest == nomor_manifest)
        )
        return result.first() is not None


pengangkutan_repository = PengangkutanRepository()
