from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from envindo.models.manifest_model import ManifestElektronik
from envindo.repository.base_repository import BaseRepository


class ManifestRepository(BaseRepository[ManifestElektronik]):
    status_column = "status_manifest"

    def __init__(self):
        super().__init__(ManifestElektronik)

    async def nomor_exists(self, db: AsyncSession, nomor_manifest: str) -> bool:
        result = await db.execute(
            select(ManifestElektronik.id).filter(ManifestElektronik.nomor_manifest == nomor_manifest)
        )
        return result.first() is not None

    async def get_by_pengangkutan(self, db: AsyncSession, pengangkutan_id: int) -> Optional[ManifestElektronik]:
        result = await db.execute(
            select(ManifestElektronik).filter(ManifestElektronik.riwayat_pengangkutan_id == pengangkutan_id)
        )
        return result.scalar_one_or_none()


manifest_repository = ManifestRepository()
