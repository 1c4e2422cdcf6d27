import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.exceptions import ConflictError, NotFoundError
from envindo.models.layanan_model import Layanan
from envindo.modules.coordinator import service as coordinator
from envindo.repository.layanan_repository import layanan_repository
from envindo.schemas.layanan_schema import LayananCreate, LayananUpdate
from envindo.utils.activity_logger import log_activity

logger = logging.getLogger(__name__)


class CatalogService:
    async def list_active(self, db: AsyncSession) -> List[Layanan]:
        return await layanan_repository.list_active(db)

    async def list_all(self, db: AsyncSession, is_active: Optional[bool] = None) -> List[Layanan]:
        return await layanan_repository.list_all(db, is_active=is_active)

    async def get_layanan(self, db: AsyncSession, layanan_id: int, active_only: bool = False) -> Layanan:
        layanan = await layanan_repository.get(db, layanan_id)
        if layanan is None or (active_only and not layanan.is_active):
            raise NotFoundError("Service not found")
        return layanan

    async def create_layanan(self, db: AsyncSession, actor_id: int, data: LayananCreate) -> Layanan:
        if await layanan_repository.get_by_kode(db, data.kode_layanan):
            raise ConflictError(f"Service code '{data.kode_layanan}' already exists")
        values = data.model_dump()
        values["tipe_layanan"] = data.tipe_layanan.value
        layanan = await layanan_repository.add(db, Layanan(**values))
        await log_activity(
            db,
            user_id=actor_id,
            activity_type_category="Layanan",
            activity_description=f"Service '{layanan.kode_layanan}' created.",
        )
        await db.commit()
        return layanan

    async def update_layanan(
        self, db: AsyncSession, actor_id: int, layanan_id: int, data: LayananUpdate
    ) -> Layanan:
        layanan = await self.get_layanan(db, layanan_id)
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return layanan

        new_kode = changes.get("kode_layanan")
        if new_kode and new_kode != layanan.kode_layanan:
            if await layanan_repository.get_by_kode(db, new_kode):
                raise ConflictError(f"Service code '{new_kode}' already exists")
        if changes.get("tipe_layanan") is not None:
            changes["tipe_layanan"] = changes["tipe_layanan"].value

        for field, value in changes.items():
            setattr(layanan, field, value)
        await db.flush()
        await log_activity(
            db,
            user_id=actor_id,
            activity_type_category="Layanan",
            activity_description=f"Service '{layanan.kode_layanan}' updated: {', '.join(changes)}.",
        )
        await db.commit()
        await db.refresh(layanan)
        return layanan

    async def delete_layanan(
        self, db: AsyncSession, actor_id: int, layanan_id: int, permanent: bool = False
    ) -> Layanan:
        layanan = await coordinator.delete_layanan(db, layanan_id, permanent=permanent)
        action = "deleted" if permanent else "deactivated"
        await log_activity(
            db,
            user_id=actor_id,
            activity_type_category="Layanan",
            activity_description=f"Service '{layanan.kode_layanan}' {action}.",
        )
        await db.commit()
        return layanan


catalog_service = CatalogService()
