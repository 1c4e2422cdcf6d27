import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.exceptions import ForbiddenError, NotFoundError, StaleStateError
from envindo.core.roles import is_admin
from envindo.core.state_machine import TransitionTable
from envindo.models.pengangkutan_model import RiwayatPengangkutan, StatusPengangkutan
from envindo.repository.pengangkutan_repository import pengangkutan_repository
from envindo.schemas.pengangkutan_schema import PengangkutanComplete, PengangkutanCreate
from envindo.schemas.token_schema import Identity
from envindo.utils.activity_logger import log_activity
from envindo.utils.generators import generate_unique_code

logger = logging.getLogger(__name__)

PENGANGKUTAN_TRANSITIONS = (
    TransitionTable("Pengangkutan", StatusPengangkutan)
    .add("start", [StatusPengangkutan.TERJADWAL], StatusPengangkutan.DALAM_PERJALANAN)
    .add("complete", [StatusPengangkutan.DALAM_PERJALANAN], StatusPengangkutan.SELESAI)
    .add("cancel", [StatusPengangkutan.TERJADWAL], StatusPengangkutan.DIBATALKAN)
)


class WasteCollectionService:
    async def get_for_identity(self, db: AsyncSession, identity: Identity, run_id: int) -> RiwayatPengangkutan:
        run = await pengangkutan_repository.get(db, run_id)
        if run is None:
            raise NotFoundError("Waste collection not found")
        if run.user_id != identity.user_id and not is_admin(identity.role):
            raise ForbiddenError("You do not have access to this waste collection")
        return run

    async def list_runs(
        self, db: AsyncSession, identity: Identity, status: Optional[str] = None
    ) -> List[RiwayatPengangkutan]:
        # Operators see every run, customers only their own
        user_id = None if is_admin(identity.role) else identity.user_id
        return await pengangkutan_repository.list_by_user(db, user_id, status=status)

    async def _transition(self, db: AsyncSession, run: RiwayatPengangkutan, name: str, **values) -> str:
        expected, target = PENGANGKUTAN_TRANSITIONS.check(name, run.status)
        if not await pengangkutan_repository.compare_and_swap(db, run.id, expected, status=target, **values):
            raise StaleStateError("Pengangkutan", run.id, expected)
        return target

    async def schedule(self, db: AsyncSession, identity: Identity, data: PengangkutanCreate) -> RiwayatPengangkutan:
        nomor_manifest = await generate_unique_code(
            "MNF", lambda code: pengangkutan_repository.nomor_exists(db, code)
        )
        run = RiwayatPengangkutan(
            user_id=identity.user_id,
            nomor_manifest=nomor_manifest,
            status=StatusPengangkutan.TERJADWAL.value,
            **data.model_dump(),
        )
        run = await pengangkutan_repository.add(db, run)
        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Pengangkutan",
            activity_description=(
                f"Collection {nomor_manifest} scheduled for {run.tanggal_pengangkutan:%Y-%m-%d}."
            ),
        )
        await db.commit()
        return run

    async def start(self, db: AsyncSession, identity: Identity, run_id: int) -> RiwayatPengangkutan:
        run = await self.get_for_identity(db, identity, run_id)
        await self._transition(db, run, "start")
        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Pengangkutan",
            activity_description=f"Collection {run.nomor_manifest} is on the way.",
        )
        await db.commit()
        return run

    async def complete(
        self,
        db: AsyncSession,
        identity: Identity,
        run_id: int,
        data: Optional[PengangkutanComplete] = None,
    ) -> RiwayatPengangkutan:
        run = await self.get_for_identity(db, identity, run_id)
        values = data.model_dump(exclude_none=True) if data else {}
        await self._transition(db, run, "complete", **values)
        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Pengangkutan",
            activity_description=f"Collection {run.nomor_manifest} completed.",
        )
        await db.commit()
        return run

    async def cancel(self, db: AsyncSession, identity: Identity, run_id: int) -> RiwayatPengangkutan:
        run = await self.get_for_identity(db, identity, run_id)
        await self._transition(db, run, "cancel")
        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Pengangkutan",
            activity_description=f"Collection {run.nomor_manifest} cancelled.",
        )
        await db.commit()
        return run


waste_collection_service = WasteCollectionService()
