import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.exceptions import ConflictError, ForbiddenError, NotFoundError, StaleStateError
from envindo.core.roles import Role, is_admin
from envindo.core.state_machine import TransitionTable
from envindo.models.manifest_model import ManifestElektronik, StatusManifest
from envindo.modules.coordinator import service as coordinator
from envindo.repository.manifest_repository import manifest_repository
from envindo.repository.user_repository import user_repository
from envindo.schemas.manifest_schema import ManifestCreate
from envindo.schemas.token_schema import Identity
from envindo.utils.activity_logger import log_activity
from envindo.utils.generators import generate_unique_code

logger = logging.getLogger(__name__)

MANIFEST_TRANSITIONS = (
    TransitionTable("Manifest", StatusManifest)
    .add("submit", [StatusManifest.DRAFT], StatusManifest.DIAJUKAN)
    .add("approve", [StatusManifest.DIAJUKAN], StatusManifest.DISETUJUI)
    .add("reject", [StatusManifest.DIAJUKAN], StatusManifest.DITOLAK)
    .add("finish", [StatusManifest.DISETUJUI], StatusManifest.SELESAI)
)


class ManifestService:
    async def get_for_identity(self, db: AsyncSession, identity: Identity, manifest_id: int) -> ManifestElektronik:
        manifest = await manifest_repository.get(db, manifest_id)
        if manifest is None:
            raise NotFoundError("Manifest not found")
        if manifest.user_id != identity.user_id and not is_admin(identity.role):
            raise ForbiddenError("You do not have access to this manifest")
        return manifest

    async def list_manifests(
        self, db: AsyncSession, identity: Identity, status: Optional[str] = None
    ) -> List[ManifestElektronik]:
        user_id = None if is_admin(identity.role) else identity.user_id
        return await manifest_repository.list_by_user(db, user_id, status=status)

    async def _transition(self, db: AsyncSession, manifest: ManifestElektronik, name: str, **values) -> str:
        expected, target = MANIFEST_TRANSITIONS.check(name, manifest.status_manifest)
        if not await manifest_repository.compare_and_swap(
            db, manifest.id, expected, status_manifest=target, **values
        ):
            raise StaleStateError("Manifest", manifest.id, expected)
        return target

    async def create(self, db: AsyncSession, identity: Identity, data: ManifestCreate) -> ManifestElektronik:
        """Opens a draft manifest for a collection run that has finished."""
        run = await coordinator.ensure_run_ready_for_manifest(db, data.riwayat_pengangkutan_id, identity)
        nomor_manifest = await generate_unique_code(
            "MNFE", lambda code: manifest_repository.nomor_exists(db, code)
        )
        manifest = ManifestElektronik(
            user_id=identity.user_id,
            nomor_manifest=nomor_manifest,
            status_manifest=StatusManifest.DRAFT.value,
            **data.model_dump(),
        )
        try:
            manifest = await manifest_repository.add(db, manifest)
        except IntegrityError:
            # Another request created the manifest for this run first
            await db.rollback()
            raise ConflictError("A manifest already exists for this collection")

        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Manifest",
            activity_description=f"Manifest {nomor_manifest} drafted for collection {run.nomor_manifest}.",
        )
        await db.commit()
        return manifest

    async def submit(self, db: AsyncSession, identity: Identity, manifest_id: int) -> ManifestElektronik:
        manifest = await self.get_for_identity(db, identity, manifest_id)
        if manifest.user_id != identity.user_id:
            raise ForbiddenError("Only the owner can submit this manifest")
        await self._transition(db, manifest, "submit")
        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Manifest",
            activity_description=f"Manifest {manifest.nomor_manifest} submitted for approval.",
        )
        await db.commit()
        return manifest

    async def review(
        self,
        db: AsyncSession,
        identity: Identity,
        manifest_id: int,
        action: str,
        catatan: Optional[str] = None,
    ) -> ManifestElektronik:
        """
        Approves or rejects a submitted manifest.

        Only a superadmin may review, whatever route the call came through.
        """
        if identity.role != Role.SUPERADMIN:
            raise ForbiddenError("Only superadmin can approve manifests")
        manifest = await self.get_for_identity(db, identity, manifest_id)

        reviewer = await user_repository.get_user(db, identity.user_id)
        reviewer_name = reviewer.username if reviewer else str(identity.user_id)
        await self._transition(
            db,
            manifest,
            "approve" if action == "approve" else "reject",
            disetujui_oleh=reviewer_name,
            tanggal_persetujuan=datetime.utcnow(),
            catatan_persetujuan=catatan,
        )
        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Manifest",
            activity_description=f"Manifest {manifest.nomor_manifest} {manifest.status_manifest} by {reviewer_name}.",
        )
        await db.commit()
        return manifest

    async def finish(self, db: AsyncSession, identity: Identity, manifest_id: int) -> ManifestElektronik:
        manifest = await self.get_for_identity(db, identity, manifest_id)
        await self._transition(db, manifest, "finish")
        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Manifest",
            activity_description=f"Manifest {manifest.nomor_manifest} closed.",
        )
        await db.commit()
        return manifest


manifest_service = ManifestService()
