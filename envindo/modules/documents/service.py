import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.config import settings
from envindo.core.exceptions import ForbiddenError, NotFoundError
from envindo.core.roles import is_admin
from envindo.models.dokumen_model import DokumenKerjasama, StatusDokumen
from envindo.repository.dokumen_repository import dokumen_repository
from envindo.schemas import dokumen_schema
from envindo.schemas.token_schema import Identity
from envindo.utils.activity_logger import log_activity

logger = logging.getLogger(__name__)


def derive_document_status(doc: DokumenKerjasama, today: Optional[date] = None) -> str:
    """
    Computes the status a cooperation document has on ``today`` from its
    validity period. Documents without a validity period keep their stored
    status.
    """
    today = today or date.today()
    mulai, selesai = doc.tanggal_berlaku_mulai, doc.tanggal_berlaku_selesai
    if mulai is None and selesai is None:
        return doc.status
    if mulai is not None and today < mulai:
        return StatusDokumen.DRAFT.value
    if selesai is not None:
        if selesai < today:
            return StatusDokumen.KADALUARSA.value
        if selesai <= today + timedelta(days=settings.DOCUMENT_EXPIRY_WARNING_DAYS):
            return StatusDokumen.AKAN_KADALUARSA.value
    return StatusDokumen.AKTIF.value


def to_schema(doc: DokumenKerjasama, today: Optional[date] = None) -> dokumen_schema.Dokumen:
    view = dokumen_schema.Dokumen.model_validate(doc)
    return view.model_copy(update={"status": derive_document_status(doc, today)})


async def get_document_for_identity(db: AsyncSession, identity: Identity, document_id: int) -> DokumenKerjasama:
    doc = await dokumen_repository.get(db, document_id)
    if doc is None:
        raise NotFoundError("Document not found")
    if doc.user_id != identity.user_id and not is_admin(identity.role):
        raise ForbiddenError("You do not have access to this document")
    return doc


async def list_documents(db: AsyncSession, identity: Identity, status: Optional[str] = None) -> List[DokumenKerjasama]:
    docs = await dokumen_repository.list_by_user(db, identity.user_id)
    if not status:
        return list(docs)
    today = date.today()
    return [d for d in docs if derive_document_status(d, today) == status]


async def register_document(
    db: AsyncSession, identity: Identity, data: dokumen_schema.DokumenCreate
) -> DokumenKerjasama:
    """Stores document metadata. The file itself lives in external storage."""
    values = data.model_dump()
    values["jenis_dokumen"] = data.jenis_dokumen.value
    doc = DokumenKerjasama(user_id=identity.user_id, status=StatusDokumen.AKTIF.value, **values)
    doc.status = derive_document_status(doc)
    doc = await dokumen_repository.add(db, doc)

    await log_activity(
        db,
        user_id=identity.user_id,
        activity_type_category="Dokumen",
        activity_description=f"Document '{doc.nama_dokumen}' registered ({doc.jenis_dokumen}).",
    )
    await db.commit()
    return doc


async def delete_document(db: AsyncSession, identity: Identity, document_id: int) -> None:
    doc = await get_document_for_identity(db, identity, document_id)
    nama = doc.nama_dokumen
    await dokumen_repository.delete(db, doc)
    await log_activity(
        db,
        user_id=identity.user_id,
        activity_type_category="Dokumen",
        activity_description=f"Document '{nama}' deleted.",
    )
    await db.commit()


async def refresh_document_statuses(db: AsyncSession, today: Optional[date] = None) -> int:
    """Persists the derived status of every document whose period moved it on."""
    today = today or date.today()
    changed = 0
    for doc in await dokumen_repository.list_by_user(db, None):
        derived = derive_document_status(doc, today)
        if derived != doc.status:
            doc.status = derived
            changed += 1
    if changed:
        await log_activity(
            db,
            user_id=None,
            activity_type_category="Dokumen",
            activity_description=f"Document status refresh updated {changed} document(s).",
        )
    await db.commit()
    return changed
