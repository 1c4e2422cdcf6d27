import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.exceptions import (
    ConflictError,
    ForbiddenError,
    IllegalTransitionError,
    NotFoundError,
    StaleStateError,
)
from envindo.core.roles import is_admin
from envindo.core.state_machine import TransitionTable
from envindo.models.invoice_model import Invoice
from envindo.models.layanan_model import Layanan
from envindo.models.transaksi_model import StatusTransaksi, TransaksiLayanan
from envindo.modules.coordinator import service as coordinator
from envindo.modules.rewards.service import credit_subscription_reward
from envindo.repository.layanan_repository import layanan_repository
from envindo.repository.transaksi_repository import transaksi_repository
from envindo.repository.user_repository import user_repository
from envindo.schemas.token_schema import Identity
from envindo.schemas.transaksi_schema import TransaksiCreate
from envindo.utils.activity_logger import log_activity
from envindo.utils.generators import generate_unique_code

logger = logging.getLogger(__name__)

TRANSAKSI_TRANSITIONS = (
    TransitionTable("Transaksi", StatusTransaksi)
    .add("process", [StatusTransaksi.PENDING], StatusTransaksi.DIPROSES)
    .add("activate", [StatusTransaksi.DIPROSES], StatusTransaksi.AKTIF)
    .add("complete", [StatusTransaksi.AKTIF], StatusTransaksi.SELESAI)
    .add("cancel", [StatusTransaksi.PENDING, StatusTransaksi.DIPROSES], StatusTransaksi.DIBATALKAN)
)


class TransactionService:
    async def get_for_identity(self, db: AsyncSession, identity: Identity, transaksi_id: int) -> TransaksiLayanan:
        """Owner or admin may see a subscription; anyone else gets 403."""
        transaksi = await transaksi_repository.get(db, transaksi_id)
        if transaksi is None:
            raise NotFoundError("Transaction not found")
        if transaksi.user_id != identity.user_id and not is_admin(identity.role):
            raise ForbiddenError("You do not have access to this transaction")
        return transaksi

    async def list_transactions(
        self, db: AsyncSession, identity: Identity, status: Optional[str] = None
    ) -> List[TransaksiLayanan]:
        return await transaksi_repository.list_by_user(db, identity.user_id, status=status)

    async def list_all(self, db: AsyncSession, status: Optional[str] = None) -> List[TransaksiLayanan]:
        return await transaksi_repository.list_by_user(db, None, status=status)

    async def _transition(self, db: AsyncSession, transaksi: TransaksiLayanan, name: str, **values) -> str:
        expected, target = TRANSAKSI_TRANSITIONS.check(name, transaksi.status)
        swapped = await transaksi_repository.compare_and_swap(
            db, transaksi.id, expected, status=target, **values
        )
        if not swapped:
            raise StaleStateError("Transaksi", transaksi.id, expected)
        return target

    async def create_subscription(
        self, db: AsyncSession, identity: Identity, data: TransaksiCreate
    ) -> Tuple[TransaksiLayanan, Invoice]:
        """
        Opens a pending subscription for a catalog entry and bills it.

        The subscription and its invoice are written in one unit of work, so a
        failure while billing leaves no orphaned subscription behind.
        """
        layanan = await layanan_repository.get(db, data.layanan_id)
        if layanan is None:
            raise NotFoundError("Service not found")
        if not layanan.is_active:
            raise ConflictError(f"Service '{layanan.nama_layanan}' is not available for subscription")

        kode_transaksi = await generate_unique_code(
            "TRX", lambda code: transaksi_repository.kode_exists(db, code)
        )
        transaksi = TransaksiLayanan(
            user_id=identity.user_id,
            layanan_id=layanan.id,
            kode_transaksi=kode_transaksi,
            tanggal_pesan=datetime.utcnow(),
            jumlah=data.jumlah,
            total_harga=layanan.harga * data.jumlah,
            status=StatusTransaksi.PENDING.value,
            catatan=data.catatan,
            envipoin_dikreditkan=False,
        )
        transaksi = await transaksi_repository.add(db, transaksi)
        invoice = await coordinator.create_invoice_for_subscription(db, transaksi.id)

        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Transaksi",
            activity_description=(
                f"Subscribed to '{layanan.nama_layanan}' ({kode_transaksi}), invoice {invoice.nomor_invoice}."
            ),
        )
        await db.commit()
        return transaksi, invoice

    async def attach_payment_proof(
        self, db: AsyncSession, identity: Identity, transaksi_id: int, bukti_pembayaran: str
    ) -> TransaksiLayanan:
        transaksi = await self.get_for_identity(db, identity, transaksi_id)
        await self._transition(db, transaksi, "process", bukti_pembayaran=bukti_pembayaran)
        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Transaksi",
            activity_description=f"Payment proof uploaded for {transaksi.kode_transaksi}.",
        )
        await db.commit()
        return transaksi

    async def process(self, db: AsyncSession, identity: Identity, transaksi_id: int) -> TransaksiLayanan:
        transaksi = await self.get_for_identity(db, identity, transaksi_id)
        await self._transition(db, transaksi, "process")
        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Transaksi",
            activity_description=f"Transaksi {transaksi.kode_transaksi} moved to processing.",
        )
        await db.commit()
        return transaksi

    async def activate(self, db: AsyncSession, identity: Identity, transaksi_id: int) -> TransaksiLayanan:
        """Starts the service period: ``tanggal_selesai = tanggal_mulai + durasi_hari``."""
        transaksi = await self.get_for_identity(db, identity, transaksi_id)
        layanan = await db.get(Layanan, transaksi.layanan_id)
        tanggal_mulai = datetime.utcnow()
        tanggal_selesai = tanggal_mulai + timedelta(days=layanan.durasi_hari)

        await self._transition(
            db, transaksi, "activate", tanggal_mulai=tanggal_mulai, tanggal_selesai=tanggal_selesai
        )

        owner = await user_repository.get_user(db, transaksi.user_id)
        if owner is not None:
            owner.layanan_aktif = layanan.tipe_layanan
            owner.masa_berlaku = tanggal_selesai
            await db.flush()

        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Transaksi",
            activity_description=(
                f"Transaksi {transaksi.kode_transaksi} activated until {tanggal_selesai:%Y-%m-%d}."
            ),
        )
        await db.commit()
        return transaksi

    async def complete(self, db: AsyncSession, identity: Identity, transaksi_id: int) -> Tuple[TransaksiLayanan, int]:
        transaksi = await self.get_for_identity(db, identity, transaksi_id)
        await self._transition(db, transaksi, "complete")
        credited = await credit_subscription_reward(db, transaksi)

        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Transaksi",
            activity_description=f"Transaksi {transaksi.kode_transaksi} completed.",
        )
        await db.commit()
        return transaksi, credited

    async def cancel(self, db: AsyncSession, identity: Identity, transaksi_id: int) -> TransaksiLayanan:
        transaksi = await self.get_for_identity(db, identity, transaksi_id)
        TRANSAKSI_TRANSITIONS.check("cancel", transaksi.status)
        await coordinator.ensure_subscription_cancellable(db, transaksi.id)
        await self._transition(db, transaksi, "cancel")

        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Transaksi",
            activity_description=f"Transaksi {transaksi.kode_transaksi} cancelled.",
        )
        await db.commit()
        return transaksi

    async def update_status(
        self, db: AsyncSession, identity: Identity, transaksi_id: int, target: StatusTransaksi
    ) -> TransaksiLayanan:
        """Admin entry point that takes the desired state instead of a command."""
        transaksi = await self.get_for_identity(db, identity, transaksi_id)
        try:
            name = TRANSAKSI_TRANSITIONS.transition_to(target)
        except KeyError:
            raise IllegalTransitionError("Transaksi", transaksi.status, StatusTransaksi(target).value)

        handlers = {
            "process": self.process,
            "activate": self.activate,
            "complete": self.complete,
            "cancel": self.cancel,
        }
        result = await handlers[name](db, identity, transaksi_id)
        if name == "complete":
            return result[0]
        return result


transaction_service = TransactionService()
