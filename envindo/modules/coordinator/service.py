"""
Cross-entity consistency rules.

Every rule that spans two workflow entities lives here so the individual state
machines never reach into each other's tables directly. Functions join the
caller's unit of work: they flush but never commit.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.config import settings
from envindo.core.exceptions import ConflictError, NotFoundError
from envindo.models.invoice_model import Invoice, StatusPembayaran
from envindo.models.layanan_model import Layanan
from envindo.models.pengangkutan_model import RiwayatPengangkutan, StatusPengangkutan
from envindo.models.transaksi_model import StatusTransaksi, TransaksiLayanan
from envindo.models.user_model import Users
from envindo.repository.invoice_repository import invoice_repository
from envindo.repository.layanan_repository import layanan_repository
from envindo.repository.manifest_repository import manifest_repository
from envindo.repository.user_repository import user_repository
from envindo.schemas.token_schema import Identity
from envindo.utils.generators import generate_unique_code

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

PAYABLE_SUBSCRIPTION_STATES = frozenset({StatusTransaksi.AKTIF.value, StatusTransaksi.SELESAI.value})


def compute_invoice_amounts(subtotal: Decimal, ppn: Optional[Decimal] = None) -> tuple:
    """Returns ``(subtotal, ppn, total_tagihan)`` rounded to cents.

    When ``ppn`` is omitted it is derived from ``settings.PPN_RATE``.
    """
    subtotal = Decimal(subtotal).quantize(CENT, rounding=ROUND_HALF_UP)
    if ppn is None:
        ppn = subtotal * Decimal(str(settings.PPN_RATE))
    ppn = Decimal(ppn).quantize(CENT, rounding=ROUND_HALF_UP)
    return subtotal, ppn, subtotal + ppn


async def create_invoice_for_subscription(
    db: AsyncSession,
    transaksi_id: int,
    subtotal: Optional[Decimal] = None,
    ppn: Optional[Decimal] = None,
    now: Optional[datetime] = None,
) -> Invoice:
    """Bills a subscription. An invoice can only exist for a persisted subscription."""
    transaksi = await db.get(TransaksiLayanan, transaksi_id)
    if transaksi is None:
        raise NotFoundError(f"Transaksi {transaksi_id} not found; cannot create invoice")

    now = now or datetime.utcnow()
    subtotal, ppn, total = compute_invoice_amounts(
        subtotal if subtotal is not None else transaksi.total_harga, ppn
    )
    nomor_invoice = await generate_unique_code(
        "INV", lambda code: invoice_repository.nomor_exists(db, code)
    )
    invoice = Invoice(
        user_id=transaksi.user_id,
        transaksi_id=transaksi.id,
        nomor_invoice=nomor_invoice,
        tanggal_invoice=now.date(),
        tanggal_jatuh_tempo=(now + timedelta(days=settings.INVOICE_DUE_DAYS)).date(),
        subtotal=subtotal,
        ppn=ppn,
        total_tagihan=total,
        jumlah_dibayar=Decimal("0"),
        status_pembayaran=StatusPembayaran.BELUM_BAYAR.value,
        catatan=f"Invoice untuk transaksi {transaksi.kode_transaksi}",
    )
    return await invoice_repository.add(db, invoice)


async def ensure_run_ready_for_manifest(
    db: AsyncSession, run_id: int, identity: Identity
) -> RiwayatPengangkutan:
    run = await db.get(RiwayatPengangkutan, run_id)
    if run is None or run.user_id != identity.user_id:
        raise NotFoundError("Waste collection not found")
    if run.status != StatusPengangkutan.SELESAI.value:
        raise ConflictError(
            f"Manifest can only be created for a completed collection (current status '{run.status}')"
        )
    if await manifest_repository.get_by_pengangkutan(db, run.id) is not None:
        raise ConflictError("A manifest already exists for this collection")
    return run


async def ensure_subscription_cancellable(db: AsyncSession, transaksi_id: int) -> None:
    unresolved = await invoice_repository.list_unresolved_for_transaksi(db, transaksi_id)
    if unresolved:
        numbers = ", ".join(inv.nomor_invoice for inv in unresolved)
        raise ConflictError(
            f"Subscription has unresolved invoices ({numbers}); void or settle them first"
        )


async def ensure_invoice_payable(db: AsyncSession, invoice: Invoice) -> TransaksiLayanan:
    """An invoice may only be settled in full once its subscription is running."""
    transaksi = await db.get(TransaksiLayanan, invoice.transaksi_id)
    if transaksi is None:
        raise NotFoundError("Subscription for this invoice no longer exists")
    if transaksi.status not in PAYABLE_SUBSCRIPTION_STATES:
        raise ConflictError(
            f"Invoice cannot be settled while its subscription is '{transaksi.status}'"
        )
    return transaksi


async def delete_user(db: AsyncSession, user_id: int, acting_user_id: Optional[int] = None) -> Users:
    """Removes a user together with everything they own.

    Subscriptions (and through them invoices), collection runs (and through
    them manifests) and documents go with the account via ON DELETE CASCADE.
    """
    user = await user_repository.get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if acting_user_id is not None and user.id == acting_user_id:
        raise ConflictError("You cannot delete your own account")
    await user_repository.delete(db, user)
    logger.info(f"User {user.username} (id={user_id}) deleted with owned records.")
    return user


async def delete_layanan(db: AsyncSession, layanan_id: int, permanent: bool = False) -> Layanan:
    """Deactivates a catalog entry, or removes it when ``permanent``.

    Either is refused while a subscription on the entry is ``aktif``; a
    permanent delete is also refused while any subscription still references
    the entry.
    """
    layanan = await layanan_repository.get(db, layanan_id)
    if layanan is None:
        raise NotFoundError("Service not found")

    active = await layanan_repository.count_subscriptions(db, layanan_id, status=StatusTransaksi.AKTIF.value)
    if active:
        raise ConflictError(
            f"Cannot delete service with {active} active subscription(s)",
            errors={"active_subscriptions": active},
        )

    if not permanent:
        layanan.is_active = False
        await db.flush()
        return layanan

    references = await layanan_repository.count_subscriptions(db, layanan_id)
    if references:
        raise ConflictError(
            f"Cannot delete service referenced by {references} subscription(s)",
            errors={"subscriptions": references},
        )
    await layanan_repository.delete(db, layanan)
    return layanan
