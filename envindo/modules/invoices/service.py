import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    StaleStateError,
    ValidationFailedError,
)
from envindo.core.roles import is_admin
from envindo.core.state_machine import TransitionTable
from envindo.models.invoice_model import Invoice, StatusPembayaran
from envindo.modules.coordinator import service as coordinator
from envindo.repository.invoice_repository import invoice_repository
from envindo.schemas import invoice_schema
from envindo.schemas.token_schema import Identity
from envindo.utils.activity_logger import log_activity

logger = logging.getLogger(__name__)

_OPEN = [StatusPembayaran.BELUM_BAYAR, StatusPembayaran.PARTIAL, StatusPembayaran.JATUH_TEMPO]

INVOICE_TRANSITIONS = (
    TransitionTable("Invoice", StatusPembayaran)
    .add("pay_partial", _OPEN, StatusPembayaran.PARTIAL)
    .add("settle", _OPEN, StatusPembayaran.LUNAS)
    .add("mark_overdue", [StatusPembayaran.BELUM_BAYAR, StatusPembayaran.PARTIAL], StatusPembayaran.JATUH_TEMPO)
    .add("void", _OPEN, StatusPembayaran.DIBATALKAN)
)

_OVERDUE_ELIGIBLE = frozenset({StatusPembayaran.BELUM_BAYAR.value, StatusPembayaran.PARTIAL.value})
_CLOSED = frozenset({StatusPembayaran.LUNAS.value, StatusPembayaran.DIBATALKAN.value})


def effective_status(invoice: Invoice, today: Optional[date] = None) -> str:
    """Stored status, except that an unpaid invoice past its due date reads as ``jatuh_tempo``."""
    today = today or date.today()
    if invoice.status_pembayaran in _OVERDUE_ELIGIBLE and today > invoice.tanggal_jatuh_tempo:
        return StatusPembayaran.JATUH_TEMPO.value
    return invoice.status_pembayaran


def to_schema(invoice: Invoice, today: Optional[date] = None) -> invoice_schema.Invoice:
    view = invoice_schema.Invoice.model_validate(invoice)
    return view.model_copy(update={"status_pembayaran": effective_status(invoice, today)})


class InvoiceService:
    async def get_for_identity(self, db: AsyncSession, identity: Identity, invoice_id: int) -> Invoice:
        invoice = await invoice_repository.get(db, invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found")
        if invoice.user_id != identity.user_id and not is_admin(identity.role):
            raise ForbiddenError("You do not have access to this invoice")
        return invoice

    async def list_invoices(
        self, db: AsyncSession, identity: Identity, status: Optional[str] = None
    ) -> List[Invoice]:
        return await self._filter_effective(
            await invoice_repository.list_by_user(db, identity.user_id), status
        )

    async def list_all(self, db: AsyncSession, status: Optional[str] = None) -> List[Invoice]:
        return await self._filter_effective(await invoice_repository.list_by_user(db, None), status)

    async def _filter_effective(self, invoices: List[Invoice], status: Optional[str]) -> List[Invoice]:
        # jatuh_tempo is partly derived, so the filter runs on the effective status
        if not status:
            return list(invoices)
        today = date.today()
        return [inv for inv in invoices if effective_status(inv, today) == status]

    async def _transition(
        self, db: AsyncSession, invoice: Invoice, name: str, guards: Optional[dict] = None, **values
    ) -> str:
        expected, target = INVOICE_TRANSITIONS.check(name, invoice.status_pembayaran)
        swapped = await invoice_repository.compare_and_swap(
            db, invoice.id, expected, guards=guards, status_pembayaran=target, **values
        )
        if not swapped:
            raise StaleStateError("Invoice", invoice.id, expected)
        return target

    async def record_payment(
        self,
        db: AsyncSession,
        identity: Identity,
        invoice_id: int,
        jumlah: Decimal,
        metode_pembayaran: Optional[str] = None,
    ) -> Invoice:
        """
        Adds ``jumlah`` to the amount paid so far.

        Payments below the outstanding balance leave the invoice ``partial``;
        the payment that reaches the total settles it (``lunas``), which is only
        allowed once the subscription is running. Paying more than the
        outstanding balance is rejected.
        """
        invoice = await self.get_for_identity(db, identity, invoice_id)
        # Stored with two decimals, so the settle decision uses the rounded amount
        jumlah = Decimal(jumlah).quantize(coordinator.CENT, rounding=ROUND_HALF_UP)
        if jumlah <= 0:
            raise ValidationFailedError("Payment amount must be positive", errors={"jumlah": "must be > 0"})

        paid_before = Decimal(invoice.jumlah_dibayar or 0)
        paid_after = paid_before + jumlah
        total = Decimal(invoice.total_tagihan)
        if paid_after > total:
            outstanding = total - paid_before
            raise ValidationFailedError(
                "Payment exceeds the outstanding balance",
                errors={"jumlah": f"outstanding balance is {outstanding}"},
            )

        values = {"jumlah_dibayar": paid_after}
        if metode_pembayaran:
            values["metode_pembayaran"] = metode_pembayaran
        guards = {"jumlah_dibayar": paid_before}

        if paid_after < total:
            await self._transition(db, invoice, "pay_partial", guards=guards, **values)
        else:
            INVOICE_TRANSITIONS.check("settle", invoice.status_pembayaran)
            await coordinator.ensure_invoice_payable(db, invoice)
            await self._transition(
                db, invoice, "settle", guards=guards, tanggal_pembayaran=datetime.utcnow(), **values
            )

        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Invoice",
            activity_description=(
                f"Payment of {jumlah} recorded on {invoice.nomor_invoice} "
                f"({invoice.jumlah_dibayar}/{invoice.total_tagihan}, {invoice.status_pembayaran})."
            ),
        )
        await db.commit()
        return invoice

    async def mark_as_paid(
        self,
        db: AsyncSession,
        identity: Identity,
        invoice_id: int,
        metode_pembayaran: Optional[str] = None,
    ) -> Invoice:
        """Pays the whole outstanding balance."""
        invoice = await self.get_for_identity(db, identity, invoice_id)
        if invoice.status_pembayaran in _CLOSED:
            raise ConflictError(f"Invoice is already {invoice.status_pembayaran}")
        outstanding = Decimal(invoice.total_tagihan) - Decimal(invoice.jumlah_dibayar or 0)
        return await self.record_payment(db, identity, invoice_id, outstanding, metode_pembayaran)

    async def update_amounts(
        self,
        db: AsyncSession,
        identity: Identity,
        invoice_id: int,
        subtotal: Decimal,
        ppn: Optional[Decimal] = None,
    ) -> Invoice:
        invoice = await self.get_for_identity(db, identity, invoice_id)
        current = invoice.status_pembayaran
        if current in _CLOSED:
            raise ConflictError(f"Invoice amounts cannot be changed once it is {current}")

        subtotal, ppn, total = coordinator.compute_invoice_amounts(subtotal, ppn)
        if total < Decimal(invoice.jumlah_dibayar or 0):
            raise ValidationFailedError(
                "New total is below the amount already paid",
                errors={"subtotal": f"already paid {invoice.jumlah_dibayar}"},
            )

        swapped = await invoice_repository.compare_and_swap(
            db, invoice.id, current, subtotal=subtotal, ppn=ppn, total_tagihan=total
        )
        if not swapped:
            raise StaleStateError("Invoice", invoice.id, current)

        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Invoice",
            activity_description=f"Amounts of {invoice.nomor_invoice} set to {subtotal} + {ppn} = {total}.",
        )
        await db.commit()
        return invoice

    async def void(self, db: AsyncSession, identity: Identity, invoice_id: int) -> Invoice:
        invoice = await self.get_for_identity(db, identity, invoice_id)
        await self._transition(db, invoice, "void")
        await log_activity(
            db,
            user_id=identity.user_id,
            activity_type_category="Invoice",
            activity_description=f"Invoice {invoice.nomor_invoice} voided.",
        )
        await db.commit()
        return invoice

    async def sweep_overdue(self, db: AsyncSession, today: Optional[date] = None) -> int:
        """Persists ``jatuh_tempo`` on every unpaid invoice past its due date."""
        today = today or date.today()
        swept = 0
        for invoice in await invoice_repository.list_overdue_candidates(db, today):
            expected = invoice.status_pembayaran
            if not INVOICE_TRANSITIONS.can("mark_overdue", expected):
                continue
            if await invoice_repository.compare_and_swap(
                db, invoice.id, expected, status_pembayaran=StatusPembayaran.JATUH_TEMPO.value
            ):
                swept += 1
            else:
                logger.info(f"Invoice {invoice.nomor_invoice} changed during overdue sweep, skipped.")

        if swept:
            await log_activity(
                db,
                user_id=None,
                activity_type_category="Invoice",
                activity_description=f"Overdue sweep marked {swept} invoice(s) as jatuh_tempo.",
            )
        await db.commit()
        return swept

    def render_html(self, invoice: Invoice) -> str:
        status = effective_status(invoice)
        return (
            "<html><head><meta charset=\"utf-8\">"
            f"<title>Invoice {invoice.nomor_invoice}</title></head><body>"
            f"<h1>Invoice {invoice.nomor_invoice}</h1>"
            f"<p>Tanggal: {invoice.tanggal_invoice:%d-%m-%Y}<br>"
            f"Jatuh tempo: {invoice.tanggal_jatuh_tempo:%d-%m-%Y}<br>"
            f"Status: {status}</p>"
            "<table>"
            f"<tr><td>Subtotal</td><td>Rp {invoice.subtotal:,.2f}</td></tr>"
            f"<tr><td>PPN</td><td>Rp {invoice.ppn:,.2f}</td></tr>"
            f"<tr><td>Total</td><td>Rp {invoice.total_tagihan:,.2f}</td></tr>"
            f"<tr><td>Dibayar</td><td>Rp {invoice.jumlah_dibayar:,.2f}</td></tr>"
            "</table></body></html>"
        )


invoice_service = InvoiceService()
