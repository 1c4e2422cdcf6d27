from datetime import date, timedelta
from decimal import Decimal

import pytest

from conftest import auth_headers, identity_of
from envindo.core.exceptions import ConflictError, ForbiddenError, IllegalTransitionError, ValidationFailedError
from envindo.core.roles import Role
from envindo.models import Invoice
from envindo.modules.invoices.service import effective_status, invoice_service
from envindo.modules.transactions.service import transaction_service
from envindo.schemas.transaksi_schema import TransaksiCreate
from envindo.tasks.invoice_tasks import sweep_overdue_invoices_async


@pytest.fixture
def billed(db, make_user, make_layanan):
    """Returns a coroutine creating (owner, admin, transaksi, invoice)."""
    async def _billed(harga="1000000", activate=False):
        owner = await make_user()
        admin = await make_user(Role.ADMIN_KEUANGAN)
        layanan = await make_layanan(harga=harga)
        transaksi, invoice = await transaction_service.create_subscription(
            db, identity_of(owner), TransaksiCreate(layanan_id=layanan.id)
        )
        if activate:
            await transaction_service.process(db, identity_of(admin), transaksi.id)
            await transaction_service.activate(db, identity_of(admin), transaksi.id)
        return owner, admin, transaksi, invoice

    return _billed


async def test_partial_then_full_payment(db, billed):
    owner, _, _, invoice = await billed(harga="1000000", activate=True)
    assert invoice.total_tagihan == Decimal("1110000")

    await invoice_service.record_payment(db, identity_of(owner), invoice.id, Decimal("110000"), "transfer")
    assert invoice.status_pembayaran == "partial"
    assert invoice.jumlah_dibayar == Decimal("110000")
    assert invoice.tanggal_pembayaran is None

    await invoice_service.record_payment(db, identity_of(owner), invoice.id, Decimal("1000000"))
    assert invoice.status_pembayaran == "lunas"
    assert invoice.jumlah_dibayar == invoice.total_tagihan
    assert invoice.tanggal_pembayaran is not None
    assert invoice.metode_pembayaran == "transfer"


async def test_settling_requires_running_subscription(db, billed):
    owner, _, transaksi, invoice = await billed()
    assert transaksi.status == "pending"

    with pytest.raises(ConflictError, match="subscription is 'pending'"):
        await invoice_service.mark_as_paid(db, identity_of(owner), invoice.id)
    assert invoice.status_pembayaran == "belum_bayar"

    # Partial payments are fine before activation
    await invoice_service.record_payment(db, identity_of(owner), invoice.id, Decimal("1000"))
    assert invoice.status_pembayaran == "partial"


async def test_overpayment_rejected(db, billed):
    owner, _, _, invoice = await billed(activate=True)
    with pytest.raises(ValidationFailedError):
        await invoice_service.record_payment(db, identity_of(owner), invoice.id, invoice.total_tagihan + 1)
    assert invoice.jumlah_dibayar == Decimal("0")


async def test_sub_cent_payment_rounds_to_settlement(db, billed):
    owner, _, _, invoice = await billed(activate=True)

    await invoice_service.record_payment(db, identity_of(owner), invoice.id, invoice.total_tagihan - Decimal("0.001"))
    assert invoice.status_pembayaran == "lunas"
    assert invoice.jumlah_dibayar == invoice.total_tagihan


async def test_payment_rounded_down_leaves_a_cent_to_pay(db, billed):
    owner, _, _, invoice = await billed(activate=True)

    await invoice_service.record_payment(db, identity_of(owner), invoice.id, invoice.total_tagihan - Decimal("0.006"))
    assert invoice.status_pembayaran == "partial"
    assert invoice.jumlah_dibayar == invoice.total_tagihan - Decimal("0.01")

    await invoice_service.mark_as_paid(db, identity_of(owner), invoice.id)
    assert invoice.status_pembayaran == "lunas"
    assert invoice.jumlah_dibayar == invoice.total_tagihan


async def test_payment_rounding_to_zero_rejected(db, billed):
    owner, _, _, invoice = await billed(activate=True)
    with pytest.raises(ValidationFailedError):
        await invoice_service.record_payment(db, identity_of(owner), invoice.id, Decimal("0.004"))
    assert invoice.status_pembayaran == "belum_bayar"


async def test_lunas_is_terminal(db, billed):
    owner, admin, _, invoice = await billed(activate=True)
    await invoice_service.mark_as_paid(db, identity_of(owner), invoice.id)

    with pytest.raises(ConflictError):
        await invoice_service.mark_as_paid(db, identity_of(owner), invoice.id)
    with pytest.raises(IllegalTransitionError):
        await invoice_service.void(db, identity_of(admin), invoice.id)
    with pytest.raises(ConflictError):
        await invoice_service.update_amounts(db, identity_of(admin), invoice.id, Decimal("5"))


async def test_update_amounts_keeps_total_consistent(db, billed):
    _, admin, _, invoice = await billed()

    await invoice_service.update_amounts(db, identity_of(admin), invoice.id, Decimal("500000"), Decimal("25000"))
    assert invoice.total_tagihan == Decimal("525000")
    assert invoice.total_tagihan == invoice.subtotal + invoice.ppn

    await invoice_service.update_amounts(db, identity_of(admin), invoice.id, Decimal("200000"))
    assert invoice.ppn == Decimal("22000")
    assert invoice.total_tagihan == invoice.subtotal + invoice.ppn


async def test_update_amounts_below_paid_rejected(db, billed):
    owner, admin, _, invoice = await billed()
    await invoice_service.record_payment(db, identity_of(owner), invoice.id, Decimal("300000"))
    with pytest.raises(ValidationFailedError):
        await invoice_service.update_amounts(db, identity_of(admin), invoice.id, Decimal("100000"), Decimal("0"))


async def test_effective_status_is_derived_from_due_date(db, billed):
    _, _, _, invoice = await billed()
    due = invoice.tanggal_jatuh_tempo

    assert effective_status(invoice, due) == "belum_bayar"
    assert effective_status(invoice, due + timedelta(days=1)) == "jatuh_tempo"

    invoice.status_pembayaran = "lunas"
    assert effective_status(invoice, due + timedelta(days=1)) == "lunas"


async def test_sweep_persists_overdue(db, session_factory, billed):
    _, _, _, overdue = await billed()
    _, _, _, fresh = await billed()
    overdue.tanggal_jatuh_tempo = date.today() - timedelta(days=3)
    await db.commit()

    swept = await sweep_overdue_invoices_async(session_factory)
    assert swept == 1

    async with session_factory() as session:
        assert (await session.get(Invoice, overdue.id)).status_pembayaran == "jatuh_tempo"
        assert (await session.get(Invoice, fresh.id)).status_pembayaran == "belum_bayar"

    # Running again finds nothing new
    assert await sweep_overdue_invoices_async(session_factory) == 0


async def test_overdue_invoice_can_still_be_paid(db, billed):
    owner, _, _, invoice = await billed(activate=True)
    invoice.tanggal_jatuh_tempo = date.today() - timedelta(days=1)
    await db.commit()
    await invoice_service.sweep_overdue(db)
    assert invoice.status_pembayaran == "jatuh_tempo"

    await invoice_service.mark_as_paid(db, identity_of(owner), invoice.id)
    assert invoice.status_pembayaran == "lunas"


async def test_invoice_access_is_owner_or_admin(db, make_user, billed):
    _, admin, _, invoice = await billed()
    stranger = await make_user()
    with pytest.raises(ForbiddenError):
        await invoice_service.get_for_identity(db, identity_of(stranger), invoice.id)
    assert (await invoice_service.get_for_identity(db, identity_of(admin), invoice.id)).id == invoice.id


async def test_invoice_endpoints(client, billed):
    owner, admin, _, invoice = await billed(activate=True)

    response = await client.get("/api/invoices", headers=auth_headers(owner))
    assert response.status_code == 200
    assert [item["id"] for item in response.json()["data"]] == [invoice.id]

    response = await client.put(
        f"/api/invoices/{invoice.id}/amounts", json={"subtotal": "100"}, headers=auth_headers(owner)
    )
    assert response.status_code == 403

    response = await client.post(
        f"/api/invoices/{invoice.id}/payments", json={"jumlah": "0"}, headers=auth_headers(owner)
    )
    assert response.status_code == 400

    response = await client.post(
        f"/api/invoices/{invoice.id}/payments", json={"jumlah": "0.001"}, headers=auth_headers(owner)
    )
    assert response.status_code == 400

    response = await client.put(f"/api/invoices/{invoice.id}/pay", headers=auth_headers(owner))
    assert response.status_code == 200
    assert response.json()["data"]["status_pembayaran"] == "lunas"

    response = await client.get(f"/api/invoices/{invoice.id}/download", headers=auth_headers(admin))
    assert response.status_code == 200
    assert invoice.nomor_invoice in response.json()["data"]["html"]
