from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.dependencies import get_db, route_policy
from envindo.models.invoice_model import StatusPembayaran
from envindo.modules.invoices.service import invoice_service, to_schema
from envindo.schemas import invoice_schema
from envindo.schemas.response_schema import success_response
from envindo.schemas.token_schema import Identity

router = APIRouter(
    prefix="/invoices",
    tags=["Invoices"],
)


@router.get("")
async def list_invoices(
    status_filter: Optional[StatusPembayaran] = Query(None, alias="status"),
    identity: Identity = Depends(route_policy("invoices")),
    db: AsyncSession = Depends(get_db),
):
    invoices = await invoice_service.list_invoices(
        db, identity, status=status_filter.value if status_filter else None
    )
    return success_response([to_schema(inv) for inv in invoices], "Invoices retrieved")


@router.get("/{invoice_id}")
async def get_invoice(
    invoice_id: int,
    identity: Identity = Depends(route_policy("invoices")),
    db: AsyncSession = Depends(get_db),
):
    invoice = await invoice_service.get_for_identity(db, identity, invoice_id)
    return success_response(to_schema(invoice), "Invoice retrieved")


@router.get("/{invoice_id}/download")
async def download_invoice(
    invoice_id: int,
    identity: Identity = Depends(route_policy("invoices")),
    db: AsyncSession = Depends(get_db),
):
    invoice = await invoice_service.get_for_identity(db, identity, invoice_id)
    return success_response(
        {
            "filename": f"{invoice.nomor_invoice}.html",
            "html": invoice_service.render_html(invoice),
        },
        "Invoice rendered",
    )


@router.put("/{invoice_id}/pay")
async def pay_invoice(
    invoice_id: int,
    data: Optional[invoice_schema.InvoiceMarkPaid] = None,
    identity: Identity = Depends(route_policy("invoices")),
    db: AsyncSession = Depends(get_db),
):
    """Settles the full outstanding balance."""
    invoice = await invoice_service.mark_as_paid(
        db, identity, invoice_id, data.metode_pembayaran if data else None
    )
    return success_response(to_schema(invoice), "Invoice marked as paid")


@router.post("/{invoice_id}/payments")
async def record_payment(
    invoice_id: int,
    data: invoice_schema.InvoicePayment,
    identity: Identity = Depends(route_policy("invoices")),
    db: AsyncSession = Depends(get_db),
):
    invoice = await invoice_service.record_payment(
        db, identity, invoice_id, data.jumlah, data.metode_pembayaran
    )
    return success_response(to_schema(invoice), "Payment recorded")


@router.put("/{invoice_id}/amounts")
async def update_invoice_amounts(
    invoice_id: int,
    data: invoice_schema.InvoiceAmountUpdate,
    identity: Identity = Depends(route_policy("invoices/manage")),
    db: AsyncSession = Depends(get_db),
):
    invoice = await invoice_service.update_amounts(db, identity, invoice_id, data.subtotal, data.ppn)
    return success_response(to_schema(invoice), "Invoice amounts updated")


@router.put("/{invoice_id}/void")
async def void_invoice(
    invoice_id: int,
    identity: Identity = Depends(route_policy("invoices/manage")),
    db: AsyncSession = Depends(get_db),
):
    invoice = await invoice_service.void(db, identity, invoice_id)
    return success_response(to_schema(invoice), "Invoice voided")
