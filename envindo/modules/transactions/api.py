from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.dependencies import get_db, route_policy
from envindo.models.transaksi_model import StatusTransaksi
from envindo.modules.transactions.service import transaction_service
from envindo.schemas import transaksi_schema
from envindo.schemas.response_schema import success_response
from envindo.schemas.token_schema import Identity

router = APIRouter(
    prefix="/transactions",
    tags=["Transactions"],
)


def _serialize(transaksi):
    return transaksi_schema.Transaksi.model_validate(transaksi)


@router.get("")
async def list_transactions(
    status_filter: Optional[StatusTransaksi] = Query(None, alias="status"),
    identity: Identity = Depends(route_policy("transactions")),
    db: AsyncSession = Depends(get_db),
):
    transactions = await transaction_service.list_transactions(
        db, identity, status=status_filter.value if status_filter else None
    )
    return success_response([_serialize(t) for t in transactions], "Transactions retrieved")


@router.get("/{transaction_id}")
async def get_transaction(
    transaction_id: int,
    identity: Identity = Depends(route_policy("transactions")),
    db: AsyncSession = Depends(get_db),
):
    transaksi = await transaction_service.get_for_identity(db, identity, transaction_id)
    return success_response(_serialize(transaksi), "Transaction retrieved")


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    data: transaksi_schema.TransaksiCreate,
    identity: Identity = Depends(route_policy("transactions")),
    db: AsyncSession = Depends(get_db),
):
    transaksi, invoice = await transaction_service.create_subscription(db, identity, data)
    payload = transaksi_schema.SubscriptionCreated(
        transaction_id=transaksi.id,
        kode_transaksi=transaksi.kode_transaksi,
        invoice_id=invoice.id,
        nomor_invoice=invoice.nomor_invoice,
        total_harga=transaksi.total_harga,
        total_tagihan=invoice.total_tagihan,
        tanggal_jatuh_tempo=invoice.tanggal_jatuh_tempo.isoformat(),
    )
    return success_response(payload, "Transaction created successfully")


@router.put("/{transaction_id}/status")
async def update_transaction_status(
    transaction_id: int,
    data: transaksi_schema.TransaksiStatusUpdate,
    identity: Identity = Depends(route_policy("transactions/status")),
    db: AsyncSession = Depends(get_db),
):
    transaksi = await transaction_service.update_status(db, identity, transaction_id, data.status)
    return success_response(_serialize(transaksi), f"Transaction status updated to {transaksi.status}")


@router.put("/{transaction_id}/payment-proof")
async def upload_payment_proof(
    transaction_id: int,
    data: transaksi_schema.PaymentProof,
    identity: Identity = Depends(route_policy("transactions")),
    db: AsyncSession = Depends(get_db),
):
    transaksi = await transaction_service.attach_payment_proof(
        db, identity, transaction_id, data.bukti_pembayaran
    )
    return success_response(_serialize(transaksi), "Payment proof uploaded")


@router.put("/{transaction_id}/cancel")
async def cancel_transaction(
    transaction_id: int,
    identity: Identity = Depends(route_policy("transactions")),
    db: AsyncSession = Depends(get_db),
):
    transaksi = await transaction_service.cancel(db, identity, transaction_id)
    return success_response(_serialize(transaksi), "Transaction cancelled")
