from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.dependencies import get_db, route_policy
from envindo.models.transaksi_model import StatusTransaksi
from envindo.modules.catalog.service import catalog_service
from envindo.modules.transactions.service import transaction_service
from envindo.schemas import layanan_schema, transaksi_schema
from envindo.schemas.response_schema import success_response
from envindo.schemas.token_schema import Identity

router = APIRouter(
    prefix="/services",
    tags=["Services"],
)


@router.get("")
async def list_services(
    identity: Identity = Depends(route_policy("services")),
    db: AsyncSession = Depends(get_db),
):
    services = await catalog_service.list_active(db)
    return success_response(
        [layanan_schema.Layanan.model_validate(s) for s in services], "Services retrieved"
    )


@router.get("/my-services")
async def my_services(
    status_filter: Optional[StatusTransaksi] = Query(None, alias="status"),
    identity: Identity = Depends(route_policy("services")),
    db: AsyncSession = Depends(get_db),
):
    """The caller's subscriptions, newest first."""
    transactions = await transaction_service.list_transactions(
        db, identity, status=status_filter.value if status_filter else None
    )
    return success_response(
        [transaksi_schema.Transaksi.model_validate(t) for t in transactions],
        "Subscriptions retrieved",
    )


@router.get("/{service_id}")
async def get_service(
    service_id: int,
    identity: Identity = Depends(route_policy("services")),
    db: AsyncSession = Depends(get_db),
):
    layanan = await catalog_service.get_layanan(db, service_id, active_only=True)
    return success_response(layanan_schema.Layanan.model_validate(layanan), "Service retrieved")


@router.post("/subscribe", status_code=status.HTTP_201_CREATED)
async def subscribe(
    data: transaksi_schema.TransaksiCreate,
    identity: Identity = Depends(route_policy("services")),
    db: AsyncSession = Depends(get_db),
):
    transaksi, invoice = await transaction_service.create_subscription(db, identity, data)
    return success_response(
        {
            "transaction": transaksi_schema.Transaksi.model_validate(transaksi),
            "invoice_id": invoice.id,
            "nomor_invoice": invoice.nomor_invoice,
            "total_tagihan": invoice.total_tagihan,
            "tanggal_jatuh_tempo": invoice.tanggal_jatuh_tempo,
        },
        "Subscription created, awaiting payment",
    )
