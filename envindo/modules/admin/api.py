from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.dependencies import get_db, route_policy
from envindo.core.roles import Role
from envindo.models.invoice_model import StatusPembayaran
from envindo.models.transaksi_model import StatusTransaksi
from envindo.modules.admin import service as admin_service
from envindo.modules.invoices.service import invoice_service, to_schema as invoice_to_schema
from envindo.modules.transactions.service import transaction_service
from envindo.schemas import transaksi_schema, user_schema
from envindo.schemas.response_schema import success_response
from envindo.schemas.token_schema import Identity

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
)


@router.get("/users")
async def list_users(
    role: Optional[Role] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    identity: Identity = Depends(route_policy("admin")),
    db: AsyncSession = Depends(get_db),
):
    users = await admin_service.list_users(db, role=role.value if role else None, skip=skip, limit=limit)
    return success_response(
        user_schema.UserList(
            users=[user_schema.User.model_validate(u) for u in users], total_users=len(users)
        ),
        "Users retrieved",
    )


@router.get("/users/{user_id}")
async def get_user(
    user_id: int,
    identity: Identity = Depends(route_policy("admin")),
    db: AsyncSession = Depends(get_db),
):
    user = await admin_service.get_user(db, user_id)
    return success_response(user_schema.User.model_validate(user), "User retrieved")


@router.put("/users/{user_id}/status")
async def update_user_status(
    user_id: int,
    data: user_schema.UserStatusUpdate,
    identity: Identity = Depends(route_policy("admin")),
    db: AsyncSession = Depends(get_db),
):
    user = await admin_service.update_user_status(db, identity, user_id, data.is_active)
    return success_response(user_schema.User.model_validate(user), "User status updated")


@router.get("/transactions")
async def list_all_transactions(
    status_filter: Optional[StatusTransaksi] = Query(None, alias="status"),
    identity: Identity = Depends(route_policy("admin")),
    db: AsyncSession = Depends(get_db),
):
    transactions = await transaction_service.list_all(
        db, status=status_filter.value if status_filter else None
    )
    return success_response(
        [transaksi_schema.Transaksi.model_validate(t) for t in transactions], "Transactions retrieved"
    )


@router.get("/invoices")
async def list_all_invoices(
    status_filter: Optional[StatusPembayaran] = Query(None, alias="status"),
    identity: Identity = Depends(route_policy("admin")),
    db: AsyncSession = Depends(get_db),
):
    invoices = await invoice_service.list_all(db, status=status_filter.value if status_filter else None)
    return success_response([invoice_to_schema(inv) for inv in invoices], "Invoices retrieved")
