from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.dependencies import get_db, route_policy
from envindo.modules.dashboard.service import dashboard_service
from envindo.schemas.response_schema import success_response
from envindo.schemas.token_schema import Identity

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"],
)


@router.get("/user")
async def user_dashboard(
    identity: Identity = Depends(route_policy("dashboard/user")),
    db: AsyncSession = Depends(get_db),
):
    data = await dashboard_service.get_user_dashboard(db, identity.user_id)
    return success_response(data, "Dashboard data retrieved")


@router.get("/admin")
async def admin_dashboard(
    identity: Identity = Depends(route_policy("dashboard/admin")),
    db: AsyncSession = Depends(get_db),
):
    data = await dashboard_service.get_admin_dashboard(db)
    return success_response(data, "Admin dashboard data retrieved")


@router.get("/superadmin")
async def superadmin_dashboard(
    identity: Identity = Depends(route_policy("dashboard/superadmin")),
    db: AsyncSession = Depends(get_db),
):
    data = await dashboard_service.get_superadmin_dashboard(db)
    return success_response(data, "Superadmin dashboard data retrieved")
