from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.dependencies import get_db, route_policy
from envindo.modules.admin import service as admin_service
from envindo.modules.catalog.service import catalog_service
from envindo.modules.dashboard.service import dashboard_service
from envindo.schemas import layanan_schema
from envindo.schemas.response_schema import success_response
from envindo.schemas.token_schema import Identity

router = APIRouter(
    prefix="/superadmin",
    tags=["Superadmin"],
)


@router.get("/services")
async def list_services(
    is_active: Optional[bool] = Query(None),
    identity: Identity = Depends(route_policy("superadmin")),
    db: AsyncSession = Depends(get_db),
):
    services = await catalog_service.list_all(db, is_active=is_active)
    return success_response(
        [layanan_schema.Layanan.model_validate(s) for s in services], "Services retrieved"
    )


@router.post("/services", status_code=status.HTTP_201_CREATED)
async def create_service(
    data: layanan_schema.LayananCreate,
    identity: Identity = Depends(route_policy("superadmin")),
    db: AsyncSession = Depends(get_db),
):
    layanan = await catalog_service.create_layanan(db, identity.user_id, data)
    return success_response(layanan_schema.Layanan.model_validate(layanan), "Service created")


@router.put("/services/{service_id}")
async def update_service(
    service_id: int,
    data: layanan_schema.LayananUpdate,
    identity: Identity = Depends(route_policy("superadmin")),
    db: AsyncSession = Depends(get_db),
):
    layanan = await catalog_service.update_layanan(db, identity.user_id, service_id, data)
    return success_response(layanan_schema.Layanan.model_validate(layanan), "Service updated")


@router.delete("/services/{service_id}")
async def delete_service(
    service_id: int,
    permanent: bool = Query(False),
    identity: Identity = Depends(route_policy("superadmin")),
    db: AsyncSession = Depends(get_db),
):
    """Deactivates a service, or removes it for good with ``?permanent=true``."""
    await catalog_service.delete_layanan(db, identity.user_id, service_id, permanent=permanent)
    message = "Service permanently deleted" if permanent else "Service deactivated successfully"
    return success_response(message=message)


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    identity: Identity = Depends(route_policy("superadmin")),
    db: AsyncSession = Depends(get_db),
):
    await admin_service.delete_user(db, identity, user_id)
    return success_response(message="User deleted")


@router.get("/system-stats")
async def system_stats(
    identity: Identity = Depends(route_policy("superadmin")),
    db: AsyncSession = Depends(get_db),
):
    data = await dashboard_service.get_system_stats(db)
    return success_response(data, "System statistics retrieved")
