from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.dependencies import get_db, route_policy
from envindo.models.pengangkutan_model import StatusPengangkutan
from envindo.modules.waste_collection.service import waste_collection_service
from envindo.schemas import pengangkutan_schema
from envindo.schemas.response_schema import success_response
from envindo.schemas.token_schema import Identity

router = APIRouter(
    prefix="/waste-collection",
    tags=["Waste Collection"],
)


def _serialize(run):
    return pengangkutan_schema.Pengangkutan.model_validate(run)


@router.get("")
async def list_waste_collections(
    status_filter: Optional[StatusPengangkutan] = Query(None, alias="status"),
    identity: Identity = Depends(route_policy("waste-collection")),
    db: AsyncSession = Depends(get_db),
):
    runs = await waste_collection_service.list_runs(
        db, identity, status=status_filter.value if status_filter else None
    )
    return success_response([_serialize(r) for r in runs], "Waste collections retrieved")


@router.get("/{run_id}")
async def get_waste_collection(
    run_id: int,
    identity: Identity = Depends(route_policy("waste-collection")),
    db: AsyncSession = Depends(get_db),
):
    run = await waste_collection_service.get_for_identity(db, identity, run_id)
    return success_response(_serialize(run), "Waste collection retrieved")


@router.post("/schedule", status_code=status.HTTP_201_CREATED)
async def schedule_waste_collection(
    data: pengangkutan_schema.PengangkutanCreate,
    identity: Identity = Depends(route_policy("waste-collection")),
    db: AsyncSession = Depends(get_db),
):
    run = await waste_collection_service.schedule(db, identity, data)
    return success_response(_serialize(run), "Waste collection scheduled")


@router.put("/{run_id}/start")
async def start_waste_collection(
    run_id: int,
    identity: Identity = Depends(route_policy("waste-collection/operate")),
    db: AsyncSession = Depends(get_db),
):
    run = await waste_collection_service.start(db, identity, run_id)
    return success_response(_serialize(run), "Waste collection started")


@router.put("/{run_id}/complete")
async def complete_waste_collection(
    run_id: int,
    data: Optional[pengangkutan_schema.PengangkutanComplete] = None,
    identity: Identity = Depends(route_policy("waste-collection/operate")),
    db: AsyncSession = Depends(get_db),
):
    run = await waste_collection_service.complete(db, identity, run_id, data)
    return success_response(_serialize(run), "Waste collection completed")


@router.put("/{run_id}/cancel")
async def cancel_waste_collection(
    run_id: int,
    identity: Identity = Depends(route_policy("waste-collection")),
    db: AsyncSession = Depends(get_db),
):
    run = await waste_collection_service.cancel(db, identity, run_id)
    return success_response(_serialize(run), "Waste collection cancelled")
