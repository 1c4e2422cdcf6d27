from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.dependencies import get_db, route_policy
from envindo.models.manifest_model import StatusManifest
from envindo.modules.manifests.service import manifest_service
from envindo.schemas import manifest_schema
from envindo.schemas.response_schema import success_response
from envindo.schemas.token_schema import Identity

router = APIRouter(
    prefix="/manifests",
    tags=["Manifests"],
)


def _serialize(manifest):
    return manifest_schema.Manifest.model_validate(manifest)


@router.get("")
async def list_manifests(
    status_filter: Optional[StatusManifest] = Query(None, alias="status"),
    identity: Identity = Depends(route_policy("manifests")),
    db: AsyncSession = Depends(get_db),
):
    manifests = await manifest_service.list_manifests(
        db, identity, status=status_filter.value if status_filter else None
    )
    return success_response([_serialize(m) for m in manifests], "Manifests retrieved")


@router.get("/{manifest_id}")
async def get_manifest(
    manifest_id: int,
    identity: Identity = Depends(route_policy("manifests")),
    db: AsyncSession = Depends(get_db),
):
    manifest = await manifest_service.get_for_identity(db, identity, manifest_id)
    return success_response(_serialize(manifest), "Manifest retrieved")


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_manifest(
    data: manifest_schema.ManifestCreate,
    identity: Identity = Depends(route_policy("manifests")),
    db: AsyncSession = Depends(get_db),
):
    manifest = await manifest_service.create(db, identity, data)
    return success_response(_serialize(manifest), "Manifest created")


@router.put("/{manifest_id}/submit")
async def submit_manifest(
    manifest_id: int,
    identity: Identity = Depends(route_policy("manifests")),
    db: AsyncSession = Depends(get_db),
):
    manifest = await manifest_service.submit(db, identity, manifest_id)
    return success_response(_serialize(manifest), "Manifest submitted")


@router.put("/{manifest_id}/approve")
async def review_manifest(
    manifest_id: int,
    data: manifest_schema.ManifestReview,
    identity: Identity = Depends(route_policy("manifests/approve")),
    db: AsyncSession = Depends(get_db),
):
    manifest = await manifest_service.review(
        db, identity, manifest_id, data.action, data.catatan_persetujuan
    )
    return success_response(_serialize(manifest), f"Manifest {manifest.status_manifest}")


@router.put("/{manifest_id}/finish")
async def finish_manifest(
    manifest_id: int,
    identity: Identity = Depends(route_policy("manifests/finish")),
    db: AsyncSession = Depends(get_db),
):
    manifest = await manifest_service.finish(db, identity, manifest_id)
    return success_response(_serialize(manifest), "Manifest finished")
