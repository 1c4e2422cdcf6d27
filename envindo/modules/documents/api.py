from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.dependencies import get_db, route_policy
from envindo.models.dokumen_model import StatusDokumen
from envindo.modules.documents import service as document_service
from envindo.schemas import dokumen_schema
from envindo.schemas.response_schema import success_response
from envindo.schemas.token_schema import Identity

router = APIRouter(
    prefix="/documents",
    tags=["Documents"],
)


@router.get("")
async def list_documents(
    status_filter: Optional[StatusDokumen] = Query(None, alias="status"),
    identity: Identity = Depends(route_policy("documents")),
    db: AsyncSession = Depends(get_db),
):
    docs = await document_service.list_documents(
        db, identity, status=status_filter.value if status_filter else None
    )
    return success_response([document_service.to_schema(d) for d in docs], "Documents retrieved")


@router.get("/{document_id}")
async def get_document(
    document_id: int,
    identity: Identity = Depends(route_policy("documents")),
    db: AsyncSession = Depends(get_db),
):
    doc = await document_service.get_document_for_identity(db, identity, document_id)
    return success_response(document_service.to_schema(doc), "Document retrieved")


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_document(
    data: dokumen_schema.DokumenCreate,
    identity: Identity = Depends(route_policy("documents")),
    db: AsyncSession = Depends(get_db),
):
    doc = await document_service.register_document(db, identity, data)
    return success_response(document_service.to_schema(doc), "Document registered")


@router.delete("/{document_id}")
async def delete_document(
    document_id: int,
    identity: Identity = Depends(route_policy("documents")),
    db: AsyncSession = Depends(get_db),
):
    await document_service.delete_document(db, identity, document_id)
    return success_response(message="Document deleted")
