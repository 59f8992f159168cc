"""Document API routes.

Learn: every route depends on get_current_identity, so there is no way to
reach a document without a session. The service enforces ownership; the
routes only translate HTTP to service calls and commit.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from docdesk.auth.authority import SessionIdentity
from docdesk.auth.dependencies import get_current_identity
from docdesk.context import get_db
from docdesk.schemas.document import (
    Document,
    DocumentCreate,
    DocumentPreview,
    DocumentUpdate,
)
from docdesk.services.document_service import DocumentService

router = APIRouter(prefix="/documents")


def _svc(db: AsyncSession = Depends(get_db)) -> DocumentService:
    return DocumentService(db)


@router.get("", response_model=list[DocumentPreview])
async def list_documents(
    limit: Optional[int] = Query(None, ge=1, le=100),
    offset: Optional[int] = Query(None, ge=0),
    identity: SessionIdentity = Depends(get_current_identity),
    svc: DocumentService = Depends(_svc),
):
    return await svc.list_previews(identity.user_id, limit=limit, offset=offset)


@router.post("", response_model=Document, status_code=201)
async def create_document(
    body: DocumentCreate,
    identity: SessionIdentity = Depends(get_current_identity),
    svc: DocumentService = Depends(_svc),
):
    document = await svc.create_document(
        identity.user_id,
        title=body.title,
        markdown=body.markdown,
        content=body.content,
    )
    await svc.db.commit()
    return document


@router.get("/{document_id}", response_model=Document)
async def get_document(
    document_id: str,
    identity: SessionIdentity = Depends(get_current_identity),
    svc: DocumentService = Depends(_svc),
):
    return await svc.get_document(document_id, identity.user_id)


@router.patch("/{document_id}", response_model=Document)
async def update_document(
    document_id: str,
    body: DocumentUpdate,
    identity: SessionIdentity = Depends(get_current_identity),
    svc: DocumentService = Depends(_svc),
):
    document = await svc.update_document(
        document_id,
        identity.user_id,
        title=body.title,
        content=body.content,
        markdown=body.markdown,
    )
    await svc.db.commit()
    return document


@router.delete("/{document_id}")
async def delete_document(
    document_id: str,
    identity: SessionIdentity = Depends(get_current_identity),
    svc: DocumentService = Depends(_svc),
):
    await svc.delete_document(document_id, identity.user_id)
    await svc.db.commit()
    return {"deleted": True}


@router.post("/{document_id}/download")
async def record_download(
    document_id: str,
    identity: SessionIdentity = Depends(get_current_identity),
    svc: DocumentService = Depends(_svc),
):
    """Record that the owner downloaded this document."""
    await svc.record_download(document_id, identity.user_id)
    await svc.db.commit()
    return {"success": True, "downloads": await svc.count_downloads(document_id)}
