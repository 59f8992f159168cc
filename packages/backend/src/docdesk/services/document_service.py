"""Document service — owner-scoped CRUD for markdown documents.

Learn: every operation takes the caller's user id and checks ownership
before touching a row. A missing document is NotFoundError (404); someone
else's document is ForbiddenError (403).
"""

from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docdesk.db.models import Document, DownloadHistory, utcnow
from docdesk.errors import ForbiddenError, NotFoundError, ValidationError
from docdesk.schemas.document import DocumentPreview


class DocumentService:
    """Business logic for documents."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_document(
        self,
        owner_id: str,
        title: str,
        markdown: str,
        content: Optional[str] = None,
    ) -> Document:
        document = Document(
            user_id=owner_id,
            title=title,
            markdown=markdown,
            content=markdown if content is None else content,
        )
        self.db.add(document)
        await self.db.flush()
        return document

    async def get_document(self, document_id: str, owner_id: str) -> Document:
        document = await self.db.get(Document, document_id)
        if not document:
            raise NotFoundError("Document", document_id)
        if document.user_id != owner_id:
            raise ForbiddenError("You do not have access to this document")
        return document

    async def list_previews(
        self,
        owner_id: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[DocumentPreview]:
        """The owner's documents, newest first, as previews."""
        q = (
            select(Document)
            .where(Document.user_id == owner_id)
            .order_by(Document.created_at.desc(), Document.id)
        )
        if offset:
            q = q.offset(offset)
        if limit is not None:
            q = q.limit(limit)

        result = await self.db.execute(q)
        return [DocumentPreview.from_document(d) for d in result.scalars().all()]

    async def update_document(
        self,
        document_id: str,
        owner_id: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
        markdown: Optional[str] = None,
    ) -> Document:
        """Apply the supplied fields. Always refreshes updated_at."""
        changes = {
            k: v
            for k, v in (("title", title), ("content", content), ("markdown", markdown))
            if v is not None
        }
        if not changes:
            raise ValidationError("Nothing to update")

        document = await self.get_document(document_id, owner_id)
        for field, value in changes.items():
            setattr(document, field, value)
        document.updated_at = utcnow()
        await self.db.flush()
        return document

    async def delete_document(self, document_id: str, owner_id: str) -> None:
        document = await self.get_document(document_id, owner_id)
        await self.db.execute(
            delete(DownloadHistory).where(DownloadHistory.document_id == document.id)
        )
        await self.db.delete(document)
        await self.db.flush()

    async def record_download(
        self, document_id: str, owner_id: str
    ) -> DownloadHistory:
        document = await self.get_document(document_id, owner_id)
        entry = DownloadHistory(document_id=document.id)
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def count_downloads(self, document_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(DownloadHistory)
            .where(DownloadHistory.document_id == document_id)
        )
        return result.scalar_one()
