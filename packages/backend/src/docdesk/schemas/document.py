"""Pydantic schemas for documents.

Learn: Separate "Create"/"Update" schemas (input) from read schemas
(output). DocumentPreview is a strict projection of Document: every field
it has is copied from the document unchanged.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from docdesk.schemas.base import CamelModel


class DocumentCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    markdown: str
    # Defaults to the markdown when omitted.
    content: Optional[str] = None


class DocumentUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = None
    markdown: Optional[str] = None


class Document(CamelModel):
    id: str
    user_id: str
    title: str
    content: str
    markdown: str
    created_at: datetime
    updated_at: datetime


class DocumentPreview(CamelModel):
    id: str
    title: str
    markdown: str
    created_at: datetime

    @classmethod
    def from_document(cls, document) -> "DocumentPreview":
        """Project a document (ORM row or Document schema) to a preview."""
        return cls(
            id=document.id,
            title=document.title,
            markdown=document.markdown,
            created_at=document.created_at,
        )
