"""Document service tests — ownership and timestamps without HTTP."""

from datetime import datetime, timezone

import pytest

from conftest import create_user
from docdesk.errors import ForbiddenError, NotFoundError, ValidationError
from docdesk.schemas.document import Document, DocumentPreview
from docdesk.services.document_service import DocumentService


@pytest.mark.asyncio
async def test_update_refreshes_updated_at_only(app, owner):
    async with app.state.context.data_access.session() as db:
        svc = DocumentService(db)
        doc = await svc.create_document(owner.id, "Notes", "# Notes")
        created_at, updated_at = doc.created_at, doc.updated_at

        updated = await svc.update_document(doc.id, owner.id, title="Better notes")
        assert updated.title == "Better notes"
        assert updated.created_at == created_at
        assert updated.updated_at > updated_at


@pytest.mark.asyncio
async def test_ownership_errors(app, owner):
    stranger = await create_user(app, "s@example.com")
    async with app.state.context.data_access.session() as db:
        svc = DocumentService(db)
        doc = await svc.create_document(owner.id, "Private", "secret")

        with pytest.raises(ForbiddenError):
            await svc.get_document(doc.id, stranger.id)
        with pytest.raises(ForbiddenError):
            await svc.delete_document(doc.id, stranger.id)
        with pytest.raises(NotFoundError):
            await svc.get_document("missing", owner.id)
        with pytest.raises(ValidationError):
            await svc.update_document(doc.id, owner.id)


@pytest.mark.asyncio
async def test_delete_removes_download_history(app, owner):
    async with app.state.context.data_access.session() as db:
        svc = DocumentService(db)
        doc = await svc.create_document(owner.id, "Report", "# Report")
        await svc.record_download(doc.id, owner.id)
        assert await svc.count_downloads(doc.id) == 1

        await svc.delete_document(doc.id, owner.id)
        assert await svc.count_downloads(doc.id) == 0


@pytest.mark.asyncio
async def test_previews_project_stored_documents(app, owner):
    async with app.state.context.data_access.session() as db:
        svc = DocumentService(db)
        doc = await svc.create_document(owner.id, "Draft", "# Draft", content="raw")
        await db.commit()

        [preview] = await svc.list_previews(owner.id)
        assert preview.id == doc.id
        assert preview.title == doc.title
        assert preview.markdown == doc.markdown


@pytest.mark.parametrize(
    "title,markdown,content",
    [
        ("Empty", "", ""),
        ("Unicode ✓", "# 제목\n\n본문", "본문"),
        ("Divergent", "# Markdown", "completely different content"),
        ("Long", "x" * 10_000, "y"),
    ],
)
def test_preview_is_a_pure_projection(title, markdown, content):
    created = datetime(2026, 3, 1, 12, 30, tzinfo=timezone.utc)
    doc = Document(
        id="doc-1",
        user_id="user-1",
        title=title,
        content=content,
        markdown=markdown,
        created_at=created,
        updated_at=datetime(2026, 3, 2, tzinfo=timezone.utc),
    )
    preview = DocumentPreview.from_document(doc)

    assert preview.id == doc.id
    assert preview.title == doc.title
    assert preview.markdown == doc.markdown
    assert preview.created_at == doc.created_at
    assert set(preview.to_json()) == {"id", "title", "markdown", "createdAt"}
