"""Portfolio work routes (multipart uploads).

Reads are public; writes need an admin session.

Routes:
- GET    /api/works              - Optional ?categoryId= filter
- GET    /api/works/{work_id}
- POST   /api/works              - title, categoryId, image
- PUT    /api/works/{work_id}    - any of title, categoryId, image
- DELETE /api/works/{work_id}
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from breezeline.errors import ValidationError
from breezeline.portfolio.images import ImageUpload
from breezeline.portfolio.repository import PortfolioStore
from breezeline.web.auth import AdminContext
from breezeline.web.dependencies import get_portfolio, require_auth
from breezeline.web.models import WorkOut, dump, envelope

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/works", tags=["portfolio"])


async def read_upload(upload: UploadFile | None, max_bytes: int) -> ImageUpload | None:
    """Read at most max_bytes + 1 so oversize files are rejected without buffering them whole."""
    if upload is None or not upload.filename:
        return None
    try:
        content = await upload.read(max_bytes + 1)
    finally:
        await upload.close()
    return ImageUpload(content=content, filename=upload.filename, content_type=upload.content_type)


@router.get("")
async def list_works(
    category_id: int | None = Query(None, alias="categoryId"),
    portfolio: PortfolioStore = Depends(get_portfolio),
):
    works = await portfolio.list_works(category_id)
    return envelope([dump(WorkOut.from_work(w)) for w in works])


@router.get("/{work_id}")
async def get_work(work_id: int, portfolio: PortfolioStore = Depends(get_portfolio)):
    work = await portfolio.get_work(work_id)
    return envelope(dump(WorkOut.from_work(work)))


@router.post("", status_code=201)
async def create_work(
    admin: AdminContext = Depends(require_auth),
    title: str = Form(...),
    category_id: int = Form(..., alias="categoryId"),
    image: UploadFile | None = File(None),
    portfolio: PortfolioStore = Depends(get_portfolio),
):
    upload = await read_upload(image, portfolio.images.max_bytes)
    if upload is None:
        raise ValidationError("Image file is required", field="image")
    work = await portfolio.create_work(title, category_id, upload)
    logger.info("work_created", admin=admin.username, work_id=work.id)
    return envelope(dump(WorkOut.from_work(work)), message="Work created")


@router.put("/{work_id}")
async def update_work(
    work_id: int,
    admin: AdminContext = Depends(require_auth),
    title: str | None = Form(None),
    category_id: int | None = Form(None, alias="categoryId"),
    image: UploadFile | None = File(None),
    portfolio: PortfolioStore = Depends(get_portfolio),
):
    """Replace only the supplied fields; a new image replaces the stored file."""
    fields: dict = {}
    if title is not None:
        fields["title"] = title
    if category_id is not None:
        fields["category_id"] = category_id
    upload = await read_upload(image, portfolio.images.max_bytes)
    if not fields and upload is None:
        raise ValidationError("No fields to update")

    work = await portfolio.update_work(work_id, image=upload, **fields)
    logger.info("work_updated", admin=admin.username, work_id=work_id)
    return envelope(dump(WorkOut.from_work(work)), message="Work updated")


@router.delete("/{work_id}")
async def delete_work(
    work_id: int,
    admin: AdminContext = Depends(require_auth),
    portfolio: PortfolioStore = Depends(get_portfolio),
):
    await portfolio.delete_work(work_id)
    logger.info("work_deleted", admin=admin.username, work_id=work_id)
    return envelope(None, message="Work deleted")
