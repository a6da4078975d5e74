"""Portfolio category routes.

Reads are public; writes need an admin session.

Routes:
- GET    /api/categories
- GET    /api/categories/{category_id}
- POST   /api/categories
- PUT    /api/categories/{category_id}
- DELETE /api/categories/{category_id} - Also deletes the category's works
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends

from breezeline.errors import ValidationError
from breezeline.portfolio.repository import PortfolioStore
from breezeline.web.auth import AdminContext
from breezeline.web.dependencies import get_portfolio, require_auth
from breezeline.web.models import CategoryCreate, CategoryOut, CategoryUpdate, dump, envelope

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/categories", tags=["portfolio"])


@router.get("")
async def list_categories(portfolio: PortfolioStore = Depends(get_portfolio)):
    categories = await portfolio.list_categories()
    return envelope([dump(CategoryOut.from_category(c)) for c in categories])


@router.get("/{category_id}")
async def get_category(category_id: int, portfolio: PortfolioStore = Depends(get_portfolio)):
    category = await portfolio.get_category(category_id)
    return envelope(dump(CategoryOut.from_category(category)))


@router.post("", status_code=201)
async def create_category(
    payload: CategoryCreate,
    admin: AdminContext = Depends(require_auth),
    portfolio: PortfolioStore = Depends(get_portfolio),
):
    category = await portfolio.create_category(payload.name, payload.description)
    logger.info("category_created", admin=admin.username, category_id=category.id)
    return envelope(dump(CategoryOut.from_category(category)), message="Category created")


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    payload: CategoryUpdate,
    admin: AdminContext = Depends(require_auth),
    portfolio: PortfolioStore = Depends(get_portfolio),
):
    """Update only the fields present in the body."""
    fields = payload.model_dump(exclude_unset=True)
    if not fields:
        raise ValidationError("No fields to update")
    category = await portfolio.update_category(category_id, **fields)
    logger.info("category_updated", admin=admin.username, category_id=category_id)
    return envelope(dump(CategoryOut.from_category(category)), message="Category updated")


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    admin: AdminContext = Depends(require_auth),
    portfolio: PortfolioStore = Depends(get_portfolio),
):
    removed_works = await portfolio.delete_category(category_id)
    logger.info(
        "category_deleted",
        admin=admin.username,
        category_id=category_id,
        removed_works=removed_works,
    )
    return envelope({"deletedWorks": removed_works}, message="Category deleted")
