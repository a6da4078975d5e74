"""Portfolio store: categories and the works filed under them.

Deleting a category deletes its works first, then the category, inside one
transaction. Image files are removed only after the transaction commits.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from breezeline.db.connection import SessionFactory, get_session
from breezeline.db.models import CategoryModel, WorkModel
from breezeline.errors import NotFoundError, StorageFault, ValidationError
from breezeline.models import Category, Work
from breezeline.portfolio.images import ImageStorage, ImageUpload

logger = logging.getLogger(__name__)

CATEGORY_FIELDS = {"name", "description"}
WORK_FIELDS = {"title", "category_id"}


def _require_text(value: Any, field: str, label: str) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(f"{label} is required", field=field)
    return text


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class PortfolioStore:
    """CRUD over categories and works with file-backed images."""

    def __init__(self, images: ImageStorage, session_factory: SessionFactory = get_session):
        self.images = images
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _category_or_404(session: AsyncSession, category_id: int) -> CategoryModel:
        category = await session.get(CategoryModel, category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    @staticmethod
    async def _work_or_404(session: AsyncSession, work_id: int) -> WorkModel:
        work = await session.get(WorkModel, work_id)
        if work is None:
            raise NotFoundError("Work not found")
        return work

    @staticmethod
    async def _name_taken(session: AsyncSession, name: str, exclude_id: int | None = None) -> bool:
        stmt = select(CategoryModel.id).where(CategoryModel.name == name)
        if exclude_id is not None:
            stmt = stmt.where(CategoryModel.id != exclude_id)
        return (await session.execute(stmt)).first() is not None

    @staticmethod
    async def _load_work(session: AsyncSession, work_id: int) -> Work:
        stmt = (
            select(WorkModel, CategoryModel.name)
            .join(CategoryModel, CategoryModel.id == WorkModel.category_id)
            .where(WorkModel.id == work_id)
        )
        row = (await session.execute(stmt)).first()
        if row is None:
            raise NotFoundError("Work not found")
        work, category_name = row
        return Work.model_validate(work).model_copy(update={"category_name": category_name})

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def list_categories(self) -> list[Category]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(CategoryModel).order_by(CategoryModel.name))
                return [Category.model_validate(c) for c in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StorageFault("Failed to load categories") from e

    async def get_category(self, category_id: int) -> Category:
        try:
            async with self._session_factory() as session:
                return Category.model_validate(await self._category_or_404(session, category_id))
        except SQLAlchemyError as e:
            raise StorageFault("Failed to load category") from e

    async def create_category(self, name: str, description: str | None = None) -> Category:
        name = _require_text(name, "name", "Category name")
        try:
            async with self._session_factory() as session:
                if await self._name_taken(session, name):
                    raise ValidationError("Category name already exists", field="name")
                category = CategoryModel(
                    name=name,
                    description=_optional_text(description),
                    created_at=datetime.now(timezone.utc),
                )
                session.add(category)
                await session.flush()
                created = Category.model_validate(category)
        except IntegrityError as e:
            raise ValidationError("Category name already exists", field="name") from e
        except SQLAlchemyError as e:
            raise StorageFault("Failed to create category") from e

        logger.info("Created category %d '%s'", created.id, created.name)
        return created

    async def update_category(self, category_id: int, **fields: Any) -> Category:
        """Update only the supplied fields (``name``, ``description``)."""
        unknown = set(fields) - CATEGORY_FIELDS
        if unknown:
            raise ValidationError(f"Unknown category field(s): {', '.join(sorted(unknown))}")

        try:
            async with self._session_factory() as session:
                category = await self._category_or_404(session, category_id)
                if "name" in fields:
                    name = _require_text(fields["name"], "name", "Category name")
                    if await self._name_taken(session, name, exclude_id=category_id):
                        raise ValidationError("Category name already exists", field="name")
                    category.name = name
                if "description" in fields:
                    category.description = _optional_text(fields["description"])
                await session.flush()
                updated = Category.model_validate(category)
        except IntegrityError as e:
            raise ValidationError("Category name already exists", field="name") from e
        except SQLAlchemyError as e:
            raise StorageFault("Failed to update category") from e
        return updated

    async def delete_category(self, category_id: int) -> int:
        """Delete a category and every work filed under it.

        Returns:
            Number of works removed with the category
        """
        try:
            async with self._session_factory() as session:
                await self._category_or_404(session, category_id)
                result = await session.execute(
                    select(WorkModel.image_path).where(WorkModel.category_id == category_id)
                )
                image_paths = list(result.scalars().all())

                await session.execute(delete(WorkModel).where(WorkModel.category_id == category_id))
                await session.execute(delete(CategoryModel).where(CategoryModel.id == category_id))
        except SQLAlchemyError as e:
            raise StorageFault("Failed to delete category") from e

        for path in image_paths:
            await self.images.delete(path)
        logger.info("Deleted category %d with %d work(s)", category_id, len(image_paths))
        return len(image_paths)

    # ------------------------------------------------------------------
    # Works
    # ------------------------------------------------------------------

    async def list_works(self, category_id: int | None = None) -> list[Work]:
        stmt = select(WorkModel, CategoryModel.name).join(
            CategoryModel, CategoryModel.id == WorkModel.category_id
        )
        if category_id is not None:
            stmt = stmt.where(WorkModel.category_id == category_id)
        stmt = stmt.order_by(WorkModel.created_at.desc(), WorkModel.id.desc())
        try:
            async with self._session_factory() as session:
                rows = (await session.execute(stmt)).all()
                return [
                    Work.model_validate(work).model_copy(update={"category_name": name})
                    for work, name in rows
                ]
        except SQLAlchemyError as e:
            raise StorageFault("Failed to load works") from e

    async def get_work(self, work_id: int) -> Work:
        try:
            async with self._session_factory() as session:
                return await self._load_work(session, work_id)
        except SQLAlchemyError as e:
            raise StorageFault("Failed to load work") from e

    async def create_work(self, title: str, category_id: int, image: ImageUpload) -> Work:
        """Store the image, then the record that points at it."""
        title = _require_text(title, "title", "Title")
        if category_id is None:
            raise ValidationError("Category is required", field="categoryId")

        # Reject before touching the disk
        self.images.validate(image)
        try:
            async with self._session_factory() as session:
                if await session.get(CategoryModel, category_id) is None:
                    raise ValidationError("Category does not exist", field="categoryId")
        except SQLAlchemyError as e:
            raise StorageFault("Failed to create work") from e

        image_path = await self.images.save(image)
        try:
            async with self._session_factory() as session:
                if await session.get(CategoryModel, category_id) is None:
                    raise ValidationError("Category does not exist", field="categoryId")
                now = datetime.now(timezone.utc)
                work = WorkModel(
                    title=title,
                    category_id=category_id,
                    image_path=image_path,
                    created_at=now,
                    updated_at=now,
                )
                session.add(work)
                await session.flush()
                created = await self._load_work(session, work.id)
        except SQLAlchemyError as e:
            await self.images.delete(image_path)
            raise StorageFault("Failed to create work") from e
        except ValidationError:
            await self.images.delete(image_path)
            raise

        logger.info("Created work %d '%s' in category %d", created.id, created.title, category_id)
        return created

    async def update_work(self, work_id: int, image: ImageUpload | None = None, **fields: Any) -> Work:
        """Update supplied fields; a new image replaces (and deletes) the old file."""
        unknown = set(fields) - WORK_FIELDS
        if unknown:
            raise ValidationError(f"Unknown work field(s): {', '.join(sorted(unknown))}")
        if "title" in fields:
            fields["title"] = _require_text(fields["title"], "title", "Title")

        new_image = await self.images.save(image) if image is not None else None
        old_image: str | None = None
        try:
            async with self._session_factory() as session:
                work = await self._work_or_404(session, work_id)
                if "category_id" in fields:
                    if await session.get(CategoryModel, fields["category_id"]) is None:
                        raise ValidationError("Category does not exist", field="categoryId")
                    work.category_id = fields["category_id"]
                if "title" in fields:
                    work.title = fields["title"]
                if new_image is not None:
                    old_image, work.image_path = work.image_path, new_image
                work.updated_at = datetime.now(timezone.utc)
                await session.flush()
                updated = await self._load_work(session, work_id)
        except SQLAlchemyError as e:
            await self.images.delete(new_image)
            raise StorageFault("Failed to update work") from e
        except (ValidationError, NotFoundError):
            await self.images.delete(new_image)
            raise

        if old_image:
            await self.images.delete(old_image)
        return updated

    async def delete_work(self, work_id: int) -> None:
        try:
            async with self._session_factory() as session:
                work = await self._work_or_404(session, work_id)
                image_path = work.image_path
                await session.delete(work)
        except SQLAlchemyError as e:
            raise StorageFault("Failed to delete work") from e

        await self.images.delete(image_path)
        logger.info("Deleted work %d", work_id)
