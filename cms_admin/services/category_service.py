"""
Category service: CRUD for categories.

A category that articles still reference cannot be deleted; the caller
gets ``CategoryInUseError`` instead of a dangling ``category_id``.
"""
import logging

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from cms_admin.database import atomic
from cms_admin.exceptions import CategoryInUseError
from cms_admin.models import Category
from cms_admin.repositories import ArticleRepository, CategoryRepository, Page
from cms_admin.validation import CategoryInput

logger = logging.getLogger(__name__)


async def list_categories(db: AsyncSession, page: int = 1, page_size: int = 4) -> Page:
    return await CategoryRepository(db).paginate(page, page_size)


async def all_categories(db: AsyncSession) -> list[Category]:
    """Every category ordered by name, for form choices."""
    return await CategoryRepository(db).all()


async def get_category(db: AsyncSession, category_id: int) -> Category | None:
    return await CategoryRepository(db).find_by_id(category_id)


async def store(db: AsyncSession, data: CategoryInput) -> Category:
    async with atomic(db):
        category = await CategoryRepository(db).create(name=data.title, slug=data.slug)
    logger.info("Category %d created (slug=%s)", category.id, category.slug)
    return category


async def update(db: AsyncSession, category: Category, data: CategoryInput) -> Category:
    async with atomic(db):
        category = await CategoryRepository(db).update(category, name=data.title, slug=data.slug)
    logger.info("Category %d updated (slug=%s)", category.id, category.slug)
    return category


async def destroy(db: AsyncSession, category: Category) -> bool:
    """
    Delete *category*.

    Raises ``CategoryInUseError`` while articles reference it.  Returns
    False when the instance has already been deleted.
    """
    state = inspect(category)
    if state.deleted or state.was_deleted:
        return False

    category_id = category.id
    in_use = await ArticleRepository(db).count_for_category(category_id)
    if in_use:
        raise CategoryInUseError(category_id, in_use)

    async with atomic(db):
        await CategoryRepository(db).delete(category)
    logger.info("Category %d deleted", category_id)
    return True
