"""
Repositories: the only code that talks to the ORM.

Each repository wraps the caller's ``AsyncSession``; none of them commit.
Relationships on the models are ``lazy="noload"``, so every read that
needs related rows states its loading strategy here (``joinedload`` for
many-to-one, ``selectinload`` for collections).

Article tags are written with Core statements against ``article_tags``
through ``TagAssociationRepository``; ``Article.tags`` is view-only and
is refreshed by re-reading the article with ``populate_existing``.
"""
import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from cms_admin.models import MAX_ID, Article, Category, Tag, article_tags


@dataclass
class Page:
    """One page of a listing."""

    items: list
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total > 0 else 0


@dataclass
class SyncResult:
    """Tag ids added and removed by a sync, both sorted."""

    attached: list[int] = field(default_factory=list)
    detached: list[int] = field(default_factory=list)


async def _paginate(db: AsyncSession, model, stmt, page: int, page_size: int) -> Page:
    count_q = select(func.count()).select_from(model)
    total: int = (await db.execute(count_q)).scalar_one()

    result = await db.execute(stmt.offset((page - 1) * page_size).limit(page_size))
    items = list(result.unique().scalars().all())
    return Page(items=items, total=total, page=page, page_size=page_size)


def valid_id(value: int) -> bool:
    """True when *value* fits an INTEGER key column; larger ids cannot exist."""
    return 1 <= value <= MAX_ID


def _unique_ids(ids: Iterable[int]) -> list[int]:
    return list(dict.fromkeys(i for i in ids if valid_id(i)))


# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------

class ArticleRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _select(self):
        return select(Article).options(
            joinedload(Article.category),
            selectinload(Article.tags),
        )

    async def find_by_id(self, article_id: int) -> Article | None:
        """Load one article with its category and tags, refreshing any stale copy."""
        if not valid_id(article_id):
            return None
        q = (
            self._select()
            .where(Article.id == article_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(q)
        return result.unique().scalar_one_or_none()

    async def paginate(self, page: int, page_size: int) -> Page:
        return await _paginate(self.db, Article, self._select().order_by(Article.id), page, page_size)

    async def count_for_category(self, category_id: int) -> int:
        q = select(func.count()).select_from(Article).where(Article.category_id == category_id)
        return (await self.db.execute(q)).scalar_one()

    async def create(self, *, title: str, content: str, category_id: int, user_id: int) -> Article:
        article = Article(
            title=title,
            content=content,
            category_id=category_id,
            user_id=user_id,
        )
        self.db.add(article)
        await self.db.flush()
        return article

    async def update(self, article: Article, **fields) -> Article:
        for name, value in fields.items():
            setattr(article, name, value)
        await self.db.flush()
        return article

    async def delete(self, article: Article) -> None:
        await self.db.delete(article)
        await self.db.flush()


class TagAssociationRepository:
    """Maintains the Article <-> Tag association rows."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def tag_ids(self, article_id: int) -> set[int]:
        q = select(article_tags.c.tag_id).where(article_tags.c.article_id == article_id)
        return set((await self.db.execute(q)).scalars().all())

    async def attach(self, article_id: int, tag_ids: Iterable[int]) -> list[int]:
        """Add associations for *tag_ids* that are not present yet."""
        current = await self.tag_ids(article_id)
        new_ids = [tag_id for tag_id in _unique_ids(tag_ids) if tag_id not in current]
        if new_ids:
            await self.db.execute(
                insert(article_tags),
                [{"article_id": article_id, "tag_id": tag_id} for tag_id in new_ids],
            )
        return new_ids

    async def detach(self, article_id: int, tag_ids: Iterable[int] | None = None) -> int:
        """Remove the given associations, or all of them when *tag_ids* is None."""
        stmt = delete(article_tags).where(article_tags.c.article_id == article_id)
        if tag_ids is not None:
            tag_ids = _unique_ids(tag_ids)
            if not tag_ids:
                return 0
            stmt = stmt.where(article_tags.c.tag_id.in_(tag_ids))
        result = await self.db.execute(stmt)
        return result.rowcount

    async def sync(self, article_id: int, tag_ids: Iterable[int]) -> SyncResult:
        """
        Make the article's tag set exactly *tag_ids*: associations not in
        the target are removed, missing ones are added, the rest are left
        untouched.
        """
        target = set(tag_ids)
        current = await self.tag_ids(article_id)

        to_detach = sorted(current - target)
        to_attach = sorted(target - current)

        if to_detach:
            await self.detach(article_id, to_detach)
        if to_attach:
            await self.db.execute(
                insert(article_tags),
                [{"article_id": article_id, "tag_id": tag_id} for tag_id in to_attach],
            )
        return SyncResult(attached=to_attach, detached=to_detach)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

class CategoryRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_id(self, category_id: int) -> Category | None:
        if not valid_id(category_id):
            return None
        return await self.db.get(Category, category_id)

    async def find_by_slug(self, slug: str) -> Category | None:
        result = await self.db.execute(select(Category).where(Category.slug == slug))
        return result.scalar_one_or_none()

    async def slug_taken(self, slug: str, exclude_id: int | None = None) -> bool:
        q = select(Category.id).where(Category.slug == slug)
        if exclude_id is not None:
            q = q.where(Category.id != exclude_id)
        return (await self.db.execute(q.limit(1))).first() is not None

    async def existing_ids(self, ids: Iterable[int]) -> set[int]:
        ids = _unique_ids(ids)
        if not ids:
            return set()
        result = await self.db.execute(select(Category.id).where(Category.id.in_(ids)))
        return set(result.scalars().all())

    async def all(self) -> list[Category]:
        result = await self.db.execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())

    async def paginate(self, page: int, page_size: int) -> Page:
        return await _paginate(self.db, Category, select(Category).order_by(Category.id), page, page_size)

    async def create(self, *, name: str, slug: str) -> Category:
        category = Category(name=name, slug=slug)
        self.db.add(category)
        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def update(self, category: Category, **fields) -> Category:
        for name, value in fields.items():
            setattr(category, name, value)
        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def delete(self, category: Category) -> None:
        await self.db.delete(category)
        await self.db.flush()


# ---------------------------------------------------------------------------
# Tags (read-only here; tags are managed elsewhere)
# ---------------------------------------------------------------------------

class TagRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def all(self) -> list[Tag]:
        result = await self.db.execute(select(Tag).order_by(Tag.name))
        return list(result.scalars().all())

    async def existing_ids(self, ids: Iterable[int]) -> set[int]:
        ids = _unique_ids(ids)
        if not ids:
            return set()
        result = await self.db.execute(select(Tag.id).where(Tag.id.in_(ids)))
        return set(result.scalars().all())
