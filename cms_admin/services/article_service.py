"""
Article service: orchestration for the Article aggregate.

Design notes
------------
- Functions take the session first and, where an owner is involved, the
  acting user explicitly.  Nothing here reads the request.
- Each write runs inside ``atomic``: the article row and its tag
  associations are written together or not at all.
- Concurrent updates of one article's tags are not serialised; the last
  ``sync`` wins.
- Returned articles are re-read through ``ArticleRepository.find_by_id``
  so category, tags and server-side timestamps are loaded.
"""
import logging

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from cms_admin.database import atomic
from cms_admin.models import Article
from cms_admin.policies import Actor
from cms_admin.repositories import ArticleRepository, Page, TagAssociationRepository
from cms_admin.validation import ArticleInput

logger = logging.getLogger(__name__)


async def list_articles(db: AsyncSession, page: int = 1, page_size: int = 4) -> Page:
    return await ArticleRepository(db).paginate(page, page_size)


async def get_article(db: AsyncSession, article_id: int) -> Article | None:
    """Return the article with category and tags loaded, or None."""
    return await ArticleRepository(db).find_by_id(article_id)


async def store(db: AsyncSession, actor: Actor, data: ArticleInput) -> Article:
    """
    Create an article owned by *actor* and attach its tags.

    Ownership always comes from *actor*; ``ArticleInput`` carries no
    owner field.
    """
    articles = ArticleRepository(db)
    async with atomic(db):
        article = await articles.create(
            title=data.title,
            content=data.content,
            category_id=data.category,
            user_id=actor.id,
        )
        await TagAssociationRepository(db).attach(article.id, data.tags)

    logger.info(
        "Article %d created by user %d (category=%d, tags=%s)",
        article.id, actor.id, data.category, data.tags,
    )
    return await articles.find_by_id(article.id)


async def update(db: AsyncSession, article: Article, data: ArticleInput) -> Article:
    """Overwrite title, content and category, then sync the tag set."""
    articles = ArticleRepository(db)
    async with atomic(db):
        await articles.update(
            article,
            title=data.title,
            content=data.content,
            category_id=data.category,
        )
        synced = await TagAssociationRepository(db).sync(article.id, data.tags)

    logger.info(
        "Article %d updated (tags attached=%s detached=%s)",
        article.id, synced.attached, synced.detached,
    )
    return await articles.find_by_id(article.id)


async def destroy(db: AsyncSession, article: Article) -> bool:
    """
    Delete *article* and its tag associations.

    Returns False without touching the database when the instance has
    already been deleted.
    """
    state = inspect(article)
    if state.deleted or state.was_deleted:
        return False

    article_id = article.id
    async with atomic(db):
        await TagAssociationRepository(db).detach(article_id)
        await ArticleRepository(db).delete(article)

    logger.info("Article %d deleted", article_id)
    return True
