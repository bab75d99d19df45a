"""
Authorization policy for articles.

Capabilities are plain functions of the actor and the resource; they
never look at the request.  Routers call ``authorize`` with the result.

Rules:
- any authenticated actor may create an article;
- only the owner or an admin may edit or delete it.
"""
from dataclasses import dataclass

from cms_admin.exceptions import AuthorizationError
from cms_admin.models import Article


@dataclass(frozen=True)
class Actor:
    """The user performing the current request."""

    id: int
    is_admin: bool = False


def can_create_article(actor: Actor) -> bool:
    return actor is not None


def can_edit_article(actor: Actor, article: Article) -> bool:
    return actor.is_admin or article.user_id == actor.id


def can_delete_article(actor: Actor, article: Article) -> bool:
    return can_edit_article(actor, article)


def authorize(allowed: bool, message: str | None = None) -> None:
    """Raise ``AuthorizationError`` unless *allowed*."""
    if not allowed:
        raise AuthorizationError(message)
