from fastapi import Depends, Header, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cms_admin.config import settings
from cms_admin.database import get_db
from cms_admin.models import MAX_ID, User
from cms_admin.policies import Actor
from cms_admin.repositories import valid_id


class PaginationParams:
    """
    Reusable FastAPI dependency for the admin listings.

    Only the page number comes from the query string; the page size is
    fixed by ``settings.ADMIN_PAGE_SIZE`` for every listing.

    Attributes
    ----------
    page:
        1-based page number (minimum 1).
    page_size:
        Items per page.
    """

    def __init__(
        self,
        page: int = Query(
            1,
            ge=1,
            le=MAX_ID,
            description="Page number (1-based).",
        ),
    ) -> None:
        self.page = page
        self.page_size = settings.ADMIN_PAGE_SIZE


async def get_current_actor(
    x_user_id: int | None = Header(None, description="Id of the acting user."),
    db: AsyncSession = Depends(get_db),
) -> Actor:
    """
    Resolve the acting user from the ``X-User-Id`` header.

    Missing header or unknown user -> 401.  The returned ``Actor`` is
    passed explicitly to policies and services.
    """
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentification requise.",
        )
    user = await db.get(User, x_user_id) if valid_id(x_user_id) else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Utilisateur inconnu.",
        )
    return Actor(id=user.id, is_admin=user.is_admin)
