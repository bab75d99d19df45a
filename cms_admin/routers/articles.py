from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from cms_admin.database import get_db
from cms_admin.dependencies import PaginationParams, get_current_actor
from cms_admin.flash import pop_flash, redirect_with_flash
from cms_admin.models import Article
from cms_admin.policies import Actor, authorize, can_create_article, can_delete_article, can_edit_article
from cms_admin.schemas import (
    ArticleEditContext,
    ArticleFormContext,
    ArticlePage,
    ArticleResponse,
    CategoryResponse,
    TagResponse,
)
from cms_admin.repositories import TagRepository
from cms_admin.services import article_service, category_service
from cms_admin.validation import validate_article

router = APIRouter(prefix="/articles", tags=["articles"], dependencies=[Depends(get_current_actor)])


async def _get_or_404(db: AsyncSession, article_id: int) -> Article:
    article = await article_service.get_article(db, article_id)
    if article is None:
        raise HTTPException(status_code=404, detail="Article introuvable.")
    return article


async def _form_choices(db: AsyncSession) -> dict:
    categories = await category_service.all_categories(db)
    tags = await TagRepository(db).all()
    return {
        "categories": [CategoryResponse.model_validate(c) for c in categories],
        "tags": [TagResponse.model_validate(t) for t in tags],
    }


def _to_index(message: str) -> RedirectResponse:
    return redirect_with_flash(router.url_path_for("list_articles"), message)


@router.get("", response_model=ArticlePage)
async def list_articles(
    request: Request,
    response: Response,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    page = await article_service.list_articles(db, pagination.page, pagination.page_size)
    return ArticlePage(
        items=[ArticleResponse.model_validate(a) for a in page.items],
        total=page.total,
        page=page.page,
        page_size=page.page_size,
        pages=page.pages,
        flash=pop_flash(request, response),
    )

@router.get("/create", response_model=ArticleFormContext)
async def create_form(actor: Actor = Depends(get_current_actor), db: AsyncSession = Depends(get_db)):
    authorize(can_create_article(actor))
    return ArticleFormContext(**await _form_choices(db))

@router.post("", status_code=303, response_class=RedirectResponse)
async def store_article(
    payload: dict[str, Any] = Body(...),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    authorize(can_create_article(actor))
    data = await validate_article(db, payload)
    await article_service.store(db, actor, data)
    return _to_index("Article créé avec succès.")

@router.get("/{article_id}", response_model=ArticleResponse)
async def show_article(article_id: int, db: AsyncSession = Depends(get_db)):
    return ArticleResponse.model_validate(await _get_or_404(db, article_id))

@router.get("/{article_id}/edit", response_model=ArticleEditContext)
async def edit_form(
    article_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    article = await _get_or_404(db, article_id)
    authorize(can_edit_article(actor, article))
    return ArticleEditContext(article=ArticleResponse.model_validate(article), **await _form_choices(db))

@router.api_route("/{article_id}", methods=["PUT", "PATCH"], status_code=303, response_class=RedirectResponse)
async def update_article(
    article_id: int,
    payload: dict[str, Any] = Body(...),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    article = await _get_or_404(db, article_id)
    authorize(can_edit_article(actor, article))
    data = await validate_article(db, payload)
    await article_service.update(db, article, data)
    return _to_index("Article mis à jour avec succès.")

@router.delete("/{article_id}", status_code=303, response_class=RedirectResponse)
async def destroy_article(
    article_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    article = await _get_or_404(db, article_id)
    authorize(can_delete_article(actor, article))
    await article_service.destroy(db, article)
    return _to_index("Article supprimé avec succès.")
