from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from cms_admin.database import get_db
from cms_admin.dependencies import PaginationParams, get_current_actor
from cms_admin.flash import pop_flash, redirect_with_flash
from cms_admin.models import Category
from cms_admin.schemas import CategoryEditContext, CategoryPage, CategoryResponse
from cms_admin.services import category_service
from cms_admin.validation import validate_category

router = APIRouter(prefix="/categories", tags=["categories"], dependencies=[Depends(get_current_actor)])

SLUG_CONFLICT = "Ce slug est déjà utilisé."


async def _get_or_404(db: AsyncSession, category_id: int) -> Category:
    category = await category_service.get_category(db, category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Catégorie introuvable.")
    return category


def _to_index(message: str) -> RedirectResponse:
    return redirect_with_flash(router.url_path_for("list_categories"), message)


@router.get("", response_model=CategoryPage)
async def list_categories(
    request: Request,
    response: Response,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    page = await category_service.list_categories(db, pagination.page, pagination.page_size)
    return CategoryPage(
        items=[CategoryResponse.model_validate(c) for c in page.items],
        total=page.total,
        page=page.page,
        page_size=page.page_size,
        pages=page.pages,
        flash=pop_flash(request, response),
    )

@router.get("/create")
async def create_form():
    return {}

@router.post("", status_code=303, response_class=RedirectResponse)
async def store_category(payload: dict[str, Any] = Body(...), db: AsyncSession = Depends(get_db)):
    data = await validate_category(db, payload)
    try:
        await category_service.store(db, data)
    except IntegrityError:
        raise HTTPException(status_code=409, detail=SLUG_CONFLICT)
    return _to_index("Catégorie créée avec succès.")

@router.get("/{category_id}", response_model=CategoryResponse)
async def show_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return CategoryResponse.model_validate(await _get_or_404(db, category_id))

@router.get("/{category_id}/edit", response_model=CategoryEditContext)
async def edit_form(category_id: int, db: AsyncSession = Depends(get_db)):
    category = await _get_or_404(db, category_id)
    return CategoryEditContext(category=CategoryResponse.model_validate(category))

@router.api_route("/{category_id}", methods=["PUT", "PATCH"], status_code=303, response_class=RedirectResponse)
async def update_category(
    category_id: int,
    payload: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
):
    category = await _get_or_404(db, category_id)
    data = await validate_category(db, payload, category_id=category.id)
    try:
        await category_service.update(db, category, data)
    except IntegrityError:
        raise HTTPException(status_code=409, detail=SLUG_CONFLICT)
    return _to_index("Catégorie mise à jour avec succès.")

@router.delete("/{category_id}", status_code=303, response_class=RedirectResponse)
async def destroy_category(category_id: int, db: AsyncSession = Depends(get_db)):
    category = await _get_or_404(db, category_id)
    await category_service.destroy(db, category)
    return _to_index("Catégorie supprimée avec succès.")
