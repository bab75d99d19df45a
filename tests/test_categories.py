"""
Category endpoint tests: CRUD lifecycle, slug rules and the restrict
policy on deleting categories that articles still use.
"""
from urllib.parse import unquote

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cms_admin.models import Category


async def _create(client: AsyncClient, db: AsyncSession, headers: dict, title: str, slug: str) -> int:
    resp = await client.post("/categories", json={"title": title, "slug": slug}, headers=headers)
    assert resp.status_code == 303
    return (await db.execute(select(func.max(Category.id)))).scalar_one()


@pytest.mark.asyncio
async def test_categories_require_actor(async_client: AsyncClient):
    resp = await async_client.post("/categories", json={"title": "News", "slug": "news"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_store_and_show(async_client: AsyncClient, db_session: AsyncSession, headers):
    resp = await async_client.post("/categories", json={"title": "News", "slug": "news"}, headers=headers["author"])
    assert resp.status_code == 303
    assert resp.headers["location"] == "/categories"
    assert unquote(resp.headers["set-cookie"].split(";", 1)[0].split("=", 1)[1]) == "Catégorie créée avec succès."

    category_id = (await db_session.execute(select(func.max(Category.id)))).scalar_one()
    show = await async_client.get(f"/categories/{category_id}", headers=headers["author"])
    assert show.status_code == 200
    assert show.json()["name"] == "News"
    assert show.json()["slug"] == "news"


@pytest.mark.asyncio
async def test_update_keeps_identifier(async_client: AsyncClient, db_session: AsyncSession, headers):
    category_id = await _create(async_client, db_session, headers["author"], "News", "news")

    resp = await async_client.put(
        f"/categories/{category_id}", json={"title": "Updates", "slug": "updates"}, headers=headers["author"]
    )
    assert resp.status_code == 303

    show = (await async_client.get(f"/categories/{category_id}", headers=headers["author"])).json()
    assert show["id"] == category_id
    assert show["name"] == "Updates"
    assert show["slug"] == "updates"


@pytest.mark.asyncio
async def test_update_may_keep_own_slug(async_client: AsyncClient, db_session: AsyncSession, headers):
    category_id = await _create(async_client, db_session, headers["author"], "News", "news")

    resp = await async_client.patch(
        f"/categories/{category_id}", json={"title": "Latest news", "slug": "news"}, headers=headers["author"]
    )
    assert resp.status_code == 303


@pytest.mark.asyncio
async def test_store_duplicate_slug(async_client: AsyncClient, headers, categories):
    resp = await async_client.post(
        "/categories", json={"title": "Encore", "slug": "news"}, headers=headers["author"]
    )
    assert resp.status_code == 422
    assert resp.json()["errors"] == {"slug": "Ce slug est déjà utilisé."}


@pytest.mark.asyncio
async def test_store_validation_errors(async_client: AsyncClient, headers):
    resp = await async_client.post("/categories", json={"slug": "Bad Slug"}, headers=headers["author"])
    assert resp.status_code == 422
    errors = resp.json()["errors"]
    assert errors["title"] == "Le titre est requis."
    assert errors["slug"].startswith("Le slug ne peut contenir")


@pytest.mark.asyncio
async def test_list_and_edit_form(async_client: AsyncClient, headers, categories):
    listing = await async_client.get("/categories", headers=headers["author"])
    assert listing.status_code == 200
    assert listing.json()["total"] == 2
    assert listing.json()["page_size"] == 4

    edit = await async_client.get(f"/categories/{categories[0].id}/edit", headers=headers["author"])
    assert edit.status_code == 200
    assert edit.json()["category"]["slug"] == "news"

    create = await async_client.get("/categories/create", headers=headers["author"])
    assert create.status_code == 200


@pytest.mark.asyncio
async def test_destroy_and_destroy_again(async_client: AsyncClient, db_session: AsyncSession, headers):
    category_id = await _create(async_client, db_session, headers["author"], "News", "news")

    first = await async_client.delete(f"/categories/{category_id}", headers=headers["author"])
    second = await async_client.delete(f"/categories/{category_id}", headers=headers["author"])

    assert first.status_code == 303
    assert second.status_code == 404
    show = await async_client.get(f"/categories/{category_id}", headers=headers["author"])
    assert show.status_code == 404


@pytest.mark.asyncio
async def test_destroy_refused_while_articles_reference_it(
    async_client: AsyncClient, headers, categories, tags
):
    await async_client.post(
        "/articles",
        json={"title": "T", "content": "C", "category": categories[0].id, "tags": []},
        headers=headers["author"],
    )

    resp = await async_client.delete(f"/categories/{categories[0].id}", headers=headers["author"])

    assert resp.status_code == 409
    assert resp.json()["articles"] == 1
    show = await async_client.get(f"/categories/{categories[0].id}", headers=headers["author"])
    assert show.status_code == 200


@pytest.mark.asyncio
async def test_out_of_range_category_id_not_found(async_client: AsyncClient, headers):
    show = await async_client.get(f"/categories/{10**20}", headers=headers["author"])
    update = await async_client.put(
        f"/categories/{10**20}", json={"title": "News", "slug": "news"}, headers=headers["author"]
    )
    delete = await async_client.delete(f"/categories/{-1}", headers=headers["author"])

    assert show.status_code == 404
    assert update.status_code == 404
    assert delete.status_code == 404


@pytest.mark.asyncio
async def test_categories_page_beyond_id_range_rejected(async_client: AsyncClient, headers):
    resp = await async_client.get(f"/categories?page={10**20}", headers=headers["author"])
    assert resp.status_code == 422
