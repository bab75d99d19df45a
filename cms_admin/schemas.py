from pydantic import BaseModel, ConfigDict
from datetime import datetime


# --- Tag ---

class TagResponse(BaseModel):
    id: int
    name: str
    model_config = ConfigDict(from_attributes=True)


# --- Category ---

class CategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    created_at: datetime
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# --- Article ---

class ArticleResponse(BaseModel):
    id: int
    title: str
    content: str
    user_id: int
    category_id: int
    category: CategoryResponse | None = None
    tags: list[TagResponse] = []
    created_at: datetime
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# --- Forms (what a create/edit template receives) ---

class ArticleFormContext(BaseModel):
    categories: list[CategoryResponse]
    tags: list[TagResponse]


class ArticleEditContext(ArticleFormContext):
    article: ArticleResponse


class CategoryEditContext(BaseModel):
    category: CategoryResponse


# --- Pagination ---

class ArticlePage(BaseModel):
    items: list[ArticleResponse]
    total: int
    page: int
    page_size: int
    pages: int
    flash: str | None = None


class CategoryPage(BaseModel):
    items: list[CategoryResponse]
    total: int
    page: int
    page_size: int
    pages: int
    flash: str | None = None
