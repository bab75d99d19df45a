"""
Validation of article and category submissions.

The ``check_*`` functions are pure: they receive the raw submitted
mapping plus the reference data they need (known category and tag ids,
taken slugs) and either return the validated input model or raise
``FormValidationError`` with one French message per offending field.
The ``validate_*`` coroutines fetch that reference data from the
database and delegate to the pure functions.

Pydantic does the shape checks; reference checks read the validation
context.  Each pydantic error type is mapped to a rule name and the
message is looked up under ``"<field>.<rule>"`` (``"<field>.*.<rule>"``
for list elements).
"""
from collections.abc import Container, Mapping
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BeforeValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic_core import PydanticCustomError
from sqlalchemy.ext.asyncio import AsyncSession

from cms_admin.exceptions import FormValidationError
from cms_admin.models import MAX_ID
from cms_admin.repositories import CategoryRepository, TagRepository, valid_id

TITLE_MAX_LENGTH = 255
SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"

ARTICLE_MESSAGES: dict[str, str] = {
    "title.required": "Le titre est requis.",
    "title.string": "Le titre doit être une chaîne de caractères.",
    "title.max": "Le titre ne doit pas dépasser 255 caractères.",
    "content.required": "Le contenu est requis.",
    "content.string": "Le contenu doit être une chaîne de caractères.",
    "category.required": "La catégorie est requise.",
    "category.exists": "La catégorie sélectionnée est invalide.",
    "tags.array": "Les tags doivent être un tableau.",
    "tags.*.exists": "Un ou plusieurs tags sont invalides.",
}

CATEGORY_MESSAGES: dict[str, str] = {
    "title.required": "Le titre est requis.",
    "title.string": "Le titre doit être une chaîne de caractères.",
    "title.max": "Le titre ne doit pas dépasser 255 caractères.",
    "slug.required": "Le slug est requis.",
    "slug.string": "Le slug doit être une chaîne de caractères.",
    "slug.max": "Le slug ne doit pas dépasser 255 caractères.",
    "slug.format": "Le slug ne peut contenir que des lettres minuscules, des chiffres et des tirets.",
    "slug.unique": "Ce slug est déjà utilisé.",
}

# pydantic error type -> rule name
_RULES: dict[str, str] = {
    "missing": "required",
    "required": "required",
    "string_type": "string",
    "string_too_long": "max",
    "string_pattern_mismatch": "format",
    "int_type": "exists",
    "int_parsing": "exists",
    "int_parsing_size": "exists",
    "int_from_float": "exists",
    "finite_number": "exists",
    "greater_than_equal": "exists",
    "less_than_equal": "exists",
    "exists": "exists",
    "unique": "unique",
    "list_type": "array",
}


def _required(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise PydanticCustomError("required", "Field required")
    return value


def _not_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise PydanticCustomError("exists", "Booleans are not ids")
    return value


# A submitted row id; never a boolean, always within the key column range.
RowId = Annotated[int, Field(ge=1, le=MAX_ID), BeforeValidator(_not_bool)]


def _tag_exists(value: int, info: ValidationInfo) -> int:
    known = (info.context or {}).get("tags")
    if known is not None and value not in known:
        raise PydanticCustomError("exists", "Unknown tag {tag}", {"tag": value})
    return value


# ---------------------------------------------------------------------------
# Input models
# ---------------------------------------------------------------------------

class ArticleInput(BaseModel):
    """A validated article submission."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: str = Field(max_length=TITLE_MAX_LENGTH)
    content: str
    category: RowId
    tags: list[Annotated[RowId, AfterValidator(_tag_exists)]] = []

    @field_validator("title", "content", "category", mode="before")
    @classmethod
    def _check_required(cls, value):
        return _required(value)

    @field_validator("category")
    @classmethod
    def _check_category_exists(cls, value: int, info: ValidationInfo) -> int:
        known = (info.context or {}).get("categories")
        if known is not None and value not in known:
            raise PydanticCustomError("exists", "Unknown category {category}", {"category": value})
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _null_tags(cls, value):
        return [] if value is None else value

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, value: list[int]) -> list[int]:
        return list(dict.fromkeys(value))


class CategoryInput(BaseModel):
    """A validated category submission; ``title`` becomes the category name."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: str = Field(max_length=TITLE_MAX_LENGTH)
    slug: str = Field(max_length=TITLE_MAX_LENGTH, pattern=SLUG_PATTERN)

    @field_validator("title", "slug", mode="before")
    @classmethod
    def _check_required(cls, value):
        return _required(value)

    @field_validator("slug")
    @classmethod
    def _check_slug_unique(cls, value: str, info: ValidationInfo) -> str:
        taken = (info.context or {}).get("taken_slugs")
        if taken is not None and value in taken:
            raise PydanticCustomError("unique", "Slug {slug} already in use", {"slug": value})
        return value


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------

def field_errors(exc: ValidationError, messages: Mapping[str, str]) -> dict[str, str]:
    """Translate a pydantic ``ValidationError`` into ``{field: message}``, first error per field."""
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = err["loc"]
        if not loc:
            continue
        name = str(loc[0])
        if name in errors:
            continue
        rule = _RULES.get(err["type"], err["type"])
        key = f"{name}.*.{rule}" if len(loc) > 1 else f"{name}.{rule}"
        errors[name] = messages.get(key, f"Le champ {name} est invalide.")
    return errors


# ---------------------------------------------------------------------------
# Pure validation
# ---------------------------------------------------------------------------

def check_article(
    raw: Mapping[str, Any],
    categories: Container[int],
    tags: Container[int],
) -> ArticleInput:
    """Validate an article submission against the known category and tag ids."""
    try:
        return ArticleInput.model_validate(
            dict(raw), context={"categories": categories, "tags": tags}
        )
    except ValidationError as exc:
        raise FormValidationError(field_errors(exc, ARTICLE_MESSAGES)) from exc


def check_category(raw: Mapping[str, Any], taken_slugs: Container[str] = ()) -> CategoryInput:
    """Validate a category submission; *taken_slugs* are slugs owned by other categories."""
    try:
        return CategoryInput.model_validate(dict(raw), context={"taken_slugs": taken_slugs})
    except ValidationError as exc:
        raise FormValidationError(field_errors(exc, CATEGORY_MESSAGES)) from exc


# ---------------------------------------------------------------------------
# Database-backed validation
# ---------------------------------------------------------------------------

def _candidate_ids(value: Any) -> list[int]:
    """Best-effort integer ids from a submitted scalar or list, for reference lookups."""
    values = value if isinstance(value, (list, tuple)) else [value]
    ids: list[int] = []
    for item in values:
        if isinstance(item, bool):
            continue
        try:
            item = int(item)
        except (TypeError, ValueError, OverflowError):
            continue
        if valid_id(item):
            ids.append(item)
    return ids


async def validate_article(db: AsyncSession, raw: Mapping[str, Any]) -> ArticleInput:
    categories = await CategoryRepository(db).existing_ids(_candidate_ids(raw.get("category")))
    tags = await TagRepository(db).existing_ids(_candidate_ids(raw.get("tags")))
    return check_article(raw, categories, tags)


async def validate_category(
    db: AsyncSession,
    raw: Mapping[str, Any],
    category_id: int | None = None,
) -> CategoryInput:
    """
    Validate a category submission.  On update pass *category_id* so the
    category's own slug does not count as taken.
    """
    taken: set[str] = set()
    slug = raw.get("slug")
    if isinstance(slug, str) and slug.strip():
        slug = slug.strip()
        if await CategoryRepository(db).slug_taken(slug, exclude_id=category_id):
            taken.add(slug)
    return check_category(raw, taken)
