"""
Domain exceptions and their HTTP translation.

Services and validators raise these; ``install_exception_handlers``
registers one FastAPI handler per type so routers never build error
responses by hand.  Persistence errors are not listed here: they
propagate unchanged.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AdminError(Exception):
    """Base class for errors raised by the admin module."""

    message = "Erreur."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class FormValidationError(AdminError):
    """A submission violated one or more field rules."""

    message = "Les données soumises sont invalides."

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__()
        self.errors = errors


class AuthorizationError(AdminError):
    """The current actor lacks the capability for the requested action."""

    message = "Cette action n'est pas autorisée."


class CategoryInUseError(AdminError):
    """A category cannot be deleted while articles still reference it."""

    message = "Impossible de supprimer une catégorie utilisée par des articles."

    def __init__(self, category_id: int, article_count: int) -> None:
        super().__init__()
        self.category_id = category_id
        self.article_count = article_count


async def form_validation_handler(request: Request, exc: FormValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"message": exc.message, "errors": exc.errors},
    )


async def authorization_handler(request: Request, exc: AuthorizationError) -> JSONResponse:
    logger.info("Denied %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": exc.message})


async def category_in_use_handler(request: Request, exc: CategoryInUseError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": exc.message, "articles": exc.article_count},
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FormValidationError, form_validation_handler)
    app.add_exception_handler(AuthorizationError, authorization_handler)
    app.add_exception_handler(CategoryInUseError, category_in_use_handler)
