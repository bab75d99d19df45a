"""
One-shot flash messages carried across a redirect in a cookie.

``redirect_with_flash`` answers a write with ``303 See Other`` to the
listing and stores the message; ``pop_flash`` reads it on the listing
request and clears the cookie so it is shown once.
"""
from urllib.parse import quote, unquote

from fastapi import Request, Response, status
from fastapi.responses import RedirectResponse

from cms_admin.config import settings


def redirect_with_flash(url: str, message: str) -> RedirectResponse:
    response = RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)
    # Percent-encoded: cookie values must stay ASCII.
    response.set_cookie(settings.FLASH_COOKIE_NAME, quote(message), httponly=True, samesite="lax")
    return response


def pop_flash(request: Request, response: Response) -> str | None:
    value = request.cookies.get(settings.FLASH_COOKIE_NAME)
    if value is None:
        return None
    response.delete_cookie(settings.FLASH_COOKIE_NAME)
    return unquote(value)
