from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER

from app.core.security import TokenError, decode_token

PROTECTED_PREFIXES = ("/dashboard", "/admin")
AUTH_PAGE_PREFIXES = ("/login", "/signup")


def _has_session(request: Request) -> bool:
    token = request.cookies.get("access_token")
    if not token:
        auth = request.headers.get("authorization", "")
        if auth.lower().startswith("bearer "):
            token = auth[7:]
    if not token:
        return False
    try:
        decode_token(token, expected_type="access")
    except TokenError:
        return False
    return True


class SessionGateMiddleware(BaseHTTPMiddleware):
    """
    Page-route gate in front of the storefront:
      - no session on /dashboard* or /admin*  -> /login
      - session on /login* or /signup*        -> /dashboard
    API routes (/api/*) do their own auth and are never redirected.
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path.startswith("/api"):
            return await call_next(request)

        if path.startswith(PROTECTED_PREFIXES) and not _has_session(request):
            return RedirectResponse("/login", status_code=HTTP_303_SEE_OTHER)

        if path.startswith(AUTH_PAGE_PREFIXES) and _has_session(request):
            return RedirectResponse("/dashboard", status_code=HTTP_303_SEE_OTHER)

        return await call_next(request)
