from __future__ import annotations

import re
from typing import Final

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from creations_core.session import session_from_request

LOGIN_PATH: Final[str] = "/auth/cover-login"

# Guarded paths: everything except API proxies, static/image assets, the favicon,
# the auth pages and the health probe. Prefix match, as in a route matcher.
GUARDED_PATH_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^/(?!api|_next/static|_next/image|static|favicon\.ico|assets|auth|healthz).*$"
)


def is_exempt_path(path: str) -> bool:
    return GUARDED_PATH_PATTERN.match(path) is None


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """Send requests without a valid session to the login page.

    The original destination is not preserved; the redirect carries no query.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if is_exempt_path(request.url.path):
            return await call_next(request)

        if session_from_request(request) is None:
            return RedirectResponse(url=LOGIN_PATH, status_code=307)

        return await call_next(request)
