"""Route gate — redirects page requests based on the session cookie."""
from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from config import settings
from core.auth import validate_session


def is_authenticated(request: Request) -> bool:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    return bool(token) and validate_session(token) is not None


class RouteGateMiddleware(BaseHTTPMiddleware):
    """
    Unauthenticated requests under a protected prefix go to the login page
    (with ?redirect=<path>); authenticated requests for the login page go to the dashboard.
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        is_protected = any(path.startswith(p) for p in settings.protected_prefix_list)
        is_login_page = path == settings.LOGIN_PATH

        if is_protected or is_login_page:
            authed = is_authenticated(request)
            if is_protected and not authed:
                query = urlencode({"redirect": path})
                return RedirectResponse(f"{settings.LOGIN_PATH}?{query}", status_code=307)
            if is_login_page and authed:
                return RedirectResponse(settings.DASHBOARD_PATH, status_code=307)

        return await call_next(request)
