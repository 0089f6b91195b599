"""
Double-submit CSRF check for cookie-authenticated browsers.

Login and register hand out a readable ``csrf_token`` cookie; the client
echoes it in ``X-CSRF-Token`` on every state-changing request. Bearer
clients never send ambient credentials, so they are not checked.
"""
import secrets
from flask import current_app, g, request

from utils.errors import ForbiddenError

CSRF_COOKIE = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"
UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

# endpoints reachable before a session exists
EXEMPT_PATHS = frozenset({
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/forgot-password",
    "/api/reset-password",
})


def issue_csrf_token(resp):
    resp.set_cookie(
        CSRF_COOKIE,
        secrets.token_urlsafe(32),
        httponly=False,  # must be readable by client JS
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        path="/",
    )
    return resp


def clear_csrf_token(resp):
    resp.delete_cookie(CSRF_COOKIE, path="/")
    return resp


def require_csrf():
    cookie_token = request.cookies.get(CSRF_COOKIE)
    header_token = request.headers.get(CSRF_HEADER)
    if not cookie_token or not header_token or not secrets.compare_digest(cookie_token, header_token):
        raise ForbiddenError("CSRF validation failed")


def protect():
    """before_request hook; runs after the current user is loaded."""
    if request.method not in UNSAFE_METHODS or request.path in EXEMPT_PATHS:
        return
    if g.get("user") is not None and g.get("auth_source") == "cookie":
        require_csrf()
