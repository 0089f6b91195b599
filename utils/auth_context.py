from functools import wraps
from flask import g
from security.session import get_session_from_request
from utils.errors import AuthError


def load_current_user():
    """Resolve the caller from the bearer header or the session cookie."""
    g.user = None
    g.session = None
    g.auth_source = None

    sess, source = get_session_from_request()
    if not sess:
        return
    g.session = sess
    g.auth_source = source
    g.user = sess.user


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if g.get("user") is None:
            raise AuthError("Authentication required")
        return fn(*args, **kwargs)
    return wrapper
