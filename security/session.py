"""
Opaque bearer sessions.

The raw token goes to the client once (JSON body and HttpOnly cookie); the
database keeps its SHA-256. A session dies on logout, on absolute expiry,
or after IDLE_TIMEOUT_SECONDS without use.
"""
import hashlib
import secrets
from datetime import datetime, timedelta
from flask import request, current_app

from models import db
from models.session import Session
from utils.audit import client_ip, client_user_agent

BEARER_PREFIX = "bearer "


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(user_id: int):
    """Returns (raw_token, expires_at)."""
    raw_token = secrets.token_urlsafe(32)
    lifetime = current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60)
    now = datetime.utcnow()

    row = Session(
        user_id=user_id,
        token_hash=hash_token(raw_token),
        created_at=now,
        last_seen_at=now,
        expires_at=now + timedelta(seconds=lifetime),
        ip=client_ip(),
        user_agent=client_user_agent(),
    )
    db.session.add(row)
    db.session.commit()
    return raw_token, row.expires_at


def token_from_request():
    """
    Returns (raw_token, source) where source is "bearer" or "cookie".
    The Authorization header wins over the cookie.
    """
    header = request.headers.get("Authorization") or ""
    if header.lower().startswith(BEARER_PREFIX):
        token = header[len(BEARER_PREFIX):].strip()
        if token:
            return token, "bearer"

    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "sportspot_session")
    token = request.cookies.get(cookie_name)
    if token:
        return token, "cookie"
    return None, None


def find_live_session(raw_token: str, touch: bool = True):
    if not raw_token or not isinstance(raw_token, str):
        return None

    sess = Session.query.filter_by(token_hash=hash_token(raw_token)).first()
    now = datetime.utcnow()
    idle_seconds = current_app.config.get("IDLE_TIMEOUT_SECONDS", 2 * 60 * 60)
    if not sess or not sess.is_live(now, idle_seconds):
        return None

    if touch:
        sess.last_seen_at = now
        db.session.commit()
    return sess


def get_session_from_request():
    raw_token, source = token_from_request()
    sess = find_live_session(raw_token)
    if not sess:
        return None, None
    return sess, source


def revoke_session(raw_token: str) -> bool:
    """False when the token is unknown or was already revoked."""
    if not raw_token:
        return False
    sess = Session.query.filter_by(token_hash=hash_token(raw_token)).first()
    if not sess or sess.revoked:
        return False
    sess.revoke()
    db.session.commit()
    return True


def revoke_all_sessions(user_id: int) -> int:
    sessions = Session.query.filter_by(user_id=user_id, revoked_at=None).all()
    now = datetime.utcnow()
    for s in sessions:
        s.revoke(now)
    db.session.commit()
    return len(sessions)
