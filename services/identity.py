import re
import secrets
from datetime import datetime, timedelta

from flask import current_app

from models import db
from models.db import commit
from models.user import User, Role
from models.password_reset import PasswordResetToken
from security.password import hash_password, needs_rehash, verify_password
from security.password_policy import validate_registration_password, validate_reset_password
from security.session import (
    create_session,
    find_live_session,
    hash_token,
    revoke_session,
    revoke_all_sessions,
)
from utils.audit import client_ip
from utils.emailer import send_password_reset
from utils.errors import AuthError, ConflictError, ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

SELF_SERVICE_ROLES = {Role.USER.value, Role.OWNER.value}

RESET_REQUEST_MESSAGE = "If the email is registered, a reset link has been sent"


def normalize_email(value) -> str:
    return (value or "").strip().lower() if isinstance(value, str) else ""


def is_valid_email(email: str) -> bool:
    return isinstance(email, str) and len(email) <= 255 and bool(_EMAIL_RE.match(email))


def register(name, email, password, role=None):
    """Create an account and open a session. Returns (user, token, expires_at)."""
    name = (name or "").strip() if isinstance(name, str) else ""
    email = normalize_email(email)

    if not name or len(name) > 120:
        raise ValidationError("Name is required")
    if not is_valid_email(email):
        raise ValidationError("Invalid email")
    valid, errors = validate_registration_password(password)
    if not valid:
        raise ValidationError("Password does not meet policy", details=errors)

    if role is None or role == "":
        role = Role.USER.value
    role = role.strip().lower() if isinstance(role, str) else None
    if role not in SELF_SERVICE_ROLES:
        raise ValidationError("user_type must be 'user' or 'owner'")

    if User.query.filter_by(email=email).first():
        raise ConflictError("Email already registered")

    user = User(name=name, email=email, password_hash=hash_password(password), role=role)
    db.session.add(user)
    commit()

    token, expires_at = create_session(user.id)
    return user, token, expires_at


def login(email, password):
    """Returns (user, token, expires_at) or raises AuthError."""
    email = normalize_email(email)
    user = User.query.filter_by(email=email).first() if email else None
    if not user or not verify_password(password or "", user.password_hash):
        raise AuthError("Invalid credentials")

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        commit()

    if current_app.config.get("ROTATE_SESSIONS_ON_LOGIN", False):
        revoke_all_sessions(user.id)

    token, expires_at = create_session(user.id)
    return user, token, expires_at


def me(token):
    sess = find_live_session(token)
    if not sess:
        raise AuthError("Session missing, expired or revoked")
    user = db.session.get(User, sess.user_id)
    if not user:
        raise AuthError("Session missing, expired or revoked")
    return user


def logout(token) -> bool:
    """Revoke the token. Unknown or already revoked tokens are not an error."""
    return revoke_session(token)


def request_reset(email):
    """
    Issue a single-use reset token and email it. Returns the raw token, or
    None when the email is unknown; callers must not reveal which.
    """
    email = normalize_email(email)
    user = User.query.filter_by(email=email).first() if email else None
    if not user:
        return None

    raw_token = secrets.token_urlsafe(32)
    ttl = current_app.config.get("RESET_TOKEN_TTL_SECONDS", 3600)
    row = PasswordResetToken(
        user_id=user.id,
        token_hash=hash_token(raw_token),
        expires_at=datetime.utcnow() + timedelta(seconds=ttl),
        ip=client_ip(),
    )
    db.session.add(row)
    commit()

    send_password_reset(user.name, user.email, raw_token, ttl)
    return raw_token


def reset_password(token, new_password):
    """Consume a reset token and set a new password. Returns the user."""
    if not isinstance(token, str) or not token:
        raise AuthError("Invalid or expired reset token")

    row = PasswordResetToken.query.filter_by(token_hash=hash_token(token)).first()
    if not row or row.consumed_at is not None or row.expires_at <= datetime.utcnow():
        raise AuthError("Invalid or expired reset token")

    valid, errors = validate_reset_password(new_password)
    if not valid:
        raise ValidationError("Password does not meet policy", details=errors)

    user = db.session.get(User, row.user_id)
    if not user:
        raise AuthError("Invalid or expired reset token")

    now = datetime.utcnow()
    user.password_hash = hash_password(new_password)
    user.password_changed_at = now
    row.consumed_at = now
    commit()

    # every open session belonged to the old password
    revoke_all_sessions(user.id)
    return user
