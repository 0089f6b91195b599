from flask import Blueprint, jsonify, current_app, g

from security.csrf import clear_csrf_token, issue_csrf_token
from security.session import token_from_request
from services import identity
from utils.audit import log_event
from utils.errors import AuthError, ConflictError
from utils.serializers import json_body, pick, session_to_json, user_to_json


auth_bp = Blueprint("auth", __name__, url_prefix="/api")


def _session_response(user, token, expires_at, status):
    resp = jsonify(session_to_json(user, token, expires_at))
    resp.set_cookie(
        current_app.config.get("AUTH_COOKIE_NAME", "sportspot_session"),
        token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60),
        path="/",
    )
    resp = issue_csrf_token(resp)
    return resp, status


@auth_bp.post("/auth/register")
def register():
    data = json_body()
    try:
        user, token, expires_at = identity.register(
            pick(data, "nome", "name"),
            data.get("email"),
            pick(data, "senha", "password"),
            pick(data, "user_type", "role"),
        )
    except ConflictError:
        log_event("REGISTER_FAIL_EMAIL_EXISTS", metadata={"email": identity.normalize_email(data.get("email"))})
        raise

    log_event("REGISTER_SUCCESS", user_id=user.id, metadata={"role": user.role})
    return _session_response(user, token, expires_at, 201)


@auth_bp.post("/auth/login")
def login():
    data = json_body()
    email = data.get("email")
    try:
        user, token, expires_at = identity.login(email, pick(data, "senha", "password"))
    except AuthError:
        log_event("LOGIN_FAIL", metadata={"email": identity.normalize_email(email)})
        raise

    log_event("LOGIN_SUCCESS", user_id=user.id)
    return _session_response(user, token, expires_at, 200)


@auth_bp.post("/auth/logout")
def logout():
    raw_token, _ = token_from_request()
    revoked = identity.logout(raw_token)
    if revoked:
        log_event("LOGOUT", user_id=getattr(g.get("user"), "id", None))

    resp = jsonify(message="Logged out")
    resp.delete_cookie(current_app.config.get("AUTH_COOKIE_NAME", "sportspot_session"), path="/")
    clear_csrf_token(resp)
    return resp, 200


@auth_bp.get("/auth/me")
def me():
    raw_token, _ = token_from_request()
    user = identity.me(raw_token)
    return jsonify(user=user_to_json(user)), 200


@auth_bp.get("/me")
def me_alias():
    return me()


@auth_bp.post("/auth/forgot-password")
def forgot_password():
    data = json_body()
    email = data.get("email")
    token = identity.request_reset(email)
    log_event(
        "PASSWORD_RESET_REQUEST",
        metadata={"email": identity.normalize_email(email), "issued": token is not None},
    )
    # same answer whether or not the account exists
    return jsonify(message=identity.RESET_REQUEST_MESSAGE), 200


@auth_bp.post("/reset-password")
def reset_password():
    data = json_body()
    user = identity.reset_password(
        data.get("token"),
        pick(data, "newPassword", "new_password", "password"),
    )
    log_event("PASSWORD_RESET_SUCCESS", user_id=user.id)
    return jsonify(message="Password updated"), 200
