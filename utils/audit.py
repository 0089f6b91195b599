import json
from flask import current_app, request, has_request_context
from models import db
from models.audit_log import AuditLog


def client_ip():
    """First hop of X-Forwarded-For when behind a proxy, else the peer address."""
    if not has_request_context():
        return None
    forwarded = request.headers.get("X-Forwarded-For", "")
    ip = forwarded.split(",")[0].strip() or request.remote_addr
    return ip[:64] if ip else None


def client_user_agent():
    if not has_request_context():
        return None
    return (request.headers.get("User-Agent") or "")[:255] or None


def log_event(action: str, user_id=None, entity=None, entity_id=None, metadata=None):
    """Write one audit row in its own commit and mirror it to the app log."""
    ip = client_ip()
    row = AuditLog(
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=client_user_agent(),
        metadata_json=json.dumps(metadata, default=str) if metadata else None,
    )
    db.session.add(row)
    db.session.commit()

    current_app.logger.info("audit %s user=%s %s=%s ip=%s", action, user_id, entity or "-", entity_id, ip)
    return row
