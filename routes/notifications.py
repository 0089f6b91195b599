from flask import Blueprint, request, jsonify, g

from services import notifications
from utils.auth_context import login_required
from utils.serializers import notification_to_json

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notificacoes")


@notifications_bp.get("")
@login_required
def list_notifications():
    unread_only = (request.args.get("unread") or "").lower() in ("1", "true", "yes")
    rows = notifications.list_for(g.user, unread_only=unread_only)
    return jsonify([notification_to_json(n) for n in rows]), 200


@notifications_bp.post("/<int:notification_id>/read")
@login_required
def mark_read(notification_id: int):
    row = notifications.mark_read(notification_id, g.user)
    return jsonify(notification_to_json(row)), 200


@notifications_bp.post("/read-all")
@login_required
def mark_all_read():
    count = notifications.mark_all_read(g.user)
    return jsonify(message="All notifications marked as read", updated=count), 200
