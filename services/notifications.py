from flask import current_app

from models import db
from models.db import commit
from models.notification import Notification, NotificationKind
from utils.errors import NotFoundError


def notify(user_id: int, kind: NotificationKind, message: str) -> Notification:
    """
    Queue a notification in the caller's unit of work. The caller commits,
    so the notification lands together with the event that produced it.
    """
    row = Notification(user_id=user_id, kind=NotificationKind(kind).value, message=message[:500])
    db.session.add(row)
    return row


def list_for(user, unread_only: bool = False):
    q = Notification.query.filter_by(user_id=user.id)
    if unread_only:
        q = q.filter_by(read=False)
    limit = current_app.config.get("LIST_LIMIT", 200)
    return q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def mark_read(notification_id: int, user) -> Notification:
    row = db.session.get(Notification, notification_id)
    # someone else's notification is reported as missing
    if not row or row.user_id != user.id:
        raise NotFoundError("Notification not found")
    if not row.read:
        row.read = True
        commit()
    return row


def mark_all_read(user) -> int:
    count = (
        Notification.query
        .filter_by(user_id=user.id, read=False)
        .update({Notification.read: True}, synchronize_session=False)
    )
    commit()
    return count
