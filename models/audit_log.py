import json
from datetime import datetime
from models.db import db


class AuditLog(db.Model):
    """Append-only security trail. Rows outlive the users and venues they mention."""
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True)  # no FK: anonymous events and deleted accounts
    action = db.Column(db.String(80), nullable=False, index=True)  # LOGIN_FAIL, VENUE_REJECT, ...
    entity = db.Column(db.String(40), nullable=True)  # venue | reservation
    entity_id = db.Column(db.String(40), nullable=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        db.Index("ix_audit_logs_entity", "entity", "entity_id"),
    )

    @property
    def extra(self):
        return json.loads(self.metadata_json) if self.metadata_json else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "user_id": self.user_id,
            "action": self.action,
            "entity": self.entity,
            "entity_id": self.entity_id,
            "ip": self.ip,
            "user_agent": self.user_agent,
            "metadata": self.extra,
        }
