import enum
from datetime import datetime
from models.db import db


class ReservationStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


RESERVATION_TRANSITIONS = {
    ReservationStatus.ACTIVE: frozenset({ReservationStatus.CANCELLED, ReservationStatus.COMPLETED}),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.COMPLETED: frozenset(),
}


class Reservation(db.Model):
    __tablename__ = "reservations"

    id = db.Column(db.Integer, primary_key=True)

    # NULL once the venue is deleted; the booking history stays with the user
    venue_id = db.Column(db.Integer, db.ForeignKey("venues.id", ondelete="SET NULL"), nullable=True, index=True)
    venue_name = db.Column(db.String(120), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    reservation_date = db.Column(db.Date, nullable=False)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)

    status = db.Column(db.String(20), nullable=False, default=ReservationStatus.ACTIVE.value)
    notes = db.Column(db.Text, nullable=True)
    total = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    rating = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancelled_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    rated_at = db.Column(db.DateTime, nullable=True)

    venue = db.relationship("Venue", backref=db.backref("reservations", lazy=True))
    user = db.relationship("User", foreign_keys=[user_id])

    __table_args__ = (
        # overlap checks scan one venue/day at a time
        db.Index("ix_reservations_venue_day", "venue_id", "reservation_date", "status"),
        db.CheckConstraint("start_time < end_time", name="ck_reservation_time_order"),
        db.CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_reservation_rating_range"),
    )

    @property
    def status_enum(self) -> ReservationStatus:
        return ReservationStatus(self.status)

    def overlaps(self, start, end) -> bool:
        return self.start_time < end and start < self.end_time
