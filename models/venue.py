import enum
from datetime import datetime
from models.db import db


class VenueStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# approval is terminal both ways; a rejected venue does not survive the transition
VENUE_TRANSITIONS = {
    VenueStatus.PENDING: frozenset({VenueStatus.APPROVED, VenueStatus.REJECTED}),
    VenueStatus.APPROVED: frozenset(),
    VenueStatus.REJECTED: frozenset(),
}


class Venue(db.Model):
    __tablename__ = "venues"

    id = db.Column(db.Integer, primary_key=True)
    owner_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    address = db.Column(db.String(255), nullable=True)
    sport = db.Column(db.String(60), nullable=True, index=True)
    hourly_rate = db.Column(db.Numeric(10, 2), nullable=True)
    availability = db.Column(db.Text, nullable=True)
    phone = db.Column(db.String(30), nullable=True)

    status = db.Column(db.String(20), nullable=False, default=VenueStatus.PENDING.value, index=True)
    verified_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    verified_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    owner = db.relationship("User", foreign_keys=[owner_user_id])
    photos = db.relationship(
        "VenuePhoto",
        order_by="VenuePhoto.position",
        cascade="all, delete-orphan",
        back_populates="venue",
    )

    @property
    def status_enum(self) -> VenueStatus:
        return VenueStatus(self.status)

    @property
    def photo_uris(self):
        return [p.uri for p in self.photos]

    def set_photos(self, uris):
        self.photos = [VenuePhoto(position=i, uri=uri) for i, uri in enumerate(uris)]


class VenuePhoto(db.Model):
    __tablename__ = "venue_photos"

    id = db.Column(db.Integer, primary_key=True)
    venue_id = db.Column(db.Integer, db.ForeignKey("venues.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    uri = db.Column(db.String(500), nullable=False)

    venue = db.relationship("Venue", back_populates="photos")
