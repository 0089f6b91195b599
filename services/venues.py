from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy import or_

from models import db
from models.db import commit
from models.venue import Venue, VenueStatus
from models.reservation import Reservation, ReservationStatus
from security.rbac import Operation, authorize, permit
from utils.errors import ConflictError, NotFoundError, ValidationError

# column -> max length for free-text fields
_TEXT_FIELDS = {
    "name": 120,
    "description": 5000,
    "address": 255,
    "sport": 60,
    "availability": 2000,
    "phone": 30,
}
MAX_PHOTOS = 20
MAX_PHOTO_URI_LEN = 500
MAX_HOURLY_RATE = Decimal("1e8")
RATE_ERROR = "valor_hora must be a positive number below 100000000"


def parse_hourly_rate(value):
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(RATE_ERROR)
    try:
        rate = Decimal(str(value))
        if not rate.is_finite():
            raise ValidationError(RATE_ERROR)
        rate = rate.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise ValidationError(RATE_ERROR)
    # Numeric(10, 2) holds at most 8 integer digits
    if rate <= 0 or rate >= MAX_HOURLY_RATE:
        raise ValidationError(RATE_ERROR)
    return rate


def clean_photos(uris):
    if uris is None:
        return []
    if not isinstance(uris, (list, tuple)):
        raise ValidationError("fotos must be a list of URLs")
    cleaned = []
    for uri in uris:
        if not isinstance(uri, str):
            raise ValidationError("fotos must be a list of URLs")
        uri = uri.strip()
        if not uri:
            continue
        if len(uri) > MAX_PHOTO_URI_LEN:
            raise ValidationError(f"Photo URL longer than {MAX_PHOTO_URI_LEN} characters")
        cleaned.append(uri)
    if len(cleaned) > MAX_PHOTOS:
        raise ValidationError(f"At most {MAX_PHOTOS} photos per venue")
    return cleaned


def _apply_fields(venue: Venue, fields: dict):
    for key, max_len in _TEXT_FIELDS.items():
        if key not in fields:
            continue
        value = fields[key]
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValidationError(f"Invalid {key}")
        value = value.strip()
        if len(value) > max_len:
            raise ValidationError(f"{key} must be at most {max_len} characters")
        if key == "name" and not value:
            raise ValidationError("Venue name required")
        setattr(venue, key, value or None)

    if "hourly_rate" in fields:
        venue.hourly_rate = parse_hourly_rate(fields["hourly_rate"])
    if "photos" in fields:
        venue.set_photos(clean_photos(fields["photos"]))


def create_venue(actor, fields: dict) -> Venue:
    """New venues start pending and belong to their creator."""
    authorize(actor, Operation.VENUE_CREATE, message="Admins cannot submit venues")
    fields = dict(fields)
    fields.setdefault("name", "")

    venue = Venue(owner_user_id=actor.id, status=VenueStatus.PENDING.value)
    _apply_fields(venue, fields)
    db.session.add(venue)
    commit()
    return venue


def _get_or_404(venue_id: int) -> Venue:
    venue = db.session.get(Venue, venue_id)
    if not venue:
        raise NotFoundError("Venue not found")
    return venue


def update_venue(venue_id: int, actor, fields: dict) -> Venue:
    venue = _get_or_404(venue_id)
    authorize(actor, Operation.VENUE_UPDATE, venue.owner_user_id)

    # ownership and status are not editable here
    fields = {k: v for k, v in fields.items() if k not in ("owner_user_id", "status")}
    try:
        _apply_fields(venue, fields)
    except ValidationError:
        db.session.rollback()
        raise
    commit()
    return venue


def delete_venue(venue_id: int, actor) -> dict:
    venue = _get_or_404(venue_id)
    authorize(actor, Operation.VENUE_DELETE, venue.owner_user_id)

    active = (
        Reservation.query
        .filter_by(venue_id=venue.id, status=ReservationStatus.ACTIVE.value)
        .count()
    )
    if active:
        raise ConflictError("Venue has active reservations", details=[f"{active} active reservation(s)"])

    snapshot = {"id": venue.id, "name": venue.name, "owner_user_id": venue.owner_user_id}
    db.session.delete(venue)
    commit()
    return snapshot


def get_venue(venue_id: int, actor=None) -> Venue:
    """
    Approved venues are public. Owners and admins also see their
    unpublished ones; to anyone else they do not exist.
    """
    venue = _get_or_404(venue_id)
    if venue.status == VenueStatus.APPROVED.value:
        return venue
    if actor is not None and permit(actor.role, Operation.VENUE_VIEW_UNPUBLISHED, venue.owner_user_id, actor.id):
        return venue
    raise NotFoundError("Venue not found")


def list_public(sport=None, query=None):
    q = Venue.query.filter(Venue.status == VenueStatus.APPROVED.value)
    if sport:
        q = q.filter(Venue.sport.ilike(sport.strip()))
    if query:
        like = f"%{query.strip()}%"
        q = q.filter(or_(Venue.name.ilike(like), Venue.address.ilike(like)))
    limit = current_app.config.get("LIST_LIMIT", 200)
    return q.order_by(Venue.created_at.desc(), Venue.id.desc()).limit(limit).all()


def list_mine(actor):
    authorize(actor, Operation.VENUE_LIST_MINE)
    return (
        Venue.query
        .filter_by(owner_user_id=actor.id)
        .order_by(Venue.created_at.desc(), Venue.id.desc())
        .all()
    )


def list_pending(actor):
    authorize(actor, Operation.VENUE_LIST_PENDING, message="Admin role required")
    limit = current_app.config.get("LIST_LIMIT", 200)
    return (
        Venue.query
        .filter_by(status=VenueStatus.PENDING.value)
        .order_by(Venue.created_at.asc(), Venue.id.asc())
        .limit(limit)
        .all()
    )
