"""
Reservation ledger.

The one hard rule: for a venue and day, ``active`` reservations never
overlap on [start, end). Check-and-insert runs under a per-(venue, day)
lock inside the process and under a row lock on the venue in the database
(``SELECT ... FOR UPDATE`` where the backend supports it), so two
concurrent requests for the same slot cannot both commit.
"""
import threading
from contextlib import contextmanager
from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app

from models import db
from models.db import commit
from models.notification import NotificationKind
from models.reservation import Reservation, ReservationStatus, RESERVATION_TRANSITIONS
from models.user import Role
from models.venue import Venue, VenueStatus
from security.rbac import Operation, authorize
from services.notifications import notify
from utils.errors import ConflictError, NotFoundError, ValidationError

CENTS = Decimal("0.01")
MAX_NOTES_LEN = 1000


class KeyedLocks:
    """One mutex per key, dropped again once nobody holds or waits on it."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}

    @contextmanager
    def hold(self, key):
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self):
        with self._guard:
            return len(self._locks)


_day_locks = KeyedLocks()


def parse_date(value) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValidationError("Invalid date. Use YYYY-MM-DD")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid date. Use YYYY-MM-DD")


def parse_time(value, field: str) -> time:
    """HH:MM, or HH:MM:SS with zero seconds. Reservations sit on whole minutes."""
    parsed = None
    if isinstance(value, time):
        parsed = value
    elif isinstance(value, str):
        for fmt in ("%H:%M", "%H:%M:%S"):
            try:
                parsed = datetime.strptime(value.strip(), fmt).time()
                break
            except ValueError:
                continue
    if parsed is None or parsed.second or parsed.microsecond:
        raise ValidationError(f"Invalid {field}. Use HH:MM")
    return parsed


def duration_minutes(start: time, end: time) -> int:
    delta = datetime.combine(date.min, end) - datetime.combine(date.min, start)
    return int(delta.total_seconds() // 60)


def compute_total(hourly_rate, start: time, end: time) -> Decimal:
    if hourly_rate is None:
        return Decimal("0.00")
    minutes = Decimal(duration_minutes(start, end))
    return (Decimal(hourly_rate) * minutes / Decimal(60)).quantize(CENTS, rounding=ROUND_HALF_UP)


def check_transition(current: ReservationStatus, target: ReservationStatus):
    if target not in RESERVATION_TRANSITIONS[current]:
        raise ConflictError(f"Reservation already terminal ({current.value})")


def find_overlapping(venue_id: int, day: date, start: time, end: time):
    return (
        Reservation.query
        .filter(
            Reservation.venue_id == venue_id,
            Reservation.reservation_date == day,
            Reservation.status == ReservationStatus.ACTIVE.value,
            Reservation.start_time < end,
            Reservation.end_time > start,
        )
        .all()
    )


def create_reservation(venue_id, user, day, start, end, notes=None) -> Reservation:
    authorize(user, Operation.RESERVATION_CREATE, message="Only users can book venues")

    day = parse_date(day)
    start = parse_time(start, "hora_inicio")
    end = parse_time(end, "hora_fim")
    if start >= end:
        raise ValidationError("hora_fim must be after hora_inicio")

    if notes is not None:
        if not isinstance(notes, str):
            raise ValidationError("Invalid observacoes")
        notes = notes.strip()[:MAX_NOTES_LEN] or None

    try:
        venue_id = int(venue_id)
    except (TypeError, ValueError):
        raise ValidationError("local_id required")

    with _day_locks.hold((venue_id, day)):
        venue = (
            Venue.query
            .filter_by(id=venue_id)
            .with_for_update()
            .first()
        )
        if not venue or venue.status != VenueStatus.APPROVED.value:
            db.session.rollback()
            raise NotFoundError("Venue not found")

        clashes = find_overlapping(venue.id, day, start, end)
        if clashes:
            db.session.rollback()
            current_app.logger.info(
                "Reservation conflict on venue %s %s %s-%s with %s",
                venue.id, day, start, end, [r.id for r in clashes],
            )
            raise ConflictError(
                "Time slot already booked",
                details=[f"{r.start_time:%H:%M}-{r.end_time:%H:%M}" for r in clashes],
            )

        reservation = Reservation(
            venue_id=venue.id,
            venue_name=venue.name,
            user_id=user.id,
            reservation_date=day,
            start_time=start,
            end_time=end,
            status=ReservationStatus.ACTIVE.value,
            notes=notes,
            total=compute_total(venue.hourly_rate, start, end),
        )
        db.session.add(reservation)
        notify(
            venue.owner_user_id,
            NotificationKind.RESERVATION_CREATED,
            f"New reservation at '{venue.name}' on {day.isoformat()} {start:%H:%M}-{end:%H:%M} by {user.name}.",
        )
        commit()

    return reservation


def _locked_reservation(reservation_id: int) -> Reservation:
    reservation = (
        Reservation.query
        .filter_by(id=reservation_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not reservation:
        raise NotFoundError("Reservation not found")
    return reservation


def cancel_reservation(reservation_id: int, requester) -> Reservation:
    """The booker, the venue's owner or an admin may cancel; history is kept."""
    reservation = _locked_reservation(reservation_id)
    venue_owner_id = reservation.venue.owner_user_id if reservation.venue else None
    authorize(
        requester,
        Operation.RESERVATION_CANCEL,
        {reservation.user_id, venue_owner_id},
        message="Not allowed to cancel this reservation",
    )
    check_transition(reservation.status_enum, ReservationStatus.CANCELLED)

    reservation.status = ReservationStatus.CANCELLED.value
    reservation.cancelled_at = datetime.utcnow()
    reservation.cancelled_by = requester.id

    slot = f"'{reservation.venue_name}' on {reservation.reservation_date.isoformat()} {reservation.start_time:%H:%M}"
    if requester.id == reservation.user_id:
        notify(venue_owner_id, NotificationKind.RESERVATION_CANCELLED,
               f"Reservation at {slot} was cancelled by the customer.")
    else:
        notify(reservation.user_id, NotificationKind.RESERVATION_CANCELLED,
               f"Your reservation at {slot} was cancelled.")
    commit()
    return reservation


def parse_rating(value) -> int:
    if isinstance(value, bool):
        raise ValidationError("avaliacao must be an integer from 1 to 5")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or not 1 <= value <= 5:
        raise ValidationError("avaliacao must be an integer from 1 to 5")
    return value


def rate_reservation(reservation_id: int, user, rating) -> Reservation:
    rating = parse_rating(rating)

    reservation = _locked_reservation(reservation_id)
    authorize(user, Operation.RESERVATION_RATE, reservation.user_id,
              message="Only the customer can rate a reservation")

    if reservation.status != ReservationStatus.COMPLETED.value:
        raise ConflictError("Only completed reservations can be rated")
    if reservation.rating is not None:
        raise ConflictError("Reservation already rated")

    # single write: the row only matches while unrated
    updated = (
        Reservation.query
        .filter_by(id=reservation.id, rating=None)
        .update({Reservation.rating: rating, Reservation.rated_at: datetime.utcnow()},
                synchronize_session=False)
    )
    if not updated:
        db.session.rollback()
        raise ConflictError("Reservation already rated")

    if reservation.venue is not None:
        notify(reservation.venue.owner_user_id, NotificationKind.RESERVATION_RATED,
               f"'{reservation.venue_name}' received a {rating}-star rating.")
    commit()
    return reservation


def _mark_completed(reservation: Reservation, now: datetime):
    check_transition(reservation.status_enum, ReservationStatus.COMPLETED)
    reservation.status = ReservationStatus.COMPLETED.value
    reservation.completed_at = now
    notify(
        reservation.user_id,
        NotificationKind.RESERVATION_COMPLETED,
        f"Your reservation at '{reservation.venue_name}' on "
        f"{reservation.reservation_date.isoformat()} is complete. You can rate it now.",
    )


def complete_reservation(reservation_id: int, admin) -> Reservation:
    authorize(admin, Operation.RESERVATION_COMPLETE, message="Admin role required")
    reservation = _locked_reservation(reservation_id)
    _mark_completed(reservation, datetime.utcnow())
    commit()
    return reservation


def complete_past_reservations(now: datetime = None) -> int:
    """Mark every active reservation that has ended by ``now`` (local time) completed."""
    now = now or datetime.now()
    rows = (
        Reservation.query
        .filter(
            Reservation.status == ReservationStatus.ACTIVE.value,
            Reservation.reservation_date <= now.date(),
        )
        .all()
    )
    done = 0
    for reservation in rows:
        if datetime.combine(reservation.reservation_date, reservation.end_time) <= now:
            _mark_completed(reservation, datetime.utcnow())
            done += 1
    commit()
    return done


def list_reservations(actor, venue_id=None, venue_ids=None, status=None, own_only=False):
    """
    Reservations visible to ``actor``: users see their own, owners see the
    ones on venues they own, admins see everything.
    """
    authorize(actor, Operation.RESERVATION_VIEW, actor.id)

    q = Reservation.query
    if own_only:
        q = q.filter(Reservation.user_id == actor.id)
    elif actor.is_admin:
        pass
    elif actor.role == Role.OWNER.value:
        q = q.join(Venue, Reservation.venue_id == Venue.id).filter(Venue.owner_user_id == actor.id)
    else:
        q = q.filter(Reservation.user_id == actor.id)

    if venue_id is not None:
        q = q.filter(Reservation.venue_id == venue_id)
    elif venue_ids:
        q = q.filter(Reservation.venue_id.in_(list(venue_ids)))

    if status is not None:
        q = q.filter(Reservation.status == ReservationStatus(status).value)

    limit = current_app.config.get("LIST_LIMIT", 200)
    return (
        q.order_by(
            Reservation.reservation_date.desc(),
            Reservation.start_time.desc(),
            Reservation.id.desc(),
        )
        .limit(limit)
        .all()
    )
