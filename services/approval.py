"""
Venue publication workflow.

A venue is submitted ``pending``; an admin either approves it (it becomes
public and bookable) or rejects it, which deletes the record outright.
Both outcomes are terminal.
"""
from datetime import datetime

from flask import current_app

from models import db
from models.db import commit
from models.notification import NotificationKind
from models.venue import Venue, VenueStatus, VENUE_TRANSITIONS
from security.rbac import Operation, authorize
from services.notifications import notify
from utils.errors import ConflictError, NotFoundError


def check_transition(current: VenueStatus, target: VenueStatus):
    if target not in VENUE_TRANSITIONS[current]:
        raise ConflictError(f"Venue is {current.value}; cannot move to {target.value}")


def _locked_venue(venue_id: int) -> Venue:
    venue = (
        Venue.query
        .filter_by(id=venue_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not venue:
        raise NotFoundError("Venue not found")
    return venue


def approve(venue_id: int, admin) -> Venue:
    authorize(admin, Operation.VENUE_APPROVE, message="Admin role required")

    venue = _locked_venue(venue_id)
    check_transition(venue.status_enum, VenueStatus.APPROVED)

    venue.status = VenueStatus.APPROVED.value
    venue.verified_by = admin.id
    venue.verified_at = datetime.utcnow()
    notify(
        venue.owner_user_id,
        NotificationKind.VENUE_APPROVED,
        f"Your venue '{venue.name}' was approved and is now open for reservations.",
    )
    commit()
    return venue


def reject(venue_id: int, admin) -> dict:
    """
    Delete a pending venue and tell its owner. Returns a snapshot of the
    deleted record, since nothing else survives.
    """
    authorize(admin, Operation.VENUE_REJECT, message="Admin role required")

    venue = _locked_venue(venue_id)
    check_transition(venue.status_enum, VenueStatus.REJECTED)

    snapshot = {"id": venue.id, "name": venue.name, "owner_user_id": venue.owner_user_id}
    notify(
        venue.owner_user_id,
        NotificationKind.VENUE_REJECTED,
        f"Your venue '{venue.name}' was not approved and has been removed.",
    )
    db.session.delete(venue)
    commit()

    current_app.logger.info("Venue %s rejected and deleted by admin %s", snapshot["id"], admin.id)
    return snapshot
