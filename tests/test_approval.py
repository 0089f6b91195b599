import pytest

from models import db
from models.notification import Notification, NotificationKind
from models.user import Role
from models.venue import Venue, VenueStatus
from services import approval, venues
from utils.errors import ConflictError, ForbiddenError, NotFoundError


def test_approve_publishes_and_notifies_owner(owner, admin):
    venue = venues.create_venue(owner, {"name": "Arena"})

    approved = approval.approve(venue.id, admin)

    assert approved.status == VenueStatus.APPROVED.value
    assert approved.verified_by == admin.id
    assert approved.verified_at is not None
    note = Notification.query.filter_by(user_id=owner.id).one()
    assert note.kind == NotificationKind.VENUE_APPROVED.value
    assert "Arena" in note.message


def test_reject_deletes_and_notifies_owner(owner, admin):
    venue = venues.create_venue(owner, {"name": "Arena", "photos": ["a.jpg"]})
    venue_id = venue.id

    snapshot = approval.reject(venue_id, admin)

    assert snapshot["name"] == "Arena"
    assert db.session.get(Venue, venue_id) is None
    note = Notification.query.filter_by(user_id=owner.id).one()
    assert note.kind == NotificationKind.VENUE_REJECTED.value


@pytest.mark.parametrize("role", [Role.USER, Role.OWNER])
def test_non_admins_cannot_decide(make_user, owner, role):
    venue = venues.create_venue(owner, {"name": "Arena"})
    actor = make_user(role)

    with pytest.raises(ForbiddenError):
        approval.approve(venue.id, actor)
    with pytest.raises(ForbiddenError):
        approval.reject(venue.id, actor)
    assert db.session.get(Venue, venue.id).status == VenueStatus.PENDING.value


def test_owner_cannot_approve_own_venue(owner):
    venue = venues.create_venue(owner, {"name": "Arena"})
    with pytest.raises(ForbiddenError):
        approval.approve(venue.id, owner)


def test_missing_venue(admin):
    with pytest.raises(NotFoundError):
        approval.approve(404, admin)
    with pytest.raises(NotFoundError):
        approval.reject(404, admin)


def test_approval_is_terminal(owner, admin):
    venue = venues.create_venue(owner, {"name": "Arena"})
    approval.approve(venue.id, admin)

    with pytest.raises(ConflictError):
        approval.approve(venue.id, admin)
    with pytest.raises(ConflictError):
        approval.reject(venue.id, admin)
    assert db.session.get(Venue, venue.id).status == VenueStatus.APPROVED.value


def test_rejection_is_terminal(owner, admin):
    venue = venues.create_venue(owner, {"name": "Arena"})
    venue_id = venue.id
    approval.reject(venue_id, admin)

    with pytest.raises(NotFoundError):
        approval.approve(venue_id, admin)
    with pytest.raises(NotFoundError):
        approval.reject(venue_id, admin)


def test_transition_table():
    approval.check_transition(VenueStatus.PENDING, VenueStatus.APPROVED)
    approval.check_transition(VenueStatus.PENDING, VenueStatus.REJECTED)
    for current in (VenueStatus.APPROVED, VenueStatus.REJECTED):
        for target in VenueStatus:
            with pytest.raises(ConflictError):
                approval.check_transition(current, target)
    with pytest.raises(ConflictError):
        approval.check_transition(VenueStatus.PENDING, VenueStatus.PENDING)
