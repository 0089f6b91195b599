from decimal import Decimal

import pytest

from models import db
from models.reservation import Reservation
from models.user import Role
from models.venue import Venue, VenuePhoto, VenueStatus
from services import approval, ledger, venues
from utils.errors import AuthError, ConflictError, ForbiddenError, NotFoundError, ValidationError


def test_create_starts_pending_and_owned_by_caller(owner):
    venue = venues.create_venue(owner, {
        "name": "  Quadra Azul ",
        "hourly_rate": "80.5",
        "photos": ["https://img.example.com/1.jpg", " ", "https://img.example.com/2.jpg"],
    })

    assert venue.status == VenueStatus.PENDING.value
    assert venue.owner_user_id == owner.id
    assert venue.name == "Quadra Azul"
    assert venue.hourly_rate == Decimal("80.50")
    assert venue.photo_uris == ["https://img.example.com/1.jpg", "https://img.example.com/2.jpg"]


def test_plain_user_may_submit_a_venue(customer):
    venue = venues.create_venue(customer, {"name": "Campo do Bairro"})
    assert venue.owner_user_id == customer.id
    assert venue.hourly_rate is None


def test_admin_cannot_create(admin):
    with pytest.raises(ForbiddenError):
        venues.create_venue(admin, {"name": "Admin Arena"})


def test_anonymous_cannot_create(app):
    with pytest.raises(AuthError):
        venues.create_venue(None, {"name": "Ghost Arena"})


@pytest.mark.parametrize("fields", [
    {},
    {"name": "   "},
    {"name": "X", "hourly_rate": "0"},
    {"name": "X", "hourly_rate": "-10"},
    {"name": "X", "hourly_rate": "cheap"},
    {"name": "X", "hourly_rate": True},
    {"name": "X", "photos": "not-a-list"},
    {"name": "X", "photos": [1, 2]},
    {"name": "X" * 121},
])
def test_create_validation(owner, fields):
    with pytest.raises(ValidationError):
        venues.create_venue(owner, fields)
    assert Venue.query.count() == 0


def test_update_by_owner_keeps_ownership_and_status(owner, make_user):
    venue = venues.create_venue(owner, {"name": "Arena", "photos": ["a.jpg", "b.jpg"]})
    intruder = make_user(Role.OWNER)

    updated = venues.update_venue(venue.id, owner, {
        "description": "Indoor court",
        "photos": ["c.jpg"],
        "owner_user_id": intruder.id,
        "status": "approved",
    })

    assert updated.description == "Indoor court"
    assert updated.photo_uris == ["c.jpg"]
    assert updated.owner_user_id == owner.id
    assert updated.status == VenueStatus.PENDING.value
    assert VenuePhoto.query.count() == 1


def test_update_by_stranger_forbidden(owner, make_user):
    venue = venues.create_venue(owner, {"name": "Arena"})
    stranger = make_user(Role.OWNER)
    with pytest.raises(ForbiddenError):
        venues.update_venue(venue.id, stranger, {"name": "Mine now"})


def test_admin_may_update_any_venue(owner, admin):
    venue = venues.create_venue(owner, {"name": "Arena"})
    assert venues.update_venue(venue.id, admin, {"phone": "+55 11 5555-0000"}).phone == "+55 11 5555-0000"


def test_update_missing_venue(owner):
    with pytest.raises(NotFoundError):
        venues.update_venue(999, owner, {"name": "Nope"})


def test_clearing_the_rate(owner):
    venue = venues.create_venue(owner, {"name": "Arena", "hourly_rate": 40})
    assert venues.update_venue(venue.id, owner, {"hourly_rate": None}).hourly_rate is None


def test_delete_by_owner_removes_photos(owner):
    venue = venues.create_venue(owner, {"name": "Arena", "photos": ["a.jpg"]})
    snapshot = venues.delete_venue(venue.id, owner)

    assert snapshot == {"id": venue.id, "name": "Arena", "owner_user_id": owner.id}
    assert db.session.get(Venue, snapshot["id"]) is None
    assert VenuePhoto.query.count() == 0


def test_delete_refused_while_reservations_active(make_venue, owner, customer):
    venue = make_venue()
    reservation = ledger.create_reservation(venue.id, customer, "2025-06-01", "10:00", "11:00")

    with pytest.raises(ConflictError):
        venues.delete_venue(venue.id, owner)

    ledger.cancel_reservation(reservation.id, customer)
    venues.delete_venue(venue.id, owner)
    assert Reservation.query.count() == 1


def test_delete_by_stranger_forbidden(owner, customer):
    venue = venues.create_venue(owner, {"name": "Arena"})
    with pytest.raises(ForbiddenError):
        venues.delete_venue(venue.id, customer)


def test_visibility_of_unpublished_venue(owner, admin, customer):
    venue = venues.create_venue(owner, {"name": "Arena"})

    assert venues.get_venue(venue.id, owner).id == venue.id
    assert venues.get_venue(venue.id, admin).id == venue.id
    with pytest.raises(NotFoundError):
        venues.get_venue(venue.id, customer)
    with pytest.raises(NotFoundError):
        venues.get_venue(venue.id)

    approval.approve(venue.id, admin)
    assert venues.get_venue(venue.id).id == venue.id


def test_public_listing_shows_only_approved(make_venue, owner):
    published = make_venue(name="Arena Norte", sport="futsal")
    make_venue(name="Quadra Sul", sport="tenis", address="Av. Sul")
    venues.create_venue(owner, {"name": "Arena Pendente"})

    names = {v.name for v in venues.list_public()}
    assert names == {"Arena Norte", "Quadra Sul"}

    assert [v.id for v in venues.list_public(sport="FUTSAL")] == [published.id]
    assert [v.name for v in venues.list_public(query="sul")] == ["Quadra Sul"]


def test_mine_includes_unpublished(make_venue, owner, make_user):
    make_venue(name="Approved")
    venues.create_venue(owner, {"name": "Pending"})
    venues.create_venue(make_user(Role.OWNER), {"name": "Someone else's"})

    assert {v.name for v in venues.list_mine(owner)} == {"Approved", "Pending"}


def test_pending_queue_is_admin_only(owner, admin):
    venues.create_venue(owner, {"name": "First"})
    venues.create_venue(owner, {"name": "Second"})

    assert [v.name for v in venues.list_pending(admin)] == ["First", "Second"]
    with pytest.raises(ForbiddenError):
        venues.list_pending(owner)


@pytest.mark.parametrize("rate", ["1e30", "123456789.00", "99999999.999", "0.001", "NaN", "Infinity"])
def test_hourly_rate_out_of_range(owner, rate):
    with pytest.raises(ValidationError):
        venues.create_venue(owner, {"name": "Big", "hourly_rate": rate})
    assert Venue.query.count() == 0


def test_hourly_rate_upper_bound(owner):
    venue = venues.create_venue(owner, {"name": "Premium", "hourly_rate": "99999999.99"})
    assert venue.hourly_rate == Decimal("99999999.99")


def test_delete_keeps_reservation_history(make_venue, owner, admin, customer):
    venue = make_venue(name="Arena Velha")
    done = ledger.create_reservation(venue.id, customer, "2025-06-01", "10:00", "11:00")
    dropped = ledger.create_reservation(venue.id, customer, "2025-06-01", "12:00", "13:00")
    ledger.complete_reservation(done.id, admin)
    ledger.rate_reservation(done.id, customer, 5)
    ledger.cancel_reservation(dropped.id, customer)

    venues.delete_venue(venue.id, owner)

    history = ledger.list_reservations(customer)
    assert {r.id for r in history} == {done.id, dropped.id}
    for r in history:
        assert r.venue_id is None
        assert r.venue_name == "Arena Velha"
    assert db.session.get(Reservation, done.id).rating == 5
    assert ledger.list_reservations(owner) == []
