from models import db
from models.reservation import Reservation, ReservationStatus
from models.user import Role, User
from services import ledger


def test_make_admin(app, customer):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["make-admin", customer.email.upper()])

    assert result.exit_code == 0
    assert "promoted to admin" in result.output
    assert db.session.get(User, customer.id).role == Role.ADMIN.value


def test_make_admin_unknown_email(app):
    result = app.test_cli_runner().invoke(args=["make-admin", "ghost@example.com"])
    assert result.exit_code != 0
    assert "No account" in result.output


def test_complete_reservations(app, make_venue, customer):
    venue = make_venue()
    past = ledger.create_reservation(venue.id, customer, "2025-06-01", "10:00", "11:00")
    future = ledger.create_reservation(venue.id, customer, "2999-01-01", "10:00", "11:00")

    result = app.test_cli_runner().invoke(args=["complete-reservations"])

    assert result.exit_code == 0
    assert "1 reservation(s) completed" in result.output
    assert db.session.get(Reservation, past.id).status == ReservationStatus.COMPLETED.value
    assert db.session.get(Reservation, future.id).status == ReservationStatus.ACTIVE.value
