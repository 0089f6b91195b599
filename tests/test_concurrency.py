import threading

import pytest

from app import create_app
from config import Config
from models import db
from models.reservation import Reservation, ReservationStatus
from models.user import Role, User
from services import approval, identity, ledger, venues
from utils.errors import ConflictError

WORKERS = 8


@pytest.fixture
def file_app(tmp_path):
    class FileConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'race.db'}"
        BCRYPT_ROUNDS = 4
        SMTP_HOST = None

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def _seed(app):
    with app.app_context():
        owner, _, _ = identity.register("Owner", "owner@example.com", "secret1", Role.OWNER.value)
        admin, _, _ = identity.register("Admin", "admin@example.com", "secret1", Role.USER.value)
        admin.role = Role.ADMIN.value
        db.session.commit()

        venue = venues.create_venue(owner, {"name": "Arena", "hourly_rate": "60"})
        approval.approve(venue.id, admin)

        user_ids = []
        for i in range(WORKERS):
            user, _, _ = identity.register(f"User {i}", f"user{i}@example.com", "secret1")
            user_ids.append(user.id)
        return venue.id, user_ids


def _race(app, venue_id, user_ids, windows):
    barrier = threading.Barrier(len(user_ids))
    results = []
    results_lock = threading.Lock()

    def worker(user_id, window):
        with app.app_context():
            user = db.session.get(User, user_id)
            barrier.wait()
            try:
                ledger.create_reservation(venue_id, user, "2025-06-01", *window)
                outcome = "ok"
            except ConflictError:
                outcome = "conflict"
            with results_lock:
                results.append(outcome)

    threads = [
        threading.Thread(target=worker, args=(uid, windows[i % len(windows)]))
        for i, uid in enumerate(user_ids)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return results


def test_same_slot_race_has_one_winner(file_app):
    venue_id, user_ids = _seed(file_app)

    results = _race(file_app, venue_id, user_ids, [("10:00", "11:00")])

    assert sorted(results) == ["conflict"] * (WORKERS - 1) + ["ok"]
    with file_app.app_context():
        assert Reservation.query.filter_by(status=ReservationStatus.ACTIVE.value).count() == 1
    assert len(ledger._day_locks) == 0


def test_overlapping_windows_race_keeps_ledger_disjoint(file_app):
    venue_id, user_ids = _seed(file_app)
    windows = [("10:00", "11:00"), ("10:30", "11:30"), ("09:30", "10:15"), ("10:45", "12:00")]

    results = _race(file_app, venue_id, user_ids, windows)

    assert len(results) == WORKERS
    with file_app.app_context():
        rows = Reservation.query.filter_by(status=ReservationStatus.ACTIVE.value).all()
        assert len(rows) == results.count("ok") >= 1
        for a in rows:
            for b in rows:
                if a.id != b.id:
                    assert not a.overlaps(b.start_time, b.end_time)
