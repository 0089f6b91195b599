import itertools

import pytest

from app import create_app
from config import Config
from models import db
from models.user import Role
from security.session import create_session
from services import approval, identity, venues


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    BCRYPT_ROUNDS = 4
    SMTP_HOST = None
    ROTATE_SESSIONS_ON_LOGIN = False


_seq = itertools.count(1)


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(role=Role.USER, name=None, email=None, password="secret1"):
        n = next(_seq)
        role = Role(role)
        self_service = role if role != Role.ADMIN else Role.USER
        user, _, _ = identity.register(
            name or f"{role.value.title()} {n}",
            email or f"{role.value}{n}@example.com",
            password,
            self_service.value,
        )
        if role == Role.ADMIN:
            user.role = Role.ADMIN.value
            db.session.commit()
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, name="Ada Admin")


@pytest.fixture
def owner(make_user):
    return make_user(Role.OWNER, name="Otto Owner")


@pytest.fixture
def customer(make_user):
    return make_user(Role.USER, name="Carla Customer")


@pytest.fixture
def make_venue(owner, admin):
    def _make(creator=None, approve=True, **fields):
        fields.setdefault("name", "Arena Central")
        fields.setdefault("address", "Rua das Flores, 100")
        fields.setdefault("sport", "futsal")
        fields.setdefault("hourly_rate", "50")
        venue = venues.create_venue(creator or owner, fields)
        if approve:
            approval.approve(venue.id, admin)
        return venue
    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token, _ = create_session(user.id)
        return {"Authorization": f"Bearer {token}"}
    return _headers
