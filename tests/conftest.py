# tests/conftest.py

import time
from datetime import date, timedelta

import fakeredis
import pytest
from jose import jwt

from app import create_app
from app.config import TestingConfig
from db.extensions import db
from models.ground import Ground, WEEKDAY_NAMES
from models.user import User, Role, UserStatus


def make_token(uid, email, name=None, expires_in=3600, secret=None, **extra):
    now = int(time.time())
    claims = {
        'uid': uid,
        'sub': uid,
        'email': email,
        'name': name or email.split('@')[0],
        'email_verified': True,
        'aud': TestingConfig.IDENTITY_AUDIENCE,
        'iss': TestingConfig.IDENTITY_ISSUER,
        'iat': now,
        'exp': now + expires_in,
    }
    claims.update(extra)
    return jwt.encode(claims, secret or TestingConfig.IDENTITY_JWT_SECRET, algorithm='HS256')


def _future_date(weekdays, min_days=7):
    day = date.today() + timedelta(days=min_days)
    while day.weekday() not in weekdays:
        day += timedelta(days=1)
    return day


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def app(monkeypatch, fake_redis):
    monkeypatch.setattr('services.otp_service.redis_client', fake_redis)
    monkeypatch.setattr('app.redis_client', fake_redis)

    flask_app = create_app(TestingConfig)
    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make_user(uid, role=Role.PLAYER, status=UserStatus.ACTIVE, email=None):
        user = User(
            id=uid,
            email=email or f"{uid}@example.com",
            display_name=uid,
            role=role.value,
            status=status.value,
            profile={},
            is_email_verified=True,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def auth_headers():
    def _headers(user, **token_kwargs):
        token = make_token(user.id, user.email, name=user.display_name, **token_kwargs)
        return {'Authorization': f"Bearer {token}"}
    return _headers


@pytest.fixture
def player(make_user):
    return make_user('player-1')


@pytest.fixture
def other_player(make_user):
    return make_user('player-2')


@pytest.fixture
def owner(make_user):
    return make_user('owner-1', role=Role.FACILITY_OWNER)


@pytest.fixture
def admin(make_user):
    return make_user('admin-1', role=Role.ADMIN)


@pytest.fixture
def ground(owner):
    ground = Ground(
        ground_id='GRD-TEST-1',
        owner_id=owner.id,
        name='Riverside Arena',
        description='Two floodlit five-a-side courts by the river.',
        street='12 River Road',
        city='Pune',
        state='Maharashtra',
        country='India',
        postal_code='411001',
        open_time='06:00',
        close_time='22:00',
        working_days=list(WEEKDAY_NAMES),
        sports=['Football'],
        amenities=['Parking'],
        courts=['Court 1', 'Court 2'],
        weekday_price=500,
        weekend_price=800,
        currency='INR',
        contact={'phone': '+91 9000000000', 'email': 'arena@example.com'},
        images=[],
    )
    db.session.add(ground)
    db.session.commit()
    return ground


@pytest.fixture
def weekday_date():
    """A Monday-Thursday at least a week out."""
    return _future_date({0, 1, 2, 3})


@pytest.fixture
def weekend_date():
    """A Saturday at least a week out."""
    return _future_date({5})


@pytest.fixture
def friday_date():
    return _future_date({4})
