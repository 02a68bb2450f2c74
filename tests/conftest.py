from __future__ import annotations

import os
import uuid

# Must be set before `models` is imported: DBStorage picks its engine from APP_ENV
os.environ["APP_ENV"] = "test"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from api import create_app
from models import storage
from models.establishment import Establishment
from models.user import User, UserRole
from utils.security import hash_password

PASSWORD = "correct-horse-9"


@pytest.fixture(scope="session")
def app():
    return create_app("test")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture(autouse=True)
def clean_db():
    yield
    storage.truncate()
    storage.close()


@pytest.fixture
def session():
    return storage.get_session()


# ── Factories ────────────────────────────────────────────────────────────


def make_user(session, role=UserRole.USER, email=None, password=PASSWORD, is_active=True):
    user = User(
        name="Test User",
        email=email or f"{uuid.uuid4().hex[:10]}@example.com",
        password_hash=hash_password(password),
        role=role,
        is_active=is_active,
    )
    session.add(user)
    session.commit()
    return user


def make_establishment(session, partner, latitude=52.5200, longitude=13.4050, **fields):
    values = {
        "name": "Place",
        "city": "Berlin",
        "address": "Somestrasse 1",
        "cuisines": ["italian"],
        "price_range": "$$",
        "status": "active",
        "subscription_tier": "free",
        "average_rating": 0.0,
        "review_count": 0,
    }
    values.update(fields)
    est = Establishment(partner_id=partner.id, latitude=latitude, longitude=longitude, **values)
    session.add(est)
    session.commit()
    return est


def login(client, email, password=PASSWORD):
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["data"]


def bearer(tokens):
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def partner(session):
    return make_user(session, role=UserRole.PARTNER)


@pytest.fixture
def admin(session):
    return make_user(session, role=UserRole.ADMIN)
