import pytest
from fastapi.testclient import TestClient

from devdeakin.config import settings
from devdeakin.dependencies import get_current_user, get_optional_user
from devdeakin.main import app
from devdeakin.models.user import CurrentUser
from devdeakin.services.firebase_service import FirebaseService, firebase_service

from fake_firestore import FakeFirestore


@pytest.fixture
def fake_db(monkeypatch):
    """Point the shared firebase_service at an in-memory Firestore"""
    db = FakeFirestore()
    monkeypatch.setattr(FirebaseService, "_initialized", True)
    monkeypatch.setattr(firebase_service, "_db", db, raising=False)

    async def run_in_transaction(fn):
        return db.run_transaction(fn)

    monkeypatch.setattr(firebase_service, "run_in_transaction", run_in_transaction)
    return db


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides = {}


@pytest.fixture
def member():
    return CurrentUser(uid="u1", email="ada@deakin.edu.au", displayName="Ada")


@pytest.fixture
def admin():
    return CurrentUser(uid="admin1", email="admin@deakin.edu.au", displayName="Admin", admin=True)


@pytest.fixture
def login():
    """Authenticate subsequent requests as the given CurrentUser"""

    def _login(user: CurrentUser):
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_optional_user] = lambda: user
        return user

    yield _login
    app.dependency_overrides = {}


@pytest.fixture
def stripe_settings(monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "sk_test_FAKE")
    monkeypatch.setattr(settings, "STRIPE_PRICE_ID", "price_premium_monthly")
    monkeypatch.setattr(settings, "PUBLIC_SITE_URL", "https://devdeakin.web.app")
    return settings
