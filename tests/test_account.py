from unittest.mock import AsyncMock

import aiosmtplib
import pytest
from firebase_admin import auth as firebase_auth

from devdeakin.config import settings
from devdeakin.services import mail_service as mail_module
from devdeakin.services.firebase_service import firebase_service


@pytest.fixture
def verify_token(monkeypatch):
    mock = AsyncMock()
    monkeypatch.setattr(firebase_service, "verify_id_token", mock)
    return mock


# --- /me ---

def test_me_returns_claims_and_profile(client, fake_db, verify_token):
    verify_token.return_value = {"uid": "u1", "premium": True, "email": "ada@deakin.edu.au"}
    fake_db.seed("profiles/u1", {"displayName": "Ada", "bio": "hi"})

    response = client.get("/me", headers={"Authorization": "Bearer good"})

    assert response.status_code == 200
    assert response.json() == {
        "uid": "u1",
        "premium": True,
        "profile": {"displayName": "Ada", "bio": "hi"},
    }
    verify_token.assert_awaited_once_with("good")


def test_me_without_profile_or_premium(client, fake_db, verify_token):
    verify_token.return_value = {"uid": "u2"}

    response = client.get("/me", headers={"Authorization": "Bearer good"})

    assert response.status_code == 200
    assert response.json() == {"uid": "u2", "premium": False, "profile": None}


def test_me_missing_token(client):
    response = client.get("/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Missing token"


def test_me_revoked_token(client, verify_token):
    verify_token.side_effect = firebase_auth.RevokedIdTokenError("revoked")

    response = client.get("/me", headers={"Authorization": "Bearer old"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


# --- /subscribe ---

@pytest.fixture
def smtp_send(monkeypatch):
    monkeypatch.setattr(settings, "DISABLE_EMAIL", False)
    mock = AsyncMock(return_value=({}, "OK"))
    monkeypatch.setattr(mail_module.aiosmtplib, "send", mock)
    return mock


def test_subscribe_sends_confirmation(client, smtp_send):
    response = client.post("/subscribe", json={"email": "student@deakin.edu.au"})

    assert response.status_code == 200
    assert response.json() == {"message": "Email sent!"}
    message = smtp_send.call_args.args[0]
    assert message["To"] == "student@deakin.edu.au"
    assert "Subscription!" in message["Subject"]
    assert smtp_send.call_args.kwargs["hostname"] == settings.SMTP_HOST


def test_subscribe_smtp_failure(client, smtp_send):
    smtp_send.side_effect = aiosmtplib.SMTPConnectError("connection refused")

    response = client.post("/subscribe", json={"email": "student@deakin.edu.au"})

    assert response.status_code == 500
    assert response.json() == {"message": "Email failed to send."}


def test_subscribe_rejects_bad_email(client, smtp_send):
    assert client.post("/subscribe", json={}).status_code == 422
    assert client.post("/subscribe", json={"email": "not-an-email"}).status_code == 422
    smtp_send.assert_not_called()


def test_subscribe_with_email_disabled(client, monkeypatch, smtp_send):
    monkeypatch.setattr(settings, "DISABLE_EMAIL", True)

    response = client.post("/subscribe", json={"email": "student@deakin.edu.au"})

    assert response.status_code == 200
    smtp_send.assert_not_called()
