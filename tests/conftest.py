"""
Shared fixtures: in-memory database, recording notifier, API client
"""
from typing import List

import pytest
from fastapi.testclient import TestClient

from cardops.core.config import settings
from cardops.core.database import Database
from cardops.core.security import get_password_hash
from cardops.main import create_app
from cardops.schemas.grading_request import CardSpec, CustomerIdentity, GradingRequestCreate
from cardops.services.notification_service import EmailContent, Notifier

ADMIN_PASSWORD = "grading-admin-pass"


class RecordingNotifier(Notifier):
    """Keeps outgoing mail in memory instead of sending it"""

    def __init__(self):
        self.sent: List[EmailContent] = []

    def send(self, recipient: str, subject: str, body: str) -> bool:
        self.sent.append(EmailContent(recipient=recipient, subject=subject, body=body))
        return True


@pytest.fixture
def database():
    database = Database("sqlite://")
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def app(database, notifier, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAIL", "admin@cardops.test")
    monkeypatch.setattr(settings, "ADMIN_PASSWORD_HASH", get_password_hash(ADMIN_PASSWORD))
    monkeypatch.setattr(settings, "ADMIN_NOTIFY_EMAIL", "ops@cardops.test")
    return create_app(database=database, notifier=notifier)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def admin_headers(client):
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "admin@cardops.test", "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    token = response.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


def make_submission(email="collector@example.com", cards=("Charizard", "Pikachu"), **overrides):
    payload = dict(
        customer=CustomerIdentity(email=email, name="Aki Tanaka", phone="090-0000-0000"),
        country="usa",
        plan_type="normal",
        cards=[CardSpec(card_name=name, declared_value=10000, estimated_grading_fee=3000) for name in cards],
    )
    payload.update(overrides)
    return GradingRequestCreate(**payload)


@pytest.fixture
def submission():
    return make_submission()


def submission_json(email="collector@example.com", cards=("Charizard", "Pikachu")):
    return {
        "customer": {"email": email, "name": "Aki Tanaka"},
        "country": "usa",
        "plan_type": "normal",
        "cards": [
            {"card_name": name, "declared_value": 10000, "estimated_grading_fee": 3000}
            for name in cards
        ],
    }
