from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from intake.application import create_application
from intake.config import DEFAULT_ADMIN_EMAIL, Settings
from intake.models import ApplicationDraft, CompanyType, PaymentPlan
from intake.store import InMemoryApplicationStore

ADMIN_EMAIL = DEFAULT_ADMIN_EMAIL
ADMIN_PASSWORD = "password"

ACME_PAYLOAD = {
    "companyName": "Acme",
    "contactPerson": "Jo",
    "email": "jo@acme.co",
    "phone": "0800000000",
    "companyType": "PTY",
    "services": ["Company Registration"],
    "paymentPlan": "annual",
}


class FakeClock:
    """Deterministic clock advancing one minute per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(minutes=1)
        return value


def make_draft(**overrides) -> ApplicationDraft:
    fields = {
        "company_name": "Acme",
        "contact_person": "Jo",
        "email": "jo@acme.co",
        "phone": "0821234567",
        "company_type": CompanyType.PTY,
        "services": ("CSD Registration",),
        "payment_plan": PaymentPlan.ANNUAL,
    }
    fields.update(overrides)
    return ApplicationDraft(**fields)


@pytest.fixture
def settings() -> Settings:
    return Settings(jwt_secret="test-jwt-secret", session_secret="test-session-secret", page_size=2)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryApplicationStore:
    return InMemoryApplicationStore(clock=clock)


@pytest.fixture
def client(settings: Settings, store: InMemoryApplicationStore):
    app = create_application(settings=settings, store=store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client: TestClient) -> dict[str, str]:
    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def submit(client: TestClient) -> Callable[..., int]:
    def _submit(**overrides) -> int:
        payload = {**ACME_PAYLOAD, **overrides}
        response = client.post("/api/applications", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["applicationId"]

    return _submit
