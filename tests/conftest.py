import pytest

from app import create_app
from chainvote.chain import Ledger
from chainvote.otp import OTPStore
from chainvote.voting import Candidate, VotingService
from config import Settings

ADMIN_EMAIL = "admin@x.edu"
FIXED_OTP = "123456"


@pytest.fixture
def ledger():
    ledger = Ledger(difficulty=2)
    ledger.initialize()
    return ledger


@pytest.fixture
def service(ledger):
    return VotingService(ledger)


@pytest.fixture
def open_service(service):
    service.add_candidate(Candidate(id="c1", name="Asha", department="CS"))
    service.add_candidate(Candidate(id="c2", name="Ravi", department="EE"))
    service.toggle_election()
    return service


@pytest.fixture
def settings():
    return Settings(
        testing=True,
        admin_emails=[ADMIN_EMAIL],
        jwt_secret_key="test-jwt-secret-key-that-is-long-enough-for-hs256",
        flask_secret_key="test-secret",
        gemini_api_key=None,
        mail_username=None,
        mail_password=None,
        otp_purge_interval_minutes=0,
        metrics_port=None,
    )


@pytest.fixture
def app(settings, monkeypatch):
    # Deterministic OTP codes for the login flow
    monkeypatch.setattr(OTPStore, "_generate", lambda self: FIXED_OTP)
    return create_app(settings)


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, email):
    """Run the OTP flow and return auth headers for the email."""
    resp = client.post("/api/auth/send-otp", json={"email": email})
    assert resp.status_code == 200
    resp = client.post("/api/auth/verify-otp", json={"email": email, "otp": FIXED_OTP})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.get_json()['accessToken']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, ADMIN_EMAIL)
