import os
import re
from datetime import datetime, timedelta, timezone

# Keep the module-level engine off the filesystem before the app is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from credittalk_auth.database import build_session_factory, init_db  # noqa: E402
from credittalk_auth.dependencies import (  # noqa: E402
    get_clock,
    get_session_factory,
    get_sms_sender,
)
from credittalk_auth.errors import DeliveryError  # noqa: E402
from credittalk_auth.main import app  # noqa: E402
from credittalk_auth.services.identity import IdentityStore  # noqa: E402
from credittalk_auth.services.otp import OtpIssuer, VerificationStore  # noqa: E402
from credittalk_auth.services.signup import SignupCommitter, SignupData  # noqa: E402
from credittalk_auth.services.users import AccountLookup, ProfileStore  # noqa: E402

PHONE = "01012345678"


class FakeSmsSender:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail = False

    def send(self, to_e164: str, body: str) -> None:
        if self.fail:
            raise DeliveryError("Failed to reach SMS gateway")
        self.sent.append((to_e164, body))

    def last_code(self) -> str:
        _, body = self.sent[-1]
        match = re.search(r"(\d{6})$", body)
        assert match, body
        return match.group(1)


class FrozenClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now = self.now + timedelta(seconds=seconds)


def signup_data(**overrides) -> SignupData:
    values = {
        "email": "victim.helper@example.com",
        "password": "Sup3r-secret!",
        "name": "Kim Minji",
        "nickname": "minji",
        "phone_number": PHONE,
        "job_type": "office_worker",
        "otp": "000000",
    }
    values.update(overrides)
    return SignupData(**values)


def signup_payload(**overrides) -> dict:
    payload = {
        "email": "victim.helper@example.com",
        "password": "Sup3r-secret!",
        "name": "Kim Minji",
        "nickname": "minji",
        "phoneNumber": PHONE,
        "jobType": "office_worker",
        "otp": "000000",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sessions(engine):
    return build_session_factory(engine)


@pytest.fixture
def sms():
    return FakeSmsSender()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def verifications(sessions):
    return VerificationStore(sessions)


@pytest.fixture
def identities(sessions):
    return IdentityStore(sessions)


@pytest.fixture
def profiles(sessions):
    return ProfileStore(sessions)


@pytest.fixture
def issuer(verifications, profiles, sms, clock):
    return OtpIssuer(verifications, profiles, sms, clock=clock)


@pytest.fixture
def committer(verifications, identities, profiles, clock):
    return SignupCommitter(verifications, identities, profiles, clock=clock)


@pytest.fixture
def lookup(identities, profiles):
    return AccountLookup(identities, profiles)


@pytest.fixture
def client(sessions, sms, clock):
    app.dependency_overrides[get_session_factory] = lambda: sessions
    app.dependency_overrides[get_sms_sender] = lambda: sms
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def fixed_codes(monkeypatch):
    """Make issuance hand out 111111, 222222, ... in order."""
    codes = iter(f"{digit}" * 6 for digit in range(1, 10))
    monkeypatch.setattr(
        "credittalk_auth.services.otp.generate_code", lambda *args: next(codes)
    )
