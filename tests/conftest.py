"""
Shared pytest fixtures for credvault tests.
"""
import os

# Settings are read at import time, so the environment must be in place first.
os.environ["SECRET_KEY"] = "test_secret_key_for_testing_only"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SMTP_SERVER"] = "localhost"
os.environ["SMTP_PORT"] = "2525"
os.environ["SMTP_USER"] = "no-reply@example.com"
os.environ["SMTP_PASSWORD"] = "smtp-password"
os.environ["ALLOWED_HOSTS"] = '["*"]'

import pytest
from fastapi.testclient import TestClient

from credvault.core.dependencies import get_notifier, get_password_hasher
from credvault.core.security import PasswordHasher, TokenSigner
from credvault.crud import SqlUserRepository
from credvault.database import Base, SessionLocal, engine
from credvault.mailer import Notifier
from credvault.services.lifecycle import CredentialLifecycleManager

TEST_SECRET = os.environ["SECRET_KEY"]


class RecordingNotifier(Notifier):
    """Keeps every delivered code instead of talking to SMTP."""

    def __init__(self):
        self.sent = []
        self.error = None

    def send_otp(self, to_email, full_name, otp, purpose):
        if self.error is not None:
            raise self.error
        self.sent.append({"to": to_email, "full_name": full_name, "otp": otp, "purpose": purpose})

    def last_code(self, to_email):
        for message in reversed(self.sent):
            if message["to"] == to_email:
                return message["otp"]
        return None


@pytest.fixture
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(tables):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def hasher():
    # lowest bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def signer():
    return TokenSigner(TEST_SECRET)


@pytest.fixture
def manager(db_session, notifier, hasher, signer):
    return CredentialLifecycleManager(
        users=SqlUserRepository(db_session),
        notifier=notifier,
        hasher=hasher,
        signer=signer,
    )


@pytest.fixture
def client(tables, notifier, hasher):
    from credvault.main import app

    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_password_hasher] = lambda: hasher
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
