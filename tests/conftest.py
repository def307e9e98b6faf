from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from mailauth.api import routes
from mailauth.api.errors import register_error_handlers
from mailauth.domain.account import Account
from mailauth.domain.service import RegistrationService, VerificationService
from mailauth.errors import SendError
from mailauth.security.tokens import generate_token

SITE_BASE = "https://auth.example.test/auth"


class FakeRepository:
    """In-memory store mimicking the atomic find-or-create of the Postgres repository."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._lock = Lock()
        self.fail_with: Exception | None = None

    def find_or_create_by_email(self, email: str) -> Account:
        if self.fail_with is not None:
            raise self.fail_with
        with self._lock:
            existing = self._accounts.get(email)
            if existing is not None:
                return existing
            account = Account(email=email, token=generate_token(), created_at=datetime.now(timezone.utc))
            self._accounts[email] = account
            return account

    def find_by_token(self, token: str) -> Account | None:
        if self.fail_with is not None:
            raise self.fail_with
        with self._lock:
            for account in self._accounts.values():
                if account.token == token:
                    return account
        return None

    @property
    def accounts(self) -> list[Account]:
        return list(self._accounts.values())


class FakeNotifier:
    """Records every verification link instead of talking to SMTP."""

    def __init__(self) -> None:
        self.sent: list[tuple[Account, str]] = []
        self.fail = False

    def send(self, account: Account, verification_link: str) -> None:
        if self.fail:
            raise SendError("smtp unreachable")
        self.sent.append((account, verification_link))

    def token_for(self, email: str) -> str:
        return next(account.token for account, _ in reversed(self.sent) if account.email == email)


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def registration_service(repository, notifier) -> RegistrationService:
    return RegistrationService(repository, notifier, SITE_BASE)


@pytest.fixture
def verification_service(repository) -> VerificationService:
    return VerificationService(repository)


@pytest.fixture
def api_client(registration_service, verification_service, repository, notifier):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    app.include_router(routes.router)
    register_error_handlers(app)
    app.state.registration_service = registration_service
    app.state.verification_service = verification_service

    with TestClient(app) as client:
        yield client, repository, notifier
