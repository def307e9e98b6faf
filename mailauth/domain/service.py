"""Registration and verification workflows over the account store and mailer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .account import Account
from .links import build_verification_link
from ..errors import NotFoundError, SendError
from ..metrics import AUTH_ATTEMPTS, REGISTRATIONS

logger = logging.getLogger(__name__)


def is_plausible_email(email: str) -> bool:
    """Minimal sanity check; the value is otherwise used exactly as supplied."""
    if not email or not email.strip() or "@" not in email:
        return False
    # CR/LF and other controls would be stored but can never form a mail header
    return not any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in email)


class AccountStore(Protocol):
    def find_by_token(self, token: str) -> Account | None: ...

    def find_or_create_by_email(self, email: str) -> Account: ...


class Notifier(Protocol):
    def send(self, account: Account, verification_link: str) -> None: ...


@dataclass(slots=True)
class Registration:
    """Outcome of a registration: the committed account and any delivery failure."""

    account: Account
    delivery_error: SendError | None = None

    @property
    def notified(self) -> bool:
        return self.delivery_error is None


class RegistrationService:
    """Find-or-create an account for an email and mail it a verification link."""

    def __init__(self, store: AccountStore, notifier: Notifier, site_base: str) -> None:
        self._store = store
        self._notifier = notifier
        self._site_base = site_base

    def register(self, email: str) -> Registration:
        """Register ``email``, returning the account even when delivery fails.

        The account is committed before the mail is attempted, so a failed
        delivery never rolls back creation. A repeated registration returns the
        existing account and re-sends the same link.

        Raises
        ------
        ValueError
            When ``email`` is blank, lacks an ``@`` or contains control
            characters. Nothing is stored in that case.
        StorageError
            Propagated from the account store.
        """
        if not is_plausible_email(email):
            raise ValueError("invalid email")

        account = self._store.find_or_create_by_email(email)
        link = build_verification_link(self._site_base, account.token)
        try:
            self._notifier.send(account, link)
        except SendError as exc:
            REGISTRATIONS.labels(outcome="notification_failed").inc()
            logger.warning("account %s stored but notification failed", account.email)
            return Registration(account=account, delivery_error=exc)

        REGISTRATIONS.labels(outcome="created_or_found").inc()
        return Registration(account=account)


class VerificationService:
    """Resolve bearer tokens back to their accounts."""

    def __init__(self, store: AccountStore) -> None:
        self._store = store

    def auth(self, token: str) -> Account:
        """Return the account for ``token`` or raise ``NotFoundError``."""
        account = self._store.find_by_token(token)
        if account is None:
            AUTH_ATTEMPTS.labels(outcome="rejected").inc()
            raise NotFoundError("bad token")
        AUTH_ATTEMPTS.labels(outcome="accepted").inc()
        return account
