"""Error taxonomy shared by the store, the mailer and the HTTP layer."""

from __future__ import annotations


class MailAuthError(Exception):
    """Base class for failures raised by the mailauth core."""


class NotFoundError(MailAuthError):
    """Raised when a token does not resolve to any account."""


class StorageError(MailAuthError):
    """Raised when the account store cannot complete an operation."""


class SendError(MailAuthError):
    """Raised when the mail transport fails to connect or deliver."""


class ConfigError(MailAuthError):
    """Raised at startup when required configuration is missing or malformed."""
