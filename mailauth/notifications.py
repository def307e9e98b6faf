"""Verification mail composition and SMTP dispatch."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

from .config import Settings
from .domain.account import Account
from .errors import SendError

logger = logging.getLogger(__name__)


class NotificationSender:
    """Sends the verification link for an account over plain SMTP."""

    def __init__(
        self,
        *,
        smtp_host: str,
        from_display_name: str,
        from_email: str,
        subject: str,
        smtp_port: int = 25,
        starttls: bool = False,
        timeout: float = 10.0,
    ) -> None:
        self._smtp_host = smtp_host
        self._smtp_port = smtp_port
        self._from = formataddr((from_display_name, from_email))
        self._from_domain = from_email.rpartition("@")[2] or None
        self._subject = subject
        self._starttls = starttls
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationSender":
        return cls(
            smtp_host=settings.smtp_host,
            from_display_name=settings.from_display_name,
            from_email=settings.from_email,
            subject=settings.mail_subject,
            smtp_port=settings.smtp_port,
            starttls=settings.smtp_starttls,
            timeout=settings.smtp_timeout_seconds,
        )

    def compose(self, account: Account, verification_link: str) -> EmailMessage:
        """Build the verification message addressed to ``account.email``."""
        msg = EmailMessage()
        msg["From"] = self._from
        msg["To"] = account.email
        msg["Subject"] = self._subject
        msg["Message-ID"] = make_msgid(domain=self._from_domain)
        msg.set_content(
            "Use the link below to verify your address and access your API token.\n\n"
            f"{verification_link}\n"
        )
        return msg

    def send(self, account: Account, verification_link: str) -> None:
        """Deliver the verification message, raising ``SendError`` on any delivery failure."""
        try:
            msg = self.compose(account, verification_link)
        except ValueError as exc:
            # header policy refuses values such as addresses with embedded CR/LF
            logger.warning("verification for %r could not be composed: %s", account.email, exc)
            raise SendError("failed to compose verification message") from exc

        logger.info("smtp %s:%d sending verification to %s", self._smtp_host, self._smtp_port, account.email)
        try:
            with smtplib.SMTP(self._smtp_host, self._smtp_port, timeout=self._timeout) as server:
                if self._starttls:
                    server.starttls()
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("verification delivery to %s failed: %s", account.email, exc)
            raise SendError(f"failed to deliver verification to {account.email}") from exc
