"""SMTP delivery of account credentials."""
from __future__ import annotations

import logging
import smtplib
from collections.abc import Callable
from dataclasses import dataclass
from email.message import EmailMessage
from html import escape

from registry.core.config import Settings, get_settings
from registry.obs import CREDENTIAL_FAILURE_COUNTER

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DeliveryResult:
    sent: bool
    skipped: bool = False
    error: str | None = None


class CredentialMailer:
    """Sends account emails: credentials for a newly issued account and
    temporary passwords for resets.

    Delivery is best effort: neither send method raises. Without SMTP
    settings the message is suppressed and only the recipient is logged.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        smtp_factory: Callable[..., smtplib.SMTP] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._smtp_factory = smtp_factory or smtplib.SMTP

    def build_message(self, *, to: str, name: str | None, username: str, password: str) -> EmailMessage:
        settings = self._settings
        greeting = name or ""
        message = EmailMessage()
        message["From"] = settings.smtp_from or settings.smtp_user or "no-reply@registry.local"
        message["To"] = to
        message["Subject"] = settings.credentials_email_subject
        message.set_content(
            f"Hello {greeting},\n\n"
            "Your account has been created.\n\n"
            f"Username: {username}\n"
            f"Password: {password}\n\n"
            "Please log in and change your password soon."
        )
        message.add_alternative(
            f"<p>Hello {escape(greeting)},</p>"
            "<p>Your account has been created.</p>"
            f"<p><strong>Username:</strong> {escape(username)}<br/>"
            f"<strong>Password:</strong> {escape(password)}</p>"
            "<p>Please log in and change your password soon.</p>",
            subtype="html",
        )
        return message

    def build_reset_message(self, *, to: str, name: str | None, username: str, password: str) -> EmailMessage:
        settings = self._settings
        greeting = name or ""
        message = EmailMessage()
        message["From"] = settings.smtp_from or settings.smtp_user or "no-reply@registry.local"
        message["To"] = to
        message["Subject"] = settings.password_reset_email_subject
        message.set_content(
            f"Hello {greeting},\n\n"
            f"A password reset was requested for {username}.\n\n"
            f"Your temporary password is: {password}\n\n"
            "Please log in and change it right away."
        )
        message.add_alternative(
            f"<p>Hello {escape(greeting)},</p>"
            f"<p>A password reset was requested for <strong>{escape(username)}</strong>.</p>"
            f"<p><strong>Temporary password:</strong> {escape(password)}</p>"
            "<p>Please log in and change it right away.</p>",
            subtype="html",
        )
        return message

    def send_credentials(self, *, to: str, name: str | None, username: str, password: str) -> DeliveryResult:
        message = self.build_message(to=to, name=name, username=username, password=password)
        return self._deliver(message, to=to, username=username, kind="credential")

    def send_password_reset(self, *, to: str, name: str | None, username: str, password: str) -> DeliveryResult:
        message = self.build_reset_message(to=to, name=name, username=username, password=password)
        return self._deliver(message, to=to, username=username, kind="password reset")

    def _deliver(self, message: EmailMessage, *, to: str, username: str, kind: str) -> DeliveryResult:
        settings = self._settings
        if not settings.smtp_configured:
            logger.info(
                "%s email suppressed; SMTP is not configured",
                kind,
                extra={"recipient": to, "username": username},
            )
            return DeliveryResult(sent=False, skipped=True)

        try:
            with self._smtp_factory(
                settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout_seconds
            ) as client:
                if settings.smtp_use_tls:
                    client.starttls()
                client.login(settings.smtp_user, settings.smtp_password)
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            CREDENTIAL_FAILURE_COUNTER.labels(stage="email").inc()
            logger.warning(
                "failed to deliver %s email",
                kind,
                extra={"recipient": to, "username": username, "error": str(exc)},
            )
            return DeliveryResult(sent=False, error=str(exc))

        logger.info("%s email sent", kind, extra={"recipient": to, "username": username})
        return DeliveryResult(sent=True)


__all__ = ["CredentialMailer", "DeliveryResult"]
