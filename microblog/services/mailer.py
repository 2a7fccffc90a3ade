"""Outbound email delivery (Resend HTTP API, SMTP fallback)."""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage

import httpx

from microblog.config import settings

logger = logging.getLogger(__name__)

RESEND_ENDPOINT = "https://api.resend.com/emails"


class MailerError(RuntimeError):
    """Raised when an email could not be handed to a transport."""


class Mailer:
    def __init__(self, client: httpx.Client | None = None):
        self.enabled = settings.email_enabled
        self.resend_api_key = settings.resend_api_key
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.passwd = settings.smtp_pass
        self.use_starttls = settings.smtp_starttls
        self._client = client

    @property
    def configured(self) -> bool:
        return self.enabled and bool(self.resend_api_key or self.host)

    @property
    def sender(self) -> str:
        return f"{settings.email_from_name} <{settings.email_from_addr}>"

    def send(self, to_addr: str, subject: str, html: str, text: str) -> None:
        if not self.configured:
            raise MailerError("Email service not configured")
        if self.resend_api_key:
            self._send_resend(to_addr, subject, html, text)
        else:
            self._send_smtp(to_addr, subject, html, text)

    def _send_resend(self, to_addr: str, subject: str, html: str, text: str) -> None:
        payload = {
            "from": self.sender,
            "to": [to_addr],
            "subject": subject,
            "html": html,
            "text": text,
        }
        headers = {"Authorization": f"Bearer {self.resend_api_key}"}
        client = self._client or httpx.Client(timeout=10)
        try:
            response = client.post(RESEND_ENDPOINT, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise MailerError(
                f"Resend rejected the message ({exc.response.status_code})"
            ) from exc
        except httpx.HTTPError as exc:
            raise MailerError(f"Resend request failed: {exc}") from exc
        finally:
            if self._client is None:
                client.close()

    def _send_smtp(self, to_addr: str, subject: str, html: str, text: str) -> None:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to_addr
        msg["Subject"] = subject
        msg.set_content(text)
        msg.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
                if self.use_starttls:
                    context = ssl.create_default_context()
                    smtp.starttls(context=context)
                if self.user:
                    smtp.login(self.user, self.passwd)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailerError(f"SMTP delivery failed: {exc}") from exc


mailer = Mailer()
