from __future__ import annotations

import base64
import html
import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from pathlib import Path
from typing import Any, Protocol

import anyio

from careers_mailer.core.config import Settings
from careers_mailer.core.errors import DispatchError
from careers_mailer.core.paths import package_root, repo_path

logger = logging.getLogger("careers.mail")

GMAIL_SEND_SCOPE = "https://www.googleapis.com/auth/gmail.send"


@dataclass(frozen=True)
class MailAttachment:
    filename: str
    mime_type: str
    content: bytes | None = None
    path: Path | None = None

    def read_bytes(self) -> bytes:
        if self.content is not None:
            return self.content
        if self.path is not None:
            return self.path.read_bytes()
        raise ValueError(f"Attachment '{self.filename}' has neither content nor path.")


@dataclass(frozen=True)
class MailMessage:
    sender: str
    to: list[str]
    subject: str
    html: str
    attachments: list[MailAttachment] = field(default_factory=list)
    reply_to: str | None = None


class MailTransport(Protocol):
    async def send(self, message: MailMessage) -> str:
        """Hand the message over and return the provider's message id."""
        ...


def _template_path(name: str) -> Path:
    return package_root() / "templates" / "email" / f"{name}.html"


def render_template(name: str, context: dict[str, Any], *, safe: dict[str, str] | None = None) -> str:
    """
    Fill an HTML template with str.format_map placeholders.

    Values in ``context`` are HTML-escaped. ``safe`` holds fragments that were
    already rendered by this function and are inserted verbatim.
    """
    raw = _template_path(name).read_text(encoding="utf-8")
    values = {k: html.escape("" if v is None else str(v), quote=True) for k, v in context.items()}
    values.update(safe or {})
    return raw.format_map(values)


def format_sender(name: str, address: str) -> str:
    name = (name or "").strip()
    return formataddr((name, address)) if name else address


def build_mime_message(message: MailMessage) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = message.sender
    msg["To"] = ", ".join(message.to)
    msg["Subject"] = message.subject
    if message.reply_to:
        msg["Reply-To"] = message.reply_to
    msg["Message-ID"] = make_msgid()
    msg.set_content("This message requires an HTML capable mail client.")
    msg.add_alternative(message.html, subtype="html", charset="utf-8")
    for attachment in message.attachments:
        maintype, _, subtype = (attachment.mime_type or "application/octet-stream").partition("/")
        msg.add_attachment(
            attachment.read_bytes(),
            maintype=maintype or "application",
            subtype=subtype or "octet-stream",
            filename=attachment.filename,
        )
    return msg


class SmtpTransport:
    def __init__(self, *, host: str, port: int, username: str, password: str, timeout: float = 30.0) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout

    def _send_blocking(self, message: MailMessage) -> str:
        msg = build_mime_message(message)
        if self.port == 465:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as server:
                server.login(self.username, self.password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.username, self.password)
                server.send_message(msg)
        return str(msg["Message-ID"])

    async def send(self, message: MailMessage) -> str:
        if not self.username or not self.password:
            raise DispatchError(detail="SMTP credentials are not configured (EMAIL_USER / EMAIL_PASS).")
        logger.info("smtp_send", extra={"host": self.host, "port": self.port})
        return await anyio.to_thread.run_sync(self._send_blocking, message)


class GmailApiTransport:
    def __init__(self, *, credentials_path: str, sender_email: str) -> None:
        self.credentials_path = credentials_path
        self.sender_email = sender_email

    def _client(self):
        from google.oauth2 import service_account
        from googleapiclient.discovery import build

        credentials = service_account.Credentials.from_service_account_file(
            str(repo_path(self.credentials_path)), scopes=[GMAIL_SEND_SCOPE]
        )
        delegated = credentials.with_subject(self.sender_email)
        return build("gmail", "v1", credentials=delegated, cache_discovery=False)

    def _send_blocking(self, message: MailMessage) -> str:
        raw = base64.urlsafe_b64encode(build_mime_message(message).as_bytes()).decode("utf-8")
        response = self._client().users().messages().send(userId="me", body={"raw": raw}).execute()
        return str(response.get("id") or "")

    async def send(self, message: MailMessage) -> str:
        if not self.credentials_path:
            raise DispatchError(detail="Missing service account credentials for Gmail.")
        if not self.sender_email:
            raise DispatchError(detail="Gmail sender address (EMAIL_USER) is not configured.")
        return await anyio.to_thread.run_sync(self._send_blocking, message)


def build_transport(settings: Settings) -> MailTransport:
    if settings.mail_transport == "gmail_api":
        return GmailApiTransport(
            credentials_path=settings.google_application_credentials,
            sender_email=settings.email_user,
        )
    return SmtpTransport(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.email_user,
        password=settings.email_pass,
        timeout=settings.smtp_timeout_seconds,
    )
