"""SMTP e-mail delivery.

``EmailSender.send_email`` sends plain-text mail through an SMTP relay,
retrying up to 3 times with exponential backoff.  The ``email``,
``system`` hook sees every message first and may rewrite or swallow it.

``EmailNotifyHandler`` is the default handler for the ``email``
notification method.

Safety: recipient addresses are never logged.
"""
from __future__ import annotations

import html
import logging
import re
import smtplib
import textwrap
import time
from email.header import Header
from email.utils import parseaddr
from typing import Any
from urllib.parse import urlparse

from sqlalchemy.orm import object_session

from elgg.core.exceptions import NotificationError
from elgg.core.settings import Settings
from elgg.db.models import User
from elgg.entities.service import get_default_site
from elgg.events import HookRegistry

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_BACKOFF_BASE = 1  # seconds: 1, 2, 4
_WRAP_WIDTH = 75

DEFAULT_HEADERS: dict[str, str] = {
    "Content-Type": "text/plain; charset=UTF-8; format=flowed",
    "MIME-Version": "1.0",
    "Content-Transfer-Encoding": "8bit",
}

_LINE_BREAKS = re.compile(r"(\r\n|\r|\n)")
_TAG = re.compile(r"<[^>]*>")
_BR = re.compile(r"(?i)<br\s*/?>")


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def format_subject(subject: str) -> str:
    """Single line, entities decoded, RFC 2047 encoded when not ASCII."""
    subject = _LINE_BREAKS.sub(" ", subject)
    subject = html.unescape(subject)
    if subject.isascii():
        return subject
    return Header(subject, "utf-8").encode()


def _wordwrap(text: str, width: int = _WRAP_WIDTH) -> str:
    lines = []
    for line in text.split("\n"):
        if len(line) <= width:
            lines.append(line)
        else:
            lines.append(textwrap.fill(line, width=width, break_long_words=False, break_on_hyphens=False))
    return "\n".join(lines)


def format_body(body: str) -> str:
    """Plain text with unix line endings, wrapped at 75 columns."""
    body = html.unescape(body)
    body = _BR.sub("\n", body)
    body = _TAG.sub("", body)
    body = re.sub(r"\r\n|\r", "\n", body)
    if body.startswith("From"):
        body = ">" + body
    return _wordwrap(body)


# ---------------------------------------------------------------------------
# EmailSender
# ---------------------------------------------------------------------------

class EmailSender:
    """Send plain-text e-mail via SMTP."""

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int = 25,
        hooks: HookRegistry | None = None,
        broken_mta: bool = False,
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.hooks = hooks
        # Some MTAs mangle CRLF header endings
        self.header_eol = "\n" if broken_mta else "\r\n"

    def send_email(
        self,
        from_addr: str,
        to_addr: str,
        subject: str,
        body: str,
        params: dict[str, Any] | None = None,
    ) -> bool:
        """Send one message; ``from_addr``/``to_addr`` may be ``"name <email>"``."""
        if not from_addr:
            raise NotificationError("Missing a required parameter, 'from'")
        if not to_addr:
            raise NotificationError("Missing a required parameter, 'to'")

        headers = dict(DEFAULT_HEADERS)
        mail_params = {
            "to": to_addr,
            "from": from_addr,
            "subject": subject,
            "body": body,
            "headers": headers,
            "params": params,
        }

        if self.hooks is not None:
            # Handlers may rewrite the message by returning a dict, or
            # report the outcome themselves by returning anything else.
            result = self.hooks.trigger("email", "system", mail_params, mail_params)
            if isinstance(result, dict):
                to_addr = result.get("to") or to_addr
                from_addr = result.get("from") or from_addr
                subject = result.get("subject", subject)
                body = result.get("body", body)
                headers = result.get("headers") or headers
            elif result is not None:
                return bool(result)

        raw = self._build_message(from_addr, to_addr, subject, body, headers)
        envelope_from = parseaddr(from_addr)[1] or from_addr
        envelope_to = parseaddr(to_addr)[1] or to_addr

        last_error: str | None = None
        for attempt in range(1, _MAX_RETRIES + 1):
            try:
                with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                    server.sendmail(envelope_from, [envelope_to], raw)
                logger.info("Delivered email (attempt %d)", attempt)
                return True
            except (smtplib.SMTPException, OSError) as exc:
                last_error = str(exc)
                logger.warning("SMTP error on attempt %d: %s", attempt, last_error)
                if attempt < _MAX_RETRIES:
                    time.sleep(_BACKOFF_BASE * (2 ** (attempt - 1)))

        logger.error("Email delivery failed after %d attempts", _MAX_RETRIES)
        return False

    def _build_message(
        self,
        from_addr: str,
        to_addr: str,
        subject: str,
        body: str,
        headers: dict[str, str],
    ) -> bytes:
        eol = self.header_eol
        lines = [f"From: {from_addr}", f"To: {to_addr}", f"Subject: {format_subject(subject)}"]
        lines.extend(f"{name}: {value}" for name, value in headers.items())
        text = eol.join(lines) + eol + eol + format_body(body).replace("\n", eol)
        return text.encode("utf-8")


# ---------------------------------------------------------------------------
# Notification handler
# ---------------------------------------------------------------------------

class EmailNotifyHandler:
    """Deliver a notification to a user's e-mail address."""

    def __init__(self, sender: EmailSender, settings: Settings) -> None:
        self.sender = sender
        self.settings = settings

    def __call__(self, from_entity, to_entity, subject: str, message: str, params: dict | None = None) -> bool:
        if from_entity is None:
            raise NotificationError("Missing a required parameter, 'from'")
        if to_entity is None:
            raise NotificationError("Missing a required parameter, 'to'")
        if not getattr(to_entity, "email", None):
            raise NotificationError(f"Could not get the email address for GUID:{to_entity.guid}")

        return self.sender.send_email(self.from_address(from_entity), to_entity.email, subject, message)

    def from_address(self, from_entity) -> str:
        """Sender's address unless it is a user, then the site's, then noreply."""
        sender_email = getattr(from_entity, "email", None)
        if not isinstance(from_entity, User) and sender_email:
            return sender_email

        db = object_session(from_entity)
        site = get_default_site(db) if db is not None else None
        if site is not None and site.email:
            return site.email
        if self.settings.site_email:
            return self.settings.site_email

        site_url = site.url if site is not None else self.settings.site_url
        domain = urlparse(site_url).hostname or "localhost"
        return f"noreply@{domain}"
