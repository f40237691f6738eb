"""Outbound mail for registrants.

Two transports implement :class:`Notifier`. :class:`HttpMailNotifier` posts to
a JSON mail API using :mod:`httpx`. :class:`LogNotifier` only writes the
rendered message to the log and is used when no mail API is configured.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Tuple

import httpx

from regdesk.core.config import settings
from regdesk.services.errors import NotifierFailure

logger = logging.getLogger(__name__)


class TemplateKind(str, Enum):
    REGISTRATION_RECEIVED = "registration-received"
    ATTENDANCE_CODE = "attendance-code"


_TEMPLATES = {
    TemplateKind.REGISTRATION_RECEIVED: (
        "{event_name}: registration received",
        "Dear {full_name},\n\n"
        "We have received your registration for {event_name} ({lga}).\n"
        "Your submission is pending review. If you are selected you will "
        "receive a separate email with your attendance code.\n",
    ),
    TemplateKind.ATTENDANCE_CODE: (
        "{event_name}: your attendance code",
        "Dear {full_name},\n\n"
        "Congratulations, you have been selected to attend {event_name}.\n"
        "Your attendance code is: {code}\n\n"
        "Present this code at the venue. It is your only proof of acceptance.\n",
    ),
}


def render(address: str, kind: TemplateKind, data: Dict[str, Any]) -> Tuple[str, str]:
    """Return ``(subject, body)`` for ``kind``."""
    subject, body = _TEMPLATES[TemplateKind(kind)]
    values = {"event_name": settings.EVENT_NAME, **data}
    try:
        return subject.format(**values), body.format(**values)
    except KeyError as e:
        raise NotifierFailure(address, f"template {TemplateKind(kind).value} is missing {e}") from e


class Notifier(Protocol):
    def send(self, address: str, kind: TemplateKind, data: Dict[str, Any]) -> None:
        ...

    def close(self) -> None:
        ...


class HttpMailNotifier:
    """POST ``{from, to, subject, text}`` to a mail API with a bearer key."""

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        sender: str = "",
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.sender = sender
        self.client = client or httpx.Client(timeout=timeout)

    def send(self, address: str, kind: TemplateKind, data: Dict[str, Any]) -> None:
        subject, text = render(address, kind, data)
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        payload = {"from": self.sender, "to": address, "subject": subject, "text": text}
        try:
            response = self.client.post(self.api_url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NotifierFailure(address, f"mail API returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise NotifierFailure(address, f"{type(e).__name__}: {e}") from e
        logger.info(f"📧 Sent {TemplateKind(kind).value} to {address}")

    def close(self) -> None:
        self.client.close()


class LogNotifier:
    def send(self, address: str, kind: TemplateKind, data: Dict[str, Any]) -> None:
        subject, text = render(address, kind, data)
        logger.info(f"📧 [mail disabled] to={address} subject={subject!r}\n{text}")

    def close(self) -> None:
        pass


def build_notifier() -> Notifier:
    if settings.MAIL_API_URL:
        return HttpMailNotifier(
            settings.MAIL_API_URL,
            api_key=settings.MAIL_API_KEY,
            sender=settings.MAIL_FROM,
            timeout=settings.NOTIFIER_TIMEOUT_SECONDS,
        )
    logger.warning("MAIL_API_URL not set; notifications will only be logged")
    return LogNotifier()
