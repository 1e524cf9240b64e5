"""Outbound mail capability for signer links."""

from dataclasses import dataclass
from typing import Protocol

from signdesk.core.logging import LoggerMixin


class Mailer(Protocol):
    """Protocol for sending signer links to clients."""

    async def send_signer_link(self, to: str, link: str, agreement_title: str) -> None:
        ...


class LogMailer(LoggerMixin):
    """Writes the would-be email as a structured log line."""

    async def send_signer_link(self, to: str, link: str, agreement_title: str) -> None:
        self.logger.info(
            "signer_link_sent",
            to=to,
            link=link,
            agreement_title=agreement_title,
        )


@dataclass(frozen=True)
class SentMessage:
    to: str
    link: str
    agreement_title: str


class RecordingMailer:
    """Keeps every message in memory; used by tests."""

    def __init__(self) -> None:
        self.sent: list[SentMessage] = []

    async def send_signer_link(self, to: str, link: str, agreement_title: str) -> None:
        self.sent.append(SentMessage(to=to, link=link, agreement_title=agreement_title))
