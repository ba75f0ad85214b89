"""Notification channel contract and the single-slot selection mailbox.

The notification channel is implemented by whatever front end hosts the agent.
The orchestrator pushes status text, detail lines, and images through it, and
awaits exactly one human answer per selection prompt.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from shopx.core.errors import SelectionPendingError


class NotificationChannel(ABC):
    """Duplex UI-facing messaging capability."""

    @abstractmethod
    async def send_message(self, text: str, detail_lines: list[str] | None = None) -> None:
        """Push a status message, optionally with detail lines."""

    @abstractmethod
    async def send_image(self, image: bytes) -> None:
        """Push a PNG image."""

    @abstractmethod
    async def send_options(self, labels: list[str]) -> str:
        """Present options and suspend until the human answers with free text."""


class SelectionMailbox:
    """Single-slot request/response channel for selection prompts.

    ``post`` opens the slot and returns a future; the UI side calls
    ``resolve`` with the next freeform submission. Posting while a request is
    outstanding raises ``SelectionPendingError``.

    Usage:
        mailbox = SelectionMailbox()
        future = mailbox.post(["Plain white tee", "Heavyweight tee"])
        ...
        mailbox.resolve("the second one")   # from the UI
        answer = await future
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[str] | None = None
        self._labels: list[str] = []

    @property
    def pending(self) -> bool:
        return self._future is not None and not self._future.done()

    @property
    def labels(self) -> list[str]:
        """Labels of the outstanding request (empty when none)."""
        return list(self._labels) if self.pending else []

    def post(self, labels: list[str]) -> asyncio.Future[str]:
        if self.pending:
            raise SelectionPendingError("A selection prompt is already awaiting an answer")

        self._labels = list(labels)
        self._future = asyncio.get_running_loop().create_future()
        return self._future

    def resolve(self, response: str) -> bool:
        """Answer the outstanding request.

        Returns:
            True if a request was waiting, False if the submission was not
            an answer to anything.
        """
        if not self.pending:
            return False

        future = self._future
        self._future = None
        self._labels = []
        future.set_result(response)
        return True
