"""Human-in-the-loop selection."""

from __future__ import annotations

import re

from shopx.core.config import Config
from shopx.core.errors import RetryExhaustedError
from shopx.core.llm import CompletionService
from shopx.core.models import Candidate
from shopx.core.notify import NotificationChannel
from shopx.core.retry import RetrySupervisor

_INTEGER_RE = re.compile(r"-?\d+")


def parse_index(text: str, count: int) -> int:
    """1-based index from a completion, defaulting to 1.

    The first integer in ``text`` is used when it lies in ``[1, count]``;
    anything else (no integer, zero, negative, out of range) maps to 1.
    """
    match = _INTEGER_RE.search(text or "")
    if match is None:
        return 1
    index = int(match.group(0))
    if 1 <= index <= count:
        return index
    return 1


class InteractiveChooser:
    """Presents the ranked selection and maps the human's answer to one item.

    The wait for the human has no timeout. Resolution is total: whatever the
    human types, exactly one candidate comes back.
    """

    def __init__(
        self,
        completion: CompletionService,
        supervisor: RetrySupervisor,
        channel: NotificationChannel,
        config: Config,
    ):
        self.completion = completion
        self.supervisor = supervisor
        self.channel = channel
        self.config = config

    async def present(self, labels: list[str]) -> str:
        return await self.channel.send_options(labels)

    async def resolve_index(self, selection: list[Candidate], response: str) -> int:
        prompt = self.config.load_prompt(
            "resolve_choice",
            count=len(selection),
            response=response,
            products="\n".join(f"{i}. {c.title}" for i, c in enumerate(selection, 1)),
        )

        try:
            answer = await self.supervisor.execute("Choice resolution", lambda: self.completion.complete(prompt))
        except RetryExhaustedError as e:
            print(f"[Chooser] {e}; defaulting to the first option")
            return 1

        return parse_index(answer, len(selection))

    async def resolve_choice(self, selection: list[Candidate], response: str) -> Candidate:
        if not selection:
            raise ValueError("Cannot resolve a choice from an empty selection")
        index = await self.resolve_index(selection, response)
        return selection[index - 1]

    async def choose(self, selection: list[Candidate], labels: list[str]) -> Candidate:
        response = await self.present(labels)
        print(f"[Chooser] Human answered: {response!r}")
        return await self.resolve_choice(selection, response)
