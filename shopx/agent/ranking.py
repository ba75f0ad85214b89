"""LLM-assisted ranking of retrieved candidates."""

from __future__ import annotations

import re

from shopx.core.config import Config
from shopx.core.errors import LabelMismatchError, RetryExhaustedError
from shopx.core.llm import CompletionService
from shopx.core.models import Candidate
from shopx.core.notify import NotificationChannel
from shopx.core.retry import RetrySupervisor

# "1.", "2)", "-", "*", "•" list markers models like to prepend
_LIST_MARKER_RE = re.compile(r"^\s*(?:\d+\s*[.):]|[-*•])\s*")


def completion_lines(text: str) -> list[str]:
    """Non-empty, trimmed lines of a completion with list markers removed."""
    lines = []
    for raw in text.splitlines():
        line = _LIST_MARKER_RE.sub("", raw.strip()).strip()
        if line:
            lines.append(line)
    return lines


def match_titles(lines: list[str], candidates: list[Candidate], limit: int = 5) -> list[Candidate]:
    """Resolve returned title lines to retrieved candidates.

    A line matches a candidate when either lowercased string contains the
    other. Each candidate is picked at most once, the result never exceeds
    ``limit``, and unmatched lines are skipped rather than padded.
    """
    selected: list[Candidate] = []
    for line in lines:
        if len(selected) >= limit:
            break
        needle = line.lower()
        for candidate in candidates:
            if any(candidate is chosen for chosen in selected):
                continue
            title = candidate.title.lower()
            if needle in title or title in needle:
                selected.append(candidate)
                break
    return selected


class RankingSelector:
    """Narrows retrieved candidates to a short, ordered selection."""

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
        self.limit = config.orchestrator.max_ranked

    async def rank(self, candidates: list[Candidate], user_prompt: str) -> list[Candidate]:
        """Pick up to ``limit`` candidates in preference order.

        A response naming none of the candidates counts as a failed attempt.
        Once attempts run out the first candidates in retrieval order are
        used instead.
        """
        await self.channel.send_message(f"Picking best items from {len(candidates)} products")

        prompt = self.config.load_prompt(
            "rank_candidates",
            count=self.limit,
            user_prompt=user_prompt,
            products="\n".join(c.summary_line() for c in candidates),
        )

        async def _rank():
            response = await self.completion.complete(prompt)
            selection = match_titles(completion_lines(response), candidates, self.limit)
            if not selection:
                raise ValueError("Ranking response named none of the retrieved products")
            return selection

        try:
            selection = await self.supervisor.execute("Product ranking", _rank)
        except RetryExhaustedError as e:
            await self.channel.send_message(f"Could not rank the results, showing the first ones instead ({e})")
            return candidates[: self.limit]

        print(f"[Ranking] Selected {len(selection)} of {len(candidates)} candidates")
        return selection

    async def to_readable_labels(self, selection: list[Candidate]) -> list[str]:
        """Short human-friendly labels, one per selected candidate, same order.

        Raises:
            LabelMismatchError: If the labels cannot be aligned 1:1
            RetryExhaustedError: If the completion service is unavailable
        """
        prompt = self.config.load_prompt(
            "readable_labels",
            count=len(selection),
            titles="\n".join(c.title for c in selection),
        )
        response = await self.supervisor.execute("Label simplification", lambda: self.completion.complete(prompt))

        labels = completion_lines(response)
        if len(labels) != len(selection):
            raise LabelMismatchError(f"Expected {len(selection)} labels, got {len(labels)}")
        return labels
