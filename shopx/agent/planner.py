"""Query planning: turn a shopping request into a storefront search string."""

from __future__ import annotations

from shopx.core.config import Config
from shopx.core.errors import RetryExhaustedError
from shopx.core.llm import CompletionService
from shopx.core.notify import NotificationChannel
from shopx.core.retry import RetrySupervisor

_QUOTES = "\"'`"


class QueryPlanner:
    """Asks the completion service for a short search query.

    Search is best-effort, so when the completion service cannot be reached
    the user's own words are used as the query.
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

    async def plan(self, user_prompt: str) -> str:
        prompt = self.config.load_prompt("plan_query", user_prompt=user_prompt)

        try:
            response = await self.supervisor.execute("Query planning", lambda: self.completion.complete(prompt))
        except RetryExhaustedError as e:
            await self.channel.send_message(f"Could not plan a search query, searching for your request as written ({e})")
            return user_prompt

        query = clean_query(response)
        return query or user_prompt


def clean_query(text: str) -> str:
    """First non-empty line of a completion, without surrounding quotes."""
    for line in text.splitlines():
        line = line.strip().strip(_QUOTES).strip()
        if line:
            return line
    return ""
