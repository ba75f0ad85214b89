"""Candidate retrieval through the page automation backend."""

from __future__ import annotations

from shopx.core.errors import EmptyExtractionError
from shopx.core.models import Candidate
from shopx.core.notify import NotificationChannel
from shopx.core.retry import RetrySupervisor
from shopx.storefronts.base import PageAutomation


class CandidateRetriever:
    """Runs the storefront search and reads candidates off the results page.

    An empty extraction is treated as a failure and retried, because it is
    far more often a layout or timing problem than a genuine lack of results.

    Attributes:
        results_location: URL of the results page after the last search, used
            by checkout recovery to return to the results context
    """

    def __init__(self, page: PageAutomation, supervisor: RetrySupervisor, channel: NotificationChannel):
        self.page = page
        self.supervisor = supervisor
        self.channel = channel
        self.results_location: str | None = None

    async def search(self, query: str) -> None:
        await self.channel.send_message(f"Searching for {query}")

        async def _search():
            await self.page.search(query)
            return await self.page.current_location()

        self.results_location = await self.supervisor.execute("Product search", _search)

    async def extract(self) -> list[Candidate]:
        await self.channel.send_message("Gathering items")

        async def _extract():
            candidates = await self.page.extract_candidates()
            if not candidates:
                raise EmptyExtractionError("No products found on the results page")
            return candidates

        candidates = await self.supervisor.execute("Product extraction", _extract)
        print(f"[Retriever] {len(candidates)} candidates")
        return candidates

    async def return_to_results(self) -> None:
        """Navigate back to the results page of the last search."""
        if not self.results_location:
            raise RuntimeError("No search has been run yet")
        location = self.results_location
        await self.supervisor.execute("Return to results", lambda: self.page.navigate(location))
