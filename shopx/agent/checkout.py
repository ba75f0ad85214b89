"""Navigation to the chosen product and checkout initiation.

Checkout stops at the storefront's checkout page; no payment is submitted.
A full-page screenshot of that page is the proof handed back to the user.
"""

from __future__ import annotations

from shopx.core.errors import CheckoutControlNotFoundError, CheckoutPreconditionError, ProductNotFoundError
from shopx.core.models import Candidate
from shopx.core.notify import NotificationChannel
from shopx.core.retry import RetrySupervisor
from shopx.storefronts.base import PageAutomation


class Navigator:
    """Opens a candidate's product page and activates the checkout control."""

    def __init__(
        self,
        page: PageAutomation,
        supervisor: RetrySupervisor,
        channel: NotificationChannel,
        checkout_attempts: int | None = None,
    ):
        self.page = page
        self.supervisor = supervisor
        self.channel = channel
        self.checkout_attempts = checkout_attempts

    async def open(self, candidate: Candidate) -> None:
        """Re-locate ``candidate`` by title on the results page and open it."""

        async def _open():
            if not await self.page.activate_by_title(candidate.title):
                raise ProductNotFoundError(candidate.title)

        await self.supervisor.execute("Open product", _open)

    async def check_product_page(self, candidate: Candidate) -> None:
        # Single attempt: a wrong page is a state error, not a timing one
        location = await self.supervisor.execute("Checkout precondition", self.page.current_location, max_attempts=1)
        if not self.page.is_product_page_for(location, candidate):
            raise CheckoutPreconditionError(
                f"Not on the product page for '{candidate.title}' (at {location}, expected {candidate.link})"
            )

    async def initiate_checkout(self, candidate: Candidate) -> bytes:
        """Activate the checkout control and capture the checkout page.

        Returns:
            PNG screenshot of the page reached

        Raises:
            CheckoutPreconditionError: If not on this candidate's product page
            RetryExhaustedError: If no checkout control could be activated
        """
        await self.check_product_page(candidate)
        await self.channel.send_message("Heading to checkout")

        identifiers = list(self.page.checkout_identifiers)

        async def _click():
            if not await self.page.locate_and_click(identifiers):
                raise CheckoutControlNotFoundError(f"No checkout control matched any of {identifiers}")

        await self.supervisor.execute("Checkout", _click, max_attempts=self.checkout_attempts)
        return await self.supervisor.execute("Checkout screenshot", self.page.screenshot)
