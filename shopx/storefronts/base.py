"""Page automation contract implemented by each storefront backend."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from urllib.parse import urlparse

from shopx.core.models import Candidate


class PageAutomation(ABC):
    """Drives one browser session against a storefront.

    A backend owns exactly one session between ``open()`` and ``close()``.
    ``close()`` must be safe to call even if ``open()`` failed part-way.

    Attributes:
        checkout_identifiers: Checkout control identifiers, tried in order
        product_path_pattern: Regex matched against the URL path of a
            product-detail page
    """

    checkout_identifiers: list[str] = []
    product_path_pattern: str = r"^/products/"

    async def __aenter__(self) -> "PageAutomation":
        await self.open()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    @abstractmethod
    async def open(self) -> None:
        """Acquire the browser session."""

    @abstractmethod
    async def close(self) -> None:
        """Release the browser session."""

    @abstractmethod
    async def navigate(self, url: str) -> None:
        """Load ``url`` and wait for the page to settle."""

    @abstractmethod
    async def search(self, query: str) -> None:
        """Run a storefront search and wait for results to settle."""

    @abstractmethod
    async def extract_candidates(self) -> list[Candidate]:
        """Read candidate records off the current results page."""

    @abstractmethod
    async def activate_by_title(self, title: str) -> bool:
        """Click the result whose title equals ``title``; False if absent."""

    @abstractmethod
    async def locate_and_click(self, identifiers: list[str]) -> bool:
        """Click the first element matching any identifier, in order."""

    @abstractmethod
    async def screenshot(self) -> bytes:
        """Full-page PNG of the current page."""

    @abstractmethod
    async def current_location(self) -> str:
        """URL of the current page."""

    def is_product_page_for(self, location: str, candidate: Candidate) -> bool:
        """Whether ``location`` is the product-detail page of ``candidate``.

        The location path must look like a product page and be the
        candidate's link path, or a sub-path of it (e.g. "/products/tee/reviews").
        Query strings and trailing slashes are ignored; a longer or shorter
        slug is a different product.
        """
        current_path = urlparse(location).path.rstrip("/")
        if not re.search(self.product_path_pattern, current_path):
            return False

        link_path = urlparse(candidate.link).path.rstrip("/")
        if not link_path:
            return False
        return current_path == link_path or current_path.startswith(link_path + "/")
