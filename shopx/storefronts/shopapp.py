"""Playwright page automation for shop.app.

Searches through the results URL, reads product cards, and drives the
product page's buy-now control. Selectors and timings come from the
[storefront] and [browser] sections of config.toml.
"""

from __future__ import annotations

import asyncio
from urllib.parse import quote_plus

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from shopx.core.browser import create_context, launch_browser
from shopx.core.config import Config, load_config
from shopx.core.models import Candidate
from shopx.storefronts.base import PageAutomation


class ShopAppPage(PageAutomation):
    """Page automation backend for https://shop.app.

    Usage:
        async with ShopAppPage() as page:
            await page.search("white t shirt")
            candidates = await page.extract_candidates()
    """

    def __init__(self, config: Config | None = None, headless: bool | None = None):
        self.config = config or load_config()
        self.storefront = self.config.storefront
        self.headless = headless
        self.checkout_identifiers = list(self.storefront.checkout_identifiers)
        self.product_path_pattern = self.storefront.product_path_pattern

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Page not initialized. Call open() first.")
        return self._page

    async def open(self) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await launch_browser(self._playwright, self.config, headless=self.headless)
        self._context = await create_context(self._browser, self.config)
        self._page = await self._context.new_page()
        print("[ShopApp] Browser session opened")

    async def close(self) -> None:
        for name, resource in (("context", self._context), ("browser", self._browser)):
            if resource is None:
                continue
            try:
                await resource.close()
            except PlaywrightError as e:
                print(f"[ShopApp] Error closing {name}: {e}")

        if self._playwright is not None:
            await self._playwright.stop()

        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None

    async def _settle(self) -> None:
        await self.page.wait_for_load_state("load")
        await asyncio.sleep(self.storefront.settle_seconds)

    async def navigate(self, url: str) -> None:
        await self.page.goto(url)
        await self._settle()

    async def dismiss_popups(self) -> int:
        """Close overlays that block the results grid.

        Returns:
            Number of close buttons clicked
        """
        page = self.page
        await page.keyboard.press("Escape")

        dismissed = 0
        for selector in self.storefront.popup_close_selectors:
            for button in await page.query_selector_all(selector):
                try:
                    if await button.is_visible():
                        await button.click(timeout=1000)
                        dismissed += 1
                except PlaywrightError as e:
                    print(f"[ShopApp] Could not click popup close button {selector}: {e}")

        if dismissed:
            print(f"[ShopApp] Dismissed {dismissed} popup(s)")
        return dismissed

    async def search(self, query: str) -> None:
        if self._page is not None and self._page.url.startswith(self.storefront.base_url):
            await self.dismiss_popups()

        path = self.storefront.search_path.format(query=quote_plus(query))
        url = f"{self.storefront.base_url.rstrip('/')}{path}"
        print(f"[ShopApp] Searching: {url}")
        await self.navigate(url)
        await self.dismiss_popups()

    async def _card_text(self, card, selector: str) -> str | None:
        element = await card.query_selector(selector)
        if element is None:
            return None
        return await element.text_content()

    async def extract_candidates(self) -> list[Candidate]:
        storefront = self.storefront
        cards = await self.page.query_selector_all(storefront.product_card_selector)

        candidates = []
        for card in cards:
            try:
                link_element = await card.query_selector(storefront.link_selector)
                href = await link_element.get_attribute("href") if link_element else None

                candidate = Candidate.from_listing(
                    title=await self._card_text(card, storefront.title_selector),
                    href=href,
                    base_url=storefront.base_url,
                    brand=await self._card_text(card, storefront.brand_selector),
                    price=await self._card_text(card, storefront.price_selector),
                    rating_text=await self._card_text(card, storefront.rating_selector),
                )
            except PlaywrightError as e:
                print(f"[ShopApp] Skipping product card: {e}")
                continue

            if candidate is not None:
                candidates.append(candidate)

        print(f"[ShopApp] Extracted {len(candidates)} products from {len(cards)} cards")
        return candidates

    async def activate_by_title(self, title: str) -> bool:
        storefront = self.storefront

        # Element handles from extraction are stale after any navigation
        for card in await self.page.query_selector_all(storefront.product_card_selector):
            card_title = await self._card_text(card, storefront.title_selector)
            if card_title is None or card_title.strip() != title:
                continue

            link_element = await card.query_selector(storefront.link_selector)
            if link_element is None:
                continue

            await link_element.click()
            await self._settle()
            print(f"[ShopApp] Opened product: {title}")
            return True

        return False

    async def locate_and_click(self, identifiers: list[str]) -> bool:
        for selector in identifiers:
            try:
                element = await self.page.wait_for_selector(
                    selector, timeout=self.storefront.control_timeout_ms, state="visible"
                )
            except PlaywrightTimeoutError:
                print(f"[ShopApp] No match for {selector}")
                continue

            if element is None:
                continue

            await element.click()
            await self._settle()
            print(f"[ShopApp] Clicked {selector}")
            return True

        return False

    async def screenshot(self) -> bytes:
        return await self.page.screenshot(type="png", full_page=True)

    async def current_location(self) -> str:
        return self.page.url
