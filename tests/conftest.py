"""Shared fakes for the page automation, completion, and notification capabilities."""

import pytest

from shopx.core.config import Config, OrchestratorConfig, RetryConfig
from shopx.core.llm import CompletionService
from shopx.core.models import Candidate
from shopx.core.notify import NotificationChannel
from shopx.core.retry import RetrySupervisor
from shopx.storefronts.base import PageAutomation

BASE_URL = "https://shop.example"
PNG = b"\x89PNG\r\n\x1a\nfake-checkout"

# Phrase that identifies each prompt template
PROMPT_ROUTES = {
    "plan_query": "Convert this shopping request",
    "rank_candidates": "best matches for",
    "readable_labels": "Rewrite each product title",
    "resolve_choice": "Always return an integer",
}


class FakeChannel(NotificationChannel):
    """Records everything pushed to the UI and answers option prompts from a script."""

    def __init__(self, answers=None, on_options=None):
        self.messages = []
        self.images = []
        self.option_calls = []
        self._answers = list(answers or ["1"])
        self._on_options = on_options

    @property
    def texts(self):
        return [text for text, _ in self.messages]

    async def send_message(self, text, detail_lines=None):
        self.messages.append((text, detail_lines))

    async def send_image(self, image):
        self.images.append(image)

    async def send_options(self, labels):
        self.option_calls.append(list(labels))
        if self._on_options:
            self._on_options(labels)
        return self._answers.pop(0) if self._answers else ""


class FakeCompletion(CompletionService):
    """Completion service answering by prompt template.

    Each response may be a string, an exception instance to raise, or a
    callable taking the prompt.
    """

    def __init__(self, **responses):
        self.responses = responses
        self.prompts = []
        self.closed = False

    async def complete(self, prompt):
        route = next((name for name, phrase in PROMPT_ROUTES.items() if phrase in prompt), None)
        if route is None:
            raise AssertionError(f"Unexpected prompt: {prompt[:80]!r}")
        self.prompts.append((route, prompt))

        response = self.responses.get(route, "")
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(prompt)
        return response

    async def close(self):
        self.closed = True

    def calls(self, route):
        return [prompt for name, prompt in self.prompts if name == route]


class FakePage(PageAutomation):
    """In-memory storefront.

    Args:
        candidates: Products shown on every results page
        empty_extractions: Number of initial extractions that find nothing
        checkout_failures: Number of initial checkout clicks that find no control
        land_on_product: Whether opening a product moves to its link
    """

    checkout_identifiers = ['[data-testid="buy-now-btn"]', 'button:has-text("Buy now")']
    product_path_pattern = r"^/products/"

    def __init__(self, candidates=None, empty_extractions=0, checkout_failures=0, land_on_product=True, fail_open=False):
        self.candidates = list(candidates or [])
        self.empty_extractions = empty_extractions
        self.checkout_failures = checkout_failures
        self.land_on_product = land_on_product
        self.fail_open = fail_open

        self.location = "about:blank"
        self.calls = []
        self.opened = False
        self.closed = False
        self.extract_count = 0
        self.checkout_clicks = 0
        self.activated = []

    async def open(self):
        self.calls.append("open")
        if self.fail_open:
            raise RuntimeError("browser failed to launch")
        self.opened = True

    async def close(self):
        self.calls.append("close")
        self.closed = True

    async def navigate(self, url):
        self.calls.append(("navigate", url))
        self.location = url

    async def search(self, query):
        self.calls.append(("search", query))
        self.location = f"{BASE_URL}/search?q={query.replace(' ', '+')}"

    async def extract_candidates(self):
        self.calls.append("extract")
        self.extract_count += 1
        if self.extract_count <= self.empty_extractions:
            return []
        return list(self.candidates)

    async def activate_by_title(self, title):
        self.calls.append(("activate", title))
        for candidate in self.candidates:
            if candidate.title == title:
                self.activated.append(title)
                if self.land_on_product:
                    self.location = candidate.link
                return True
        return False

    async def locate_and_click(self, identifiers):
        self.calls.append(("click", tuple(identifiers)))
        self.checkout_clicks += 1
        if self.checkout_clicks <= self.checkout_failures:
            return False
        self.location = f"{BASE_URL}/checkouts/c/abc123"
        return True

    async def screenshot(self):
        self.calls.append("screenshot")
        return PNG

    async def current_location(self):
        return self.location


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def make_candidates():
    return [
        Candidate("Classic White Crew Neck T-Shirt", "Hanes", "$12.00", 4, f"{BASE_URL}/products/classic-white-crew"),
        Candidate("Organic Cotton Tee - White", "Pact", "$25.00", 5, f"{BASE_URL}/products/organic-cotton-tee"),
        Candidate("Heavyweight Pocket Tee", "Carhartt", "$22.99", 4, f"{BASE_URL}/products/heavyweight-pocket-tee"),
        Candidate("Black Graphic T-Shirt", "Urban Outfitters", "$29.00", 3, f"{BASE_URL}/products/black-graphic"),
        Candidate("Slim Fit V-Neck White", "Uniqlo", "$14.90", 4, f"{BASE_URL}/products/slim-fit-v-neck"),
        Candidate("Linen Button-Up Shirt", "J.Crew", "$59.50", 0, f"{BASE_URL}/products/linen-button-up"),
    ]


@pytest.fixture
def candidates():
    return make_candidates()


@pytest.fixture
def config():
    return Config(
        retry=RetryConfig(max_attempts=3, base_delay=0, attempt_timeout=None),
        orchestrator=OrchestratorConfig(max_ranked=5, simplify_labels=True, checkout_attempts=3, max_recovery_cycles=1),
    )


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def supervisor(channel, sleeps):
    return RetrySupervisor(channel, max_attempts=3, base_delay=0, sleep=sleeps)
