"""Records produced and consumed by the transaction pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from urllib.parse import urljoin

_RATING_RE = re.compile(r"(\d+)")


@dataclass
class Candidate:
    """A purchasable item retrieved from a results page.

    Attributes:
        title: Product title, the identity key within a run
        brand: Brand name (may be empty)
        price: Price as displayed (e.g., "$24.00"), not parsed
        rating: Star rating, 0 when unknown
        link: Absolute product URL
    """

    title: str
    brand: str = ""
    price: str = ""
    rating: int = 0
    link: str = ""

    @classmethod
    def from_listing(
        cls,
        title: str | None,
        href: str | None,
        base_url: str,
        brand: str | None = None,
        price: str | None = None,
        rating_text: str | None = None,
    ) -> Optional["Candidate"]:
        """Build a candidate from raw text scraped off a product card.

        Returns None when the title or link is missing, so the card is
        dropped rather than producing a half-empty record.
        """
        title = (title or "").strip()
        href = (href or "").strip()
        if not title or not href:
            return None

        return cls(
            title=title,
            brand=(brand or "").strip(),
            price=(price or "").strip(),
            rating=parse_rating(rating_text),
            link=href if href.startswith("http") else urljoin(base_url, href),
        )

    def summary_line(self) -> str:
        """One-line description used in completion prompts."""
        return f"{self.title} - {self.brand} - {self.price}"


def parse_rating(text: str | None) -> int:
    """First integer in a star-rating text, or 0."""
    if not text:
        return 0
    match = _RATING_RE.search(text)
    return int(match.group(1)) if match else 0


class RunStage(str, Enum):
    """States of a single orchestrator run."""

    PLANNING = "Planning"
    SEARCHING = "Searching"
    EXTRACTING = "Extracting"
    RANKING = "Ranking"
    AWAITING_CHOICE = "AwaitingChoice"
    NAVIGATING = "Navigating"
    CHECKING_OUT = "CheckingOut"
    RECOVERY_RETRY = "RecoveryRetry"
    CONFIRMED = "Confirmed"
    FAILED = "Failed"


@dataclass(frozen=True)
class OrderOutcome:
    """Terminal state of a run, handed to the caller once.

    Attributes:
        success: Whether checkout was reached
        stage: Stage the run ended in (Confirmed, or the stage that failed)
        screenshot: PNG captured at the checkout page (success only)
        reason: Human-readable failure reason (failure only)
        chosen: The committed candidate, when one was chosen
        recovery_cycles: Number of checkout recovery cycles used
    """

    success: bool
    stage: RunStage
    screenshot: Optional[bytes] = None
    reason: Optional[str] = None
    chosen: Optional[Candidate] = None
    recovery_cycles: int = 0
    query: Optional[str] = None
    labels: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def confirmed(cls, screenshot: bytes, chosen: Candidate, recovery_cycles: int = 0, **kwargs) -> "OrderOutcome":
        return cls(
            success=True,
            stage=RunStage.CONFIRMED,
            screenshot=screenshot,
            chosen=chosen,
            recovery_cycles=recovery_cycles,
            **kwargs,
        )

    @classmethod
    def failed(cls, stage: RunStage, reason: str, **kwargs) -> "OrderOutcome":
        return cls(success=False, stage=stage, reason=reason, **kwargs)
