"""Configuration management for the shopx agent.

Provides centralized configuration loading from config.toml with type-safe
access via Pydantic models. Prompt templates are markdown files referenced
from the [prompts] section.
"""

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Pydantic Configuration Models
# =============================================================================


class AppConfig(BaseModel):
    """Application-level configuration."""

    name: str = "shopx-agent"


class StorefrontConfig(BaseModel):
    """Storefront backend settings.

    Selectors are CSS selectors understood by Playwright. Checkout identifiers
    are tried in order and the first match wins.
    """

    name: str = "shopapp"
    base_url: str = "https://shop.app"
    search_path: str = "/search?q={query}"
    product_path_pattern: str = r"^/products/"
    settle_seconds: float = 5.0
    product_card_selector: str = '[data-testid="product-card"]'
    title_selector: str = '[data-testid="product-title"]'
    brand_selector: str = "p[aria-label]"
    price_selector: str = '[data-testid="regularPrice"]'
    link_selector: str = 'a[data-testid="product-link-test-id"]'
    rating_selector: str = '[data-testid="review-stars"] p'
    checkout_identifiers: list[str] = Field(
        default_factory=lambda: [
            '[data-testid="buy-now-btn"]',
            'button:has-text("Buy now")',
            'button:has-text("Checkout")',
        ]
    )
    popup_close_selectors: list[str] = Field(
        default_factory=lambda: [
            'button[aria-label="Close"]',
            'button[aria-label="close"]',
            '[role="button"][aria-label="Close"]',
            '[role="button"][aria-label="close"]',
        ]
    )
    control_timeout_ms: int = 10000


class BrowserConfig(BaseModel):
    """Browser configuration."""

    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 720
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    accept_language: str = "en-US,en;q=0.9"
    stealth_args: list[str] = Field(
        default_factory=lambda: [
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-blink-features=AutomationControlled",
            "--disable-dev-shm-usage",
            "--disable-gpu",
            "--disable-extensions",
            "--disable-background-timer-throttling",
            "--disable-backgrounding-occluded-windows",
            "--disable-renderer-backgrounding",
        ]
    )
    blocked_resource_types: list[str] = Field(default_factory=lambda: ["media", "font"])
    use_proxy: bool = False
    # Navigation timeout in seconds
    timeout_navigate_to_url: int = 60


class LLMConfig(BaseModel):
    """Completion service configuration."""

    provider: str = "openrouter"
    model: str = "openai/gpt-oss-120b"
    temperature: float = 0.0
    max_tokens: int = 1500
    base_url: Optional[str] = "https://openrouter.ai/api/v1"
    api_key_env: Optional[str] = "OPENROUTER_API_KEY"
    timeout: float = 60.0


class RetryConfig(BaseModel):
    """Retry supervisor settings."""

    max_attempts: int = 3
    base_delay: float = 1.0
    # Per-attempt timeout in seconds, None disables it
    attempt_timeout: Optional[float] = 90.0


class OrchestratorConfig(BaseModel):
    """Pipeline settings."""

    max_ranked: int = 5
    simplify_labels: bool = True
    checkout_attempts: int = 3
    max_recovery_cycles: int = 1


class PromptsConfig(BaseModel):
    """Paths to prompt template files (markdown format)."""

    plan_query: str = "prompts/plan_query.md"
    rank_candidates: str = "prompts/rank_candidates.md"
    readable_labels: str = "prompts/readable_labels.md"
    resolve_choice: str = "prompts/resolve_choice.md"


class OutputConfig(BaseModel):
    """Where run artifacts are written."""

    screenshot_dir: str = "./screenshots"


class Config(BaseModel):
    """Root configuration model."""

    app: AppConfig = Field(default_factory=AppConfig)
    storefront: StorefrontConfig = Field(default_factory=StorefrontConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    prompts: PromptsConfig = Field(default_factory=PromptsConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def load_prompt(self, name: str, **kwargs) -> str:
        """Load and format a prompt template.

        Args:
            name: Prompt name (e.g., "plan_query", "rank_candidates")
            **kwargs: Template variables for string formatting

        Returns:
            Formatted prompt string
        """
        prompt_path = getattr(self.prompts, name, None)
        if not prompt_path:
            raise ValueError(f"Unknown prompt: {name}")

        base_paths = [
            Path.cwd(),
            Path(__file__).resolve().parent.parent,  # shopx package (bundled prompts)
        ]

        for base in base_paths:
            full_path = base / prompt_path
            if full_path.exists():
                content = full_path.read_text()
                if kwargs:
                    content = content.format(**kwargs)
                return content.strip()

        raise FileNotFoundError(f"Prompt file not found: {prompt_path}")


# =============================================================================
# Configuration Loading
# =============================================================================


def _find_config_file() -> Optional[Path]:
    """Find config.toml in standard locations."""
    search_paths = []
    env_path = os.environ.get("SHOPX_CONFIG")
    if env_path:
        search_paths.append(Path(env_path))
    search_paths += [
        Path.cwd() / "config.toml",
        Path(__file__).resolve().parent.parent.parent / "config.toml",  # Project root
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None


@lru_cache(maxsize=1)
def load_config() -> Config:
    """Load configuration from config.toml.

    Uses lru_cache to ensure config is only loaded once per process.

    Returns:
        Config instance with all settings
    """
    config_path = _find_config_file()

    if config_path:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        return Config.model_validate(data)

    return Config()


def get_stealth_args(config: Optional[Config] = None) -> list[str]:
    """Get browser stealth arguments with user agent.

    Args:
        config: Config instance (uses load_config() if None)

    Returns:
        List of browser arguments for stealth mode
    """
    if config is None:
        config = load_config()

    args = list(config.browser.stealth_args)
    args.append(f"--user-agent={config.browser.user_agent}")
    return args


def get_config() -> Config:
    """Get the loaded configuration (alias for load_config)."""
    return load_config()
