"""Browser configuration and creation utilities.

All settings are loaded from config.toml via the config module; proxy
credentials come from the environment.
"""

import os
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright

from shopx.core.config import Config, get_stealth_args, load_config


def get_proxy_config() -> Optional[dict]:
    """Get proxy configuration from environment variables.

    Returns:
        dict with server, username, password keys or None if not configured.
    """
    proxy_server = os.environ.get("PROXY_SERVER")
    proxy_username = os.environ.get("PROXY_USERNAME")
    proxy_password = os.environ.get("PROXY_PASSWORD")

    if not all([proxy_server, proxy_username, proxy_password]):
        return None

    return {"server": proxy_server, "username": proxy_username, "password": proxy_password}


async def launch_browser(playwright: Playwright, config: Config | None = None, headless: bool | None = None) -> Browser:
    """Launch Chromium configured for storefront automation.

    Args:
        playwright: Started Playwright instance
        config: Config instance (uses load_config() if None)
        headless: Overrides the configured headless mode

    Returns:
        Launched Playwright browser
    """
    if config is None:
        config = load_config()
    if headless is None:
        headless = config.browser.headless

    launch_kwargs = {
        "headless": headless,
        "args": get_stealth_args(config),
    }

    if config.browser.use_proxy:
        proxy_config = get_proxy_config()
        if proxy_config:
            launch_kwargs["proxy"] = proxy_config
        else:
            print("[Browser] use_proxy is set but PROXY_* variables are missing, launching without proxy")

    return await playwright.chromium.launch(**launch_kwargs)


async def create_context(browser: Browser, config: Config | None = None) -> BrowserContext:
    """Create a browser context with viewport, user agent, and resource blocking."""
    if config is None:
        config = load_config()

    context = await browser.new_context(
        user_agent=config.browser.user_agent,
        viewport={"width": config.browser.viewport_width, "height": config.browser.viewport_height},
        extra_http_headers={"Accept-Language": config.browser.accept_language},
    )
    context.set_default_navigation_timeout(config.browser.timeout_navigate_to_url * 1000)

    blocked = set(config.browser.blocked_resource_types)
    if blocked:

        async def _block(route):
            if route.request.resource_type in blocked:
                await route.abort()
            else:
                await route.continue_()

        await context.route("**/*", _block)

    return context
