"""Storefront page automation backends.

Backends are looked up by the name configured in [storefront].name, so the
orchestrator never depends on a particular site.
"""

from shopx.core.config import Config, load_config
from shopx.storefronts.base import PageAutomation

STOREFRONTS = {
    "shopapp": "shopx.storefronts.shopapp:ShopAppPage",
}


def create_page_automation(config: Config | None = None, name: str | None = None, **kwargs) -> PageAutomation:
    """Instantiate the page automation backend registered under ``name``.

    Args:
        config: Config instance (uses load_config() if None)
        name: Registry key; defaults to config.storefront.name
        **kwargs: Passed to the backend constructor

    Raises:
        ValueError: If no backend is registered under the name
    """
    import importlib

    if config is None:
        config = load_config()
    name = name or config.storefront.name

    target = STOREFRONTS.get(name)
    if target is None:
        raise ValueError(f"Unknown storefront: {name}. Available: {', '.join(sorted(STOREFRONTS))}")

    module_name, class_name = target.split(":")
    backend_cls = getattr(importlib.import_module(module_name), class_name)
    return backend_cls(config=config, **kwargs)


__all__ = ["PageAutomation", "STOREFRONTS", "create_page_automation"]
