"""shopx: a natural-language shopping agent that drives a storefront to checkout."""

__version__ = "0.1.0"
