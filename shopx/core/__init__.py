"""Core utilities for the shopx agent.

This module provides centralized configuration, the notification channel
contract, the retry supervisor, and completion service backends used by the
transaction pipeline.
"""

from shopx.core.config import Config, get_config, get_stealth_args, load_config
from shopx.core.llm import CompletionService, create_completion_service
from shopx.core.notify import NotificationChannel, SelectionMailbox
from shopx.core.retry import RetrySupervisor

__all__ = [
    # Config utilities
    "Config",
    "load_config",
    "get_config",
    "get_stealth_args",
    # Capabilities
    "CompletionService",
    "create_completion_service",
    "NotificationChannel",
    "SelectionMailbox",
    # Retry
    "RetrySupervisor",
]
