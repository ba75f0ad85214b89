"""Completion service backends and their factory.

Supports multiple providers:
- OpenRouter (direct chat-completions HTTP calls via httpx)
- OpenAI (ChatOpenAI from langchain_openai)
- Groq (ChatGroq from langchain_groq)

Usage:
    from shopx.core.llm import create_completion_service

    completion = create_completion_service(load_config().llm)
    text = await completion.complete("Convert this request into a search query: ...")
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any

import httpx
from langchain_core.messages import HumanMessage

from shopx.core.config import LLMConfig

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class CompletionService(ABC):
    """Text-in/text-out language model capability."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Return the model's completion for a single user prompt."""

    async def close(self) -> None:
        """Release any held connections."""


class ChatModelCompletionService(CompletionService):
    """Completion service backed by a LangChain chat model."""

    def __init__(self, llm: Any):
        self.llm = llm

    async def complete(self, prompt: str) -> str:
        response = await self.llm.ainvoke([HumanMessage(content=prompt)])
        return _content_text(response.content)


class OpenRouterCompletionService(CompletionService):
    """Completion service calling the OpenRouter chat-completions API directly.

    Usage:
        async with OpenRouterCompletionService(api_key, model="openai/gpt-oss-120b") as completion:
            text = await completion.complete("...")
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = OPENROUTER_BASE_URL,
        max_tokens: int = 1500,
        temperature: float = 0.0,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._closed = False

    async def __aenter__(self) -> "OpenRouterCompletionService":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "shopx agent",
        }

    async def complete(self, prompt: str) -> str:
        response = await self._client.post(
            f"{self.base_url}/chat/completions",
            headers=self._get_headers(),
            json={
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
            },
        )
        response.raise_for_status()
        data = response.json()

        choices = data.get("choices") or []
        if not choices:
            raise ValueError(f"Completion response had no choices: {data.get('error', data)}")
        return _content_text(choices[0].get("message", {}).get("content"))


def _content_text(content: Any) -> str:
    """Flatten message content (plain string or content blocks) to text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content.strip()
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts).strip()


def _resolve_api_key(llm_config: LLMConfig) -> str | None:
    if not llm_config.api_key_env:
        return None
    api_key = os.environ.get(llm_config.api_key_env)
    if not api_key:
        raise ValueError(f"API key not found. Set the {llm_config.api_key_env} environment variable.")
    return api_key


def create_chat_model(llm_config: LLMConfig):
    """Create a LangChain chat model from config.

    Args:
        llm_config: LLM configuration ("openai" or "groq" provider)

    Returns:
        Chat model instance supporting ``ainvoke``

    Raises:
        ValueError: If provider is unknown or API key is missing
    """
    api_key = _resolve_api_key(llm_config)
    provider = llm_config.provider.lower()

    llm_kwargs: dict[str, Any] = {
        "model": llm_config.model,
        "temperature": llm_config.temperature,
        "max_tokens": llm_config.max_tokens,
    }
    if api_key:
        llm_kwargs["api_key"] = api_key

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        if llm_config.base_url and llm_config.base_url != OPENROUTER_BASE_URL:
            llm_kwargs["base_url"] = llm_config.base_url
        return ChatOpenAI(**llm_kwargs)

    elif provider == "groq":
        from langchain_groq import ChatGroq

        return ChatGroq(**llm_kwargs)

    raise ValueError(f"Unknown chat model provider: {provider}. Supported providers: openai, groq")


def create_completion_service(llm_config: LLMConfig) -> CompletionService:
    """Create the completion service selected by ``llm_config.provider``."""
    provider = llm_config.provider.lower()

    if provider == "openrouter":
        api_key = _resolve_api_key(llm_config)
        return OpenRouterCompletionService(
            api_key=api_key or "",
            model=llm_config.model,
            base_url=llm_config.base_url or OPENROUTER_BASE_URL,
            max_tokens=llm_config.max_tokens,
            temperature=llm_config.temperature,
            timeout=llm_config.timeout,
        )

    return ChatModelCompletionService(create_chat_model(llm_config))
