"""Chat-completion providers with ordered failover.

Provider priority is taken from ``settings.llm_providers``:

  * ``openai``     — OpenAI chat completions in JSON mode; needs OPENAI_API_KEY.
  * ``openrouter`` — OpenRouter (or the local ``/api/openrouter`` proxy);
                     needs OPENROUTER_API_KEY.
  * ``ollama``     — local model through LangChain's ``ChatOllama``; no key.

All providers share one interface:
``complete(messages, task=..., temperature=...) -> str`` returning the
assistant message text.  Failures raise a
:class:`~factcheck.errors.ProviderError` subclass describing the HTTP
condition.  :class:`ProviderChain` tries each provider in order and returns
the first successful completion.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from factcheck.config import Settings
from factcheck.errors import (
    ConfigurationError,
    ProviderAuthError,
    ProviderError,
    ProviderModelNotFoundError,
    ProviderRateLimitError,
    ProviderServerError,
)

Message = dict[str, str]

TASK_CLASSIFY = "classify"
TASK_VERIFY = "verify"


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class ChatProvider(ABC):
    """Abstract base class for a single chat-completion backend."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name."""

    @abstractmethod
    def complete(
        self,
        messages: list[Message],
        *,
        task: str = TASK_VERIFY,
        temperature: Optional[float] = None,
    ) -> str:
        """Return the assistant reply text.  Raises ``ProviderError`` on failure."""


# ---------------------------------------------------------------------------
# OpenAI-compatible REST adapter
# ---------------------------------------------------------------------------

def _error_message(response: httpx.Response) -> str:
    """Pull the provider-reported message out of an error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict):
        return str(err.get("message") or err)
    if err:
        return str(err)
    return response.reason_phrase


def raise_for_provider_status(response: httpx.Response, provider: str) -> None:
    """Translate a non-2xx provider response into a typed ``ProviderError``."""
    code = response.status_code
    if code < 400:
        return
    message = _error_message(response)
    if code == 401:
        raise ProviderAuthError(f"unauthorized: {message}", provider=provider, status_code=code)
    if code == 404:
        raise ProviderModelNotFoundError(
            f"model not found: {message}", provider=provider, status_code=code
        )
    if code == 429:
        raise ProviderRateLimitError(f"rate limited: {message}", provider=provider, status_code=code)
    if code >= 500:
        raise ProviderServerError(f"server error: {message}", provider=provider, status_code=code)
    raise ProviderError(message, provider=provider, status_code=code)


class OpenAICompatibleProvider(ChatProvider):
    """POST ``{base_url}/chat/completions`` and read ``choices[0].message.content``."""

    json_mode = False

    def __init__(
        self,
        api_key: str,
        base_url: str,
        models: dict[str, str],
        timeout: float = 60.0,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._models = models
        self._timeout = timeout
        self._headers = headers or {}

    def model_for(self, task: str) -> str:
        return self._models.get(task) or self._models[TASK_VERIFY]

    def _payload(
        self, messages: list[Message], task: str, temperature: Optional[float]
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"model": self.model_for(task), "messages": messages}
        if temperature is not None:
            payload["temperature"] = temperature
        if self.json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def complete(
        self,
        messages: list[Message],
        *,
        task: str = TASK_VERIFY,
        temperature: Optional[float] = None,
    ) -> str:
        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.post(
                    f"{self._base_url}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                        **self._headers,
                    },
                    json=self._payload(messages, task, temperature),
                )
        except httpx.HTTPError as exc:
            raise ProviderError(f"request failed: {exc}", provider=self.name) from exc

        raise_for_provider_status(response, self.name)

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderError(
                "malformed completion envelope", provider=self.name,
                status_code=response.status_code,
            ) from exc
        return content or ""


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI chat completions in JSON-object mode."""

    json_mode = True

    @property
    def name(self) -> str:
        return "OpenAI"


class OpenRouterProvider(OpenAICompatibleProvider):
    """OpenRouter, one model for every task."""

    @property
    def name(self) -> str:
        return "OpenRouter"


# ---------------------------------------------------------------------------
# Ollama via LangChain
# ---------------------------------------------------------------------------

class OllamaProvider(ChatProvider):
    """Local model served by Ollama, driven through ``langchain_ollama``."""

    def __init__(self, model: str, base_url: str) -> None:
        self._model = model
        self._base_url = base_url

    @property
    def name(self) -> str:
        return "Ollama"

    def _get_llm(self, temperature: Optional[float]) -> Any:
        from langchain_ollama import ChatOllama  # noqa: PLC0415

        return ChatOllama(
            model=self._model,
            base_url=self._base_url,
            temperature=0 if temperature is None else temperature,
            format="json",
        )

    def complete(
        self,
        messages: list[Message],
        *,
        task: str = TASK_VERIFY,
        temperature: Optional[float] = None,
    ) -> str:
        from langchain_core.messages import AIMessage, HumanMessage, SystemMessage  # noqa: PLC0415

        roles = {"system": SystemMessage, "user": HumanMessage, "assistant": AIMessage}
        lc_messages = [roles.get(m["role"], HumanMessage)(content=m["content"]) for m in messages]
        try:
            response = self._get_llm(temperature).invoke(lc_messages)
        except Exception as exc:  # noqa: BLE001
            raise ProviderError(f"invocation failed: {exc}", provider=self.name) from exc
        return response.content if hasattr(response, "content") else str(response)


# ---------------------------------------------------------------------------
# Provider chain
# ---------------------------------------------------------------------------

class ProviderChain:
    """Try providers in order; return the first successful completion."""

    def __init__(self, providers: list[ChatProvider]) -> None:
        if not providers:
            raise ConfigurationError("ProviderChain needs at least one provider.")
        self._providers = providers

    @property
    def providers(self) -> list[ChatProvider]:
        return list(self._providers)

    def complete(
        self,
        messages: list[Message],
        *,
        task: str = TASK_VERIFY,
        temperature: Optional[float] = None,
    ) -> str:
        errors: list[ProviderError] = []
        for provider in self._providers:
            try:
                return provider.complete(messages, task=task, temperature=temperature)
            except ProviderError as exc:
                print(f"[{provider.name}] {exc}; trying next provider.")
                errors.append(exc)
        raise errors[-1]


# ---------------------------------------------------------------------------
# Default chain factory
# ---------------------------------------------------------------------------

def build_provider_chain(settings: Settings) -> ProviderChain:
    """Build the chain in ``settings.llm_providers`` order.

    Keyed providers are skipped when their key is empty.

    Raises:
        ConfigurationError: If no provider is usable.
    """
    providers: list[ChatProvider] = []
    for name in settings.llm_providers:
        if name == "openai" and settings.openai_api_key:
            providers.append(
                OpenAIProvider(
                    api_key=settings.openai_api_key,
                    base_url=settings.openai_base_url,
                    models={
                        TASK_CLASSIFY: settings.openai_classify_model,
                        TASK_VERIFY: settings.openai_verify_model,
                    },
                    timeout=settings.llm_timeout,
                )
            )
        elif name == "openrouter" and settings.openrouter_api_key:
            providers.append(
                OpenRouterProvider(
                    api_key=settings.openrouter_api_key,
                    base_url=settings.openrouter_base_url,
                    models={TASK_VERIFY: settings.openrouter_model},
                    timeout=settings.llm_timeout,
                    headers={"HTTP-Referer": settings.app_url, "X-Title": settings.app_title},
                )
            )
        elif name == "ollama":
            providers.append(
                OllamaProvider(
                    model=settings.ollama_chat_model,
                    base_url=settings.ollama_base_url,
                )
            )

    if not providers:
        raise ConfigurationError(
            "No LLM provider configured. Set OPENAI_API_KEY or OPENROUTER_API_KEY, "
            "or add 'ollama' to LLM_PROVIDERS."
        )
    return ProviderChain(providers)
