"""LLM package — chat-completion providers and reply schemas."""

from factcheck.llm.providers import (
    TASK_CLASSIFY,
    TASK_VERIFY,
    ChatProvider,
    OllamaProvider,
    OpenAIProvider,
    OpenRouterProvider,
    ProviderChain,
    build_provider_chain,
)
from factcheck.llm.schemas import (
    CitationCheckResponse,
    ClassificationResponse,
    RelevanceResponse,
    parse_response,
)

__all__ = [
    "TASK_CLASSIFY",
    "TASK_VERIFY",
    "ChatProvider",
    "OllamaProvider",
    "OpenAIProvider",
    "OpenRouterProvider",
    "ProviderChain",
    "build_provider_chain",
    "CitationCheckResponse",
    "ClassificationResponse",
    "RelevanceResponse",
    "parse_response",
]
