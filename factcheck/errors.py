"""Exception hierarchy shared by every pipeline stage."""

from __future__ import annotations


class FactCheckError(Exception):
    """Base class for all fact-checker errors."""


class ConfigurationError(FactCheckError):
    """A run cannot start, e.g. no LLM provider credential is configured."""


class ProviderError(FactCheckError):
    """A chat-completion call failed at the transport level.

    Attributes:
        provider: Name of the provider that failed.
        status_code: HTTP status returned by the provider, or ``None`` when
            the request never got a response.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str = "",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code

    def __str__(self) -> str:
        msg = super().__str__()
        if self.status_code is not None:
            msg = f"{self.status_code}: {msg}"
        if self.provider:
            msg = f"[{self.provider}] {msg}"
        return msg


class ProviderAuthError(ProviderError):
    """HTTP 401 — the API key was rejected."""


class ProviderModelNotFoundError(ProviderError):
    """HTTP 404 — the model identifier does not exist."""


class ProviderRateLimitError(ProviderError):
    """HTTP 429 — the provider is throttling requests."""


class ProviderServerError(ProviderError):
    """HTTP 5xx from the provider."""


class ResponseParseError(FactCheckError):
    """The model's reply did not match the expected JSON schema."""


class ContentUnavailableError(FactCheckError):
    """The page answered but no readable text could be obtained."""


class RunCancelledError(FactCheckError):
    """A run was cancelled at a batch boundary."""
