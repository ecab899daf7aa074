"""Abstract base for all provider adapters."""

from abc import ABC, abstractmethod

from config.config_loader import ProviderConfig

# HTTP statuses worth another attempt after a backoff.
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class ProviderError(Exception):
    """Raised when a provider call fails.

    status_code is None for transport faults (timeout, connection refused),
    otherwise the HTTP status returned by the provider. Pass retryable=False
    for local failures that another attempt cannot fix.
    """

    def __init__(
        self,
        provider_name: str,
        message: str,
        status_code: int | None = None,
        retryable: bool | None = None,
    ) -> None:
        self.provider_name = provider_name
        self.status_code = status_code
        self._retryable = retryable
        super().__init__(f"[{provider_name}] {message}")

    @property
    def retryable(self) -> bool:
        if self._retryable is not None:
            return self._retryable
        return self.status_code is None or self.status_code in RETRYABLE_STATUSES


class ProviderAdapter(ABC):
    """Translates generic generation requests to one provider's wire dialect.

    Adapters perform exactly one round trip per send() and never retry or sleep.
    """

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config

    def name(self) -> str:
        """Return the provider name from config (e.g. 'groq', 'gemini')."""
        return self._config.name

    @property
    def base_delay_sec(self) -> float:
        return self._config.base_delay_sec

    @abstractmethod
    def encode(self, model: str, prompt: str, temperature: float, max_tokens: int) -> dict:
        """Build the provider-specific request for a single user prompt."""
        ...

    @abstractmethod
    def decode(self, payload: dict) -> str | None:
        """Extract plain text from a provider response.

        Returns None when the response carries no usable text. Must not raise
        for any dict payload.
        """
        ...

    @abstractmethod
    async def send(self, request: dict) -> dict:
        """Send an encoded request and return the raw response as a dict.

        Raises:
            ProviderError: On HTTP error status, timeout or transport failure.
        """
        ...
