"""Anthropic Claude adapter using anthropic SDK with native async."""

import asyncio
import logging
import os
import time

import anthropic as anthropic_sdk

from config.config_loader import ProviderConfig
from src.providers.base import ProviderAdapter, ProviderError

logger = logging.getLogger(__name__)


class AnthropicAdapter(ProviderAdapter):
    """Anthropic messages API via anthropic SDK."""

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = anthropic_sdk.AsyncAnthropic(api_key=api_key, max_retries=0)

    def encode(self, model: str, prompt: str, temperature: float, max_tokens: int) -> dict:
        return {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

    def decode(self, payload: dict) -> str | None:
        blocks = payload.get("content") or []
        text_blocks = [
            b["text"]
            for b in blocks
            if isinstance(b, dict) and b.get("type") == "text" and isinstance(b.get("text"), str)
        ]
        text = "\n".join(text_blocks).strip()
        return text or None

    async def send(self, request: dict) -> dict:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.messages.create(**request),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except anthropic_sdk.APIStatusError as exc:
            raise ProviderError(
                self._config.name, f"HTTP {exc.status_code}: {exc.message}", status_code=exc.status_code
            ) from exc
        except anthropic_sdk.APIConnectionError as exc:
            raise ProviderError(self._config.name, f"Connection failed: {exc}") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}", retryable=False) from exc

        logger.debug(
            "%s %s: %.2fs",
            self._config.name,
            request.get("model"),
            time.monotonic() - start,
        )
        return response.model_dump()
