"""Chat-completions adapter using the openai SDK.

Serves every OpenAI-compatible endpoint (Groq, OpenRouter, DeepSeek, OpenAI,
xAI) through base_url.
"""

import asyncio
import logging
import os
import time

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from config.config_loader import ProviderConfig
from src.providers.base import ProviderAdapter, ProviderError

logger = logging.getLogger(__name__)


class ChatCompletionsAdapter(ProviderAdapter):
    """OpenAI-style chat completions via openai SDK."""

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        # Retries belong to RetryingCaller, so the SDK's own are disabled.
        self._client = AsyncOpenAI(api_key=api_key, base_url=config.base_url, max_retries=0)

    def encode(self, model: str, prompt: str, temperature: float, max_tokens: int) -> dict:
        return {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

    def decode(self, payload: dict) -> str | None:
        choices = payload.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            return None
        message = choices[0].get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            return None
        return content.strip()

    async def send(self, request: dict) -> dict:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(**request),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except APIStatusError as exc:
            raise ProviderError(
                self._config.name, f"HTTP {exc.status_code}: {exc.message}", status_code=exc.status_code
            ) from exc
        except APIConnectionError as exc:
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
