"""Gemini adapter using google-genai SDK with native async."""

import asyncio
import logging
import os
import time

from google import genai
from google.genai import errors as genai_errors

from config.config_loader import ProviderConfig
from src.providers.base import ProviderAdapter, ProviderError

logger = logging.getLogger(__name__)


class GeminiAdapter(ProviderAdapter):
    """Google Gemini generateContent via google-genai SDK."""

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = genai.Client(api_key=api_key)

    def encode(self, model: str, prompt: str, temperature: float, max_tokens: int) -> dict:
        return {
            "model": model,
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "config": {
                "temperature": temperature,
                "max_output_tokens": max_tokens,
            },
        }

    def decode(self, payload: dict) -> str | None:
        candidates = payload.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            return None
        content = candidates[0].get("content")
        if not isinstance(content, dict):
            return None
        parts = content.get("parts") or []
        fragments = [
            p["text"]
            for p in parts
            if isinstance(p, dict) and isinstance(p.get("text"), str) and not p.get("thought")
        ]
        text = "".join(fragments).strip()
        return text or None

    async def send(self, request: dict) -> dict:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(**request),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except genai_errors.APIError as exc:
            raise ProviderError(
                self._config.name, f"HTTP {exc.code}: {exc.message}", status_code=exc.code
            ) from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}", retryable=False) from exc

        logger.debug(
            "%s %s: %.2fs",
            self._config.name,
            request.get("model"),
            time.monotonic() - start,
        )
        return response.model_dump(mode="json", exclude_none=True)
