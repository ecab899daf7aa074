"""Adapter selection: one adapter instance per configured provider."""

import logging

from config.config_loader import AppConfig
from src.models import Dialect
from src.providers.anthropic import AnthropicAdapter
from src.providers.base import ProviderAdapter
from src.providers.gemini import GeminiAdapter
from src.providers.openai_provider import ChatCompletionsAdapter

logger = logging.getLogger(__name__)

ADAPTER_CLASSES: dict[Dialect, type[ProviderAdapter]] = {
    Dialect.CHAT: ChatCompletionsAdapter,
    Dialect.CANDIDATES: GeminiAdapter,
    Dialect.MESSAGES: AnthropicAdapter,
}


def build_adapters(config: AppConfig) -> dict[str, ProviderAdapter]:
    """Build adapters for every provider that has an API key. Keyed by provider name."""
    adapters: dict[str, ProviderAdapter] = {}
    for name in sorted(config.available_providers):
        provider_cfg = config.providers[name]
        try:
            adapters[name] = ADAPTER_CLASSES[provider_cfg.dialect](provider_cfg)
        except Exception as exc:
            logger.warning("Failed to instantiate provider '%s': %s", name, exc)
    return adapters
