"""Shared pytest fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AppConfig, CouncilSettings, PromptsConfig, ProviderConfig
from src.models import Answer, Dialect, MemberSpec
from src.providers.base import ProviderAdapter, ProviderError


class FakeAdapter(ProviderAdapter):
    """Test double adapter with a trivial {"text": ...} wire format.

    send() is an AsyncMock so tests can script replies with side_effect.
    """

    def __init__(self, name: str = "fake", base_delay_sec: float = 1.0, reply: str = "Fake answer") -> None:
        super().__init__(
            ProviderConfig(
                name=name,
                dialect=Dialect.CHAT,
                api_key_env="FAKE_API_KEY",
                base_delay_sec=base_delay_sec,
                timeout_sec=5,
            )
        )
        self.send = AsyncMock(return_value={"text": reply})  # type: ignore[method-assign]

    def encode(self, model: str, prompt: str, temperature: float, max_tokens: int) -> dict:
        return {"model": model, "prompt": prompt, "temperature": temperature, "max_tokens": max_tokens}

    def decode(self, payload: dict) -> str | None:
        text = payload.get("text")
        return text if isinstance(text, str) and text.strip() else None

    async def send(self, request: dict) -> dict:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return {"text": "Fake answer"}


def transient(name: str = "fake", status: int | None = 503) -> ProviderError:
    return ProviderError(name, f"HTTP {status}", status_code=status)


def permanent(name: str = "fake", status: int = 401) -> ProviderError:
    return ProviderError(name, f"HTTP {status}", status_code=status)


class RecordingSleep:
    """Stands in for asyncio.sleep and records every requested delay."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        answer="{question}",
        ranking="Rank {count} answers to: {question}\n\n{answers}\n\nReply with JSON.",
        synthesis="Question: {question}\n\n{answers}\n\nAnswer {best} is best. Write one answer.",
    )


@pytest.fixture
def sample_council_settings(tmp_path: Path) -> CouncilSettings:
    return CouncilSettings(
        chairman="Chair",
        concurrency=2,
        wave_pause_sec=1.2,
        max_attempts=3,
        max_delay_sec=20.0,
        cooldown_sec=0.5,
        output_dir=tmp_path / "output",
    )


@pytest.fixture
def members() -> list[MemberSpec]:
    return [
        MemberSpec(label="Alpha", model="alpha-1", provider="fake"),
        MemberSpec(label="Beta", model="beta-1", provider="fake"),
        MemberSpec(label="Gamma", model="gamma-1", provider="fake"),
    ]


@pytest.fixture
def chairman() -> MemberSpec:
    return MemberSpec(label="Chair", model="chair-1", provider="fake")


@pytest.fixture
def sample_answers(members: list[MemberSpec]) -> list[Answer]:
    return [
        Answer(member=members[0], text="Use YAML for human-edited config."),
        Answer(member=members[1], text="Use JSON; it is stricter."),
        Answer(member=members[2], text="Use TOML."),
    ]


@pytest.fixture
def sample_app_config(
    sample_council_settings: CouncilSettings,
    sample_prompts_config: PromptsConfig,
    members: list[MemberSpec],
    chairman: MemberSpec,
) -> AppConfig:
    return AppConfig(
        council=sample_council_settings,
        providers={
            "fake": ProviderConfig(
                name="fake",
                dialect=Dialect.CHAT,
                api_key_env="FAKE_API_KEY",
                base_delay_sec=1.0,
                timeout_sec=5,
            )
        },
        members=[*members, chairman],
        prompts=sample_prompts_config,
        available_providers={"fake"},
    )
