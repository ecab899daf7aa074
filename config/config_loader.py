"""Load settings.yaml into typed dataclasses. Reports which providers have API keys."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from src.models import Dialect, MemberSpec

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

_CONFIDENCE_SOURCES = ("arbitrator", "length")


@dataclass
class ProviderConfig:
    name: str
    dialect: Dialect
    api_key_env: str
    base_delay_sec: float
    timeout_sec: int
    base_url: str | None = None


@dataclass
class PromptsConfig:
    answer: str
    ranking: str
    synthesis: str


@dataclass
class CouncilSettings:
    chairman: str
    concurrency: int = 3
    wave_pause_sec: float = 1.2
    max_attempts: int = 3
    max_delay_sec: float = 20.0
    cooldown_sec: float = 0.5
    temperature: float = 0.6
    max_tokens: int = 600
    ranking_temperature: float = 0.2
    ranking_max_tokens: int = 400
    synthesis_temperature: float = 0.5
    synthesis_max_tokens: int = 1200
    confidence_source: str = "arbitrator"
    jurors: list[str] = field(default_factory=list)
    output_dir: Path = Path("./output")


@dataclass
class AppConfig:
    council: CouncilSettings
    providers: dict[str, ProviderConfig]
    members: list[MemberSpec]
    prompts: PromptsConfig
    available_providers: set[str] = field(default_factory=set)

    def member(self, label: str) -> MemberSpec:
        for m in self.members:
            if m.label == label:
                return m
        raise KeyError(label)


def _optional_float(value) -> float | None:
    return None if value is None else float(value)


def _optional_int(value) -> int | None:
    return None if value is None else int(value)


def _load_council(raw: dict) -> CouncilSettings:
    settings = CouncilSettings(
        chairman=str(raw["chairman"]),
        concurrency=int(raw.get("concurrency", 3)),
        wave_pause_sec=float(raw.get("wave_pause_sec", 1.2)),
        max_attempts=int(raw.get("max_attempts", 3)),
        max_delay_sec=float(raw.get("max_delay_sec", 20.0)),
        cooldown_sec=float(raw.get("cooldown_sec", 0.5)),
        temperature=float(raw.get("temperature", 0.6)),
        max_tokens=int(raw.get("max_tokens", 600)),
        ranking_temperature=float(raw.get("ranking_temperature", 0.2)),
        ranking_max_tokens=int(raw.get("ranking_max_tokens", 400)),
        synthesis_temperature=float(raw.get("synthesis_temperature", 0.5)),
        synthesis_max_tokens=int(raw.get("synthesis_max_tokens", 1200)),
        confidence_source=str(raw.get("confidence_source", "arbitrator")),
        jurors=[str(j) for j in raw.get("jurors") or []],
        output_dir=Path(raw.get("output_dir", "./output")),
    )
    if settings.confidence_source not in _CONFIDENCE_SOURCES:
        raise ValueError(
            f"confidence_source must be one of {_CONFIDENCE_SOURCES}, "
            f"got {settings.confidence_source!r}"
        )
    if settings.concurrency < 1:
        raise ValueError("concurrency must be at least 1")
    if settings.max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    return settings


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing, ValueError when the
    roster references an unknown provider or the chairman/jurors are not
    roster members. Missing API keys are logged, not raised; callers check
    available_providers.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    council = _load_council(raw["council"])

    prompts_raw = raw["prompts"]
    prompts = PromptsConfig(
        answer=prompts_raw.get("answer", "{question}"),
        ranking=prompts_raw["ranking"],
        synthesis=prompts_raw["synthesis"],
    )

    providers: dict[str, ProviderConfig] = {}
    available_providers: set[str] = set()

    for provider_name, provider_raw in raw["providers"].items():
        try:
            dialect = Dialect(provider_raw["dialect"])
        except ValueError as exc:
            raise ValueError(
                f"Provider '{provider_name}' has unknown dialect {provider_raw['dialect']!r}"
            ) from exc
        providers[provider_name] = ProviderConfig(
            name=provider_name,
            dialect=dialect,
            api_key_env=provider_raw["api_key_env"],
            base_delay_sec=float(provider_raw["base_delay_sec"]),
            timeout_sec=int(provider_raw.get("timeout_sec", 60)),
            base_url=provider_raw.get("base_url"),
        )

        api_key = os.environ.get(provider_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider skipped (no API key): %s, set %s in .env",
                provider_name,
                provider_raw["api_key_env"],
            )

    members: list[MemberSpec] = []
    for member_raw in raw["members"]:
        member = MemberSpec(
            label=str(member_raw["label"]),
            model=str(member_raw["model"]),
            provider=str(member_raw["provider"]),
            temperature=_optional_float(member_raw.get("temperature")),
            max_tokens=_optional_int(member_raw.get("max_tokens")),
        )
        if member.provider not in providers:
            raise ValueError(f"Member '{member.label}' uses unknown provider '{member.provider}'")
        if any(m.label == member.label for m in members):
            raise ValueError(f"Duplicate member label: {member.label}")
        members.append(member)

    labels = {m.label for m in members}
    for label in [council.chairman, *council.jurors]:
        if label not in labels:
            raise ValueError(f"'{label}' is not a roster member")

    return AppConfig(
        council=council,
        providers=providers,
        members=members,
        prompts=prompts,
        available_providers=available_providers,
    )
