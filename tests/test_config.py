"""Tests for config/config_loader.py."""

from pathlib import Path

import pytest
import yaml

from config.config_loader import AppConfig, CouncilSettings, ProviderConfig, PromptsConfig, load_config
from src.models import Dialect, MemberSpec


def _settings(**overrides) -> dict:
    settings = {
        "council": {
            "chairman": "Big",
            "concurrency": 2,
            "max_attempts": 4,
            "output_dir": "./output",
        },
        "providers": {
            "groq": {
                "dialect": "chat",
                "base_url": "https://api.groq.com/openai/v1",
                "api_key_env": "TEST_GROQ_KEY",
                "base_delay_sec": 2.0,
                "timeout_sec": 60,
            },
            "gemini": {
                "dialect": "candidates",
                "api_key_env": "TEST_GEMINI_KEY",
                "base_delay_sec": 3.0,
            },
        },
        "members": [
            {"label": "Small", "model": "llama-3.1-8b-instant", "provider": "groq"},
            {"label": "Big", "model": "llama-3.3-70b-versatile", "provider": "groq", "temperature": 0.2},
            {"label": "Flash", "model": "gemini-2.0-flash", "provider": "gemini", "max_tokens": 900},
        ],
        "prompts": {
            "answer": "{question}",
            "ranking": "Rank {count}: {question}\n{answers}",
            "synthesis": "{question}\n{answers}\nBest: {best}",
        },
    }
    settings.update(overrides)
    return settings


def _write(tmp_path: Path, settings: dict) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.dump(settings, allow_unicode=True), encoding="utf-8")
    return path


@pytest.fixture
def minimal_settings(tmp_path: Path) -> Path:
    return _write(tmp_path, _settings())


def test_load_config_returns_app_config(minimal_settings):
    config = load_config(minimal_settings)
    assert isinstance(config, AppConfig)
    assert isinstance(config.council, CouncilSettings)
    assert isinstance(config.prompts, PromptsConfig)


def test_load_config_council(minimal_settings):
    config = load_config(minimal_settings)
    assert config.council.chairman == "Big"
    assert config.council.concurrency == 2
    assert config.council.max_attempts == 4
    assert config.council.max_delay_sec == 20.0
    assert config.council.confidence_source == "arbitrator"
    assert config.council.jurors == []
    assert isinstance(config.council.output_dir, Path)


def test_load_config_providers(minimal_settings):
    config = load_config(minimal_settings)
    groq = config.providers["groq"]
    assert isinstance(groq, ProviderConfig)
    assert groq.dialect is Dialect.CHAT
    assert groq.base_delay_sec == 2.0
    assert config.providers["gemini"].dialect is Dialect.CANDIDATES
    assert config.providers["gemini"].base_url is None
    assert config.providers["gemini"].timeout_sec == 60


def test_load_config_members_in_order(minimal_settings):
    config = load_config(minimal_settings)
    assert [m.label for m in config.members] == ["Small", "Big", "Flash"]
    assert config.member("Big") == MemberSpec(
        label="Big", model="llama-3.3-70b-versatile", provider="groq", temperature=0.2
    )
    assert config.member("Flash").max_tokens == 900
    assert config.member("Small").temperature is None


def test_load_config_available_providers_with_key(minimal_settings, monkeypatch):
    monkeypatch.setenv("TEST_GROQ_KEY", "gsk-test")
    monkeypatch.delenv("TEST_GEMINI_KEY", raising=False)
    config = load_config(minimal_settings)
    assert config.available_providers == {"groq"}


def test_load_config_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config(Path("/nonexistent/settings.yaml"))


def test_load_config_unknown_provider(tmp_path):
    settings = _settings()
    settings["members"].append({"label": "Ghost", "model": "x", "provider": "nowhere"})
    with pytest.raises(ValueError, match="unknown provider"):
        load_config(_write(tmp_path, settings))


def test_load_config_unknown_chairman(tmp_path):
    settings = _settings()
    settings["council"]["chairman"] = "Nobody"
    with pytest.raises(ValueError, match="Nobody"):
        load_config(_write(tmp_path, settings))


def test_load_config_unknown_juror(tmp_path):
    settings = _settings()
    settings["council"]["jurors"] = ["Nobody"]
    with pytest.raises(ValueError, match="Nobody"):
        load_config(_write(tmp_path, settings))


def test_load_config_duplicate_label(tmp_path):
    settings = _settings()
    settings["members"].append({"label": "Small", "model": "x", "provider": "groq"})
    with pytest.raises(ValueError, match="Duplicate"):
        load_config(_write(tmp_path, settings))


def test_load_config_unknown_dialect(tmp_path):
    settings = _settings()
    settings["providers"]["groq"]["dialect"] = "smoke-signals"
    with pytest.raises(ValueError, match="dialect"):
        load_config(_write(tmp_path, settings))


def test_load_config_bad_confidence_source(tmp_path):
    settings = _settings()
    settings["council"]["confidence_source"] = "vibes"
    with pytest.raises(ValueError, match="confidence_source"):
        load_config(_write(tmp_path, settings))


def test_answer_prompt_defaults_to_question(tmp_path):
    settings = _settings()
    del settings["prompts"]["answer"]
    config = load_config(_write(tmp_path, settings))
    assert config.prompts.answer == "{question}"


def test_shipped_settings_load():
    config = load_config()
    assert config.council.chairman in {m.label for m in config.members}
    assert {p.dialect for p in config.providers.values()} == set(Dialect)
    config.prompts.ranking.format(count=2, question="q", answers="a")
    config.prompts.synthesis.format(question="q", answers="a", best=1, count=2)
