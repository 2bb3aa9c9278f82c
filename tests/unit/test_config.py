"""Tests for configuration loading and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from toolloop.config.loader import _deep_merge, load_config
from toolloop.config.schema import (
    DebugConfig,
    GeneralConfig,
    LoggingConfig,
    ProviderConfig,
    RetryConfigModel,
    ToolloopConfig,
)
from toolloop.core.errors import ConfigError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run with no user/project config and no relevant env vars."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for var in (
        "XDG_CONFIG_HOME",
        "TOOLLOOP_CONFIG",
        "TOOLLOOP_TIMEOUT_MS",
        "OPENAI_TIMEOUT_MS",
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
    ):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


# ─── Schema Defaults ──────────────────────────────────────────


class TestSchemaDefaults:
    def test_all_defaults(self):
        cfg = ToolloopConfig()
        assert cfg.general.model == "openai:gpt-4o"
        assert cfg.general.max_iterations == 10
        assert cfg.general.max_output_tokens == 10_000
        assert cfg.general.tool_choice == "auto"
        assert cfg.providers["openai"].api_key_env == "OPENAI_API_KEY"
        assert cfg.providers["anthropic"].api_key_env == "ANTHROPIC_API_KEY"
        assert cfg.logging.level == "INFO"

    def test_provider_defaults(self):
        cfg = ProviderConfig()
        assert cfg.enabled is True
        assert cfg.api_key is None
        assert cfg.timeout_seconds == 300.0

    def test_retry_defaults(self):
        cfg = RetryConfigModel()
        assert cfg.max_attempts == 3
        assert cfg.rate_limit_base_delay == 2.0
        assert cfg.rate_limit_max_delay == 15.0
        assert cfg.token_limit_base_delay == 1.0
        assert cfg.token_limit_max_delay == 10.0

    def test_debug_and_logging_defaults(self):
        assert DebugConfig().enabled is False
        assert DebugConfig().prefix == "completion"
        assert LoggingConfig().file == ""


# ─── Schema Validation ────────────────────────────────────────


class TestSchemaValidation:
    def test_max_iterations_must_be_positive(self):
        with pytest.raises(ValidationError):
            GeneralConfig(max_iterations=0)

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            ProviderConfig(timeout_seconds=0)

    def test_tool_choice_not_empty(self):
        with pytest.raises(ValidationError):
            GeneralConfig(tool_choice="")


# ─── Deep merge ───────────────────────────────────────────────


class TestDeepMerge:
    def test_nested_override(self):
        base = {"general": {"model": "a", "max_iterations": 3}}
        merged = _deep_merge(base, {"general": {"model": "b"}})
        assert merged == {"general": {"model": "b", "max_iterations": 3}}
        assert base["general"]["model"] == "a"

    def test_non_dict_replaces(self):
        assert _deep_merge({"a": {"b": 1}}, {"a": 2}) == {"a": 2}


# ─── load_config ──────────────────────────────────────────────


class TestLoadConfig:
    def test_defaults_when_no_files(self, isolated):
        cfg = load_config()
        assert cfg.general.max_iterations == 10
        assert cfg.providers["openai"].api_key is None

    def test_project_file(self, isolated):
        (isolated / "toolloop.toml").write_text(
            '[general]\nmodel = "anthropic:claude-sonnet-4-5"\nmax_iterations = 4\n'
        )
        cfg = load_config()
        assert cfg.general.model == "anthropic:claude-sonnet-4-5"
        assert cfg.general.max_iterations == 4

    def test_explicit_path_overrides_project(self, isolated):
        (isolated / "toolloop.toml").write_text("[general]\nmax_iterations = 4\n")
        explicit = isolated / "other.toml"
        explicit.write_text("[general]\nmax_iterations = 7\n")
        assert load_config(explicit).general.max_iterations == 7

    def test_overrides_applied_last(self, isolated):
        explicit = isolated / "other.toml"
        explicit.write_text("[general]\nmax_iterations = 7\n")
        cfg = load_config(explicit, overrides={"general": {"max_iterations": 2}})
        assert cfg.general.max_iterations == 2

    def test_env_config_path(self, isolated, monkeypatch):
        toml_file = isolated / "env.toml"
        toml_file.write_text("[retry]\nmax_attempts = 5\n")
        monkeypatch.setenv("TOOLLOOP_CONFIG", str(toml_file))
        assert load_config().retry.max_attempts == 5

    def test_env_config_missing_file_raises(self, isolated, monkeypatch):
        monkeypatch.setenv("TOOLLOOP_CONFIG", str(isolated / "nope.toml"))
        with pytest.raises(ConfigError, match="non-existent"):
            load_config()

    def test_missing_explicit_path(self, isolated):
        with pytest.raises(ConfigError, match="not found"):
            load_config(isolated / "nope.toml")

    def test_invalid_toml(self, isolated):
        bad = isolated / "bad.toml"
        bad.write_text("[general\n")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(bad)

    def test_validation_failure(self, isolated):
        with pytest.raises(ConfigError, match="validation failed"):
            load_config(overrides={"general": {"max_iterations": 0}})

    def test_api_key_from_env(self, isolated, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        assert load_config().providers["openai"].api_key == "sk-env"

    def test_explicit_api_key_wins(self, isolated, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        cfg = load_config(overrides={"providers": {"openai": {"api_key": "sk-file"}}})
        assert cfg.providers["openai"].api_key == "sk-file"


# ─── Timeout env override ─────────────────────────────────────


class TestTimeoutEnv:
    def test_timeout_applied_to_all_providers(self, isolated, monkeypatch):
        monkeypatch.setenv("TOOLLOOP_TIMEOUT_MS", "45000")
        cfg = load_config()
        assert {p.timeout_seconds for p in cfg.providers.values()} == {45.0}

    def test_openai_timeout_var(self, isolated, monkeypatch):
        monkeypatch.setenv("OPENAI_TIMEOUT_MS", "1500")
        assert load_config().providers["openai"].timeout_seconds == 1.5

    @pytest.mark.parametrize("value", ["0", "-5", "soon"])
    def test_invalid_timeout(self, isolated, monkeypatch, value):
        monkeypatch.setenv("TOOLLOOP_TIMEOUT_MS", value)
        with pytest.raises(ConfigError, match="TOOLLOOP_TIMEOUT_MS"):
            load_config()
