"""Unit tests for context_compactor.utils.config module."""

import logging
import math
import os

import pytest

from context_compactor.memory.pruning import DEFAULT_PRUNING_SETTINGS
from context_compactor.memory.types import PruningSettings
from context_compactor.utils.config import (
    DEFAULT_MODEL,
    DEFAULT_PROVIDER,
    ENV_PREFIX,
    CompactionConfig,
    NormalizedCompactionConfig,
    load_config_from_env,
    normalize_compaction_config,
)

ENV_NAMES = [
    "PROVIDER",
    "MODEL",
    "CONTEXT_WINDOW_TOKENS",
    "TRIGGER_RATIO",
    "SUMMARY_MAX_TOKENS",
    "CUSTOM_INSTRUCTIONS",
    "MAX_HISTORY_SHARE",
    "KEEP_LAST_ASSISTANTS",
    "PARALLEL_STAGES",
    "ENABLED",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove every CONTEXT_COMPACTOR_* variable and return a path with no .env file."""
    for name in ENV_NAMES:
        monkeypatch.delenv(f"{ENV_PREFIX}{name}", raising=False)
    return tmp_path / "missing.env"


class TestNormalizeCompactionConfig:
    """Tests for normalize_compaction_config function."""

    def test_none_gives_defaults(self):
        config = normalize_compaction_config()
        assert config == NormalizedCompactionConfig()
        assert config.provider == DEFAULT_PROVIDER
        assert config.model == DEFAULT_MODEL
        assert config.pruning == DEFAULT_PRUNING_SETTINGS

    def test_user_values_are_kept(self):
        config = normalize_compaction_config(
            CompactionConfig(
                provider="openai",
                model="gpt-4o-mini",
                context_window_tokens=128_000,
                trigger_ratio=0.6,
                summary_max_tokens=500,
                custom_instructions="Keep file paths.",
                pruning=PruningSettings(keep_last_assistants=1),
                parallel_stages=True,
                enabled=False,
            )
        )
        assert config.provider == "openai"
        assert config.model == "gpt-4o-mini"
        assert config.context_window_tokens == 128_000
        assert config.trigger_ratio == 0.6
        assert config.summary_max_tokens == 500
        assert config.custom_instructions == "Keep file paths."
        assert config.pruning.keep_last_assistants == 1
        assert config.parallel_stages is True
        assert config.enabled is False

    def test_invalid_values_fall_back(self):
        config = normalize_compaction_config(
            {
                "provider": "",
                "context_window_tokens": -5,
                "trigger_ratio": math.nan,
                "summary_max_tokens": "lots",
                "custom_instructions": "",
                "parallel_stages": "yes",
                "enabled": None,
            }
        )
        assert config == NormalizedCompactionConfig()

    @pytest.mark.parametrize(
        "raw",
        [["not", "a", "mapping"], "provider=openai", 42, 3.5, object(), True],
    )
    def test_non_mapping_input_gives_defaults(self, raw):
        assert normalize_compaction_config(raw) == NormalizedCompactionConfig()

    def test_ratio_is_clamped(self):
        assert normalize_compaction_config({"trigger_ratio": 4}).trigger_ratio == 1.0
        assert normalize_compaction_config({"trigger_ratio": -1}).trigger_ratio == 0.0

    def test_normalized_config_is_a_fixed_point(self):
        config = normalize_compaction_config({"pruning": {"max_history_share": 0.3}})
        assert normalize_compaction_config(config) == config


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env function."""

    def test_no_variables(self, clean_env):
        assert load_config_from_env(clean_env) == NormalizedCompactionConfig()

    def test_reads_variables(self, clean_env, monkeypatch):
        monkeypatch.setenv(f"{ENV_PREFIX}PROVIDER", "openai")
        monkeypatch.setenv(f"{ENV_PREFIX}MODEL", "gpt-4o-mini")
        monkeypatch.setenv(f"{ENV_PREFIX}CONTEXT_WINDOW_TOKENS", "32000")
        monkeypatch.setenv(f"{ENV_PREFIX}TRIGGER_RATIO", "0.5")
        monkeypatch.setenv(f"{ENV_PREFIX}MAX_HISTORY_SHARE", "0.25")
        monkeypatch.setenv(f"{ENV_PREFIX}KEEP_LAST_ASSISTANTS", "2")
        monkeypatch.setenv(f"{ENV_PREFIX}PARALLEL_STAGES", "true")
        monkeypatch.setenv(f"{ENV_PREFIX}ENABLED", "off")

        config = load_config_from_env(clean_env)

        assert config.provider == "openai"
        assert config.model == "gpt-4o-mini"
        assert config.context_window_tokens == 32000
        assert config.trigger_ratio == 0.5
        assert config.pruning.max_history_share == 0.25
        assert config.pruning.keep_last_assistants == 2
        assert config.parallel_stages is True
        assert config.enabled is False

    def test_invalid_number_is_ignored(self, clean_env, monkeypatch, caplog):
        monkeypatch.setenv(f"{ENV_PREFIX}CONTEXT_WINDOW_TOKENS", "big")

        with caplog.at_level(logging.WARNING, logger="context_compactor.utils.config"):
            config = load_config_from_env(clean_env)

        assert config.context_window_tokens == NormalizedCompactionConfig().context_window_tokens
        assert "CONTEXT_COMPACTOR_CONTEXT_WINDOW_TOKENS" in caplog.text

    def test_reads_dotenv_file(self, clean_env, tmp_path):
        dotenv_file = tmp_path / ".env"
        dotenv_file.write_text(f"{ENV_PREFIX}MODEL=claude-from-dotenv\n")
        try:
            config = load_config_from_env(dotenv_file)
            assert config.model == "claude-from-dotenv"
        finally:
            os.environ.pop(f"{ENV_PREFIX}MODEL", None)

    def test_finds_dotenv_in_working_directory(self, clean_env, monkeypatch, tmp_path):
        project_dir = tmp_path / "app"
        project_dir.mkdir()
        (project_dir / ".env").write_text(f"{ENV_PREFIX}MODEL=from-working-dir\n")
        monkeypatch.chdir(project_dir)
        try:
            assert load_config_from_env().model == "from-working-dir"
        finally:
            os.environ.pop(f"{ENV_PREFIX}MODEL", None)

    def test_environment_wins_over_dotenv(self, clean_env, monkeypatch, tmp_path):
        dotenv_file = tmp_path / ".env"
        dotenv_file.write_text(f"{ENV_PREFIX}MODEL=from-file\n")
        monkeypatch.setenv(f"{ENV_PREFIX}MODEL", "from-env")

        assert load_config_from_env(dotenv_file).model == "from-env"
