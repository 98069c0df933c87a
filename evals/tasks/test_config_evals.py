"""
Config Evals -- environment parsing for orchestration knobs and provider keys.
"""

import pytest

from maire.config import (
    DEFAULT_INVOKE_TIMEOUT,
    OrchestratorConfig,
    provider_keys_from_env,
)

CONFIG_ENV = [
    "MAIRE_SYNTHESIS_MODEL",
    "MAIRE_STAR_STEPS",
    "MAIRE_INVOKE_TIMEOUT",
    "OPENROUTER_API_KEY",
    "ANTHROPIC_API_KEY",
    "GOOGLE_API_KEY",
    "HF_API_TOKEN",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in CONFIG_ENV:
        monkeypatch.delenv(name, raising=False)


class TestOrchestratorConfigFromEnv:
    """Eval: Does bad configuration fall back to defaults instead of breaking runs?"""

    def test_defaults_when_unset(self):
        config = OrchestratorConfig.from_env()
        assert config.synthesis_model is None
        assert config.star_steps is None
        assert config.invoke_timeout == DEFAULT_INVOKE_TIMEOUT

    def test_values_read(self, monkeypatch):
        monkeypatch.setenv("MAIRE_SYNTHESIS_MODEL", "claude")
        monkeypatch.setenv("MAIRE_STAR_STEPS", "5")
        monkeypatch.setenv("MAIRE_INVOKE_TIMEOUT", "30")
        config = OrchestratorConfig.from_env()
        assert config.synthesis_model == "claude"
        assert config.star_steps == 5
        assert config.invoke_timeout == 30.0

    @pytest.mark.parametrize("raw", ["0", "-2", "three"])
    def test_unusable_star_steps_ignored(self, monkeypatch, raw):
        monkeypatch.setenv("MAIRE_STAR_STEPS", raw)
        assert OrchestratorConfig.from_env().star_steps is None

    @pytest.mark.parametrize("raw", ["0", "-1", "soon"])
    def test_unusable_timeout_uses_default(self, monkeypatch, raw):
        monkeypatch.setenv("MAIRE_INVOKE_TIMEOUT", raw)
        assert OrchestratorConfig.from_env().invoke_timeout == DEFAULT_INVOKE_TIMEOUT


class TestProviderKeys:
    def test_only_set_keys_listed(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
        monkeypatch.setenv("GOOGLE_API_KEY", "   ")
        assert provider_keys_from_env() == {"anthropic": "sk-ant"}
