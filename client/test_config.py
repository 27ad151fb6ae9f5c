"""
Tests for environment-driven configuration.

Run with: pytest test_config.py -v
"""

import pytest

import config as config_module
from config import DEFAULT_AVATARS, ClientConfig, get_env_bool, get_env_float


@pytest.fixture(autouse=True)
def restore_config():
    original = config_module.config
    yield
    config_module.config = original


class TestEnvHelpers:

    @pytest.mark.parametrize("raw,expected", [
        ("true", True), ("1", True), ("on", True),
        ("false", False), ("0", False), ("no", False),
    ])
    def test_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("UNO_FLAG", raw)
        assert get_env_bool("UNO_FLAG", not expected) is expected

    def test_bool_garbage_uses_default(self, monkeypatch):
        monkeypatch.setenv("UNO_FLAG", "maybe")
        assert get_env_bool("UNO_FLAG", True) is True

    def test_float_garbage_uses_default(self, monkeypatch):
        monkeypatch.setenv("UNO_SECONDS", "ten")
        assert get_env_float("UNO_SECONDS", 10.0) == 10.0


class TestClientConfig:

    def test_defaults(self, monkeypatch):
        for key in ("CALL_OUT_SECONDS", "COLOR_PROMPT_SECONDS", "PENALTY_DRAWS", "API_BASE_URL", "AVATARS"):
            monkeypatch.delenv(key, raising=False)

        cfg = ClientConfig.from_env()

        assert cfg.timing.call_out_seconds == 10.0
        assert cfg.timing.color_prompt_seconds == 15.0
        assert cfg.timing.penalty_draws == 2
        assert cfg.API_BASE_URL == "https://nowaunoweb.azurewebsites.net"
        assert cfg.AVATARS == DEFAULT_AVATARS

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("CALL_OUT_SECONDS", "3.5")
        monkeypatch.setenv("COLOR_PROMPT_SECONDS", "20")
        monkeypatch.setenv("PENALTY_DRAWS", "4")
        monkeypatch.setenv("API_BASE_URL", "http://localhost:5000/")
        monkeypatch.setenv("AVATARS", "a.png, b.png,,c.png")

        cfg = ClientConfig.from_env()

        assert cfg.timing.call_out_seconds == 3.5
        assert cfg.timing.color_prompt_seconds == 20.0
        assert cfg.timing.penalty_draws == 4
        assert cfg.API_BASE_URL == "http://localhost:5000"
        assert cfg.AVATARS == ["a.png", "b.png", "c.png"]

    def test_reload(self, monkeypatch):
        monkeypatch.setenv("PORT", "9123")
        reloaded = config_module.reload_config()
        assert reloaded.PORT == 9123
        assert config_module.config is reloaded
