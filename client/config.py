"""
Centralized configuration for the UNO table client.

Configuration is loaded from (in order of precedence):
1. Environment variables
2. .env file (if exists)
3. Default values

Usage:
    from config import config
    print(config.API_BASE_URL)
    print(config.timing.call_out_seconds)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    if val in ("false", "0", "no", "off"):
        return False
    return default


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


def get_env_float(key: str, default: float = 0.0) -> float:
    """Get float environment variable."""
    try:
        return float(os.environ.get(key, str(default)))
    except ValueError:
        return default


DEFAULT_AVATARS = [
    "Angel.png", "elf.png", "gingerbread-man.png", "grinch.png",
    "Santa-claus.png", "Snowman.png", "christmas-bell.png", "christmas-tree.png",
    "christmas-wreath.png", "deer-rudolph.png", "gift.png", "jumper.png",
    "nutcracker.png", "reindeer.png", "snowflake.png", "sweater-with-deer.png",
]


@dataclass
class TimingConfig:
    """Countdown and prompt durations (seconds)."""
    call_out_seconds: float = 10.0
    color_prompt_seconds: float = 15.0
    penalty_draws: int = 2


@dataclass
class ClientConfig:
    """Table client configuration."""
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"
    SENTRY_DSN: str = ""

    # Remote authoritative game server
    API_BASE_URL: str = "https://nowaunoweb.azurewebsites.net"
    HTTP_TIMEOUT_SECONDS: float = 10.0

    AVATARS: list[str] = field(default_factory=lambda: list(DEFAULT_AVATARS))

    # Call-out countdown and wild-color prompt
    timing: TimingConfig = field(default_factory=TimingConfig)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load configuration from environment variables."""
        avatars_str = get_env("AVATARS", "")
        avatars = [a.strip() for a in avatars_str.split(",") if a.strip()]

        return cls(
            HOST=get_env("HOST", "127.0.0.1"),
            PORT=get_env_int("PORT", 8000),
            DEBUG=get_env_bool("DEBUG", False),
            LOG_LEVEL=get_env("LOG_LEVEL", "INFO"),
            ENVIRONMENT=get_env("ENVIRONMENT", "development"),
            SENTRY_DSN=get_env("SENTRY_DSN", ""),
            API_BASE_URL=get_env("API_BASE_URL", "https://nowaunoweb.azurewebsites.net").rstrip("/"),
            HTTP_TIMEOUT_SECONDS=get_env_float("HTTP_TIMEOUT_SECONDS", 10.0),
            AVATARS=avatars or list(DEFAULT_AVATARS),
            timing=TimingConfig(
                call_out_seconds=get_env_float("CALL_OUT_SECONDS", 10.0),
                color_prompt_seconds=get_env_float("COLOR_PROMPT_SECONDS", 15.0),
                penalty_draws=get_env_int("PENALTY_DRAWS", 2),
            ),
        )


# Global config instance - loaded once at module import
config = ClientConfig.from_env()


def reload_config() -> ClientConfig:
    """Reload configuration from environment (useful for testing)."""
    global config
    config = ClientConfig.from_env()
    return config
