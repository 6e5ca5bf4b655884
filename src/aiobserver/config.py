"""
Configuration management for AI Observer.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import ConfigError


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


@dataclass
class Config:
    """Main configuration class."""

    # Storage
    data_dir: Path = field(default_factory=lambda: Path.home() / ".ai-observer")
    storage_limit: int = 10000

    # Capture switch
    enable_logging: bool = True

    # Chat transcripts
    chat_sessions_dir: Optional[Path] = None
    rescan_interval_s: float = 15.0
    processed_key_cap: int = 5000

    # Completion heuristic (defaults carried over unchanged, no accuracy data to tune them)
    multiline_threshold: int = 20
    singleline_threshold: int = 50
    context_lines: int = 50
    pending_ttl_ms: int = 30_000
    pending_capacity: int = 1000

    log_level: str = "INFO"

    @property
    def storage_path(self) -> Path:
        return self.data_dir / "interactions.json"

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        chat_dir = os.getenv("AI_OBSERVER_CHAT_DIR")
        return cls(
            data_dir=Path(os.getenv("AI_OBSERVER_DATA_DIR", str(Path.home() / ".ai-observer"))),
            storage_limit=_env_int("AI_OBSERVER_STORAGE_LIMIT", 10000),
            enable_logging=_env_bool("AI_OBSERVER_ENABLE_LOGGING", True),
            chat_sessions_dir=Path(chat_dir) if chat_dir else None,
            log_level=os.getenv("AI_OBSERVER_LOG_LEVEL", "INFO").upper(),
        )


# Global config instance
config = Config.from_env()
