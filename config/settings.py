"""
Configuration management for binquery.

Provides dataclasses for configuration and utilities
for loading settings from YAML files and environment variables.
"""

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class QueryPolicyConfig:
    """Defaults for every query the engine issues."""
    total_timeout_ms: int = 0
    max_records: int = 0


@dataclass
class Settings:
    """
    Main settings container for binquery.

    Attributes:
        scans_enabled: Allow queries that resolve to no index filter.
            Scans can slow down the server, so they are disabled by default.
        send_key: Store the user key with records so key expressions work
        log_level: Logging level
        query_policy: Query policy defaults
    """
    scans_enabled: bool = False
    send_key: bool = True
    log_level: str = "INFO"

    query_policy: QueryPolicyConfig = field(default_factory=QueryPolicyConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Create Settings from dictionary."""
        data = dict(data)
        policy_data = data.pop("query_policy", None) or {}

        return cls(
            query_policy=QueryPolicyConfig(**policy_data),
            **data
        )

    def to_dict(self) -> dict:
        """Convert Settings to dictionary."""
        return asdict(self)

    def with_env(self) -> "Settings":
        """Return a copy with BINQUERY_* environment variables applied."""
        data = self.to_dict()
        if "BINQUERY_SCANS_ENABLED" in os.environ:
            data["scans_enabled"] = _parse_bool(os.environ["BINQUERY_SCANS_ENABLED"])
        if "BINQUERY_SEND_KEY" in os.environ:
            data["send_key"] = _parse_bool(os.environ["BINQUERY_SEND_KEY"])
        if "BINQUERY_LOG_LEVEL" in os.environ:
            data["log_level"] = os.environ["BINQUERY_LOG_LEVEL"]
        return Settings.from_dict(data)

    @classmethod
    def from_env(cls) -> "Settings":
        """Default settings overlaid with environment variables."""
        return cls().with_env()


def _parse_bool(text: str) -> bool:
    value = text.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"Invalid boolean value: {text!r}")


def get_default_config_path() -> Path:
    """Get path to default configuration file."""
    env_config = os.environ.get("BINQUERY_CONFIG")
    if env_config:
        return Path(env_config)

    local_config = Path("./config/default_config.yaml")
    if local_config.exists():
        return local_config

    return Path(__file__).parent / "default_config.yaml"


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default.

    Returns:
        Settings object with loaded configuration

    Example:
        >>> settings = load_config()
        >>> settings = load_config("./my_config.yaml")
    """
    if config_path is None:
        path = get_default_config_path()
    else:
        path = Path(config_path)

    if not path.exists():
        # Return default settings if no config file
        return Settings()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        return Settings()

    return Settings.from_dict(data)
