"""
Configuration for chatdoc.

All tunable parameters in one place. Loaded from:
1. Defaults (this file)
2. Config file (~/.config/chatdoc/config.toml) if exists
3. Environment variables (CHATDOC_*) override file
4. CLI flags override everything
"""

from __future__ import annotations

import contextlib
import logging
import os
import tomllib  # stdlib in 3.11+
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class DocumentConfig:
    """Defaults for freshly created documents and absent frontmatter keys."""
    default_title: str = "New Chat"
    default_type: str = "chat"


@dataclass
class ParseConfig:
    """Parser behaviour."""
    legacy_headers: bool = True  # accept "## Chat History" as ChatHistory
    id_length: int = 12  # hex chars of the uuid4 part of generated ids


@dataclass
class LogConfig:
    level: str = "WARNING"


@dataclass
class Config:
    """Root config with all settings."""
    document: DocumentConfig = field(default_factory=DocumentConfig)
    parse: ParseConfig = field(default_factory=ParseConfig)
    log: LogConfig = field(default_factory=LogConfig)


def get_config_path() -> Path:
    """Get config file path, respecting XDG."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "chatdoc" / "config.toml"
    return Path.home() / ".config" / "chatdoc" / "config.toml"


def load_config() -> Config:
    """Load config from file if exists, else return defaults."""
    config = Config()
    path = get_config_path()

    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            config = _apply_toml(config, data)
        except (OSError, tomllib.TOMLDecodeError, ValueError) as e:
            logger.warning("ignoring unreadable config file %s: %s", path, e)

    # env var overrides
    config = _apply_env(config)

    return config


def _apply_toml(config: Config, data: dict) -> Config:
    """Apply toml data to config."""
    if "document" in data:
        d = data["document"]
        if "default_title" in d:
            config.document.default_title = str(d["default_title"])
        if "default_type" in d:
            config.document.default_type = str(d["default_type"])

    if "parse" in data:
        p = data["parse"]
        if "legacy_headers" in p:
            config.parse.legacy_headers = bool(p["legacy_headers"])
        if "id_length" in p:
            config.parse.id_length = int(p["id_length"])

    if "log" in data:
        lg = data["log"]
        if "level" in lg:
            config.log.level = str(lg["level"])

    return config


def _apply_env(config: Config) -> Config:
    """Apply environment variable overrides."""
    env_map: dict[str, tuple[str, str, type]] = {
        "CHATDOC_DEFAULT_TITLE": ("document", "default_title", str),
        "CHATDOC_DEFAULT_TYPE": ("document", "default_type", str),
        "CHATDOC_LEGACY_HEADERS": ("parse", "legacy_headers", bool),
        "CHATDOC_ID_LENGTH": ("parse", "id_length", int),
        "CHATDOC_LOG_LEVEL": ("log", "level", str),
    }

    for env_key, (section, attr, conv) in env_map.items():
        val = os.environ.get(env_key)
        if val is not None:
            with contextlib.suppress(ValueError, AttributeError):
                # Bool needs special handling: "true", "1", "yes" -> True
                converted = val.lower() in ("true", "1", "yes") if conv is bool else conv(val)
                setattr(getattr(config, section), attr, converted)

    # ids shorter than this collide too easily
    config.parse.id_length = min(max(config.parse.id_length, 8), 32)

    return config


# Module-level config instance, loaded once on first use
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() reloads it."""
    global _config
    _config = None
