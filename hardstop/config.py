"""Config loading for hardstop.

Reads `.hardstop/config.yaml` (or `~/.hardstop/config.yaml`).
Raises ConfigError on parse errors or a missing / unsupported `version` field.
If no config file is found, returns default values (safe to run without config).

Config search order:
  1. `config_path` argument (if provided, for testing or explicit override)
  2. HARDSTOP_CONFIG environment variable (if set)
  3. `.hardstop/config.yaml` (working directory, for development)
  4. `~/.hardstop/config.yaml` (home directory, for installed hooks)

Environment variable overrides (applied last, with or without a file):
  HARDSTOP_PATTERNS_DIR — overrides patterns.dir
  HARDSTOP_PLATFORM     — overrides patterns.platform
  HARDSTOP_LOG_LEVEL    — overrides logging.level

Example:

    version: 1
    patterns:
      dir: /etc/hardstop/patterns   # omit to use the bundled data
      platform: auto                # auto | linux | macos | windows | none
    logging:
      level: WARNING
      json: true
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

import yaml

from hardstop.constants import PLATFORM_AUTO, VALID_PLATFORMS
from hardstop.errors import ConfigError
from hardstop.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

# ─── Version constants ────────────────────────────────────────────────────────

SUPPORTED_CONFIG_VERSION = 1

SUPPORTED_VERSIONS: frozenset[int] = frozenset({1})

# ─── Validation sets ─────────────────────────────────────────────────────────

# Config spelling for "disable platform filtering" (maps to None).
PLATFORM_NONE = "none"

VALID_PLATFORM_SETTINGS: frozenset[str] = VALID_PLATFORMS | {PLATFORM_AUTO, PLATFORM_NONE}

VALID_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_CONFIG_PATHS = [
    ".hardstop/config.yaml",
    "~/.hardstop/config.yaml",
]


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass
class PatternsConfig:
    """Where pattern data comes from and how platforms are filtered.

    dir:      Data directory override. None = bundled hardstop/data/.
    platform: Default for checks called with platform="auto".
              "auto" detects the host; None disables filtering.
    """

    dir: Optional[str] = None
    platform: Optional[str] = PLATFORM_AUTO


@dataclass
class LoggingConfig:
    """structlog output configuration."""

    level: str = "INFO"
    json: bool = True


@dataclass
class Config:
    """Root configuration object populated from .hardstop/config.yaml.

    All fields have safe defaults; hardstop works without any config file.
    """

    version: int = SUPPORTED_CONFIG_VERSION
    patterns: PatternsConfig = field(default_factory=PatternsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    path: Optional[str] = None  # Path to the loaded config file

    @classmethod
    def defaults(cls) -> "Config":
        """Return a fully-default Config (no file required)."""
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "Config":
        """Construct Config from a parsed YAML dict.

        Merges user-supplied values onto defaults; unknown keys are silently ignored.

        Raises:
            ConfigError: On an invalid patterns.platform or logging.level value.
        """
        # ── Patterns ──────────────────────────────────────────────────────────
        patterns_raw = raw.get("patterns") or {}
        if not isinstance(patterns_raw, dict):
            raise ConfigError("CONFIG ERROR: 'patterns' must be a mapping.")
        patterns = PatternsConfig(
            dir=patterns_raw.get("dir"),
            platform=_parse_platform(patterns_raw.get("platform", PLATFORM_AUTO)),
        )

        # ── Logging ───────────────────────────────────────────────────────────
        logging_raw = raw.get("logging") or {}
        if not isinstance(logging_raw, dict):
            raise ConfigError("CONFIG ERROR: 'logging' must be a mapping.")
        logging_config = LoggingConfig(
            level=_parse_log_level(logging_raw.get("level", "INFO")),
            json=bool(logging_raw.get("json", True)),
        )

        return cls(
            version=raw.get("version", SUPPORTED_CONFIG_VERSION),
            patterns=patterns,
            logging=logging_config,
            path=path,
        )

    def apply_logging(self) -> None:
        """Reconfigure structlog from this config."""
        configure_logging(log_level=self.logging.level, json_output=self.logging.json)


def _parse_platform(value: object) -> Optional[str]:
    """Map a config / env platform setting onto the engine's platform option."""
    if value is None:
        return None
    if not isinstance(value, str) or value.lower() not in VALID_PLATFORM_SETTINGS:
        raise ConfigError(
            f"CONFIG ERROR: Invalid patterns.platform: '{value}'. "
            f"Supported values: {sorted(VALID_PLATFORM_SETTINGS)}."
        )
    value = value.lower()
    return None if value == PLATFORM_NONE else value


def _parse_log_level(value: object) -> str:
    level = str(value).upper()
    if level not in VALID_LOG_LEVELS or not isinstance(getattr(logging, level, None), int):
        raise ConfigError(
            f"CONFIG ERROR: Invalid logging.level: '{value}'. "
            f"Supported values: {sorted(VALID_LOG_LEVELS)}."
        )
    return level


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and validate hardstop configuration.

    Search order:
      1. ``config_path`` argument
      2. ``HARDSTOP_CONFIG`` environment variable
      3. ``.hardstop/config.yaml``
      4. ``~/.hardstop/config.yaml``

    If no file is found at any of these paths, returns default Config (not an error).
    Environment overrides are applied in both cases.

    Raises:
        ConfigError: On YAML parse error, missing ``version`` field, unsupported
                     version, or an invalid value in the file or environment.
    """
    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = os.environ.get("HARDSTOP_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    # ── No config file found ─────────────────────────────────────────────────
    if found_path is None:
        logger.debug("No config file found, using defaults", searched=search_paths)
        config = Config.defaults()
        _apply_env_overrides(config)
        return config

    # ── Parse config file ─────────────────────────────────────────────────────
    logger.debug("Loading config", path=found_path)

    try:
        with open(found_path) as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ConfigError(f"CONFIG ERROR: Failed to parse {found_path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"CONFIG ERROR: Could not read {found_path}: {exc}") from exc

    if not isinstance(raw, dict):
        if raw is None:
            msg = (
                f"CONFIG ERROR: {found_path} is missing the required 'version' field.\n"
                "Add 'version: 1' to the top of your config file."
            )
        else:
            msg = (
                f"CONFIG ERROR: {found_path} is not a valid YAML mapping.\n"
                "The config file must be a YAML dictionary at the top level."
            )
        raise ConfigError(msg)

    # ── Version validation ────────────────────────────────────────────────────
    version = raw.get("version")
    if version is None:
        raise ConfigError(
            f"CONFIG ERROR: {found_path} is missing the required 'version' field.\n"
            "Add 'version: 1' to the top of your config file."
        )
    if version not in SUPPORTED_VERSIONS:
        raise ConfigError(
            f"CONFIG ERROR: Unsupported config version: {version}. "
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}."
        )

    config = Config.from_dict(raw, path=found_path)
    _apply_env_overrides(config)

    logger.debug(
        "Config loaded",
        path=found_path,
        version=config.version,
        patterns_dir=config.patterns.dir,
        platform=config.patterns.platform,
    )
    return config


def _apply_env_overrides(config: Config) -> None:
    """Apply HARDSTOP_* environment variable overrides to a Config in-place.

    Raises:
        ConfigError: If HARDSTOP_PLATFORM or HARDSTOP_LOG_LEVEL is invalid.
    """
    env_dir = os.environ.get("HARDSTOP_PATTERNS_DIR")
    if env_dir:
        config.patterns.dir = env_dir

    env_platform = os.environ.get("HARDSTOP_PLATFORM")
    if env_platform:
        config.patterns.platform = _parse_platform(env_platform)

    env_level = os.environ.get("HARDSTOP_LOG_LEVEL")
    if env_level:
        config.logging.level = _parse_log_level(env_level)
