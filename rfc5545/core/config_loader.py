"""rfc5545.core.config_loader

Configuration for the RFC5545 codec.

- Values come from an optional YAML file, then environment overrides.
- Configuration is not cached. Each top-level codec call that needs the
  local zone loads it once through ``get_config()`` and passes the zone down,
  so tests can monkeypatch the environment freely.
"""

from __future__ import annotations

import datetime
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ..exceptions import ConfigurationError
from .timezone_utils import get_local_timezone

logger = logging.getLogger(__name__)

DEFAULT_PRODID = "-//rfc5545//Calendar Codec//EN"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ENV_CONFIG_FILE = "RFC5545_CONFIG"
ENV_DEFAULT_TIMEZONE = "RFC5545_DEFAULT_TIMEZONE"
ENV_PRODID = "RFC5545_PRODID"
ENV_LOG_LEVEL = "RFC5545_LOG_LEVEL"


@dataclass(frozen=True)
class CodecConfig:
    """Typed configuration for the codec.

    Fields:
        default_timezone: zone used for floating and date-only values when
            they must be related to an instant (None = host zone)
        prodid: PRODID emitted when wrapping components in a VCALENDAR
        log_level: logging level name
    """

    default_timezone: str | None = None
    prodid: str = DEFAULT_PRODID
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> CodecConfig:
        """Create a CodecConfig from a plain mapping, coercing types and logging fixes."""
        if data is None:
            data = {}

        default_tz = data.get("default_timezone")
        if default_tz is not None:
            default_tz = str(default_tz).strip() or None

        prodid = data.get("prodid", DEFAULT_PRODID)
        prodid = str(prodid) if prodid else DEFAULT_PRODID

        log_level = str(data.get("log_level") or "INFO").upper()
        if log_level not in VALID_LOG_LEVELS:
            logger.warning("Config log_level=%r is not valid; using INFO", log_level)
            log_level = "INFO"

        return cls(default_timezone=default_tz, prodid=prodid, log_level=log_level)

    def local_timezone(self) -> datetime.tzinfo:
        """Zone used to interpret floating and date-only values."""
        return get_local_timezone(self.default_timezone)


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config file {path} is not valid YAML: {e}") from e
    # safe_load returns None for empty files
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        logger.warning("Config file %s parsed but top-level is not a mapping: %r", path, loaded)
        raise ConfigurationError("Config file must contain a mapping at top level")
    return loaded


def build_config_from_env() -> dict[str, Any]:
    """Collect configuration overrides from environment variables.

    Recognizes:
    - RFC5545_DEFAULT_TIMEZONE -> 'default_timezone'
    - RFC5545_PRODID -> 'prodid'
    - RFC5545_LOG_LEVEL -> 'log_level'
    """
    cfg: dict[str, Any] = {}

    default_tz = os.environ.get(ENV_DEFAULT_TIMEZONE)
    if default_tz:
        cfg["default_timezone"] = default_tz

    prodid = os.environ.get(ENV_PRODID)
    if prodid:
        cfg["prodid"] = prodid

    log_level = os.environ.get(ENV_LOG_LEVEL)
    if log_level:
        cfg["log_level"] = log_level

    return cfg


def load_config(path: str | Path | None = None) -> CodecConfig:
    """Load configuration from a YAML file plus environment overrides.

    Args:
        path: Optional config file path. Falls back to $RFC5545_CONFIG; when
            neither is set, or the file does not exist, only the environment
            and defaults apply.

    Returns:
        CodecConfig instance

    Raises:
        ConfigurationError: If the file exists but is not valid YAML or its
            top level is not a mapping
    """
    raw: dict[str, Any] = {}

    file_path = path or os.environ.get(ENV_CONFIG_FILE)
    if file_path:
        p = Path(file_path)
        if p.exists():
            raw = _load_yaml(p)
            logger.debug("Loaded configuration from %s", p)
        else:
            logger.info("Config file %s not found; using defaults", p)

    raw.update(build_config_from_env())
    return CodecConfig.from_dict(raw)


def get_config() -> CodecConfig:
    """Current configuration (file named by $RFC5545_CONFIG plus environment)."""
    return load_config()
