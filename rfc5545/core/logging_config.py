"""
Central logging configuration for rfc5545.

The codec modules only emit DEBUG records (ignored lines, extension rule
parts, time zone fallbacks). Hosts that want to see them call
``configure_logging`` once at startup; nothing is configured on import.
"""

import logging
import os
from typing import Optional

from .config_loader import VALID_LOG_LEVELS, CodecConfig, get_config

PACKAGE_LOGGER = "rfc5545"

CODEC_MODULES = [
    "rfc5545",
    "rfc5545.codec.text",
    "rfc5545.codec.datetime_codec",
    "rfc5545.codec.rrule_codec",
    "rfc5545.codec.alarm_codec",
    "rfc5545.codec.attendee_codec",
    "rfc5545.calendar.component_parser",
    "rfc5545.calendar.component_serializer",
    "rfc5545.calendar.adapter",
    "rfc5545.core.config_loader",
    "rfc5545.core.timezone_utils",
]

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    config: Optional[CodecConfig] = None,
) -> int:
    """
    Configure logging levels for the rfc5545 modules.

    Args:
        debug_mode: Whether to enable debug logging for codec modules
        force_debug: Override debug mode setting (None to use env var detection)
        config: Source of the non-debug level (``log_level``); loaded with
            ``get_config()`` when omitted

    Returns:
        The level applied to the codec loggers

    Environment Variables:
        RFC5545_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        RFC5545_LOG_LEVEL: Override the level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("RFC5545_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("RFC5545_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    config = config or get_config()
    level = logging.DEBUG if final_debug else getattr(logging, config.log_level)
    if force_debug is None and env_log_level in VALID_LOG_LEVELS:
        level = getattr(logging, env_log_level)

    # Only add a handler if the host has not configured one
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
        root_logger.addHandler(handler)

    for module in CODEC_MODULES:
        logging.getLogger(module).setLevel(level)

    logging.getLogger(PACKAGE_LOGGER).debug(
        "rfc5545 logging configured at %s", logging.getLevelName(level)
    )
    return level


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping codec logger names to their current levels
    """
    return {
        name: logging.getLevelName(logging.getLogger(name).level) for name in CODEC_MODULES
    }
