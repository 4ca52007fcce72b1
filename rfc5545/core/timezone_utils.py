"""TZID resolution and local time zone lookup for the RFC5545 codec."""

from __future__ import annotations

import datetime
import logging
import zoneinfo
from functools import lru_cache

from dateutil import tz as dateutil_tz

logger = logging.getLogger(__name__)

# Windows time zone names emitted by Outlook/Exchange in TZID parameters
# https://docs.microsoft.com/en-us/windows-hardware/manufacture/desktop/default-time-zones
WINDOWS_TZ_MAP: dict[str, str] = {
    # US
    "Pacific Standard Time": "America/Los_Angeles",
    "Mountain Standard Time": "America/Denver",
    "Central Standard Time": "America/Chicago",
    "Eastern Standard Time": "America/New_York",
    "Alaskan Standard Time": "America/Anchorage",
    "Hawaiian Standard Time": "Pacific/Honolulu",
    "US Mountain Standard Time": "America/Phoenix",
    "Atlantic Standard Time": "America/Halifax",
    # Europe
    "GMT Standard Time": "Europe/London",
    "W. Europe Standard Time": "Europe/Berlin",
    "Romance Standard Time": "Europe/Paris",
    "Central Europe Standard Time": "Europe/Budapest",
    "E. Europe Standard Time": "Europe/Bucharest",
    "FLE Standard Time": "Europe/Helsinki",
    "GTB Standard Time": "Europe/Athens",
    "Russian Standard Time": "Europe/Moscow",
    # Asia and Pacific
    "China Standard Time": "Asia/Shanghai",
    "Tokyo Standard Time": "Asia/Tokyo",
    "Korea Standard Time": "Asia/Seoul",
    "Singapore Standard Time": "Asia/Singapore",
    "India Standard Time": "Asia/Kolkata",
    "Arabian Standard Time": "Asia/Dubai",
    "Israel Standard Time": "Asia/Jerusalem",
    "AUS Eastern Standard Time": "Australia/Sydney",
    "W. Australia Standard Time": "Australia/Perth",
    "New Zealand Standard Time": "Pacific/Auckland",
    # Americas and Africa
    "E. South America Standard Time": "America/Sao_Paulo",
    "Argentina Standard Time": "America/Buenos_Aires",
    "South Africa Standard Time": "Africa/Johannesburg",
    "Egypt Standard Time": "Africa/Cairo",
}

# Obsolete or shorthand names still found in older calendar files
TZ_ALIAS_MAP: dict[str, str] = {
    "US/Pacific": "America/Los_Angeles",
    "US/Mountain": "America/Denver",
    "US/Central": "America/Chicago",
    "US/Eastern": "America/New_York",
    "GMT": "UTC",
    "Etc/UTC": "UTC",
    "Etc/GMT": "UTC",
    "Z": "UTC",
    "Zulu": "UTC",
    "Asia/Rangoon": "Asia/Yangon",
    "America/Godthab": "America/Nuuk",
}


def windows_tz_to_iana(windows_tz: str) -> str | None:
    """Convert a Windows time zone name to its IANA identifier, or None."""
    return WINDOWS_TZ_MAP.get(windows_tz)


def resolve_timezone_alias(tz_name: str) -> str:
    """Map an alias to its canonical IANA name; unknown names pass through."""
    return TZ_ALIAS_MAP.get(tz_name, tz_name)


@lru_cache(maxsize=128)
def resolve_tzid(tzid: str) -> zoneinfo.ZoneInfo | None:
    """Resolve a TZID parameter value to a time zone.

    Tries, in order: the IANA database, the Windows name table and the alias
    table. A leading ``/`` (globally unique TZID prefix) is ignored.

    Args:
        tzid: Raw TZID parameter value

    Returns:
        ZoneInfo instance, or None when the identifier is unknown
    """
    name = tzid.strip().lstrip("/")
    if not name:
        return None

    for candidate in (name, windows_tz_to_iana(name), resolve_timezone_alias(name)):
        if not candidate:
            continue
        try:
            return zoneinfo.ZoneInfo(candidate)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError):
            continue

    logger.debug("Unknown TZID %r", tzid)
    return None


@lru_cache(maxsize=16)
def _configured_zone(name: str) -> zoneinfo.ZoneInfo | None:
    # Warns once per configured name, not once per formatted value
    zone = resolve_tzid(name)
    if zone is None:
        logger.warning("Configured default timezone %r is unknown; using host zone", name)
    return zone


def get_local_timezone(default_timezone: str | None = None) -> datetime.tzinfo:
    """Return the zone used to interpret floating and date-only values.

    Args:
        default_timezone: Configured zone name; the host zone is used when
            it is empty or cannot be resolved

    Returns:
        tzinfo for local calendar arithmetic
    """
    if default_timezone:
        zone = _configured_zone(default_timezone)
        if zone is not None:
            return zone
    return dateutil_tz.tzlocal()


def now_utc() -> datetime.datetime:
    """Current time as an aware UTC datetime truncated to whole seconds."""
    return datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)
