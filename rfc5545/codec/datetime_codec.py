"""DATE and DATE-TIME parsing and formatting.

Handles the three DATE-TIME forms of RFC5545 section 3.3.5:

- floating local time: ``20160101T100000``
- UTC: ``20160101T100000Z``
- zoned: ``TZID=America/New_York:20160101T100000``

and DATE values (``VALUE=DATE:20160101``), which carry no time of day.
"""

import datetime
import re
from collections.abc import Mapping
from typing import Optional

from ..core.config_loader import get_config
from ..core.timezone_utils import resolve_tzid
from ..exceptions import InvalidDateFormatError
from ..models import DateFormat, DateTimeValue, TimeReference
from .text import split_parameters

_DATE_RE = re.compile(r"([0-9]{4})([0-9]{2})([0-9]{2})")
_DATE_TIME_RE = re.compile(r"([0-9]{4})([0-9]{2})([0-9]{2})T([0-9]{2})([0-9]{2})([0-9]{2})(Z?)")


def _split_value(text: str) -> tuple[dict[str, str], str]:
    """Separate parameters from the value at the first unquoted ``:``."""
    quoted = False
    for index, char in enumerate(text):
        if char == '"':
            quoted = not quoted
        elif char == ":" and not quoted:
            return split_parameters(text[:index]), text[index + 1 :]
    return {}, text


def _build(parts: tuple[str, ...], token: str, tzinfo: Optional[datetime.tzinfo] = None) -> datetime.datetime:
    try:
        return datetime.datetime(*(int(part) for part in parts), tzinfo=tzinfo)
    except ValueError as e:
        raise InvalidDateFormatError(f"Impossible calendar date: {token}") from e


def parse_date_value(token: str, params: Optional[Mapping[str, str]] = None) -> DateTimeValue:
    """Parse a single DATE or DATE-TIME token.

    Args:
        token: The value part, e.g. ``20160101T100000Z``
        params: Property parameters; ``VALUE`` and ``TZID`` are honoured

    Returns:
        Parsed DateTimeValue

    Raises:
        InvalidDateFormatError: If the token does not match its grammar, names
            an impossible date, combines ``Z`` with ``TZID`` or has an unknown
            TZID
    """
    params = params or {}
    token = token.strip()

    if params.get("VALUE", "").upper() == "DATE":
        match = _DATE_RE.fullmatch(token)
        if match is None:
            raise InvalidDateFormatError(f"Invalid DATE value: {token!r}")
        return DateTimeValue(
            value=_build(match.groups(), token),
            has_time_component=False,
            reference=TimeReference.FLOATING,
        )

    match = _DATE_TIME_RE.fullmatch(token)
    if match is None:
        raise InvalidDateFormatError(f"Invalid DATE-TIME value: {token!r}")

    *parts, utc_marker = match.groups()
    tzid = params.get("TZID")

    if utc_marker:
        if tzid:
            raise InvalidDateFormatError(f"DATE-TIME {token!r} has both TZID={tzid} and a UTC marker")
        return DateTimeValue(
            value=_build(tuple(parts), token, datetime.timezone.utc),
            reference=TimeReference.UTC,
        )

    if tzid:
        zone = resolve_tzid(tzid)
        if zone is None:
            raise InvalidDateFormatError(f"Unknown time zone: TZID={tzid}")
        return DateTimeValue(
            value=_build(tuple(parts), token, zone),
            reference=TimeReference.ZONED,
            tzid=tzid,
        )

    return DateTimeValue(value=_build(tuple(parts), token), reference=TimeReference.FLOATING)


def parse_date_string(text: str) -> DateTimeValue:
    """Parse a property segment such as ``DTSTART;VALUE=DATE:20160101``.

    The segment is split into ``;``-delimited ``KEY=VALUE`` parameters and a
    value bound by ``:``. A bare token (no ``:``) is parsed as-is.

    Raises:
        InvalidDateFormatError: See ``parse_date_value``
    """
    params, token = _split_value(text)
    return parse_date_value(token, params)


def parse_date_list(value: str, params: Optional[Mapping[str, str]] = None) -> list[DateTimeValue]:
    """Parse a comma-separated list of values sharing one parameter set (EXDATE)."""
    return [parse_date_value(token, params) for token in value.split(",") if token.strip()]


def format_date(
    dt: datetime.datetime,
    fmt: DateFormat,
    local_tz: Optional[datetime.tzinfo] = None,
) -> str:
    """Format an instant as an RFC5545 DATE or DATE-TIME.

    Aware datetimes are moved into the local zone for ``DAY`` and
    ``FLOATING`` output; naive datetimes are read as local time for ``UTC``
    output.

    Args:
        dt: Instant to format
        fmt: Output form
        local_tz: Local zone; defaults to the configured zone

    Returns:
        ``YYYYMMDD``, ``YYYYMMDDTHHMMSS`` or ``YYYYMMDDTHHMMSSZ``
    """
    if fmt == DateFormat.UTC:
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=local_tz or get_config().local_timezone())
        dt = dt.astimezone(datetime.timezone.utc)
    elif dt.tzinfo is not None:
        dt = dt.astimezone(local_tz or get_config().local_timezone())

    day = f"{dt.year:04d}{dt.month:02d}{dt.day:02d}"
    if fmt == DateFormat.DAY:
        return day

    text = f"{day}T{dt.hour:02d}{dt.minute:02d}{dt.second:02d}"
    if fmt == DateFormat.UTC:
        return text + "Z"
    return text


def date_format_for(value: DateTimeValue) -> DateFormat:
    """Pick the output form that preserves a value's reference.

    Zoned values are written in UTC since no VTIMEZONE is emitted.
    """
    if not value.has_time_component:
        return DateFormat.DAY
    if value.reference == TimeReference.FLOATING:
        return DateFormat.FLOATING
    return DateFormat.UTC


def format_date_value(value: DateTimeValue, local_tz: Optional[datetime.tzinfo] = None) -> str:
    """Format a DateTimeValue in the form matching its reference."""
    return format_date(value.value, date_format_for(value), local_tz)


def end_of_day(value: DateTimeValue) -> DateTimeValue:
    """The last second (23:59:59) of a value's calendar date, as a floating value."""
    dt = value.value
    return DateTimeValue(
        value=datetime.datetime(dt.year, dt.month, dt.day, 23, 59, 59),
        has_time_component=value.has_time_component,
        reference=TimeReference.FLOATING,
    )


def to_date_time_value(
    dt: datetime.datetime,
    has_time_component: bool = True,
    utc: bool = False,
    local_tz: Optional[datetime.tzinfo] = None,
) -> DateTimeValue:
    """Wrap a host datetime as a DateTimeValue.

    Args:
        dt: Host datetime
        has_time_component: False for whole-day values
        utc: Store as UTC (aware input is converted, naive input is read as
            local time); otherwise the value is kept floating
        local_tz: Local zone; defaults to the configured zone, which is only
            loaded when a conversion needs it

    Returns:
        DateTimeValue
    """
    if not has_time_component:
        if dt.tzinfo is not None:
            dt = dt.astimezone(local_tz or get_config().local_timezone())
        return DateTimeValue.date_only(dt)
    if utc:
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=local_tz or get_config().local_timezone())
        return DateTimeValue(value=dt.astimezone(datetime.timezone.utc), reference=TimeReference.UTC)
    if dt.tzinfo is not None:
        dt = dt.astimezone(local_tz or get_config().local_timezone()).replace(tzinfo=None)
    return DateTimeValue(value=dt, reference=TimeReference.FLOATING)
