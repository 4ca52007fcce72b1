"""VALARM encoding and TRIGGER decoding.

See RFC5545 section 3.6.6 (alarm component), 3.8.6.3 (TRIGGER) and
3.3.6 (DURATION).
"""

import datetime
import logging
import re
from typing import Optional

from ..exceptions import InvalidDateFormatError
from ..models import AlarmDescriptor, DateFormat
from .datetime_codec import format_date, parse_date_value
from .text import ContentLine, escape_text

logger = logging.getLogger(__name__)

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3_600
SECONDS_PER_DAY = 86_400
SECONDS_PER_WEEK = 604_800

_DURATION_RE = re.compile(
    r"([+-])?P(?:([0-9]+)W)?(?:([0-9]+)D)?(?:T(?:([0-9]+)H)?(?:([0-9]+)M)?(?:([0-9]+)S)?)?"
)


def format_duration(offset: int) -> str:
    """Format a signed number of seconds as an RFC5545 DURATION.

    Whole weeks use the ``W`` form; anything else is written as days plus a
    time part. ``0M`` is inserted between hours and seconds because the
    grammar does not allow seconds to follow hours directly.
    """
    text = "-P" if offset < 0 else "P"
    offset = abs(offset)

    if offset % SECONDS_PER_WEEK == 0:
        return f"{text}{offset // SECONDS_PER_WEEK}W"

    seconds = offset % SECONDS_PER_MINUTE
    minutes = (offset // SECONDS_PER_MINUTE) % 60
    hours = (offset // SECONDS_PER_HOUR) % 24
    days = offset // SECONDS_PER_DAY

    if days > 0:
        text += f"{days}D"

    if hours > 0 or minutes > 0 or seconds > 0:
        text += "T"
        if hours > 0:
            text += f"{hours}H"
        if minutes > 0:
            text += f"{minutes}M"
        if seconds > 0:
            if hours > 0 and minutes == 0:
                text += "0M"
            text += f"{seconds}S"

    return text


def parse_duration(text: str) -> int:
    """Parse an RFC5545 DURATION into signed seconds.

    Raises:
        InvalidDateFormatError: If the text is not a duration
    """
    value = text.strip().upper()
    match = _DURATION_RE.fullmatch(value)
    if match is None or value.rstrip("T").endswith("P"):
        raise InvalidDateFormatError(f"Invalid DURATION value: {text!r}")

    sign, weeks, days, hours, minutes, seconds = match.groups()
    total = (
        int(weeks or 0) * SECONDS_PER_WEEK
        + int(days or 0) * SECONDS_PER_DAY
        + int(hours or 0) * SECONDS_PER_HOUR
        + int(minutes or 0) * SECONDS_PER_MINUTE
        + int(seconds or 0)
    )
    return -total if sign == "-" else total


def encode_alarm(alarm: AlarmDescriptor, local_tz: Optional[datetime.tzinfo] = None) -> list[str]:
    """Encode an alarm as the unfolded lines of a VALARM block."""
    lines = ["BEGIN:VALARM"]

    if alarm.absolute is not None:
        trigger = format_date(alarm.absolute.value, DateFormat.UTC, local_tz)
        lines.append(f"TRIGGER;VALUE=DATE-TIME:{trigger}")
    else:
        lines.append(f"TRIGGER:{format_duration(alarm.relative_offset or 0)}")

    lines.append(f"DESCRIPTION:{escape_text(alarm.description)}")
    lines.append(f"ACTION:{alarm.action}")
    lines.append("END:VALARM")
    return lines


def decode_trigger(line: ContentLine) -> AlarmDescriptor:
    """Build an alarm from a TRIGGER content line.

    ``VALUE=DATE-TIME`` triggers are absolute; everything else is read as a
    duration relative to the component. ``RELATED=END`` is not distinguished.

    Raises:
        InvalidDateFormatError: If the value matches neither form
    """
    if line.param("VALUE", "").upper() == "DATE-TIME":
        return AlarmDescriptor(absolute=parse_date_value(line.value))

    if line.param("RELATED", "START").upper() == "END":
        logger.debug("TRIGGER relative to END treated as relative to START")

    return AlarmDescriptor(relative_offset=parse_duration(line.value))
