"""RRULE value decoding, validation and encoding.

See RFC5545 section 3.3.10 (RECUR) and 3.8.5.3 (RRULE).
"""

import datetime
import logging
import re
from typing import Any, Optional

from dateutil import rrule as dateutil_rrule

from ..core.config_loader import get_config
from ..exceptions import (
    InvalidDateFormatError,
    InvalidRecurrenceRuleError,
    UnsupportedRecurrencePropertyError,
)
from ..models import (
    DateFormat,
    DateTimeValue,
    DayOfWeek,
    Frequency,
    RecurrenceRuleDescriptor,
    TimeReference,
    Weekday,
)
from .datetime_codec import format_date, parse_date_value

logger = logging.getLogger(__name__)

RRULE_PREFIX = "RRULE:"

# Exclusive magnitude bounds for the integer-list rule parts
INTEGER_LIST_BOUNDS: dict[str, int] = {
    "BYMONTHDAY": 32,
    "BYYEARDAY": 367,
    "BYWEEKNO": 54,
    "BYMONTH": 13,
    "BYSETPOS": 367,
}

UNSUPPORTED_RULE_PARTS = ("BYSECOND", "BYMINUTE", "BYHOUR")

_INTEGER_LIST_FIELDS: dict[str, str] = {
    "BYMONTHDAY": "by_month_day",
    "BYYEARDAY": "by_year_day",
    "BYWEEKNO": "by_week_number",
    "BYMONTH": "by_month",
    "BYSETPOS": "by_set_position",
}

_BARE_DATE_RE = re.compile(r"([0-9]{4})([0-9]{2})([0-9]{2})")
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_DIGITS_RE = re.compile(r"[0-9]+")

_DATEUTIL_FREQUENCIES = {
    Frequency.DAILY: dateutil_rrule.DAILY,
    Frequency.WEEKLY: dateutil_rrule.WEEKLY,
    Frequency.MONTHLY: dateutil_rrule.MONTHLY,
    Frequency.YEARLY: dateutil_rrule.YEARLY,
}

_DATEUTIL_WEEKDAYS = {
    Weekday.MO: dateutil_rrule.MO,
    Weekday.TU: dateutil_rrule.TU,
    Weekday.WE: dateutil_rrule.WE,
    Weekday.TH: dateutil_rrule.TH,
    Weekday.FR: dateutil_rrule.FR,
    Weekday.SA: dateutil_rrule.SA,
    Weekday.SU: dateutil_rrule.SU,
}


def _parse_positive_int(key: str, value: str) -> int:
    if _DIGITS_RE.fullmatch(value) is None:
        raise InvalidRecurrenceRuleError(f"{key} must be an integer, got {value!r}")
    number = int(value)
    if number < 1:
        raise InvalidRecurrenceRuleError(f"{key} must be positive, got {number}")
    return number


def parse_integer_list(key: str, csv: str, less_than: int) -> tuple[int, ...]:
    """Parse a comma list of signed integers whose magnitude is below ``less_than``.

    Raises:
        InvalidRecurrenceRuleError: On a non-integer or out-of-range entry
    """
    values = []
    for token in csv.split(","):
        token = token.strip()
        if _INTEGER_RE.fullmatch(token) is None:
            raise InvalidRecurrenceRuleError(f"{key} entry {token!r} is not an integer")
        number = int(token)
        if abs(number) >= less_than:
            raise InvalidRecurrenceRuleError(f"{key} entry {number} is out of range")
        values.append(number)
    return tuple(values)


def parse_by_day(csv: str) -> tuple[DayOfWeek, ...]:
    """Parse BYDAY entries such as ``MO``, ``+2TU`` or ``-1SU``.

    Entries whose weekday code is not recognised are dropped.
    """
    days = []
    for token in csv.split(","):
        token = token.strip().upper()
        code, prefix = token[-2:], token[:-2]

        try:
            weekday = Weekday(code)
        except ValueError:
            logger.debug("Dropping unrecognised BYDAY entry %r", token)
            continue

        week_number: Optional[int] = None
        if prefix:
            if _INTEGER_RE.fullmatch(prefix):
                week_number = int(prefix) or None
            else:
                logger.debug("Ignoring non-numeric BYDAY ordinal in %r", token)

        days.append(DayOfWeek(weekday=weekday, week_number=week_number))
    return tuple(days)


def parse_until(value: str) -> DateTimeValue:
    """Parse an UNTIL value.

    Two forms are legal input: a DATE-TIME (``20160101T100000Z`` or floating)
    and a bare DATE (``20160101``), which producers often emit without the
    ``VALUE=DATE`` marker that a DTSTART would carry.

    Raises:
        InvalidRecurrenceRuleError: If neither form matches
    """
    try:
        return parse_date_value(value)
    except InvalidDateFormatError:
        logger.debug("UNTIL=%s is not a DATE-TIME; trying bare DATE", value)

    if _BARE_DATE_RE.fullmatch(value.strip()):
        try:
            return parse_date_value(value, {"VALUE": "DATE"})
        except InvalidDateFormatError as e:
            raise InvalidRecurrenceRuleError(f"Invalid UNTIL date: {value!r}") from e

    raise InvalidRecurrenceRuleError(f"Invalid UNTIL value: {value!r}")


def _rule_body(text: str) -> str:
    text = text.strip()
    if text.upper().startswith(RRULE_PREFIX):
        text = text[len(RRULE_PREFIX) :]
    if not text:
        raise InvalidRecurrenceRuleError("Empty RRULE value")
    return text


def decode_recurrence_rule(text: str) -> RecurrenceRuleDescriptor:
    """Decode an RRULE line (``RRULE:FREQ=...``) or its bare value.

    Args:
        text: RRULE content line or value

    Returns:
        RecurrenceRuleDescriptor

    Raises:
        InvalidRecurrenceRuleError: Grammar or cross-field validation failure
        UnsupportedRecurrencePropertyError: Unimplemented or unknown rule part
    """
    fields: dict[str, Any] = {}
    seen: set[str] = set()
    frequency: Optional[Frequency] = None

    for part in _rule_body(text).split(";"):
        if not part:
            continue

        pair = part.split("=")
        if len(pair) != 2:
            raise InvalidRecurrenceRuleError(f"Malformed rule part: {part!r}")

        key, value = pair[0].strip().upper(), pair[1].strip()

        if key.startswith("X-"):
            logger.debug("Ignoring extension rule part %s", key)
            continue

        if key in seen:
            raise InvalidRecurrenceRuleError(f"Duplicate rule part: {key}")
        if key in ("UNTIL", "COUNT") and seen & {"UNTIL", "COUNT"}:
            raise InvalidRecurrenceRuleError("UNTIL and COUNT are mutually exclusive")
        seen.add(key)

        if key == "FREQ":
            try:
                frequency = Frequency(value.upper())
            except ValueError as e:
                raise InvalidRecurrenceRuleError(f"Unknown FREQ: {value!r}") from e
        elif key == "INTERVAL":
            fields["interval"] = _parse_positive_int(key, value)
        elif key == "UNTIL":
            fields["until"] = parse_until(value)
        elif key == "COUNT":
            fields["count"] = _parse_positive_int(key, value)
        elif key == "WKST":
            try:
                fields["first_day_of_week"] = Weekday(value.upper())
            except ValueError as e:
                raise InvalidRecurrenceRuleError(f"Unknown WKST: {value!r}") from e
        elif key == "BYDAY":
            fields["by_day"] = parse_by_day(value)
        elif key in INTEGER_LIST_BOUNDS:
            fields[_INTEGER_LIST_FIELDS[key]] = parse_integer_list(
                key, value, INTEGER_LIST_BOUNDS[key]
            )
        elif key in UNSUPPORTED_RULE_PARTS:
            raise UnsupportedRecurrencePropertyError(key, f"{key} rule parts are not supported")
        else:
            raise UnsupportedRecurrencePropertyError(key)

    if frequency is None:
        raise InvalidRecurrenceRuleError("RRULE missing required FREQ")
    if not frequency.is_supported:
        raise InvalidRecurrenceRuleError(f"Unsupported FREQ: {frequency.value}")

    rule = RecurrenceRuleDescriptor(frequency=frequency, **fields)
    validate_recurrence_rule(rule)
    return rule


def validate_recurrence_rule(rule: RecurrenceRuleDescriptor) -> None:
    """Apply the RFC5545 BY*-versus-FREQ restrictions.

    Raises:
        InvalidRecurrenceRuleError: On the first violated restriction
    """
    freq = rule.frequency

    # BYDAY MUST NOT carry a numeric value unless FREQ is MONTHLY or YEARLY
    if rule.by_day and freq not in (Frequency.MONTHLY, Frequency.YEARLY):
        if any(day.week_number for day in rule.by_day):
            raise InvalidRecurrenceRuleError(f"Numbered BYDAY is not allowed with FREQ={freq.value}")

    if rule.by_month_day is not None and freq == Frequency.WEEKLY:
        raise InvalidRecurrenceRuleError("BYMONTHDAY is not allowed with FREQ=WEEKLY")

    if rule.by_year_day is not None and freq in (
        Frequency.DAILY,
        Frequency.WEEKLY,
        Frequency.MONTHLY,
    ):
        raise InvalidRecurrenceRuleError(f"BYYEARDAY is not allowed with FREQ={freq.value}")

    if rule.by_week_number is not None and freq != Frequency.YEARLY:
        raise InvalidRecurrenceRuleError(f"BYWEEKNO is not allowed with FREQ={freq.value}")

    if rule.by_set_position is not None and not any(
        part is not None
        for part in (
            rule.by_day,
            rule.by_month_day,
            rule.by_year_day,
            rule.by_week_number,
            rule.by_month,
        )
    ):
        raise InvalidRecurrenceRuleError("BYSETPOS requires another BY* rule part")


def _format_until(until: DateTimeValue, local_tz: Optional[datetime.tzinfo]) -> str:
    """Format UNTIL in the value type of the rule it bounds.

    Whole days stay DATE and floating times stay floating; only UTC and zoned
    values are written with the ``Z`` marker. Always writing UTC would turn a
    DATE bound into a DATE-TIME, which RFC5545 forbids when DTSTART is a DATE,
    and would not parse back to the value that was encoded.
    """
    if not until.has_time_component:
        return format_date(until.value, DateFormat.DAY, local_tz)
    if until.reference == TimeReference.FLOATING:
        return format_date(until.value, DateFormat.FLOATING, local_tz)
    return format_date(until.value, DateFormat.UTC, local_tz)


def encode_recurrence_rule(
    rule: RecurrenceRuleDescriptor,
    local_tz: Optional[datetime.tzinfo] = None,
) -> str:
    """Encode FREQ, INTERVAL, WKST and the end condition as an RRULE line.

    BY* rule parts are not written.
    """
    text = f"{RRULE_PREFIX}FREQ={rule.frequency.value}"

    if rule.interval > 1:
        text += f";INTERVAL={rule.interval}"

    if rule.first_day_of_week is not None:
        text += f";WKST={rule.first_day_of_week.value}"

    if rule.until is not None:
        text += f";UNTIL={_format_until(rule.until, local_tz)}"
    elif rule.count is not None:
        text += f";COUNT={rule.count}"

    return text


def _align_until(
    until: DateTimeValue,
    dtstart: datetime.datetime,
    local_tz: Optional[datetime.tzinfo],
) -> datetime.datetime:
    value = until.value
    if not until.has_time_component:
        # A DATE bound includes the whole day
        value = value.replace(hour=23, minute=59, second=59)

    if dtstart.tzinfo is None:
        if value.tzinfo is not None:
            value = value.astimezone(local_tz or get_config().local_timezone()).replace(tzinfo=None)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=dtstart.tzinfo)
    return value


def to_dateutil_rrule(
    rule: RecurrenceRuleDescriptor,
    dtstart: datetime.datetime,
    local_tz: Optional[datetime.tzinfo] = None,
) -> dateutil_rrule.rrule:
    """Build a ``dateutil.rrule.rrule`` so hosts can expand occurrences.

    UNTIL is aligned with DTSTART's awareness, as dateutil requires.

    Args:
        rule: Decoded rule
        dtstart: First occurrence
        local_tz: Zone for moving an aware UNTIL onto a floating DTSTART;
            defaults to the configured zone

    Returns:
        dateutil rrule instance

    Raises:
        InvalidRecurrenceRuleError: If the rule's frequency cannot be expanded
    """
    if rule.frequency not in _DATEUTIL_FREQUENCIES:
        raise InvalidRecurrenceRuleError(f"Unsupported FREQ: {rule.frequency.value}")

    kwargs: dict[str, Any] = {
        "dtstart": dtstart,
        "interval": rule.interval,
    }

    if rule.count is not None:
        kwargs["count"] = rule.count
    if rule.until is not None:
        kwargs["until"] = _align_until(rule.until, dtstart, local_tz)
    if rule.first_day_of_week is not None:
        kwargs["wkst"] = _DATEUTIL_WEEKDAYS[rule.first_day_of_week]
    if rule.by_day:
        kwargs["byweekday"] = [
            _DATEUTIL_WEEKDAYS[day.weekday](day.week_number)
            if day.week_number
            else _DATEUTIL_WEEKDAYS[day.weekday]
            for day in rule.by_day
        ]
    if rule.by_month_day is not None:
        kwargs["bymonthday"] = rule.by_month_day
    if rule.by_year_day is not None:
        kwargs["byyearday"] = rule.by_year_day
    if rule.by_week_number is not None:
        kwargs["byweekno"] = rule.by_week_number
    if rule.by_month is not None:
        kwargs["bymonth"] = rule.by_month
    if rule.by_set_position is not None:
        kwargs["bysetpos"] = rule.by_set_position

    return dateutil_rrule.rrule(_DATEUTIL_FREQUENCIES[rule.frequency], **kwargs)
