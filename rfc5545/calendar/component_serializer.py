"""Serialize component drafts to folded RFC5545 text."""

import datetime
import logging
import uuid
from collections.abc import Iterable
from typing import Optional

from ..codec.alarm_codec import encode_alarm
from ..codec.attendee_codec import encode_attendee
from ..codec.datetime_codec import format_date, format_date_value
from ..codec.rrule_codec import encode_recurrence_rule
from ..codec.text import CRLF, escape_text, fold_lines
from ..core.config_loader import CodecConfig, get_config
from ..core.timezone_utils import now_utc
from ..models import (
    CalendarComponentDraft,
    ComponentKind,
    DateFormat,
    DateTimeValue,
    TimeReference,
)

logger = logging.getLogger(__name__)

CALENDAR_VERSION = "2.0"


def _date_property(
    name: str,
    value: DateTimeValue,
    all_day: bool,
    local_tz: Optional[datetime.tzinfo],
) -> str:
    if all_day or value.is_date_only:
        return f"{name};VALUE=DATE:{format_date(value.value, DateFormat.DAY, local_tz)}"
    return f"{name}:{format_date_value(value, local_tz)}"


def _utc_property(name: str, value: DateTimeValue, local_tz: Optional[datetime.tzinfo]) -> str:
    return f"{name}:{format_date(value.value, DateFormat.UTC, local_tz)}"


def _text_property(name: str, value: Optional[str]) -> Optional[str]:
    text = (value or "").strip()
    if not text:
        return None
    return f"{name}:{escape_text(text)}"


def component_lines(
    draft: CalendarComponentDraft,
    local_tz: Optional[datetime.tzinfo] = None,
) -> list[str]:
    """Build the unfolded content lines of one component, in output order.

    A missing UID is replaced by a random UUID and a missing CREATED by the
    current time; DTSTAMP falls back to CREATED. The configured zone is
    loaded once, and only when ``local_tz`` is not given.
    """
    local_tz = local_tz or get_config().local_timezone()
    lines = [f"BEGIN:{draft.kind.value}"]

    created = draft.created or DateTimeValue(value=now_utc(), reference=TimeReference.UTC)
    lines.append(f"UID:{draft.uid or uuid.uuid4()}")
    lines.append(_utc_property("CREATED", created, local_tz))
    lines.append(_utc_property("DTSTAMP", draft.stamp or created, local_tz))
    if draft.last_modified is not None:
        lines.append(_utc_property("LAST-MODIFIED", draft.last_modified, local_tz))

    if draft.start is not None:
        lines.append(_date_property("DTSTART", draft.start, draft.all_day, local_tz))
    if draft.kind == ComponentKind.EVENT:
        if draft.end is not None:
            lines.append(_date_property("DTEND", draft.end, draft.all_day, local_tz))
    else:
        if draft.end is not None:
            lines.append(_date_property("DUE", draft.end, draft.all_day, local_tz))
        if draft.completed is not None:
            lines.append(_utc_property("COMPLETED", draft.completed, local_tz))

    for name, value in (
        ("LOCATION", draft.location),
        ("SUMMARY", draft.summary),
        ("DESCRIPTION", draft.description),
        ("URL", draft.url),
    ):
        line = _text_property(name, value)
        if line:
            lines.append(line)

    for rule in draft.recurrence_rules or ():
        lines.append(encode_recurrence_rule(rule, local_tz))

    for exclusion in draft.exclusions or ():
        lines.append(_date_property("EXDATE", exclusion, draft.all_day, local_tz))

    if draft.is_detached:
        lines.append(_date_property("RECURRENCE-ID", draft.recurrence_id, draft.all_day, local_tz))

    for alarm in draft.alarms:
        lines.extend(encode_alarm(alarm, local_tz))

    for attendee in draft.attendees:
        lines.append(encode_attendee(attendee))

    lines.append(f"END:{draft.kind.value}")
    return lines


def serialize_component(
    draft: CalendarComponentDraft,
    local_tz: Optional[datetime.tzinfo] = None,
) -> str:
    """Serialize one component as folded lines joined with CRLF.

    Args:
        draft: Component to write
        local_tz: Zone for floating and date-only conversions; defaults to
            the configured zone

    Returns:
        Folded text without a trailing line break
    """
    return fold_lines(component_lines(draft, local_tz))


def serialize_calendar(
    drafts: Iterable[CalendarComponentDraft],
    config: Optional[CodecConfig] = None,
    local_tz: Optional[datetime.tzinfo] = None,
) -> str:
    """Wrap components in a VCALENDAR document terminated by CRLF."""
    config = config or get_config()
    local_tz = local_tz or config.local_timezone()

    lines = ["BEGIN:VCALENDAR", f"VERSION:{CALENDAR_VERSION}", f"PRODID:{config.prodid}"]
    count = 0
    for draft in drafts:
        lines.extend(component_lines(draft, local_tz))
        count += 1
    lines.append("END:VCALENDAR")

    logger.debug("Serialized %d calendar components", count)
    return fold_lines(lines) + CRLF
