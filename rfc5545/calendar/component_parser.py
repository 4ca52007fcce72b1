"""Single-pass parser turning RFC5545 content lines into component drafts.

The parser unfolds the input, walks the logical lines once and dispatches on
the property name. Unknown properties and unknown nested blocks are skipped so
that newer producers do not break older consumers. Any malformed recognised
property aborts the whole parse.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..codec.alarm_codec import decode_trigger
from ..codec.attendee_codec import decode_attendee
from ..codec.datetime_codec import end_of_day, parse_date_list, parse_date_value
from ..codec.rrule_codec import decode_recurrence_rule
from ..codec.text import ContentLine, parse_content_line, unescape_text, unfold_lines
from ..exceptions import MissingPropertyError
from ..models import (
    AlarmDescriptor,
    AttendeeDescriptor,
    CalendarComponentDraft,
    ComponentKind,
    DateTimeValue,
    RecurrenceRuleDescriptor,
)

logger = logging.getLogger(__name__)

COMPONENT_BLOCKS = {kind.value: kind for kind in ComponentKind}
ALARM_BLOCK = "VALARM"
CALENDAR_BLOCK = "VCALENDAR"

TEXT_PROPERTIES = {
    "SUMMARY": "summary",
    "DESCRIPTION": "description",
    "LOCATION": "location",
    "URL": "url",
}

TIMESTAMP_PROPERTIES = {
    "CREATED": "created",
    "DTSTAMP": "stamp",
    "LAST-MODIFIED": "last_modified",
    "RECURRENCE-ID": "recurrence_id",
}


@dataclass
class _ComponentBuilder:
    """Mutable accumulator for one parse call."""

    kind: ComponentKind
    uid: Optional[str] = None
    created: Optional[DateTimeValue] = None
    stamp: Optional[DateTimeValue] = None
    last_modified: Optional[DateTimeValue] = None
    start: Optional[DateTimeValue] = None
    end: Optional[DateTimeValue] = None
    completed: Optional[DateTimeValue] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    url: Optional[str] = None
    recurrence_id: Optional[DateTimeValue] = None
    recurrence_rules: list[RecurrenceRuleDescriptor] = field(default_factory=list)
    exclusions: list[DateTimeValue] = field(default_factory=list)
    alarms: list[AlarmDescriptor] = field(default_factory=list)
    attendees: list[AttendeeDescriptor] = field(default_factory=list)

    @property
    def end_property(self) -> str:
        return "DUE" if self.kind == ComponentKind.TODO else "DTEND"

    def apply(self, line: ContentLine) -> None:
        """Record one component-level property; unknown names are ignored."""
        name = line.name

        if name == "DTSTART":
            self.start = parse_date_value(line.value, line.params)
        elif name == self.end_property:
            self.end = parse_date_value(line.value, line.params)
        elif name in TEXT_PROPERTIES:
            setattr(self, TEXT_PROPERTIES[name], unescape_text(line.value))
        elif name == "RRULE":
            self.recurrence_rules.append(decode_recurrence_rule(line.value))
        elif name == "EXDATE" and self.kind == ComponentKind.EVENT:
            self.exclusions.extend(parse_date_list(line.value, line.params))
        elif name == "COMPLETED" and self.kind == ComponentKind.TODO:
            self.completed = parse_date_value(line.value, line.params)
        elif name == "UID":
            self.uid = line.value.strip() or None
        elif name in TIMESTAMP_PROPERTIES:
            setattr(self, TIMESTAMP_PROPERTIES[name], parse_date_value(line.value, line.params))
        elif name == "ATTENDEE":
            self.attendees.append(decode_attendee(line))
        else:
            logger.debug("Ignoring %s property %s", self.kind.value, name)

    def build(self) -> CalendarComponentDraft:
        """Validate, apply defaults and freeze the accumulated fields.

        Raises:
            MissingPropertyError: If an event has no DTSTART
        """
        if self.kind == ComponentKind.EVENT and self.start is None:
            raise MissingPropertyError("DTSTART")

        present = [value for value in (self.start, self.end) if value is not None]
        all_day = bool(present) and not any(value.has_time_component for value in present)

        end = self.end
        if self.kind == ComponentKind.EVENT and end is None and self.start is not None:
            end = self.start if self.start.has_time_component else end_of_day(self.start)

        return CalendarComponentDraft(
            kind=self.kind,
            uid=self.uid,
            created=self.created,
            stamp=self.stamp,
            last_modified=self.last_modified,
            start=self.start,
            end=end,
            completed=self.completed,
            all_day=all_day,
            summary=self.summary,
            description=self.description,
            location=self.location,
            url=self.url,
            recurrence_rules=tuple(self.recurrence_rules) or None,
            exclusions=tuple(self.exclusions) or None,
            recurrence_id=self.recurrence_id,
            alarms=tuple(self.alarms),
            attendees=tuple(self.attendees),
        )


def parse_component(text: str, kind: Optional[ComponentKind] = None) -> CalendarComponentDraft:
    """Parse one VEVENT or VTODO.

    The input may be a complete ``BEGIN:VEVENT``..``END:VEVENT`` block (the
    BEGIN line decides the kind) or a bare property block, in which case
    ``kind`` applies (default: event). Parsing stops at the end of the first
    component.

    Args:
        text: Raw, possibly folded content
        kind: Component kind for bare property blocks

    Returns:
        Immutable CalendarComponentDraft

    Raises:
        MissingPropertyError: If an event has no DTSTART
        InvalidDateFormatError: If a date or date-time value is malformed
        InvalidRecurrenceRuleError: If an RRULE is malformed or inconsistent
        UnsupportedRecurrencePropertyError: If an RRULE uses an unknown part
    """
    builder = _ComponentBuilder(kind=kind or ComponentKind.EVENT)
    started = False
    skipped: list[str] = []
    alarm_trigger: Optional[ContentLine] = None
    in_alarm = False

    for raw in unfold_lines(text):
        line = parse_content_line(raw)
        value = line.value.strip().upper()

        if line.name == "BEGIN":
            if skipped or in_alarm:
                skipped.append(value)
            elif value in COMPONENT_BLOCKS and not started:
                builder.kind = COMPONENT_BLOCKS[value]
                started = True
            elif value == ALARM_BLOCK:
                in_alarm = True
                alarm_trigger = None
            elif value != CALENDAR_BLOCK:
                logger.debug("Skipping nested %s block", value)
                skipped.append(value)
            continue

        if line.name == "END":
            if skipped:
                skipped.pop()
            elif in_alarm:
                in_alarm = False
                if alarm_trigger is None:
                    logger.debug("Skipping VALARM without TRIGGER")
                else:
                    builder.alarms.append(decode_trigger(alarm_trigger))
            elif value in COMPONENT_BLOCKS and started:
                break
            continue

        if skipped:
            continue
        if in_alarm:
            if line.name == "TRIGGER":
                alarm_trigger = line
            continue

        builder.apply(line)

    return builder.build()


def parse_calendar(text: str) -> list[CalendarComponentDraft]:
    """Parse every VEVENT and VTODO of a calendar document, in order.

    Other top-level blocks such as VTIMEZONE are skipped.
    """
    drafts: list[CalendarComponentDraft] = []
    block: list[str] = []
    depth = 0

    for raw in unfold_lines(text):
        line = parse_content_line(raw)

        if depth == 0:
            if line.name == "BEGIN" and line.value.strip().upper() in COMPONENT_BLOCKS:
                block = [raw]
                depth = 1
            continue

        block.append(raw)
        if line.name == "BEGIN":
            depth += 1
        elif line.name == "END":
            depth -= 1
            if depth == 0:
                drafts.append(parse_component("\r\n".join(block)))

    logger.debug("Parsed %d calendar components", len(drafts))
    return drafts
