"""Mapping between component drafts and a host calendar store.

The codec never touches a calendar store directly. Hosts implement the small
protocols below and the adapter maps drafts onto them (export) or reads them
back into drafts (import).
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from ..codec.datetime_codec import to_date_time_value
from ..codec.rrule_codec import decode_recurrence_rule
from ..core.config_loader import get_config
from ..exceptions import MissingPropertyError
from ..models import (
    AlarmDescriptor,
    AttendeeDescriptor,
    CalendarComponentDraft,
    ComponentKind,
    DateTimeValue,
    ParticipantKind,
    ParticipantRole,
    ParticipantStatus,
    RecurrenceRuleDescriptor,
    TimeReference,
)

logger = logging.getLogger(__name__)


@dataclass
class ItemFields:
    """Host-facing field values for one calendar item.

    Datetimes are naive for floating and whole-day values and aware
    otherwise; ``time_zone`` is None for floating items.
    """

    uid: Optional[str] = None
    start: Optional[datetime.datetime] = None
    end: Optional[datetime.datetime] = None
    completed: Optional[datetime.datetime] = None
    all_day: bool = False
    time_zone: Optional[datetime.tzinfo] = None
    summary: Optional[str] = None
    notes: Optional[str] = None
    location: Optional[str] = None
    url: Optional[str] = None
    recurrence_rules: list[RecurrenceRuleDescriptor] = field(default_factory=list)
    alarms: list[Any] = field(default_factory=list)
    attendees: list[Any] = field(default_factory=list)


class CalendarItemSink(Protocol):
    """What a host store offers for building items."""

    def construct_event(self, fields: ItemFields) -> Any:
        """Create an event from the given fields."""
        ...

    def construct_reminder(self, fields: ItemFields) -> Any:
        """Create a reminder (to-do) from the given fields."""
        ...

    def construct_alarm(self, trigger: datetime.datetime | int) -> Any:
        """Create an alarm.

        Args:
            trigger: Absolute fire time, or signed seconds relative to the
                item start
        """
        ...

    def construct_attendee(
        self,
        name: Optional[str],
        kind: ParticipantKind,
        role: ParticipantRole,
        status: ParticipantStatus,
    ) -> Any:
        """Create an attendee."""
        ...


class AlarmSource(Protocol):
    """Read access to a host alarm."""

    absolute_date: Optional[datetime.datetime]
    relative_offset: int


class AttendeeSource(Protocol):
    """Read access to a host attendee."""

    name: Optional[str]
    kind: ParticipantKind | str
    role: ParticipantRole | str
    status: ParticipantStatus | str
    address: Optional[str]


class CalendarItemSource(Protocol):
    """Read access to a host event or reminder."""

    is_reminder: bool
    uid: Optional[str]
    created: Optional[datetime.datetime]
    last_modified: Optional[datetime.datetime]
    start: Optional[datetime.datetime]
    end: Optional[datetime.datetime]
    completed: Optional[datetime.datetime]
    all_day: bool
    time_zone: Optional[datetime.tzinfo]
    summary: Optional[str]
    notes: Optional[str]
    location: Optional[str]
    url: Optional[str]
    recurrence_rules: Sequence[str]
    alarms: Sequence[AlarmSource]
    attendees: Sequence[AttendeeSource]


def _host_datetime(value: Optional[DateTimeValue]) -> Optional[datetime.datetime]:
    if value is None:
        return None
    return value.value


def _host_time_zone(value: Optional[DateTimeValue]) -> Optional[datetime.tzinfo]:
    if value is None or value.reference == TimeReference.FLOATING:
        return None
    return value.value.tzinfo


def export_draft(
    draft: CalendarComponentDraft,
    sink: CalendarItemSink,
) -> tuple[Any, tuple[DateTimeValue, ...]]:
    """Build a host item from a draft.

    Exclusion dates cannot be attached to a host item directly; they are
    returned so the host can remove the matching occurrences.

    Returns:
        Tuple of (host item, exclusion dates)
    """
    alarms = [
        sink.construct_alarm(alarm.absolute.value if alarm.absolute else alarm.relative_offset or 0)
        for alarm in draft.alarms
    ]
    attendees = [
        sink.construct_attendee(attendee.name, attendee.kind, attendee.role, attendee.status)
        for attendee in draft.attendees
    ]

    fields = ItemFields(
        uid=draft.uid,
        start=_host_datetime(draft.start),
        end=_host_datetime(draft.end),
        completed=_host_datetime(draft.completed),
        all_day=draft.all_day,
        time_zone=_host_time_zone(draft.start or draft.end),
        summary=draft.summary,
        notes=draft.description,
        location=draft.location,
        url=draft.url,
        recurrence_rules=list(draft.recurrence_rules or ()),
        alarms=alarms,
        attendees=attendees,
    )

    if draft.kind == ComponentKind.TODO:
        item = sink.construct_reminder(fields)
    else:
        item = sink.construct_event(fields)
    return item, draft.exclusions or ()


def _draft_value(
    value: Optional[datetime.datetime],
    has_time_component: bool,
    utc: bool,
    local_tz: datetime.tzinfo,
) -> Optional[DateTimeValue]:
    if value is None:
        return None
    return to_date_time_value(value, has_time_component=has_time_component, utc=utc, local_tz=local_tz)


def _import_alarm(alarm: AlarmSource, local_tz: datetime.tzinfo) -> AlarmDescriptor:
    if alarm.absolute_date is not None:
        return AlarmDescriptor(absolute=to_date_time_value(alarm.absolute_date, utc=True, local_tz=local_tz))
    return AlarmDescriptor(relative_offset=int(alarm.relative_offset))


def _import_attendee(attendee: AttendeeSource) -> AttendeeDescriptor:
    return AttendeeDescriptor(
        name=attendee.name,
        kind=ParticipantKind(attendee.kind),
        role=ParticipantRole(attendee.role),
        status=ParticipantStatus(attendee.status),
        address=attendee.address,
    )


def import_draft(
    source: CalendarItemSource,
    local_tz: Optional[datetime.tzinfo] = None,
) -> CalendarComponentDraft:
    """Read a host item back into a draft.

    Start, end and due values are floating when the item has no time zone
    and UTC otherwise; whole-day items produce date-only values. Timestamps
    (created, last modified, completed) are always UTC.

    Args:
        source: Host item
        local_tz: Zone for naive and zoned host values; defaults to the
            configured zone, loaded once per call

    Raises:
        MissingPropertyError: If an event has no start
        InvalidRecurrenceRuleError: If a host recurrence rule is malformed
        UnsupportedRecurrencePropertyError: If a host rule uses an unknown part
    """
    utc = source.time_zone is not None
    has_time = not source.all_day
    kind = ComponentKind.TODO if source.is_reminder else ComponentKind.EVENT
    if kind == ComponentKind.EVENT and source.start is None:
        raise MissingPropertyError("DTSTART")

    local_tz = local_tz or get_config().local_timezone()
    rules = tuple(decode_recurrence_rule(rule) for rule in source.recurrence_rules)
    logger.debug("Importing %s %s with %d rules", kind.value, source.uid, len(rules))

    return CalendarComponentDraft(
        kind=kind,
        uid=source.uid,
        created=_draft_value(source.created, True, True, local_tz),
        last_modified=_draft_value(source.last_modified, True, True, local_tz),
        start=_draft_value(source.start, has_time, utc, local_tz),
        end=_draft_value(source.end, has_time, utc, local_tz),
        completed=_draft_value(source.completed, True, True, local_tz) if source.is_reminder else None,
        all_day=source.all_day,
        summary=source.summary,
        description=source.notes,
        location=source.location,
        url=source.url,
        recurrence_rules=rules,
        alarms=tuple(_import_alarm(alarm, local_tz) for alarm in source.alarms),
        attendees=tuple(_import_attendee(attendee) for attendee in source.attendees),
    )
