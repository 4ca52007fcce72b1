"""Value records for RFC5545 calendar components.

All models are frozen: they are built in one pass by the parser (or by the
source adapter) and never mutated afterwards.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TimeReference(str, Enum):
    """How a DATE-TIME relates to a time zone."""

    FLOATING = "floating"
    UTC = "utc"
    ZONED = "zoned"


class DateFormat(str, Enum):
    """Output forms for DATE and DATE-TIME values."""

    DAY = "day"
    FLOATING = "floating"
    UTC = "utc"


class DateTimeValue(BaseModel):
    """A parsed DATE or DATE-TIME property value."""

    value: datetime = Field(..., description="Instant (naive for floating and date-only values)")
    has_time_component: bool = Field(default=True, description="False for whole-day values")
    reference: TimeReference = Field(default=TimeReference.FLOATING, description="Time reference")
    tzid: Optional[str] = Field(default=None, description="TZID parameter for zoned values")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_reference(self) -> "DateTimeValue":
        aware = self.value.tzinfo is not None
        if self.reference == TimeReference.ZONED:
            if not self.tzid or not aware:
                raise ValueError("zoned values need a tzid and an aware datetime")
        elif self.tzid is not None:
            raise ValueError(f"{self.reference.value} values cannot carry a tzid")
        if self.reference == TimeReference.UTC and not aware:
            raise ValueError("utc values need an aware datetime")
        if self.reference == TimeReference.FLOATING and aware:
            raise ValueError("floating values must be naive")
        if not self.has_time_component and self.reference != TimeReference.FLOATING:
            raise ValueError("date-only values are always floating")
        return self

    @classmethod
    def date_only(cls, value: datetime) -> "DateTimeValue":
        """Build a whole-day value for the calendar date of ``value``."""
        midnight = datetime(value.year, value.month, value.day)
        return cls(value=midnight, has_time_component=False)

    @property
    def is_date_only(self) -> bool:
        return not self.has_time_component


class Frequency(str, Enum):
    """RRULE FREQ values."""

    SECONDLY = "SECONDLY"
    MINUTELY = "MINUTELY"
    HOURLY = "HOURLY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"

    @property
    def is_supported(self) -> bool:
        """Sub-daily frequencies are recognised but cannot be represented."""
        return self not in (Frequency.SECONDLY, Frequency.MINUTELY, Frequency.HOURLY)


class Weekday(str, Enum):
    """Two-letter RFC5545 weekday codes, Sunday first."""

    SU = "SU"
    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"


class DayOfWeek(BaseModel):
    """One BYDAY entry, e.g. ``-1SU`` (last Sunday) or ``MO``."""

    weekday: Weekday
    week_number: Optional[int] = Field(default=None, description="Signed ordinal, None if absent")

    model_config = ConfigDict(frozen=True)

    def to_ical(self) -> str:
        if self.week_number:
            return f"{self.week_number}{self.weekday.value}"
        return self.weekday.value


class RecurrenceEndKind(str, Enum):
    NONE = "none"
    UNTIL = "until"
    COUNT = "count"


class RecurrenceRuleDescriptor(BaseModel):
    """A decoded RRULE.

    The BY* fields are ``None`` when the rule part is absent. An empty tuple
    means the part was present but held nothing usable (for example a BYDAY
    made only of unknown weekday codes).
    """

    frequency: Frequency
    interval: int = Field(default=1, ge=1)
    until: Optional[DateTimeValue] = None
    count: Optional[int] = Field(default=None, ge=1)
    first_day_of_week: Optional[Weekday] = None
    by_day: Optional[tuple[DayOfWeek, ...]] = None
    by_month_day: Optional[tuple[int, ...]] = None
    by_year_day: Optional[tuple[int, ...]] = None
    by_week_number: Optional[tuple[int, ...]] = None
    by_month: Optional[tuple[int, ...]] = None
    by_set_position: Optional[tuple[int, ...]] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_end(self) -> "RecurrenceRuleDescriptor":
        if self.until is not None and self.count is not None:
            raise ValueError("UNTIL and COUNT are mutually exclusive")
        return self

    @property
    def end(self) -> RecurrenceEndKind:
        if self.until is not None:
            return RecurrenceEndKind.UNTIL
        if self.count is not None:
            return RecurrenceEndKind.COUNT
        return RecurrenceEndKind.NONE

    @property
    def has_by_rules(self) -> bool:
        return any(
            part is not None
            for part in (
                self.by_day,
                self.by_month_day,
                self.by_year_day,
                self.by_week_number,
                self.by_month,
                self.by_set_position,
            )
        )


class AlarmDescriptor(BaseModel):
    """A display alarm with either an absolute or a relative trigger."""

    absolute: Optional[DateTimeValue] = Field(default=None, description="Absolute trigger time")
    relative_offset: Optional[int] = Field(
        default=None, description="Signed offset in seconds from the component start"
    )
    description: str = "Reminder"
    action: str = "DISPLAY"

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_trigger(self) -> "AlarmDescriptor":
        if (self.absolute is None) == (self.relative_offset is None):
            raise ValueError("an alarm needs exactly one of absolute or relative_offset")
        return self

    @property
    def is_relative(self) -> bool:
        return self.relative_offset is not None


class ParticipantKind(str, Enum):
    INDIVIDUAL = "individual"
    GROUP = "group"
    RESOURCE = "resource"
    ROOM = "room"
    UNKNOWN = "unknown"


class ParticipantRole(str, Enum):
    CHAIR = "chair"
    REQUIRED = "required"
    OPTIONAL = "optional"
    NON_PARTICIPANT = "non-participant"
    UNSPECIFIED = "unspecified"


class ParticipantStatus(str, Enum):
    ACCEPTED = "accepted"
    DECLINED = "declined"
    DELEGATED = "delegated"
    TENTATIVE = "tentative"
    UNSPECIFIED = "unspecified"


class AttendeeDescriptor(BaseModel):
    """Calendar component attendee."""

    name: Optional[str] = Field(default=None, description="Common name (CN)")
    kind: ParticipantKind = Field(default=ParticipantKind.UNKNOWN, description="CUTYPE")
    role: ParticipantRole = Field(default=ParticipantRole.UNSPECIFIED, description="ROLE")
    status: ParticipantStatus = Field(default=ParticipantStatus.UNSPECIFIED, description="PARTSTAT")
    address: Optional[str] = Field(default=None, description="Calendar user address URI")

    model_config = ConfigDict(frozen=True)


class ComponentKind(str, Enum):
    EVENT = "VEVENT"
    TODO = "VTODO"


class CalendarComponentDraft(BaseModel):
    """An event or to-do as read from, or written to, RFC5545 text."""

    kind: ComponentKind = ComponentKind.EVENT

    # Identity and timestamps
    uid: Optional[str] = None
    created: Optional[DateTimeValue] = None
    stamp: Optional[DateTimeValue] = None
    last_modified: Optional[DateTimeValue] = None

    # Time information (end is DTEND for events, DUE for to-dos)
    start: Optional[DateTimeValue] = None
    end: Optional[DateTimeValue] = None
    completed: Optional[DateTimeValue] = None
    all_day: bool = False

    # Descriptive text
    summary: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    url: Optional[str] = None

    # Recurrence
    recurrence_rules: Optional[tuple[RecurrenceRuleDescriptor, ...]] = None
    exclusions: Optional[tuple[DateTimeValue, ...]] = None
    recurrence_id: Optional[DateTimeValue] = Field(
        default=None, description="Set when the draft is a detached occurrence"
    )

    alarms: tuple[AlarmDescriptor, ...] = ()
    attendees: tuple[AttendeeDescriptor, ...] = ()

    model_config = ConfigDict(frozen=True)

    @field_validator("recurrence_rules", "exclusions", mode="after")
    @classmethod
    def _empty_is_absent(cls, value: Optional[tuple]) -> Optional[tuple]:
        return value or None

    @model_validator(mode="after")
    def _check_kind(self) -> "CalendarComponentDraft":
        if self.kind == ComponentKind.EVENT:
            if self.start is None:
                raise ValueError("events require a start")
            if self.completed is not None:
                raise ValueError("only to-dos carry a completion timestamp")
        elif self.exclusions is not None:
            raise ValueError("only events carry exclusion dates")
        return self

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_rules is not None

    @property
    def is_detached(self) -> bool:
        return self.recurrence_id is not None
