"""rfc5545 - bidirectional codec between iCalendar text and component drafts.

Typical use::

    from rfc5545 import parse_component, serialize_component

    draft = parse_component(ics_text)
    text = serialize_component(draft)
"""

__version__ = "0.1.0"

from .calendar.adapter import export_draft, import_draft
from .calendar.component_parser import parse_calendar, parse_component
from .calendar.component_serializer import serialize_calendar, serialize_component
from .codec.rrule_codec import decode_recurrence_rule, encode_recurrence_rule
from .exceptions import (
    ConfigurationError,
    InvalidDateFormatError,
    InvalidRecurrenceRuleError,
    MissingPropertyError,
    RFC5545Error,
    UnsupportedRecurrencePropertyError,
)
from .models import (
    AlarmDescriptor,
    AttendeeDescriptor,
    CalendarComponentDraft,
    ComponentKind,
    DateTimeValue,
    RecurrenceRuleDescriptor,
    TimeReference,
)

__all__ = [
    "AlarmDescriptor",
    "AttendeeDescriptor",
    "CalendarComponentDraft",
    "ComponentKind",
    "ConfigurationError",
    "DateTimeValue",
    "InvalidDateFormatError",
    "InvalidRecurrenceRuleError",
    "MissingPropertyError",
    "RFC5545Error",
    "RecurrenceRuleDescriptor",
    "TimeReference",
    "UnsupportedRecurrencePropertyError",
    "decode_recurrence_rule",
    "encode_recurrence_rule",
    "export_draft",
    "import_draft",
    "parse_calendar",
    "parse_component",
    "serialize_calendar",
    "serialize_component",
]
