"""Interoperability tests against the icalendar library.

icalendar serves as an independent reader and writer: our output must parse
with it, and what it writes must parse with us.
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from icalendar import Alarm, Calendar, Event, Todo, vCalAddress

from rfc5545 import parse_calendar, serialize_calendar
from rfc5545.core.config_loader import CodecConfig
from rfc5545.models import (
    AlarmDescriptor,
    AttendeeDescriptor,
    CalendarComponentDraft,
    ComponentKind,
    DateTimeValue,
    Frequency,
    ParticipantKind,
    ParticipantRole,
    RecurrenceRuleDescriptor,
    TimeReference,
)

pytestmark = pytest.mark.integration


def _utc(*args: int) -> DateTimeValue:
    return DateTimeValue(value=datetime(*args, tzinfo=timezone.utc), reference=TimeReference.UTC)


class TestOurOutputParsesWithIcalendar:
    """Serializer output read back by icalendar."""

    @pytest.fixture
    def document(self, local_tz) -> str:
        draft = CalendarComponentDraft(
            uid="interop-1@example.com",
            created=_utc(2015, 12, 1, 8, 0, 0),
            start=_utc(2016, 1, 1, 10, 0, 0),
            end=_utc(2016, 1, 1, 11, 0, 0),
            summary="Review, plan; ship",
            description="Ünïcödé " * 30,
            recurrence_rules=(RecurrenceRuleDescriptor(frequency=Frequency.WEEKLY, interval=2, count=6),),
            exclusions=(_utc(2016, 1, 15, 10, 0, 0),),
            alarms=(AlarmDescriptor(relative_offset=-600),),
            attendees=(
                AttendeeDescriptor(
                    name="Doe, Jane",
                    kind=ParticipantKind.INDIVIDUAL,
                    role=ParticipantRole.CHAIR,
                    address="mailto:jane@example.com",
                ),
            ),
        )
        return serialize_calendar([draft], CodecConfig(prodid="-//Interop//EN"), local_tz)

    def test_event_fields(self, document):
        calendar = Calendar.from_ical(document)
        events = calendar.walk("VEVENT")

        assert len(events) == 1
        event = events[0]
        assert str(event["UID"]) == "interop-1@example.com"
        assert str(event["SUMMARY"]) == "Review, plan; ship"
        assert str(event["DESCRIPTION"]) == ("Ünïcödé " * 30).strip()
        assert event.decoded("DTSTART") == datetime(2016, 1, 1, 10, 0, tzinfo=timezone.utc)
        assert event.decoded("DTEND") == datetime(2016, 1, 1, 11, 0, tzinfo=timezone.utc)

    def test_recurrence(self, document):
        event = Calendar.from_ical(document).walk("VEVENT")[0]
        rule = event["RRULE"]

        assert rule["FREQ"] == ["WEEKLY"]
        assert rule["INTERVAL"] == [2]
        assert rule["COUNT"] == [6]

    def test_alarm_and_attendee(self, document):
        event = Calendar.from_ical(document).walk("VEVENT")[0]
        alarms = event.walk("VALARM")

        assert len(alarms) == 1
        assert alarms[0].decoded("TRIGGER") == timedelta(minutes=-10)
        attendee = event["ATTENDEE"]
        assert str(attendee) == "mailto:jane@example.com"
        assert attendee.params["CN"] == "Doe, Jane"
        assert attendee.params["ROLE"] == "CHAIR"


class TestIcalendarOutputParsesWithUs:
    """icalendar output read back by the parser."""

    @pytest.fixture
    def document(self) -> str:
        calendar = Calendar()
        calendar.add("prodid", "-//icalendar//EN")
        calendar.add("version", "2.0")

        event = Event()
        event.add("uid", "from-icalendar-1")
        event.add("dtstamp", datetime(2015, 12, 31, 12, 0, tzinfo=timezone.utc))
        event.add("dtstart", datetime(2016, 1, 4, 9, 0, tzinfo=timezone.utc))
        event.add("dtend", datetime(2016, 1, 4, 9, 30, tzinfo=timezone.utc))
        event.add("summary", "Standup, daily; short")
        event.add("description", "A fairly long description " * 8)
        event.add("rrule", {"freq": "weekly", "count": 10, "byday": ["MO", "WE"]})
        event.add("exdate", datetime(2016, 1, 6, 9, 0, tzinfo=timezone.utc))

        attendee = vCalAddress("mailto:jane@example.com")
        attendee.params["cn"] = "Jane Doe"
        attendee.params["role"] = "REQ-PARTICIPANT"
        attendee.params["partstat"] = "ACCEPTED"
        event.add("attendee", attendee, encode=0)

        alarm = Alarm()
        alarm.add("action", "DISPLAY")
        alarm.add("description", "Alarm")
        alarm.add("trigger", timedelta(minutes=-15))
        event.add_component(alarm)
        calendar.add_component(event)

        holiday = Event()
        holiday.add("uid", "holiday-1")
        holiday.add("dtstart", date(2016, 1, 1))
        holiday.add("summary", "New Year")
        calendar.add_component(holiday)

        todo = Todo()
        todo.add("uid", "todo-1")
        todo.add("summary", "File taxes")
        todo.add("due", date(2016, 4, 15))
        calendar.add_component(todo)

        return calendar.to_ical().decode("utf-8")

    def test_components(self, document):
        drafts = parse_calendar(document)
        assert [draft.uid for draft in drafts] == ["from-icalendar-1", "holiday-1", "todo-1"]
        assert [draft.kind for draft in drafts] == [ComponentKind.EVENT, ComponentKind.EVENT, ComponentKind.TODO]

    def test_timed_event(self, document):
        event = parse_calendar(document)[0]

        assert event.start.value == datetime(2016, 1, 4, 9, 0, tzinfo=timezone.utc)
        assert event.end.value == datetime(2016, 1, 4, 9, 30, tzinfo=timezone.utc)
        assert event.summary == "Standup, daily; short"
        assert event.description == ("A fairly long description " * 8)
        assert event.recurrence_rules[0].frequency == Frequency.WEEKLY
        assert event.recurrence_rules[0].count == 10
        assert len(event.recurrence_rules[0].by_day) == 2
        assert [value.value.day for value in event.exclusions] == [6]
        assert event.alarms[0].relative_offset == -900
        assert event.attendees[0].name == "Jane Doe"
        assert event.attendees[0].role == ParticipantRole.REQUIRED

    def test_all_day_event(self, document):
        holiday = parse_calendar(document)[1]

        assert holiday.all_day is True
        assert holiday.end.value == datetime(2016, 1, 1, 23, 59, 59)

    def test_todo(self, document):
        todo = parse_calendar(document)[2]
        assert todo.end.is_date_only
        assert todo.start is None
