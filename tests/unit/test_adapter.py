"""Unit tests for rfc5545.calendar.adapter."""

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from rfc5545.calendar.adapter import ItemFields, export_draft, import_draft
from rfc5545.calendar.component_parser import parse_component
from rfc5545.core import config_loader
from rfc5545.exceptions import InvalidRecurrenceRuleError, MissingPropertyError
from rfc5545.models import (
    ComponentKind,
    Frequency,
    ParticipantKind,
    ParticipantRole,
    ParticipantStatus,
    TimeReference,
)

pytestmark = pytest.mark.unit


class RecordingSink:
    """Sink that records what the adapter asks it to build."""

    def __init__(self) -> None:
        self.alarm_triggers: list[Any] = []

    def construct_event(self, fields: ItemFields) -> Any:
        return ("event", fields)

    def construct_reminder(self, fields: ItemFields) -> Any:
        return ("reminder", fields)

    def construct_alarm(self, trigger: Any) -> Any:
        self.alarm_triggers.append(trigger)
        return {"trigger": trigger}

    def construct_attendee(self, name, kind, role, status) -> Any:
        return {"name": name, "kind": kind, "role": role, "status": status}


def _source(**overrides: Any) -> SimpleNamespace:
    fields: dict[str, Any] = {
        "is_reminder": False,
        "uid": "host-1",
        "created": datetime(2016, 1, 1, 8, 0, tzinfo=timezone.utc),
        "last_modified": None,
        "start": datetime(2016, 1, 4, 9, 0),
        "end": datetime(2016, 1, 4, 10, 0),
        "completed": None,
        "all_day": False,
        "time_zone": None,
        "summary": "Standup",
        "notes": None,
        "location": None,
        "url": None,
        "recurrence_rules": [],
        "alarms": [],
        "attendees": [],
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestExportDraft:
    """Tests for mapping drafts onto a host sink."""

    def test_event_with_alarms_attendees_and_exclusions(self):
        draft = parse_component(
            "\r\n".join(
                [
                    "BEGIN:VEVENT",
                    "DTSTART;TZID=Europe/Berlin:20160104T090000",
                    "DTEND;TZID=Europe/Berlin:20160104T100000",
                    "SUMMARY:Standup",
                    "DESCRIPTION:Daily",
                    "RRULE:FREQ=DAILY;COUNT=5",
                    "EXDATE;TZID=Europe/Berlin:20160106T090000",
                    "ATTENDEE;CN=Jane;ROLE=CHAIR;PARTSTAT=ACCEPTED:mailto:jane@example.com",
                    "BEGIN:VALARM",
                    "TRIGGER:-PT5M",
                    "END:VALARM",
                    "BEGIN:VALARM",
                    "TRIGGER;VALUE=DATE-TIME:20160104T074500Z",
                    "END:VALARM",
                    "END:VEVENT",
                ]
            )
        )
        sink = RecordingSink()
        (kind, fields), exclusions = export_draft(draft, sink)

        assert kind == "event"
        assert fields.start == datetime(2016, 1, 4, 9, 0, tzinfo=ZoneInfo("Europe/Berlin"))
        assert fields.time_zone == ZoneInfo("Europe/Berlin")
        assert fields.notes == "Daily"
        assert fields.recurrence_rules[0].frequency == Frequency.DAILY
        assert sink.alarm_triggers == [-300, datetime(2016, 1, 4, 7, 45, tzinfo=timezone.utc)]
        assert fields.attendees == [
            {
                "name": "Jane",
                "kind": ParticipantKind.INDIVIDUAL,
                "role": ParticipantRole.CHAIR,
                "status": ParticipantStatus.ACCEPTED,
            }
        ]
        assert [value.value.day for value in exclusions] == [6]

    def test_floating_event_has_no_time_zone(self):
        draft = parse_component("DTSTART:20160104T090000")
        (_, fields), exclusions = export_draft(draft, RecordingSink())

        assert fields.time_zone is None
        assert fields.start.tzinfo is None
        assert exclusions == ()

    def test_todo_becomes_reminder(self):
        draft = parse_component("BEGIN:VTODO\r\nSUMMARY:Buy milk\r\nEND:VTODO")
        (kind, fields), _ = export_draft(draft, RecordingSink())

        assert kind == "reminder"
        assert fields.summary == "Buy milk"
        assert fields.start is None


class TestImportDraft:
    """Tests for reading host items back into drafts."""

    def test_floating_event(self):
        draft = import_draft(_source(recurrence_rules=["RRULE:FREQ=WEEKLY;BYDAY=MO"]))

        assert draft.kind == ComponentKind.EVENT
        assert draft.start.reference == TimeReference.FLOATING
        assert draft.start.value == datetime(2016, 1, 4, 9, 0)
        assert draft.created.reference == TimeReference.UTC
        assert draft.recurrence_rules[0].frequency == Frequency.WEEKLY

    def test_zoned_host_item_is_imported_as_utc(self):
        berlin = ZoneInfo("Europe/Berlin")
        draft = import_draft(
            _source(
                time_zone=berlin,
                start=datetime(2016, 1, 4, 9, 0, tzinfo=berlin),
                end=datetime(2016, 1, 4, 10, 0, tzinfo=berlin),
            )
        )

        assert draft.start.reference == TimeReference.UTC
        assert draft.start.value == datetime(2016, 1, 4, 8, 0, tzinfo=timezone.utc)

    def test_all_day_item(self):
        draft = import_draft(
            _source(all_day=True, start=datetime(2016, 1, 4), end=datetime(2016, 1, 5))
        )
        assert draft.all_day is True
        assert draft.start.is_date_only
        assert draft.end.is_date_only

    def test_reminder_with_completion(self):
        draft = import_draft(
            _source(
                is_reminder=True,
                start=None,
                end=None,
                completed=datetime(2016, 1, 5, 10, 0, tzinfo=timezone.utc),
            )
        )
        assert draft.kind == ComponentKind.TODO
        assert draft.completed.reference == TimeReference.UTC

    def test_alarms_and_attendees(self):
        draft = import_draft(
            _source(
                alarms=[
                    SimpleNamespace(absolute_date=None, relative_offset=-600.0),
                    SimpleNamespace(absolute_date=datetime(2016, 1, 4, 8, 0), relative_offset=0),
                ],
                attendees=[
                    SimpleNamespace(
                        name="Room 1",
                        kind="room",
                        role=ParticipantRole.NON_PARTICIPANT,
                        status="accepted",
                        address=None,
                    )
                ],
            )
        )

        assert draft.alarms[0].relative_offset == -600
        assert draft.alarms[1].absolute.value == datetime(2016, 1, 4, 16, 0, tzinfo=timezone.utc)
        assert draft.attendees[0].kind == ParticipantKind.ROOM
        assert draft.attendees[0].status == ParticipantStatus.ACCEPTED

    def test_event_without_start(self):
        with pytest.raises(MissingPropertyError):
            import_draft(_source(start=None))

    def test_malformed_host_rule(self):
        with pytest.raises(InvalidRecurrenceRuleError):
            import_draft(_source(recurrence_rules=["FREQ=WEEKLY;BYMONTHDAY=1"]))

    def test_config_is_loaded_once(self, monkeypatch):
        calls = []
        real_load_config = config_loader.load_config

        def counting_load_config(*args, **kwargs):
            calls.append(args)
            return real_load_config(*args, **kwargs)

        monkeypatch.setattr(config_loader, "load_config", counting_load_config)
        import_draft(
            _source(
                created=datetime(2016, 1, 1, 8, 0),
                last_modified=datetime(2016, 1, 2, 8, 0),
                alarms=[SimpleNamespace(absolute_date=datetime(2016, 1, 4, 8, 0), relative_offset=0)],
            )
        )
        assert len(calls) == 1

    def test_given_zone_is_used(self):
        tokyo = ZoneInfo("Asia/Tokyo")
        draft = import_draft(_source(created=datetime(2016, 1, 1, 9, 0)), local_tz=tokyo)
        assert draft.created.value == datetime(2016, 1, 1, 0, 0, tzinfo=timezone.utc)
