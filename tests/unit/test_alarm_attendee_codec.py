"""Unit tests for rfc5545.codec.alarm_codec and rfc5545.codec.attendee_codec."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from rfc5545.codec.alarm_codec import decode_trigger, encode_alarm, format_duration, parse_duration
from rfc5545.codec.attendee_codec import NO_ADDRESS, decode_attendee, encode_attendee
from rfc5545.codec.text import parse_content_line
from rfc5545.exceptions import InvalidDateFormatError
from rfc5545.models import (
    AlarmDescriptor,
    AttendeeDescriptor,
    DateTimeValue,
    ParticipantKind,
    ParticipantRole,
    ParticipantStatus,
    TimeReference,
)

pytestmark = pytest.mark.unit


class TestFormatDuration:
    """Tests for DURATION formatting."""

    @pytest.mark.parametrize(
        ("offset", "expected"),
        [
            (0, "P0W"),
            (-900, "-PT15M"),
            (3_600, "PT1H"),
            (-86_400, "-P1D"),
            (604_800, "P1W"),
            (-1_209_600, "-P2W"),
            (90_061, "P1DT1H1M1S"),
            (3_605, "PT1H0M5S"),
            (45, "PT45S"),
            (86_400 + 30, "P1DT30S"),
        ],
    )
    def test_format(self, offset, expected):
        assert format_duration(offset) == expected

    @pytest.mark.parametrize("offset", [0, 45, -900, 3_605, 90_061, -604_800, 1_000_000])
    def test_parse_reverses_format(self, offset):
        assert parse_duration(format_duration(offset)) == offset


class TestParseDuration:
    """Tests for DURATION parsing."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("PT15M", 900),
            ("-PT15M", -900),
            ("+PT1H", 3_600),
            ("P1DT12H", 129_600),
            ("P2W", 1_209_600),
            ("pt5m", 300),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "P", "PT", "-P", "15M", "PT15", "P1H", "P1.5D", "PT\u0661\u0665M"])
    def test_invalid(self, text):
        with pytest.raises(InvalidDateFormatError):
            parse_duration(text)


class TestEncodeAlarm:
    """Tests for VALARM encoding."""

    def test_relative_alarm(self, local_tz):
        lines = encode_alarm(AlarmDescriptor(relative_offset=-900), local_tz)
        assert lines == [
            "BEGIN:VALARM",
            "TRIGGER:-PT15M",
            "DESCRIPTION:Reminder",
            "ACTION:DISPLAY",
            "END:VALARM",
        ]

    def test_absolute_alarm_is_written_in_utc(self, local_tz):
        absolute = DateTimeValue(value=datetime(2016, 1, 1, 9, 0), reference=TimeReference.FLOATING)
        lines = encode_alarm(AlarmDescriptor(absolute=absolute), local_tz)
        assert lines[1] == "TRIGGER;VALUE=DATE-TIME:20160101T170000Z"


class TestDecodeTrigger:
    """Tests for TRIGGER decoding."""

    def test_relative(self):
        alarm = decode_trigger(parse_content_line("TRIGGER:-PT30M"))
        assert alarm.is_relative
        assert alarm.relative_offset == -1_800

    def test_related_end_is_read_as_relative(self):
        alarm = decode_trigger(parse_content_line("TRIGGER;RELATED=END:PT5M"))
        assert alarm.relative_offset == 300

    def test_absolute(self):
        alarm = decode_trigger(parse_content_line("TRIGGER;VALUE=DATE-TIME:20160101T170000Z"))
        assert not alarm.is_relative
        assert alarm.absolute.value == datetime(2016, 1, 1, 17, 0, tzinfo=timezone.utc)

    def test_invalid_absolute(self):
        with pytest.raises(InvalidDateFormatError):
            decode_trigger(parse_content_line("TRIGGER;VALUE=DATE-TIME:tomorrow"))

    def test_alarm_needs_exactly_one_trigger(self):
        with pytest.raises(ValidationError):
            AlarmDescriptor()
        with pytest.raises(ValidationError):
            AlarmDescriptor(
                relative_offset=0,
                absolute=DateTimeValue(value=datetime(2016, 1, 1)),
            )


class TestAttendeeCodec:
    """Tests for ATTENDEE encoding and decoding."""

    def test_encode_full(self):
        attendee = AttendeeDescriptor(
            name="Jane Doe",
            kind=ParticipantKind.INDIVIDUAL,
            role=ParticipantRole.CHAIR,
            status=ParticipantStatus.ACCEPTED,
            address="mailto:jane@example.com",
        )
        assert encode_attendee(attendee) == (
            "ATTENDEE;CN=Jane Doe;CUTYPE=INDIVIDUAL;ROLE=CHAIR;PARTSTAT=ACCEPTED:mailto:jane@example.com"
        )

    def test_unspecified_role_and_status_are_omitted(self):
        attendee = AttendeeDescriptor(name="Room 1", kind=ParticipantKind.ROOM)
        assert encode_attendee(attendee) == f"ATTENDEE;CN=Room 1;CUTYPE=ROOM:{NO_ADDRESS}"

    def test_name_with_delimiters_is_quoted(self):
        line = encode_attendee(AttendeeDescriptor(name="Doe, Jane"))
        assert line.startswith('ATTENDEE;CN="Doe, Jane";CUTYPE=UNKNOWN')

    def test_decode(self):
        line = parse_content_line(
            'ATTENDEE;CN="Doe, Jane";CUTYPE=GROUP;ROLE=OPT-PARTICIPANT;PARTSTAT=TENTATIVE:mailto:team@example.com'
        )
        attendee = decode_attendee(line)

        assert attendee.name == "Doe, Jane"
        assert attendee.kind == ParticipantKind.GROUP
        assert attendee.role == ParticipantRole.OPTIONAL
        assert attendee.status == ParticipantStatus.TENTATIVE
        assert attendee.address == "mailto:team@example.com"

    def test_decode_defaults_and_unknown_values(self):
        attendee = decode_attendee(
            parse_content_line("ATTENDEE;PARTSTAT=NEEDS-ACTION;ROLE=WHATEVER:mailto:a@example.com")
        )
        assert attendee.kind == ParticipantKind.INDIVIDUAL
        assert attendee.role == ParticipantRole.UNSPECIFIED
        assert attendee.status == ParticipantStatus.UNSPECIFIED

    def test_decode_unknown_cutype(self):
        attendee = decode_attendee(parse_content_line("ATTENDEE;CUTYPE=X-ROBOT:mailto:bot@example.com"))
        assert attendee.kind == ParticipantKind.UNKNOWN

    def test_placeholder_address_decodes_to_none(self):
        assert decode_attendee(parse_content_line(f"ATTENDEE:{NO_ADDRESS}")).address is None

    @pytest.mark.parametrize(
        "attendee",
        [
            AttendeeDescriptor(name="Chair", kind=ParticipantKind.INDIVIDUAL, role=ParticipantRole.CHAIR),
            AttendeeDescriptor(
                kind=ParticipantKind.RESOURCE,
                role=ParticipantRole.NON_PARTICIPANT,
                status=ParticipantStatus.DELEGATED,
                address="mailto:projector@example.com",
            ),
            AttendeeDescriptor(name="Team; Ops", kind=ParticipantKind.GROUP, status=ParticipantStatus.DECLINED),
        ],
    )
    def test_decode_reverses_encode(self, attendee):
        assert decode_attendee(parse_content_line(encode_attendee(attendee))) == attendee
