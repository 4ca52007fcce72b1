"""ATTENDEE property encoding and decoding (RFC5545 section 3.8.4.1)."""

import logging

from ..models import AttendeeDescriptor, ParticipantKind, ParticipantRole, ParticipantStatus
from .text import ContentLine, format_parameter_value

logger = logging.getLogger(__name__)

# Calendar user address used when the attendee has no known address
NO_ADDRESS = "invalid:nomail"

KIND_TO_CUTYPE = {
    ParticipantKind.INDIVIDUAL: "INDIVIDUAL",
    ParticipantKind.GROUP: "GROUP",
    ParticipantKind.RESOURCE: "RESOURCE",
    ParticipantKind.ROOM: "ROOM",
    ParticipantKind.UNKNOWN: "UNKNOWN",
}

ROLE_TO_PARAM = {
    ParticipantRole.CHAIR: "CHAIR",
    ParticipantRole.REQUIRED: "REQ-PARTICIPANT",
    ParticipantRole.OPTIONAL: "OPT-PARTICIPANT",
    ParticipantRole.NON_PARTICIPANT: "NON-PARTICIPANT",
}

STATUS_TO_PARTSTAT = {
    ParticipantStatus.ACCEPTED: "ACCEPTED",
    ParticipantStatus.DECLINED: "DECLINED",
    ParticipantStatus.DELEGATED: "DELEGATED",
    ParticipantStatus.TENTATIVE: "TENTATIVE",
}

CUTYPE_TO_KIND = {value: key for key, value in KIND_TO_CUTYPE.items()}
PARAM_TO_ROLE = {value: key for key, value in ROLE_TO_PARAM.items()}
PARTSTAT_TO_STATUS = {value: key for key, value in STATUS_TO_PARTSTAT.items()}


def encode_attendee(attendee: AttendeeDescriptor) -> str:
    """Encode an attendee as a single ATTENDEE content line.

    ROLE and PARTSTAT are omitted when unspecified.
    """
    parts = ["ATTENDEE"]

    if attendee.name:
        parts.append(f"CN={format_parameter_value(attendee.name)}")

    parts.append(f"CUTYPE={KIND_TO_CUTYPE[attendee.kind]}")

    role = ROLE_TO_PARAM.get(attendee.role)
    if role:
        parts.append(f"ROLE={role}")

    status = STATUS_TO_PARTSTAT.get(attendee.status)
    if status:
        parts.append(f"PARTSTAT={status}")

    return ";".join(parts) + f":{attendee.address or NO_ADDRESS}"


def decode_attendee(line: ContentLine) -> AttendeeDescriptor:
    """Build an attendee from a parsed ATTENDEE content line.

    Unknown CUTYPE values map to ``unknown``; NEEDS-ACTION and unknown
    ROLE/PARTSTAT values map to ``unspecified``. A missing CUTYPE defaults to
    ``individual`` as RFC5545 prescribes.
    """
    cutype = line.param("CUTYPE", "INDIVIDUAL").upper()
    role = line.param("ROLE", "").upper()
    partstat = line.param("PARTSTAT", "").upper()

    kind = CUTYPE_TO_KIND.get(cutype, ParticipantKind.UNKNOWN)
    if kind == ParticipantKind.UNKNOWN and cutype != "UNKNOWN":
        logger.debug("Unknown CUTYPE %r", cutype)

    address = line.value.strip()
    return AttendeeDescriptor(
        name=line.param("CN") or None,
        kind=kind,
        role=PARAM_TO_ROLE.get(role, ParticipantRole.UNSPECIFIED),
        status=PARTSTAT_TO_STATUS.get(partstat, ParticipantStatus.UNSPECIFIED),
        address=None if address in ("", NO_ADDRESS) else address,
    )
