"""RFC5545 codec exceptions.

Every parse or encode call raises the first error it meets and stops. The
subclasses are kept distinct so callers can present a specific diagnostic.
"""

from typing import Optional


class RFC5545Error(Exception):
    """Base exception for all codec errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingPropertyError(RFC5545Error):
    """A mandatory property is absent from the component.

    Raised when:
    - A VEVENT has no DTSTART line
    """

    def __init__(self, field_name: str, message: Optional[str] = None):
        super().__init__(message or f"Missing required property: {field_name}")
        self.field_name = field_name


class InvalidDateFormatError(RFC5545Error):
    """A DATE, DATE-TIME or DURATION value could not be parsed.

    Raised when:
    - The token does not match YYYYMMDD / YYYYMMDDTHHMMSS[Z]
    - The digits describe an impossible calendar date
    - A value carries both a TZID parameter and a trailing Z
    - The TZID does not name a known time zone
    """


class InvalidRecurrenceRuleError(RFC5545Error):
    """An RRULE value violates the recurrence grammar.

    Raised when:
    - FREQ is missing, unknown or not supported
    - A rule part appears twice, or UNTIL and COUNT are combined
    - An integer list holds a non-integer or an out-of-range value
    - A BY* rule part is illegal for the chosen FREQ
    """


class UnsupportedRecurrencePropertyError(RFC5545Error):
    """An RRULE rule part that this codec does not implement."""

    def __init__(self, key: str, message: Optional[str] = None):
        super().__init__(message or f"Unsupported recurrence property: {key}")
        self.key = key


class ConfigurationError(RFC5545Error, ValueError):
    """The codec configuration file cannot be used.

    Raised when:
    - The YAML file is malformed
    - The file's top level is not a mapping
    """
