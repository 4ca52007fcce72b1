"""Content-line level helpers: TEXT escaping, line folding and splitting.

See RFC5545 section 3.1 (content lines) and 3.3.11 (TEXT).
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

CRLF = "\r\n"

# Octet limits for folded output: the first physical line holds 75 octets,
# continuation lines hold 74 plus the leading space.
FOLD_FIRST_LINE_OCTETS = 75
FOLD_CONTINUATION_OCTETS = 74

_FOLD_BREAK_RE = re.compile(r"\r?\n[ \t]")
_LINE_SPLIT_RE = re.compile(r"\r?\n")
_UNESCAPE_RE = re.compile(r"\\([\\;,nN])")


def escape_text(text: str) -> str:
    """Escape a TEXT value: backslash, semicolon, comma and newline.

    CRLF and bare CR line breaks are written as ``\\n`` too, since TEXT may
    not carry control characters.
    """
    return (
        text.replace("\r\n", "\n")
        .replace("\r", "\n")
        .replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def _unescape_match(match: re.Match) -> str:
    char = match.group(1)
    if char in "nN":
        return "\n"
    return char


def unescape_text(text: str, starting_at: int = 0) -> Optional[str]:
    """Undo TEXT escaping.

    Runs as a single left-to-right pass so ``\\\\`` is consumed as one unit and
    never mistaken for the start of ``\\;``, ``\\,`` or ``\\n``.

    Args:
        text: Escaped value, or a whole content line when ``starting_at`` is set
        starting_at: Offset of the value segment inside ``text``

    Returns:
        The unescaped text, or None if there is nothing after ``starting_at``
    """
    segment = text[starting_at:]
    if not segment:
        return None
    return _UNESCAPE_RE.sub(_unescape_match, segment)


def unfold_lines(content: str) -> list[str]:
    """Split raw content into logical content lines.

    Every line break immediately followed by one space or tab is removed
    first; the result is split on the remaining line breaks. Empty lines
    are dropped and order is preserved.
    """
    unfolded = _FOLD_BREAK_RE.sub("", content)
    return [line for line in _LINE_SPLIT_RE.split(unfolded) if line]


def fold_line(line: str) -> str:
    """Fold one logical line into CRLF-joined physical lines.

    The first physical line carries at most 75 octets, each continuation at
    most 74 octets after its leading space. Multi-byte UTF-8 characters are
    never split across lines.
    """
    chunks: list[str] = []
    current: list[str] = []
    used = 0
    limit = FOLD_FIRST_LINE_OCTETS

    for char in line:
        size = len(char.encode("utf-8"))
        if used + size > limit and current:
            chunks.append("".join(current))
            current = []
            used = 0
            limit = FOLD_CONTINUATION_OCTETS
        current.append(char)
        used += size

    chunks.append("".join(current))
    return (CRLF + " ").join(chunks)


def fold_lines(lines: Iterable[str]) -> str:
    """Fold and join logical lines with CRLF (no trailing line break)."""
    return CRLF.join(fold_line(line) for line in lines)


@dataclass(frozen=True)
class ContentLine:
    """A logical content line split into name, parameters and value."""

    name: str
    params: dict[str, str] = field(default_factory=dict)
    value: str = ""

    def param(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.params.get(key.upper(), default)


def _split_unquoted(text: str, separator: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    quoted = False
    for char in text:
        if char == '"':
            quoted = not quoted
        if char == separator and not quoted:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def split_parameters(head: str) -> dict[str, str]:
    """Parse ``KEY=VALUE`` pairs separated by ``;``.

    Keys are upper-cased; surrounding double quotes are stripped from values.
    Segments without ``=`` are skipped.
    """
    params: dict[str, str] = {}
    for segment in _split_unquoted(head, ";"):
        if "=" not in segment:
            continue
        key, value = segment.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        params[key.strip().upper()] = value
    return params


def parse_content_line(line: str) -> ContentLine:
    """Split ``NAME[;PARAM=VALUE...]:VALUE``.

    The value starts at the first ``:`` outside a quoted parameter value.
    A line with no such ``:`` gets an empty value.
    """
    quoted = False
    colon = -1
    for index, char in enumerate(line):
        if char == '"':
            quoted = not quoted
        elif char == ":" and not quoted:
            colon = index
            break

    if colon == -1:
        logger.debug("Content line without value separator: %r", line)
        head, value = line, ""
    else:
        head, value = line[:colon], line[colon + 1 :]

    name, _, param_text = head.partition(";")
    return ContentLine(name=name.strip().upper(), params=split_parameters(param_text), value=value)


def format_parameter_value(value: str) -> str:
    """Quote a parameter value when it contains ``;``, ``:`` or ``,``."""
    value = value.replace('"', "")
    if any(char in value for char in ";:,"):
        return f'"{value}"'
    return value
