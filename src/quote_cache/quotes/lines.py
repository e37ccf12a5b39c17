"""Line classification and date keys for line-oriented quote CSV.

A data row is any line made only of digits, commas, dots and hyphens.
Headers, blank lines, separators and error pages returned by a failed
download contain other characters and are treated as noise.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from quote_cache.core.models import DateKey, Line

_LINE_PATTERN = re.compile(r"^[0-9,.\-]+$")

# Blank lines sort after every real date, garbage sorts before.
FUTURE: DateKey = 99999999
INVALID: DateKey = -1


def is_valid_line(line: Line) -> bool:
    """Return True if the whole line looks like a numeric data row."""
    return bool(line) and _LINE_PATTERN.match(line) is not None


def date_key(line: Line) -> DateKey:
    """Return the comparable integer key of a line's leading date field.

    ``2024-01-05,...`` and ``20240105,...`` both map to ``20240105``.
    Blank lines map to ``FUTURE``; anything else that fails validation maps
    to ``INVALID``.
    """
    if is_valid_line(line):
        field = line.split(",", 1)[0].replace("-", "")
        try:
            return int(field)
        except ValueError:
            # e.g. ",1,2" or "..": matches the pattern but has no number
            return INVALID
    if not line or line.isspace():
        return FUTURE
    return INVALID


def last_date(lines: Iterable[Line]) -> str:
    """Return the leading field of the last non-empty line, hyphens stripped."""
    last = ""
    for line in lines:
        if line.strip():
            last = line.strip()
    return last.split(",", 1)[0].replace("-", "")


def split_lines(body: str) -> list[Line]:
    """Split a response body on CRLF or LF line endings.

    A trailing terminator produces a trailing empty element, so a one-row
    snapshot ending in a newline still counts as two lines.
    """
    return re.split(r"\r?\n", body)
