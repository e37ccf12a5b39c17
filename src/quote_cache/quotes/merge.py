"""Splicing freshly downloaded quote lines onto a cached series."""

from __future__ import annotations

from collections.abc import Sequence

from quote_cache.core.models import Line
from quote_cache.quotes.lines import date_key, is_valid_line


def merge(existing: Sequence[Line], incoming: Sequence[Line]) -> list[Line]:
    """Splice ``incoming`` onto ``existing`` at the first incoming date.

    Rows of ``existing`` dated on or after the first valid incoming row are
    dropped and replaced by the valid incoming rows, so re-downloading an
    overlapping window never duplicates a date. The scan over ``existing``
    is a prefix scan and stops at the first row that is not older than the
    boundary; blank lines are skipped.

    Parameters
    ----------
    existing : Sequence[str]
        Cached lines, oldest first.
    incoming : Sequence[str]
        Downloaded lines, possibly starting with a header.

    Returns
    -------
    list[str]
        The reconciled lines. Returned unchanged (as a copy) when either
        side has nothing to contribute.
    """
    # A feed response always starts with a header row
    if len(incoming) < 2:
        return list(existing)
    if len(existing) < 2:
        return list(incoming)

    valid_incoming = [line for line in incoming if is_valid_line(line)]
    if not valid_incoming:
        return list(existing)

    boundary = date_key(valid_incoming[0])

    result: list[Line] = []
    for line in existing:
        if not line:
            continue
        if date_key(line) >= boundary:
            break
        result.append(line)

    result.extend(valid_incoming)
    return result
