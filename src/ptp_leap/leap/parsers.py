"""Parsing helpers for leap-seconds records stored in the leap ConfigMap."""

from __future__ import annotations

import re

from ptp_leap.errors import AnnouncementNotFoundError

# "<seconds> <offset> # <day> <Mon> <year>" flanked by blank-line boundaries.
_ANNOUNCEMENT_RE = re.compile(r"\n(\d+\s+\d+\s+#\s\d+\s[a-zA-Z]+\s\d{4})\n\n", re.ASCII)
_LEAP_LINE_RE = re.compile(r"^\s*\d+\s+\d+\s+#", re.ASCII)


def get_last_announcement(record: str) -> str:
    """Return the leap event announcement from a leap record.

    An empty record is passed through as ``""``. The first announcement
    block from the start of the text is returned.

    Raises:
        AnnouncementNotFoundError: when the record holds no announcement block.
    """
    if not record:
        return record

    match = _ANNOUNCEMENT_RE.search(record)
    if match is None:
        raise AnnouncementNotFoundError("error finding the last announcement")
    return match.group(1)


def find_leap_announcements(record: str) -> list[str]:
    """List every line that looks like a leap announcement, in file order."""
    return [line for line in record.split("\n") if _LEAP_LINE_RE.match(line)]


def remove_last_leap_announcement(record: str) -> str:
    """Remove the last line that looks like ``<seconds> <offset> # <date>``.

    The record is returned unchanged when no such line exists.
    """
    lines = record.split("\n")

    for idx in range(len(lines) - 1, -1, -1):
        if _LEAP_LINE_RE.match(lines[idx]):
            del lines[idx]
            break

    return "\n".join(lines)
