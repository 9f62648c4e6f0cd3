"""
changelog.py

Responsibility: Parse an `<author>:<content>:<yyyy-mm-dd>` flag value into a
`ChangelogEntry` stamped at midnight UTC of the given day.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone

from rpm_builder.errors import InvalidChangelogEntry, InvalidDate

CHANGELOG_FORMAT = "<author>:<content>:<yyyy-mm-dd>"
DATE_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class ChangelogEntry:
    author: str
    content: str
    timestamp: int

    @property
    def date(self) -> date:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc).date()


def parse_date(raw: str) -> int:
    """
    Convert a `YYYY-MM-DD` date into epoch seconds at 00:00:00 UTC.

    No time-of-day component is accepted.
    """
    try:
        parsed = datetime.strptime(raw, DATE_FORMAT)
    except ValueError as e:
        raise InvalidDate(f"error while parsing date {raw!r}: {e}", value=raw, detail=str(e)) from e
    return int(parsed.replace(tzinfo=timezone.utc).timestamp())


def parse_changelog_entry(value: str) -> ChangelogEntry:
    parts = value.split(":")
    if len(parts) != 3:
        raise InvalidChangelogEntry(
            f"invalid changelog argument: {value!r}, it needs to be of the form {CHANGELOG_FORMAT}",
            value=value,
            expected=CHANGELOG_FORMAT,
        )
    author, content, raw_date = parts
    return ChangelogEntry(author=author, content=content, timestamp=parse_date(raw_date))
