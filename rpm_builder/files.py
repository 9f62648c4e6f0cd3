"""
files.py

Responsibility: Parse a `<source-path>:<dest-path>` flag value into a `FileEntry`.

The classification comes from the flag family the value was given under, not
from the value itself. Nothing here touches the filesystem.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from rpm_builder.errors import InvalidFileMapping

FILE_MAPPING_FORMAT = "<source-path>:<dest-path>"


class FileKind(enum.Enum):
    EXECUTABLE = "executable"
    CONFIG = "config"
    DOC = "doc"
    PLAIN = "plain"


# Regular-file type bits included, as stored in the rpm header.
EXECUTABLE_MODE = 0o100755
REGULAR_MODE = 0o100644

DEFAULT_MODES: dict[FileKind, int] = {
    FileKind.EXECUTABLE: EXECUTABLE_MODE,
    FileKind.CONFIG: REGULAR_MODE,
    FileKind.DOC: REGULAR_MODE,
    FileKind.PLAIN: REGULAR_MODE,
}


@dataclass(frozen=True)
class FileEntry:
    """One file to copy into the package payload."""

    source: str
    dest: str
    kind: FileKind = FileKind.PLAIN
    mode: int = REGULAR_MODE

    @property
    def permissions(self) -> str:
        """Permission bits without the file-type bits, e.g. `0755`."""
        return f"{self.mode & 0o7777:04o}"


def parse_file_entry(value: str, kind: FileKind, mode: int | None = None) -> FileEntry:
    parts = value.split(":")
    if len(parts) != 2 or not all(parts):
        raise InvalidFileMapping(
            f"invalid file argument: {value!r}, it needs to be of the form {FILE_MAPPING_FORMAT}",
            value=value,
            expected=FILE_MAPPING_FORMAT,
        )
    source, dest = parts
    return FileEntry(
        source=source,
        dest=dest,
        kind=kind,
        mode=DEFAULT_MODES[kind] if mode is None else mode,
    )
