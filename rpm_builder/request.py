"""
request.py

Responsibility: Fold raw flag values into one immutable `PackageBuildRequest`
and drive a packaging backend with it.

Flag families are processed one after another, each in command-line order.
The first invalid value aborts the whole aggregation; a request is either fully
populated or never produced, so the backend never sees partial input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, TypeVar

from rpm_builder.changelog import ChangelogEntry, parse_changelog_entry
from rpm_builder.dependency import DependencyConstraint, parse_dependency
from rpm_builder.files import FileEntry, FileKind, parse_file_entry

log = logging.getLogger(__name__)

DEFAULT_VERSION = "1.0.0"
DEFAULT_LICENSE = "MIT"
DEFAULT_ARCH = "x86_64"
DEFAULT_RELEASE = "1"
DEFAULT_DESCRIPTION = ""

DEPENDENCY_KINDS: tuple[str, ...] = ("requires", "obsoletes", "conflicts", "provides")

T = TypeVar("T")


@dataclass
class BuildOptions:
    """Raw, unvalidated flag values for one invocation."""

    name: str
    version: str = DEFAULT_VERSION
    license: str = DEFAULT_LICENSE
    arch: str = DEFAULT_ARCH
    release: str = DEFAULT_RELEASE
    description: str = DEFAULT_DESCRIPTION
    exec_files: list[str] = field(default_factory=list)
    config_files: list[str] = field(default_factory=list)
    doc_files: list[str] = field(default_factory=list)
    changelog: list[str] = field(default_factory=list)
    requires: list[str] = field(default_factory=list)
    obsoletes: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)
    provides: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PackageBuildRequest:
    """Validated description of the package to produce."""

    name: str
    version: str = DEFAULT_VERSION
    license: str = DEFAULT_LICENSE
    arch: str = DEFAULT_ARCH
    release: str = DEFAULT_RELEASE
    description: str = DEFAULT_DESCRIPTION
    files: tuple[FileEntry, ...] = ()
    changelog: tuple[ChangelogEntry, ...] = ()
    requires: tuple[DependencyConstraint, ...] = ()
    obsoletes: tuple[DependencyConstraint, ...] = ()
    conflicts: tuple[DependencyConstraint, ...] = ()
    provides: tuple[DependencyConstraint, ...] = ()

    def dependencies(self) -> list[tuple[str, DependencyConstraint]]:
        """All dependency constraints as `(kind, constraint)` in family order."""
        return [(kind, dep) for kind in DEPENDENCY_KINDS for dep in getattr(self, kind)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "release": self.release,
            "license": self.license,
            "arch": self.arch,
            "description": self.description,
            "files": [
                {"source": f.source, "dest": f.dest, "kind": f.kind.value, "mode": f.permissions}
                for f in self.files
            ],
            "changelog": [
                {"author": c.author, "content": c.content, "date": c.date.isoformat(), "timestamp": c.timestamp}
                for c in self.changelog
            ],
            **{kind: [str(dep) for dep in getattr(self, kind)] for kind in DEPENDENCY_KINDS},
        }


def _parse_all(values: Iterable[str], parse: Callable[[str], T]) -> tuple[T, ...]:
    return tuple(parse(value) for value in values)


def build_request(options: BuildOptions) -> PackageBuildRequest:
    """
    Translate `options` into a `PackageBuildRequest`.

    Raises the first `InputError` encountered; no request is produced then.
    """
    if not options.name:
        raise ValueError("package name is required")

    files = (
        _parse_all(options.exec_files, lambda v: parse_file_entry(v, FileKind.EXECUTABLE))
        + _parse_all(options.config_files, lambda v: parse_file_entry(v, FileKind.CONFIG))
        + _parse_all(options.doc_files, lambda v: parse_file_entry(v, FileKind.DOC))
    )
    changelog = _parse_all(options.changelog, parse_changelog_entry)
    dependencies = {kind: _parse_all(getattr(options, kind), parse_dependency) for kind in DEPENDENCY_KINDS}

    request = PackageBuildRequest(
        name=options.name,
        version=options.version,
        license=options.license,
        arch=options.arch,
        release=options.release,
        description=options.description,
        files=files,
        changelog=changelog,
        **dependencies,
    )
    log.info(
        "Validated %s-%s-%s: %d file(s), %d changelog entr(ies), %d dependency constraint(s)",
        request.name,
        request.version,
        request.release,
        len(request.files),
        len(request.changelog),
        len(request.dependencies()),
    )
    return request


def submit(request: PackageBuildRequest, backend_factory: Callable[..., Any]) -> Any:
    """
    Drive a builder-style backend with a finished request and return its package.

    Backend errors propagate unchanged.
    """
    builder = backend_factory(
        request.name,
        request.version,
        request.license,
        request.arch,
        request.description,
        release=request.release,
    )
    for entry in request.files:
        log.debug("add file %s -> %s (%s)", entry.source, entry.dest, entry.kind.value)
        builder.add_file(entry.source, entry.dest, entry.kind, entry.mode)
    for change in request.changelog:
        builder.add_changelog_entry(change.author, change.content, change.timestamp)
    for kind, dep in request.dependencies():
        log.debug("add %s %s", kind, dep)
        builder.add_dependency(kind, dep)
    return builder.build()
