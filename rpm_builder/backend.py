"""
backend.py

Responsibility: The packaging backend behind the builder-style API the core drives.

`RpmBuilder` collects package metadata, files, dependencies and changelog
entries, then renders an rpm spec document with Jinja2. `RpmPackage.write`
hands that document to the system `rpmbuild` in a throwaway `_topdir` and
streams the produced `.rpm` into the caller's sink. Header layout, payload
compression and signing all stay with rpmbuild.

This module intentionally does NOT know about flag syntax or CLI parsing.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, BinaryIO

from jinja2 import Environment, PackageLoader, StrictUndefined

from rpm_builder.dependency import DependencyConstraint
from rpm_builder.errors import BackendError
from rpm_builder.files import FileKind
from rpm_builder.request import DEPENDENCY_KINDS

log = logging.getLogger(__name__)

SPEC_TEMPLATE = "package.spec.j2"
RPMBUILD = "rpmbuild"

_FILE_DIRECTIVES = {
    FileKind.CONFIG: "%config(noreplace) ",
    FileKind.DOC: "%doc ",
}


def rpm_escape(value: object) -> str:
    """Escape macro markers so user text reaches the package verbatim."""
    return str(value).replace("%", "%%")


def _single_line(field: str, value: str) -> str:
    """Reject line breaks in values that land on one spec line."""
    if "\n" in value or "\r" in value:
        raise BackendError(f"{field} must be a single line, got {value!r}")
    return value


def _environment() -> Environment:
    env = Environment(
        loader=PackageLoader("rpm_builder", "templates"),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["rpm_escape"] = rpm_escape
    return env


@dataclass(frozen=True)
class _PayloadFile:
    index: int
    source: Path
    dest: str
    kind: FileKind
    mode: int

    @property
    def staged_name(self) -> str:
        # Prefixed with the index so equal basenames cannot collide in SOURCES.
        return f"{self.index}-{self.source.name}"

    @property
    def permissions(self) -> str:
        return f"{self.mode & 0o7777:04o}"

    @property
    def directive(self) -> str:
        return _FILE_DIRECTIVES.get(self.kind, "")


@dataclass(frozen=True)
class _Change:
    author: str
    content: str
    timestamp: int

    @property
    def header(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc).strftime("%a %b %d %Y")


def _run(cmd: list[str], *, cwd: Path) -> None:
    """
    Run a subprocess command, raising a BackendError on failure.
    """
    try:
        subprocess.run(cmd, cwd=str(cwd), check=True, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)
    except FileNotFoundError as e:
        raise BackendError(f"{cmd[0]} not found; install rpm-build to produce packages") from e
    except subprocess.CalledProcessError as e:
        raise BackendError(f"Command failed: {' '.join(cmd)}\n\n{e.stdout}") from e


@dataclass(frozen=True)
class RpmPackage:
    """A rendered spec plus the source files it installs, ready for rpmbuild."""

    name: str
    arch: str
    spec: str
    sources: tuple[tuple[Path, str], ...]

    def write(self, sink: BinaryIO) -> None:
        with tempfile.TemporaryDirectory(prefix="rpm-builder-") as tmp:
            topdir = Path(tmp)
            for sub in ("BUILD", "BUILDROOT", "RPMS", "SOURCES", "SPECS", "SRPMS"):
                (topdir / sub).mkdir()
            spec_path = topdir / "SPECS" / f"{self.name}.spec"
            try:
                for source, staged_name in self.sources:
                    shutil.copy2(source, topdir / "SOURCES" / staged_name)
                spec_path.write_text(self.spec, encoding="utf-8", newline="\n")
            except OSError as e:
                raise BackendError(f"Failed staging sources for {self.name}: {e}") from e

            cmd = [RPMBUILD, "-bb", "--define", f"_topdir {topdir}"]
            if self.arch != "noarch":
                cmd += ["--target", self.arch]
            cmd.append(str(spec_path))
            log.info("Running %s", " ".join(cmd))
            _run(cmd, cwd=topdir)

            built = sorted((topdir / "RPMS").rglob("*.rpm"))
            if not built:
                raise BackendError(f"rpmbuild finished without producing a package for {self.name}")
            log.debug("rpmbuild produced %s", built[0].name)
            try:
                with built[0].open("rb") as fh:
                    shutil.copyfileobj(fh, sink)
            except OSError as e:
                raise BackendError(f"Failed writing package {self.name}: {e}") from e


class RpmBuilder:
    def __init__(
        self,
        name: str,
        version: str,
        license: str,
        arch: str,
        description: str,
        *,
        release: str = "1",
    ) -> None:
        self.name = _single_line("name", name)
        self.version = _single_line("version", version)
        self.license = _single_line("license", license)
        self.arch = _single_line("arch", arch)
        self.description = description
        self.release = _single_line("release", release)
        self._files: list[_PayloadFile] = []
        self._changes: list[_Change] = []
        self._dependencies: dict[str, list[DependencyConstraint]] = {kind: [] for kind in DEPENDENCY_KINDS}

    def add_file(self, source: str, dest: str, kind: FileKind, mode: int) -> RpmBuilder:
        path = Path(source)
        if not path.is_file():
            raise BackendError(f"Source file does not exist or is not a regular file: {source}")
        _single_line("file destination", dest)
        self._files.append(_PayloadFile(index=len(self._files), source=path, dest=dest, kind=kind, mode=mode))
        return self

    def add_dependency(self, kind: str, constraint: DependencyConstraint) -> RpmBuilder:
        if kind not in self._dependencies:
            raise BackendError(f"Unknown dependency kind {kind!r}, expected one of {', '.join(DEPENDENCY_KINDS)}")
        _single_line(kind, str(constraint))
        self._dependencies[kind].append(constraint)
        return self

    def add_changelog_entry(self, author: str, content: str, timestamp: int) -> RpmBuilder:
        _single_line("changelog author", author)
        _single_line("changelog content", content)
        self._changes.append(_Change(author=author, content=content, timestamp=timestamp))
        return self

    def _context(self) -> dict[str, Any]:
        summary = self.description.strip().splitlines()[0] if self.description.strip() else self.name
        return {
            "name": self.name,
            "version": self.version,
            "release": self.release,
            "license": self.license,
            "arch": self.arch,
            "summary": summary,
            "description": self.description,
            "sources": self._files,
            "dependencies": [(kind.capitalize(), self._dependencies[kind]) for kind in DEPENDENCY_KINDS],
            # rpm expects newest first; sorted() keeps input order for equal days.
            "changelog": sorted(self._changes, key=lambda c: c.timestamp, reverse=True),
        }

    def build(self) -> RpmPackage:
        try:
            spec = _environment().get_template(SPEC_TEMPLATE).render(**self._context())
        except Exception as e:  # noqa: BLE001 - surface as BackendError
            raise BackendError(f"Failed rendering {SPEC_TEMPLATE} for {self.name}") from e
        return RpmPackage(
            name=self.name,
            arch=self.arch,
            spec=spec,
            sources=tuple((f.source, f.staged_name) for f in self._files),
        )
