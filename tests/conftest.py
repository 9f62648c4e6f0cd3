from __future__ import annotations

from typing import Any, BinaryIO

import pytest


class RecordingPackage:
    def __init__(self, payload: bytes) -> None:
        self.payload = payload

    def write(self, sink: BinaryIO) -> None:
        sink.write(self.payload)


class RecordingBackend:
    """Builder-API double that remembers every call in order."""

    instances: list["RecordingBackend"] = []

    def __init__(self, name: str, version: str, license: str, arch: str, description: str, *, release: str = "1") -> None:
        self.calls: list[tuple[Any, ...]] = [("init", name, version, license, arch, description, release)]
        RecordingBackend.instances.append(self)

    def add_file(self, source: str, dest: str, kind: Any, mode: int) -> "RecordingBackend":
        self.calls.append(("add_file", source, dest, kind, mode))
        return self

    def add_dependency(self, kind: str, constraint: Any) -> "RecordingBackend":
        self.calls.append(("add_dependency", kind, constraint))
        return self

    def add_changelog_entry(self, author: str, content: str, timestamp: int) -> "RecordingBackend":
        self.calls.append(("add_changelog_entry", author, content, timestamp))
        return self

    def build(self) -> RecordingPackage:
        self.calls.append(("build",))
        return RecordingPackage(b"fake-rpm")


@pytest.fixture
def recording_backend() -> type[RecordingBackend]:
    RecordingBackend.instances = []
    return RecordingBackend


@pytest.fixture(autouse=True)
def _no_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RPM_BUILDER_CONFIG", raising=False)
