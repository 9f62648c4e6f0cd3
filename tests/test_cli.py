from __future__ import annotations

from pathlib import Path

import pytest
import yaml

import rpm_builder.cli as cli_mod
from rpm_builder.cli import main
from rpm_builder.dependency import DependencyConstraint
from rpm_builder.errors import BackendError
from rpm_builder.files import EXECUTABLE_MODE, FileKind


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, recording_backend):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli_mod, "RpmBuilder", recording_backend)
    return recording_backend


def test_exec_file_end_to_end(backend, tmp_path: Path) -> None:
    assert main(["mypkg", "--exec-file", "./bin/app:/usr/bin/app"]) == 0

    (instance,) = backend.instances
    assert ("add_file", "./bin/app", "/usr/bin/app", FileKind.EXECUTABLE, EXECUTABLE_MODE) in instance.calls
    assert (tmp_path / "mypkg.rpm").read_bytes() == b"fake-rpm"


def test_requires_end_to_end(backend) -> None:
    assert main(["mypkg", "--requires", "libfoo >= 1.2"]) == 0

    (instance,) = backend.instances
    assert instance.calls[0] == ("init", "mypkg", "1.0.0", "MIT", "x86_64", "", "1")
    assert ("add_dependency", "requires", DependencyConstraint.greater_eq("libfoo", "1.2")) in instance.calls


def test_invalid_file_mapping_never_reaches_backend(backend, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["mypkg", "--exec-file", "badformat"]) == 1

    assert backend.instances == []
    assert not (tmp_path / "mypkg.rpm").exists()
    err = capsys.readouterr().err
    assert "rpm-builder: error:" in err
    assert "badformat" in err
    assert "<source-path>:<dest-path>" in err


def test_invalid_date_aborts(backend, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["mypkg", "--changelog", "jane:fix bug:2024-13-40"]) == 1

    assert backend.instances == []
    assert "2024-13-40" in capsys.readouterr().err


def test_missing_name_is_usage_error(backend, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--requires", "libfoo"])
    assert exc.value.code == 2
    assert backend.instances == []


def test_repeatable_flags_keep_order(backend) -> None:
    assert (
        main(
            [
                "mypkg",
                "--version",
                "2.0",
                "--release",
                "5",
                "--arch",
                "noarch",
                "--license",
                "GPL-3.0",
                "--desc",
                "Demo",
                "--requires",
                "b",
                "--requires",
                "a > 1",
                "--provides",
                "mypkg-api",
            ]
        )
        == 0
    )
    (instance,) = backend.instances
    assert instance.calls[0] == ("init", "mypkg", "2.0", "GPL-3.0", "noarch", "Demo", "5")
    deps = [call[1:] for call in instance.calls if call[0] == "add_dependency"]
    assert deps == [
        ("requires", DependencyConstraint.any("b")),
        ("requires", DependencyConstraint.greater("a", "1")),
        ("provides", DependencyConstraint.any("mypkg-api")),
    ]


def test_dry_run_prints_request(backend, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["mypkg", "--dry-run", "--doc-file", "README:/usr/share/doc/mypkg/README", "--changelog", "jane:init:2024-03-15"])

    assert code == 0
    assert backend.instances == []
    assert not (tmp_path / "mypkg.rpm").exists()
    data = yaml.safe_load(capsys.readouterr().out)
    assert data["name"] == "mypkg"
    assert data["files"] == [{"source": "README", "dest": "/usr/share/doc/mypkg/README", "kind": "doc", "mode": "0644"}]
    assert data["changelog"][0]["timestamp"] == 1710460800


def test_config_file_defaults(backend, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "defaults.yaml"
    config.write_text("license: Apache-2.0\nversion: '0.9'\nrequires:\n  - from-file\n", encoding="utf-8")
    monkeypatch.setenv("RPM_BUILDER_CONFIG", str(config))

    assert main(["mypkg", "--version", "1.1", "--requires", "from-cli"]) == 0

    (instance,) = backend.instances
    assert instance.calls[0] == ("init", "mypkg", "1.1", "Apache-2.0", "x86_64", "", "1")
    deps = [call[2] for call in instance.calls if call[0] == "add_dependency"]
    assert deps == [DependencyConstraint.any("from-file"), DependencyConstraint.any("from-cli")]


def test_bad_config_is_reported(backend, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = tmp_path / "bad.yaml"
    config.write_text("colour: blue\n", encoding="utf-8")

    assert main(["mypkg", "--config", str(config)]) == 1
    assert "colour" in capsys.readouterr().err
    assert backend.instances == []


def test_empty_name_is_usage_error(backend) -> None:
    with pytest.raises(SystemExit) as exc:
        main([""])
    assert exc.value.code == 2


def test_unwritable_output_is_reported(backend, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["nosuchdir/pkg"]) == 1

    err = capsys.readouterr().err
    assert "rpm-builder: error: Failed writing" in err
    assert "pkg.rpm" in err


def test_config_directory_is_reported(backend, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["mypkg", "--config", str(tmp_path)]) == 1

    assert "Cannot read config file" in capsys.readouterr().err
    assert backend.instances == []


def test_failed_build_leaves_no_package(backend, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    class BrokenPackage:
        def write(self, sink) -> None:
            sink.write(b"half")
            raise BackendError("rpmbuild exploded")

    monkeypatch.setattr(backend, "build", lambda self: BrokenPackage())

    assert main(["mypkg"]) == 1
    assert sorted(p.name for p in tmp_path.iterdir()) == []
