"""
cli.py

Responsibility: CLI entrypoint for rpm-builder.

High-level flow (single command):
1) Parse flags (+ optional YAML defaults file) -> `BuildOptions`
2) Validate every flag value -> `PackageBuildRequest` (fail fast)
3) Drive the packaging backend and write `./<name>.rpm`

This module should orchestrate behavior but keep concerns isolated:
- Flag value parsing: `dependency.py`, `files.py`, `changelog.py`
- Aggregation: `request.py`
- Defaults file: `config.py`
- Package construction: `backend.py`
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml

from rpm_builder import __version__
from rpm_builder.backend import RpmBuilder
from rpm_builder.changelog import CHANGELOG_FORMAT
from rpm_builder.config import load_config, merge_options, resolve_config_path
from rpm_builder.dependency import DEPENDENCY_FORMAT
from rpm_builder.errors import BackendError, ConfigError, InputError
from rpm_builder.files import FILE_MAPPING_FORMAT
from rpm_builder.request import (
    DEFAULT_ARCH,
    DEFAULT_LICENSE,
    DEFAULT_RELEASE,
    DEFAULT_VERSION,
    build_request,
    submit,
)

PROG = "rpm-builder"

log = logging.getLogger(__name__)


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    root = logging.getLogger()
    root.handlers.clear()
    h = logging.StreamHandler(sys.stderr)
    h.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    root.addHandler(h)
    root.setLevel(level)


def _write_package(package: Any, output: Path) -> None:
    """
    Write the package next to `output` and move it into place once complete.

    A failed build leaves no `<name>.rpm` behind.
    """
    partial = output.with_name(f".{output.name}.partial")
    try:
        with partial.open("wb") as fh:
            package.write(fh)
        os.replace(partial, output)
    except OSError as e:
        raise BackendError(f"Failed writing {output}: {e}") from e
    finally:
        partial.unlink(missing_ok=True)


def build_cmd(args: argparse.Namespace) -> int:
    config_path = resolve_config_path(args.config)
    file_values = load_config(config_path) if config_path else None
    if config_path:
        log.info("Loaded defaults from %s", config_path)

    options = merge_options(
        args.name,
        {
            "version": args.version,
            "license": args.license,
            "arch": args.arch,
            "release": args.release,
            "description": args.desc,
            "exec_files": args.exec_files,
            "config_files": args.config_files,
            "doc_files": args.doc_files,
            "changelog": args.changelog,
            "requires": args.requires,
            "obsoletes": args.obsoletes,
            "conflicts": args.conflicts,
            "provides": args.provides,
        },
        file_values,
    )
    request = build_request(options)

    if args.dry_run:
        sys.stdout.write(yaml.safe_dump(request.to_dict(), sort_keys=False, allow_unicode=True))
        return 0

    package = submit(request, RpmBuilder)
    output = Path.cwd() / f"{request.name}.rpm"
    _write_package(package, output)
    log.info("Wrote %s", output)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog=PROG, description=f"Build rpms with ease (v{__version__})")
    p.add_argument("name", help="Specify the name of your package")

    p.add_argument("--version", default=None, help=f"Specify a version (default: {DEFAULT_VERSION})")
    p.add_argument("--license", default=None, help=f"Specify a license (default: {DEFAULT_LICENSE})")
    p.add_argument("--arch", default=None, help=f"Specify the target architecture (default: {DEFAULT_ARCH})")
    p.add_argument("--release", default=None, help=f"Specify release number of the package (default: {DEFAULT_RELEASE})")
    p.add_argument("--desc", default=None, help="Give a description of the package")

    p.add_argument(
        "--exec-file",
        dest="exec_files",
        action="append",
        metavar="EXEC_FILE",
        help=f"Add an executable file to the rpm: {FILE_MAPPING_FORMAT}",
    )
    p.add_argument(
        "--doc-file",
        dest="doc_files",
        action="append",
        metavar="DOC_FILE",
        help=f"Add a documentation file to the rpm: {FILE_MAPPING_FORMAT}",
    )
    p.add_argument(
        "--config-file",
        dest="config_files",
        action="append",
        metavar="CONFIG_FILE",
        help=f"Add a config file to the rpm: {FILE_MAPPING_FORMAT}",
    )
    p.add_argument(
        "--changelog",
        action="append",
        metavar="CHANGELOG_ENTRY",
        help=f"Add a changelog entry to the rpm: {CHANGELOG_FORMAT} (date is in UTC)",
    )
    for kind in ("requires", "provides", "obsoletes", "conflicts"):
        p.add_argument(
            f"--{kind}",
            action="append",
            metavar=kind.upper(),
            help=f"Indicates that the rpm {kind} another package: '{DEPENDENCY_FORMAT}'",
        )

    p.add_argument("--config", default=None, help="YAML file with default flag values (or set env RPM_BUILDER_CONFIG)")
    p.add_argument("--dry-run", action="store_true", help="Validate and print the build request without building")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)")

    p.set_defaults(func=build_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.name.strip():
        parser.error("the package name must not be empty")
    configure_logging(args.verbose)
    try:
        return int(args.func(args))
    except (InputError, ConfigError, BackendError) as e:
        print(f"{PROG}: error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
