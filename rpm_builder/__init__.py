"""
rpm_builder package

This package implements rpm-builder as a CLI-first utility.

Key responsibilities are split across modules:
- `dependency.py`, `files.py`, `changelog.py`: parse single flag values into typed records
- `request.py`: fold all flag values into one immutable `PackageBuildRequest`
- `config.py`: optional YAML defaults file merged under command-line values
- `backend.py`: rpmbuild-backed package construction
- `cli.py`: CLI entrypoint and orchestration (parse -> validate -> build -> write)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
