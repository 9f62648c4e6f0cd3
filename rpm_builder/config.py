"""
config.py

Responsibility: Load an optional YAML defaults file and merge it with
command-line values into `BuildOptions`.

Keys use the flag spelling (`exec-file`, `desc`, ...). Command-line scalars
override file scalars, which override the built-in defaults. Repeatable values
from the file come first, then the command-line values, each in given order.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from rpm_builder.errors import ConfigError
from rpm_builder.request import (
    DEFAULT_ARCH,
    DEFAULT_DESCRIPTION,
    DEFAULT_LICENSE,
    DEFAULT_RELEASE,
    DEFAULT_VERSION,
    BuildOptions,
)

CONFIG_ENV_VAR = "RPM_BUILDER_CONFIG"

# flag spelling -> BuildOptions field
SCALAR_KEYS: dict[str, str] = {
    "version": "version",
    "license": "license",
    "arch": "arch",
    "release": "release",
    "desc": "description",
}
REPEATABLE_KEYS: dict[str, str] = {
    "exec-file": "exec_files",
    "config-file": "config_files",
    "doc-file": "doc_files",
    "changelog": "changelog",
    "requires": "requires",
    "obsoletes": "obsoletes",
    "conflicts": "conflicts",
    "provides": "provides",
}

_DEFAULTS: dict[str, str] = {
    "version": DEFAULT_VERSION,
    "license": DEFAULT_LICENSE,
    "arch": DEFAULT_ARCH,
    "release": DEFAULT_RELEASE,
    "description": DEFAULT_DESCRIPTION,
}


def resolve_config_path(explicit: str | Path | None) -> Path | None:
    if explicit:
        return Path(explicit)
    from_env = os.environ.get(CONFIG_ENV_VAR, "").strip()
    return Path(from_env) if from_env else None


def load_config(path: str | Path) -> dict[str, Any]:
    """
    Parse a defaults file into a mapping of BuildOptions field names.

    Scalars are returned as `str`, repeatables as `list[str]`.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file does not exist: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file is not valid YAML: {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("Config file must be a mapping/object at the top level.")

    out: dict[str, Any] = {}
    for key, raw in data.items():
        key = str(key)
        if key in SCALAR_KEYS:
            if raw is None:
                continue
            if not isinstance(raw, str):
                # Unquoted 1.10 loads as the float 1.1.
                raise ConfigError(f"`{key}` must be a string when provided (quote it, e.g. {key}: \"{raw}\").")
            out[SCALAR_KEYS[key]] = raw
        elif key in REPEATABLE_KEYS:
            if raw is None:
                raw = []
            if isinstance(raw, str):
                raw = [raw]
            if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
                raise ConfigError(f"`{key}` must be a string or a list of strings when provided.")
            out[REPEATABLE_KEYS[key]] = list(raw)
        else:
            raise ConfigError(f"Unknown key `{key}` in config file {path}")
    return out


def merge_options(name: str, cli_values: Mapping[str, Any], file_values: Mapping[str, Any] | None = None) -> BuildOptions:
    """
    Combine defaults, file values and command-line values.

    `cli_values` maps BuildOptions field names to the parsed flag values, where
    `None` means the flag was not given.
    """
    file_values = file_values or {}
    merged: dict[str, Any] = {}
    for field_name, default in _DEFAULTS.items():
        value = cli_values.get(field_name)
        if value is None:
            value = file_values.get(field_name, default)
        merged[field_name] = value
    for field_name in REPEATABLE_KEYS.values():
        merged[field_name] = list(file_values.get(field_name) or []) + list(cli_values.get(field_name) or [])
    return BuildOptions(name=name, **merged)
