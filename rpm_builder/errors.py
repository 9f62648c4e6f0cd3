"""
errors.py

Responsibility: The error taxonomy shared by parsers, aggregator, backend and CLI.

Every problem with user-supplied text derives from `InputError`, so the CLI can
report all of them the same way: the literal input plus the expected format.
"""

from __future__ import annotations


class InputError(ValueError):
    """A flag value could not be translated into a structured record."""

    def __init__(self, message: str, *, value: str, expected: str | None = None) -> None:
        super().__init__(message)
        self.value = value
        self.expected = expected


class InvalidFileMapping(InputError):
    pass


class InvalidChangelogEntry(InputError):
    pass


class InvalidDate(InputError):
    def __init__(self, message: str, *, value: str, detail: str) -> None:
        super().__init__(message, value=value, expected="<yyyy-mm-dd>")
        self.detail = detail


class InvalidDependencyExpression(InputError):
    pass


class ConfigError(ValueError):
    pass


class BackendError(RuntimeError):
    pass
