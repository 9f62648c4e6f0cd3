"""
dependency.py

Responsibility: Parse a textual relationship such as `libfoo >= 1.2` into a
`DependencyConstraint`.

Grammar: `<name>` optionally followed by whitespace, an operator token and a
version. The version is taken as-is; its syntax is the backend's business.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from rpm_builder.errors import InvalidDependencyExpression

DEPENDENCY_FORMAT = "<name> [>|>=|=|<=|< version]"


class DependencyOperator(enum.Enum):
    ANY = ""
    EQ = "="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    @property
    def token(self) -> str:
        return self.value


# Two-character operators must win over their one-character prefixes.
OPERATOR_TOKENS: tuple[str, ...] = (">=", ">", "=", "<=", "<")

_OPERATORS_BY_TOKEN = {op.token: op for op in DependencyOperator if op is not DependencyOperator.ANY}

_EXPRESSION_PATTERN = re.compile(
    r"^(?P<name>[A-Za-z0-9\-]+)"
    r"(?:\s*(?P<op>" + "|".join(re.escape(t) for t in OPERATOR_TOKENS) + r")\s*(?P<version>[^\s<>=].*))?$"
)


@dataclass(frozen=True)
class DependencyConstraint:
    """A named dependency, optionally pinned against a version."""

    name: str
    operator: DependencyOperator = DependencyOperator.ANY
    version: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("dependency name must not be empty")
        if (self.operator is DependencyOperator.ANY) != (self.version is None):
            raise ValueError(f"operator {self.operator.name} is inconsistent with version {self.version!r}")

    @classmethod
    def any(cls, name: str) -> DependencyConstraint:
        return cls(name)

    @classmethod
    def eq(cls, name: str, version: str) -> DependencyConstraint:
        return cls(name, DependencyOperator.EQ, version)

    @classmethod
    def less(cls, name: str, version: str) -> DependencyConstraint:
        return cls(name, DependencyOperator.LT, version)

    @classmethod
    def less_eq(cls, name: str, version: str) -> DependencyConstraint:
        return cls(name, DependencyOperator.LE, version)

    @classmethod
    def greater(cls, name: str, version: str) -> DependencyConstraint:
        return cls(name, DependencyOperator.GT, version)

    @classmethod
    def greater_eq(cls, name: str, version: str) -> DependencyConstraint:
        return cls(name, DependencyOperator.GE, version)

    def __str__(self) -> str:
        if self.operator is DependencyOperator.ANY:
            return self.name
        return f"{self.name} {self.operator.token} {self.version}"


def parse_dependency(expression: str) -> DependencyConstraint:
    """
    Parse one dependency flag value.

    `libfoo` yields an ANY constraint; `libfoo >= 1.2` and `libfoo>=1.2` both
    yield `GE 1.2`. Surrounding whitespace is ignored.
    """
    match = _EXPRESSION_PATTERN.match(expression.strip())
    if match is None:
        raise InvalidDependencyExpression(
            f"invalid dependency expression {expression!r}, expected {DEPENDENCY_FORMAT}",
            value=expression,
            expected=DEPENDENCY_FORMAT,
        )

    name = match.group("name")
    token = match.group("op")
    if token is None:
        return DependencyConstraint.any(name)
    return DependencyConstraint(name, _OPERATORS_BY_TOKEN[token], match.group("version"))
