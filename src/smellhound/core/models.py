"""Shared data models used across smellhound modules."""

from __future__ import annotations

import enum
import functools
import re
from dataclasses import dataclass, field
from typing import Any, Union

from smellhound.core.errors import DetectError


class IssueKind(enum.Enum):
    """Built-in smells the engine knows how to detect."""

    MAGIC_NUMBER = "MagicNumber"
    HARDCODED_THRESHOLD = "HardcodedThreshold"
    HARDCODED_TIMEOUT = "HardcodedTimeout"
    CONCURRENCY_PRIMITIVE_ABUSE = "ConcurrencyPrimitiveAbuse"
    UNWRAP_ABUSE = "UnwrapAbuse"
    SLEEP_ABUSE = "SleepAbuse"
    CLONE_ABUSE = "CloneAbuse"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> IssueKind:
        """Look up a kind by its label (``MagicNumber``) or member name (``magic_number``)."""
        wanted = name.strip()
        for kind in cls:
            if wanted == kind.value or wanted.upper() == kind.name:
                return kind
        raise ValueError(f"unknown issue kind {name!r}")


@dataclass(frozen=True)
class CustomKind:
    """A project-specific issue kind introduced by a custom rule."""

    name: str

    @property
    def label(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.name


Kind = Union[IssueKind, CustomKind]

# Kinds whose matches carry a numeric literal.
LITERAL_KINDS = frozenset({IssueKind.MAGIC_NUMBER, IssueKind.HARDCODED_THRESHOLD})

_BUILTIN_ORDER = {kind: index for index, kind in enumerate(IssueKind)}


def kind_sort_key(kind: Kind) -> tuple[int, int, str]:
    """Built-ins in declaration order, then custom kinds by name."""
    if isinstance(kind, IssueKind):
        return (0, _BUILTIN_ORDER[kind], kind.value)
    return (1, 0, kind.name)


def resolve_kind(name: str) -> Kind:
    """Return the built-in kind called *name*, or a :class:`CustomKind`."""
    try:
        return IssueKind.from_name(name)
    except ValueError:
        return CustomKind(name.strip())


@functools.total_ordering
class SeverityTier(enum.Enum):
    """Severity bucket derived from a confidence score.  Ordered Low < Critical."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(SeverityTier).index(self)

    @property
    def label(self) -> str:
        return self.name.capitalize()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SeverityTier):
            return NotImplemented
        return self.rank < other.rank


class _TemplateFields(dict):
    """Leaves unknown ``{placeholders}`` in place instead of raising."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


@dataclass(frozen=True)
class PatternRule:
    """A textual matcher plus the metadata reported with its matches.

    ``rationale`` and ``suggestion`` are ``str.format`` templates that may use
    ``{match}``, ``{literal}``, ``{name}`` and ``{config_name}``.  ``regex`` is
    filled in by :class:`~smellhound.scanner.registry.PatternRegistry` when the
    rule is registered.

    ``min_literals`` > 0 makes the rule count the non-ignored numeric literals
    of its ``args`` group instead of checking a single ``literal`` group.
    """

    kind: Kind
    pattern: str
    base_weight: float
    rationale: str
    suggestion: str
    rule_id: str = ""
    flags: int = 0
    min_literals: int = 0
    regex: re.Pattern[str] | None = field(default=None, compare=False, repr=False)

    def render(self, template: str, fields: dict[str, Any]) -> str:
        return template.format_map(_TemplateFields(fields))


@dataclass(frozen=True)
class MatchCandidate:
    """An unscored hit of one rule on one line."""

    kind: Kind
    rule: PatternRule
    line: int
    column: int
    offset: int
    text: str
    source_line: str
    literal: str | None = None
    name: str | None = None

    @property
    def location(self) -> tuple[int, int]:
        return (self.line, self.column)


@dataclass(frozen=True)
class Alert:
    """A single reported finding."""

    kind: Kind
    tier: SeverityTier
    confidence: float
    line: int
    column: int
    snippet: str
    rationale: str
    suggestion: str
    rule_id: str = ""
    path: str | None = None

    @property
    def location(self) -> tuple[int, int]:
        return (self.line, self.column)

    def sort_key(self) -> tuple:
        return (self.path or "", self.line, self.column, kind_sort_key(self.kind))

    def to_dict(self) -> dict[str, Any]:
        return {
            "issue_kind": self.kind.label,
            "severity": self.tier.label,
            "confidence": round(self.confidence, 4),
            "file": self.path,
            "line": self.line,
            "column": self.column,
            "snippet": self.snippet,
            "rationale": self.rationale,
            "suggested_fix": self.suggestion,
            "rule_id": self.rule_id,
        }


class ExitStatus(enum.IntFlag):
    """Process exit status.  Bits combine, e.g. alerts plus unreadable files = 3."""

    CLEAN = 0
    ALERTS = 1
    PARTIAL_FAILURE = 2
    CONFIG_ERROR = 4


@dataclass
class ScanResult:
    """Outcome of scanning a set of files."""

    alerts: list[Alert] = field(default_factory=list)
    errors: list[tuple[str, DetectError]] = field(default_factory=list)
    files_scanned: int = 0

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def critical_count(self) -> int:
        return self.count(SeverityTier.CRITICAL)

    @property
    def high_count(self) -> int:
        return self.count(SeverityTier.HIGH)

    @property
    def medium_count(self) -> int:
        return self.count(SeverityTier.MEDIUM)

    @property
    def low_count(self) -> int:
        return self.count(SeverityTier.LOW)

    def count(self, tier: SeverityTier) -> int:
        return sum(1 for a in self.alerts if a.tier == tier)

    def by_path(self) -> dict[str, list[Alert]]:
        grouped: dict[str, list[Alert]] = {}
        for alert in self.alerts:
            grouped.setdefault(alert.path or "<text>", []).append(alert)
        return grouped

    def exit_status(self, fail_on: SeverityTier | None = SeverityTier.CRITICAL) -> ExitStatus:
        """Compute the exit status.  ``fail_on=None`` never fails on alerts."""
        status = ExitStatus.CLEAN
        if fail_on is not None and any(a.tier >= fail_on for a in self.alerts):
            status |= ExitStatus.ALERTS
        if self.errors:
            status |= ExitStatus.PARTIAL_FAILURE
        return status
