"""Pattern registry: the catalog of detectable smells and their rules."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Iterator
from dataclasses import replace

from smellhound.core.errors import (
    InvalidConfigError,
    PatternCompilationError,
    RuleConflictError,
)
from smellhound.core.models import IssueKind, Kind, PatternRule

logger = logging.getLogger("smellhound.scanner")

RuleId = str

_NUMBER = r"\d+(?:\.\d+)?(?:[eE][+-]?\d+)?"
_FLOAT_SUFFIX = r"(?:_?f(?:32|64))?"
_THRESHOLD_WORDS = (
    "threshold|limit|bound|tolerance|ratio|factor|weight|epsilon"
    "|alpha|beta|gamma|radius"
    # min/max only as whole name segments: max_retries, not terminal_width
    r"|(?<![a-z0-9])(?:min|max)(?![a-z0-9])"
)

# ---------------------------------------------------------------------------
# Built-in rules
# ---------------------------------------------------------------------------

BUILTIN_RULES: list[PatternRule] = [
    # Magic numbers (MN)
    PatternRule(
        rule_id="MN-001",
        kind=IssueKind.MAGIC_NUMBER,
        pattern=(
            # a chained `&& b < 0.3` continues the condition after an earlier match
            r"(?:\b(?:if|elif|while)\b.*?|(?:&&|\|\||\b(?:and|or)\b)[^&|]*?)"
            r"(?:[<>]=?|[=!]=)\s*"
            r"(?P<literal>-?\d*\.\d+(?:[eE][+-]?\d+)?)" + _FLOAT_SUFFIX + r"(?![\w.])"
        ),
        base_weight=0.9,
        rationale="Hardcoded threshold {literal} in conditional; it should come from configuration",
        suggestion="Move {literal} to config and read it as `{config_name}_threshold`",
    ),
    # Hardcoded thresholds (HT)
    PatternRule(
        rule_id="HT-001",
        kind=IssueKind.HARDCODED_THRESHOLD,
        pattern=(
            r"^\s*(?:let\s+(?:mut\s+)?|(?:self|this)\.)?"
            r"(?P<name>(?=[a-z_])[a-z0-9_]*?(?:" + _THRESHOLD_WORDS + r")[a-z0-9_]*)"
            r"\s*(?::\s*[\w<>\[\]]+\s*)?=\s*"
            r"(?P<literal>-?" + _NUMBER + r")" + _FLOAT_SUFFIX
            + r"\s*;?\s*(?:(?://|#).*)?$"
        ),
        base_weight=0.75,
        rationale="Magic number {literal} assigned to {name}; it should be configurable",
        suggestion="Add {name} to the runtime config and initialize it from there",
    ),
    PatternRule(
        rule_id="HT-002",
        kind=IssueKind.HARDCODED_THRESHOLD,
        pattern=r"\b(?P<name>[A-Za-z_]\w*)\s*\((?P<args>[^()]*?\d\.\d[^()]*)\)",
        min_literals=2,
        base_weight=0.75,
        rationale="Function {name} called with hardcoded numeric arguments",
        suggestion="Pass config values instead of hardcoded literals",
    ),
    # Hardcoded timeouts (TO)
    PatternRule(
        rule_id="TO-001",
        kind=IssueKind.HARDCODED_TIMEOUT,
        pattern=(
            r"Duration::from_(?:secs|millis|micros|nanos|secs_f32|secs_f64)"
            r"\(\s*(?P<literal>\d{2,}(?:\.\d+)?)\s*\)"
        ),
        base_weight=0.85,
        rationale="Hardcoded duration {literal} in `{match}`",
        suggestion="Move the timeout to configuration",
    ),
    PatternRule(
        rule_id="TO-002",
        kind=IssueKind.HARDCODED_TIMEOUT,
        pattern=r"\b(?P<name>\w*timeout\w*)\s*[=:]\s*(?P<literal>\d+(?:\.\d+)?)(?![\w.])",
        flags=re.IGNORECASE,
        base_weight=0.85,
        rationale="Hardcoded timeout {literal} for {name}",
        suggestion="Move the timeout to configuration",
    ),
    # Concurrency primitives (CP)
    PatternRule(
        rule_id="CP-001",
        kind=IssueKind.CONCURRENCY_PRIMITIVE_ABUSE,
        pattern=r"\b(?:Arc|Rc)<\s*(?:RwLock|Mutex)<",
        base_weight=0.8,
        rationale="Nested synchronization primitive `{match}`",
        suggestion="Use Arc only for shared ownership across threads; prefer owned types or message passing",
    ),
    PatternRule(
        rule_id="CP-002",
        kind=IssueKind.CONCURRENCY_PRIMITIVE_ABUSE,
        pattern=r"\b(?:Mutex|RwLock)<\s*(?:HashMap|BTreeMap|HashSet|BTreeSet|Vec)<",
        base_weight=0.8,
        rationale="Lock wrapped around a whole collection: `{match}`",
        suggestion="Consider if a lock is needed here, or use a concurrent collection",
    ),
    # Error-handling shortcuts (UW)
    PatternRule(
        rule_id="UW-001",
        kind=IssueKind.UNWRAP_ABUSE,
        pattern=r"\.unwrap\(\)",
        base_weight=0.7,
        rationale="`.unwrap()` panics instead of handling the error",
        suggestion="Handle errors properly with ? or match",
    ),
    # Sleeps (SL)
    PatternRule(
        rule_id="SL-001",
        kind=IssueKind.SLEEP_ABUSE,
        pattern=r"\b(?:std::)?thread::sleep\s*\(|\btokio::time::sleep\s*\(|\btime\.sleep\s*\(",
        base_weight=0.75,
        rationale="Sleep call `{match}` used for timing or synchronization",
        suggestion="Use async delays or remove blocking sleeps",
    ),
    # Clones (CL)
    PatternRule(
        rule_id="CL-001",
        kind=IssueKind.CLONE_ABUSE,
        pattern=r"\.clone\(\)",
        base_weight=0.7,
        rationale="`.clone()` copies data",
        suggestion="Avoid unnecessary cloning of data",
    ),
    PatternRule(
        rule_id="CL-002",
        kind=IssueKind.CLONE_ABUSE,
        pattern=r"\bcopy\.deepcopy\s*\(",
        base_weight=0.7,
        rationale="`{match}` copies a whole object graph",
        suggestion="Avoid unnecessary cloning of data",
    ),
]


class PatternRegistry:
    """An explicitly constructed, ordered set of compiled rules.

    There is no process-wide registry: build one with :meth:`default` (or an
    empty one for tests) and pass it to the detector.  Registered rules are
    never modified; :meth:`extended` returns a new registry instead of
    touching a shared one.

    Registration rejects a rule when
    * its pattern does not compile or can match the empty string,
    * its base weight is outside [0, 1],
    * its min_literals is negative,
    * its rationale or suggestion template is malformed,
    * its rule id is already taken, or
    * its kind is already registered with a different base weight.
    """

    def __init__(self, rules: Iterable[PatternRule] = ()) -> None:
        self._rules: list[PatternRule] = []
        self._by_id: dict[RuleId, PatternRule] = {}
        self._kind_weights: dict[Kind, float] = {}
        for rule in rules:
            self.register(rule)

    @classmethod
    def default(cls) -> PatternRegistry:
        """A fresh registry holding the built-in rule set."""
        return cls(BUILTIN_RULES)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def register(self, rule: PatternRule) -> RuleId:
        """Compile and add *rule*.  Returns its rule id."""
        weight = rule.base_weight
        if (
            isinstance(weight, bool)
            or not isinstance(weight, (int, float))
            or not math.isfinite(weight)
            or not 0.0 <= weight <= 1.0
        ):
            raise InvalidConfigError(
                f"rule {rule.rule_id or rule.pattern!r}: base_weight must be in [0, 1], got {weight!r}"
            )

        if isinstance(rule.min_literals, bool) or not isinstance(rule.min_literals, int) or rule.min_literals < 0:
            raise InvalidConfigError(
                f"rule {rule.rule_id or rule.pattern!r}: min_literals must be a non-negative integer, "
                f"got {rule.min_literals!r}"
            )

        compiled = self._compile(rule)

        for template in (rule.rationale, rule.suggestion):
            try:
                rule.render(template, {})
            except (ValueError, IndexError, AttributeError) as exc:
                raise InvalidConfigError(
                    f"rule {rule.rule_id or rule.pattern!r}: malformed template {template!r}: {exc}"
                ) from exc

        known = self._kind_weights.get(rule.kind)
        if known is not None and known != weight:
            raise RuleConflictError(
                f"kind {rule.kind.label} is already registered with base weight {known}, "
                f"rule {rule.rule_id or rule.pattern!r} declares {weight}"
            )

        rule_id = rule.rule_id or self._next_custom_id()
        if rule_id in self._by_id:
            raise RuleConflictError(f"rule id {rule_id} is already registered")

        stored = replace(rule, rule_id=rule_id, base_weight=float(weight), regex=compiled)
        self._rules.append(stored)
        self._by_id[rule_id] = stored
        self._kind_weights[rule.kind] = float(weight)
        logger.debug("Registered rule %s (%s, weight %.2f)", rule_id, rule.kind.label, weight)
        return rule_id

    def rules(self) -> tuple[PatternRule, ...]:
        """All rules in registration order."""
        return tuple(self._rules)

    def get(self, rule_id: RuleId) -> PatternRule:
        return self._by_id[rule_id]

    def kinds(self) -> list[Kind]:
        """Registered kinds in first-registration order."""
        return list(self._kind_weights)

    def extended(self, rules: Iterable[PatternRule]) -> PatternRegistry:
        """Return a new registry holding these rules followed by *rules*."""
        registry = PatternRegistry(self._rules)
        for rule in rules:
            registry.register(rule)
        return registry

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[PatternRule]:
        return iter(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _compile(rule: PatternRule) -> re.Pattern[str]:
        if not isinstance(rule.pattern, str):
            raise PatternCompilationError(repr(rule.pattern), "pattern must be a string", rule.rule_id)
        try:
            compiled = re.compile(rule.pattern, rule.flags)
        except re.error as exc:
            raise PatternCompilationError(rule.pattern, str(exc), rule.rule_id) from exc
        if compiled.search("") is not None:
            raise PatternCompilationError(rule.pattern, "pattern matches the empty string", rule.rule_id)
        return compiled

    def _next_custom_id(self) -> RuleId:
        n = 1
        while f"CUSTOM-{n:03d}" in self._by_id:
            n += 1
        return f"CUSTOM-{n:03d}"
