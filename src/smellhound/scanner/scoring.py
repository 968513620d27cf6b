"""Confidence score computation for match candidates."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from smellhound.core.config import ScoringPolicy, parse_literal
from smellhound.core.models import LITERAL_KINDS, MatchCandidate

# UPPER_CASE bindings of a numeric literal: `const LIMIT: f64 = 0.85;`, `LIMIT = 0.85`
NAMED_CONSTANT = re.compile(
    r"^\s*(?:pub(?:\([^)]*\))?\s+)?(?:(?:const|static|final)\s+)*(?:mut\s+)?"
    r"(?P<name>[A-Z][A-Z0-9_]*)\s*(?::\s*[^=]+?)?\s*=\s*"
    r"(?P<value>-?\d[\d_]*(?:\.\d+)?(?:[eE][+-]?\d+)?)(?:_?f(?:32|64))?"
    r"\s*;?\s*(?:(?://|#).*)?$"
)

_DEFAULT_POLICY = ScoringPolicy()


@dataclass(frozen=True)
class ScoringContext:
    """What the scorer may look at besides the candidate itself."""

    window: tuple[str, ...] = ()
    path: str | None = None
    occurrences: int = 1
    named_constant: bool = False


class FileContext:
    """Per-file facts gathered once and shared by every candidate of the file."""

    def __init__(
        self,
        lines: Sequence[str],
        candidates: Sequence[MatchCandidate],
        path: str | None = None,
        policy: ScoringPolicy | None = None,
    ):
        self.lines = lines
        self.path = path
        self.policy = policy or _DEFAULT_POLICY
        self.constant_values = frozenset(_named_constant_values(lines))
        self.occurrences = Counter(_repeat_key(c) for c in candidates)

    def for_candidate(self, candidate: MatchCandidate) -> ScoringContext:
        radius = self.policy.window_radius
        start = max(0, candidate.line - 1 - radius)
        window = tuple(self.lines[start : candidate.line + radius])
        value = parse_literal(candidate.literal) if candidate.literal is not None else None
        return ScoringContext(
            window=window,
            path=self.path,
            occurrences=self.occurrences[_repeat_key(candidate)],
            named_constant=value is not None and value in self.constant_values,
        )


def score(
    candidate: MatchCandidate,
    context: ScoringContext,
    policy: ScoringPolicy | None = None,
) -> float:
    """
    Compute the confidence that *candidate* is a genuine issue.

    Starts at the rule's base weight, then applies in order:
      raise  s -> s + (1 - s) * f   (stays below 1)
      lower  s -> s * (1 - f)       (stays above 0)
    1. repetition: raise by repetition_step * min(n - 1, repetition_cap)
       for n identical matches in the file.
    2. keyword: raise magic-number/threshold matches by keyword_boost when
       a threshold-like word appears in the window.
    3. named constant: lower by named_constant_penalty when the literal's
       value is bound to an UPPER_CASE constant in the file.
    4. test path: lower by test_path_penalty for test-looking files.
    """
    policy = policy or _DEFAULT_POLICY
    s = candidate.rule.base_weight

    extra = min(max(context.occurrences - 1, 0), policy.repetition_cap)
    if extra:
        s = _raise(s, min(1.0, policy.repetition_step * extra))

    if candidate.kind in LITERAL_KINDS and _has_keyword(context.window, policy):
        s = _raise(s, policy.keyword_boost)

    if context.named_constant:
        s = _lower(s, policy.named_constant_penalty)

    if context.path is not None and is_test_path(context.path, policy):
        s = _lower(s, policy.test_path_penalty)

    return s


def score_all(
    candidates: Sequence[MatchCandidate], file_context: FileContext
) -> list[tuple[MatchCandidate, float]]:
    """Score every candidate of one file, preserving order."""
    return [
        (c, score(c, file_context.for_candidate(c), file_context.policy))
        for c in candidates
    ]


def is_test_path(path: str, policy: ScoringPolicy | None = None) -> bool:
    policy = policy or _DEFAULT_POLICY
    return re.search(policy.test_path_pattern, path.replace("\\", "/")) is not None


def _raise(s: float, f: float) -> float:
    return s + (1.0 - s) * f


def _lower(s: float, f: float) -> float:
    return s * (1.0 - f)


def _has_keyword(window: Sequence[str], policy: ScoringPolicy) -> bool:
    text = "\n".join(window).lower()
    return any(keyword in text for keyword in policy.threshold_keywords)


def _repeat_key(candidate: MatchCandidate) -> tuple:
    if candidate.literal is not None:
        value = parse_literal(candidate.literal)
        return (candidate.kind, value if value is not None else candidate.literal)
    return (candidate.kind, candidate.text)


def _named_constant_values(lines: Sequence[str]) -> set[float]:
    values: set[float] = set()
    for line in lines:
        match = NAMED_CONSTANT.match(line)
        if match:
            value = parse_literal(match.group("value"))
            if value is not None:
                values.add(value)
    return values
