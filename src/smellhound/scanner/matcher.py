"""Matcher: applies compiled rules to the lines of one file."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from smellhound.core.config import parse_literal
from smellhound.core.errors import InternalError
from smellhound.core.models import LITERAL_KINDS, MatchCandidate, PatternRule

# Standalone numeric literals inside an argument list; `x1` and `v1.2` are not literals.
ARGUMENT_LITERAL = re.compile(
    r"(?<![\w.])\d+(?:\.\d+)?(?:[eE][+-]?\d+)?(?:_?f(?:32|64))?(?![\w.])"
)


def split_lines(text: str) -> tuple[list[str], list[int]]:
    """Split *text* on ``\\n`` into lines (``\\r`` stripped) and their start offsets.

    Only ``\\n`` ends a line: form feeds and Unicode separators stay inside
    the line so reported line numbers match what editors show.
    """
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()

    lines: list[str] = []
    offsets: list[int] = []
    position = 0
    for raw in parts:
        offsets.append(position)
        lines.append(raw[:-1] if raw.endswith("\r") else raw)
        position += len(raw) + 1
    return lines, offsets


def find_candidates(
    lines: Sequence[str],
    rules: Sequence[PatternRule],
    *,
    max_line_length: int | None = None,
    ignored_literals: Iterable[str] = (),
    line_offsets: Sequence[int] | None = None,
) -> list[MatchCandidate]:
    """Run every rule over every line and return the raw hits.

    Matching is purely lexical: comments and string literals are matched like
    any other text.  Lines longer than *max_line_length* are truncated first,
    which bounds the cost of any single pattern evaluation.

    Candidates come back in line order, then rule order, then match position.
    Literal-carrying rules (magic numbers, thresholds) skip values that are
    numerically equal to one of *ignored_literals*.  A rule with
    ``min_literals`` counts the numeric literals of its ``args`` group (or of
    the whole match) that are not ignored, and only matches when there are at
    least that many; the candidate then points at the first counted literal.
    """
    ignored = {v for v in (parse_literal(s) for s in ignored_literals) if v is not None}

    if line_offsets is None:
        line_offsets = []
        position = 0
        for line in lines:
            line_offsets.append(position)
            position += len(line) + 1

    candidates: list[MatchCandidate] = []
    for index, line in enumerate(lines):
        if max_line_length is not None and len(line) > max_line_length:
            line = line[:max_line_length]
        if not line:
            continue

        for rule in rules:
            if rule.regex is None:
                raise InternalError(f"rule {rule.rule_id or rule.pattern!r} was used before registration")

            has_literal = "literal" in rule.regex.groupindex
            has_name = "name" in rule.regex.groupindex

            for match in rule.regex.finditer(line):
                if match.end() == match.start():
                    continue

                filter_ignored = rule.kind in LITERAL_KINDS
                if rule.min_literals:
                    found = _argument_literals(match, ignored if filter_ignored else set())
                    if len(found) < rule.min_literals:
                        continue
                    literal, start = found[0]
                else:
                    literal = match.group("literal") if has_literal else None
                    if literal is not None and filter_ignored and parse_literal(literal) in ignored:
                        continue
                    start = match.start("literal") if literal is not None else match.start()

                candidates.append(MatchCandidate(
                    kind=rule.kind,
                    rule=rule,
                    line=index + 1,
                    column=start + 1,
                    offset=line_offsets[index] + start,
                    text=match.group(0),
                    source_line=line,
                    literal=literal,
                    name=match.group("name") if has_name else None,
                ))

    return candidates


def _argument_literals(match: re.Match[str], ignored: set[float]) -> list[tuple[str, int]]:
    """Numeric literals of the match's ``args`` group with their line positions."""
    group: int | str = "args" if "args" in match.re.groupindex else 0
    text = match.group(group)
    if text is None:
        return []
    base = match.start(group)
    found = []
    for literal in ARGUMENT_LITERAL.finditer(text):
        if parse_literal(literal.group(0)) in ignored:
            continue
        found.append((literal.group(0), base + literal.start()))
    return found
