"""Classification of scored candidates into severity-ranked alerts."""

from __future__ import annotations

import math
from collections.abc import Sequence

from smellhound.core.config import DetectConfig
from smellhound.core.errors import InternalError
from smellhound.core.models import Alert, MatchCandidate, kind_sort_key

# Words that name the config field a hardcoded threshold belongs in.
CONFIG_NAME_HINTS = (
    "entropy",
    "healing",
    "knot",
    "spectral",
    "persistence",
    "quality",
    "similarity",
    "confidence",
    "retry",
    "timeout",
)


def classify_and_aggregate(
    scored: Sequence[tuple[MatchCandidate, float]],
    config: DetectConfig,
    path: str | None = None,
) -> list[Alert]:
    """Turn scored candidates into the final, ordered alerts of one file.

    Scores below ``config.confidence_threshold`` are dropped.  Candidates at
    the same (line, column, kind) collapse into one alert carrying the highest
    score; on a tie the earliest candidate wins.  The result is sorted by
    (line, column, kind).
    """
    best: dict[tuple, tuple[MatchCandidate, float]] = {}
    for candidate, confidence in scored:
        if not isinstance(confidence, (int, float)) or not math.isfinite(confidence) or not 0.0 <= confidence <= 1.0:
            raise InternalError(
                f"confidence {confidence!r} for {candidate.kind.label} at "
                f"{candidate.line}:{candidate.column} is outside [0, 1]"
            )
        if confidence < config.confidence_threshold:
            continue

        key = (candidate.line, candidate.column, candidate.kind)
        current = best.get(key)
        if current is None or confidence > current[1]:
            best[key] = (candidate, confidence)

    alerts = [_make_alert(c, s, config, path) for c, s in best.values()]
    alerts.sort(key=lambda a: (a.line, a.column, kind_sort_key(a.kind)))
    return alerts


def _make_alert(
    candidate: MatchCandidate, confidence: float, config: DetectConfig, path: str | None
) -> Alert:
    rule = candidate.rule
    fields = {
        "match": candidate.text,
        "literal": candidate.literal if candidate.literal is not None else candidate.text,
        "name": candidate.name or infer_config_name(candidate.source_line),
        "config_name": infer_config_name(candidate.source_line),
    }
    return Alert(
        kind=candidate.kind,
        tier=config.tiers.tier_for(confidence),
        confidence=float(confidence),
        line=candidate.line,
        column=candidate.column,
        snippet=trim_snippet(candidate.source_line.strip(), config.max_snippet_length),
        rationale=rule.render(rule.rationale, fields),
        suggestion=rule.render(rule.suggestion, fields),
        rule_id=rule.rule_id,
        path=path,
    )


def trim_snippet(snippet: str, max_length: int) -> str:
    if len(snippet) > max_length:
        return snippet[:max_length] + "..."
    return snippet


def infer_config_name(line: str) -> str:
    """Guess a config field name from the words on *line*."""
    lowered = line.lower()
    for hint in CONFIG_NAME_HINTS:
        if hint in lowered:
            return hint
    return "behavioral"
