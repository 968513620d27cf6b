"""Tests for classification and aggregation of scored candidates."""

from __future__ import annotations

import pytest

from smellhound.core.config import DetectConfig, TierThresholds
from smellhound.core.errors import InternalError
from smellhound.core.models import (
    CustomKind,
    IssueKind,
    MatchCandidate,
    PatternRule,
    SeverityTier,
)
from smellhound.scanner.classifier import (
    classify_and_aggregate,
    infer_config_name,
    trim_snippet,
)
from smellhound.scanner.registry import PatternRegistry


@pytest.fixture
def registry():
    return PatternRegistry.default()


def _candidate(registry, rule_id="UW-001", line=1, column=1, source="x.unwrap();", literal=None, name=None):
    rule = registry.get(rule_id)
    return MatchCandidate(
        kind=rule.kind,
        rule=rule,
        line=line,
        column=column,
        offset=0,
        text=".unwrap()",
        source_line=source,
        literal=literal,
        name=name,
    )


class TestThreshold:
    def test_drops_scores_below_threshold(self, registry):
        config = DetectConfig(confidence_threshold=0.75)
        scored = [(_candidate(registry, line=1), 0.74), (_candidate(registry, line=2), 0.75)]
        alerts = classify_and_aggregate(scored, config)
        assert [a.line for a in alerts] == [2]

    def test_zero_threshold_keeps_everything(self, registry):
        config = DetectConfig(confidence_threshold=0.0)
        alerts = classify_and_aggregate([(_candidate(registry), 0.0)], config)
        assert len(alerts) == 1
        assert alerts[0].tier is SeverityTier.LOW

    def test_empty_input(self):
        assert classify_and_aggregate([], DetectConfig()) == []


class TestTiers:
    @pytest.mark.parametrize(
        "score,tier",
        [
            (0.95, SeverityTier.CRITICAL),
            (0.9, SeverityTier.CRITICAL),
            (0.85, SeverityTier.HIGH),
            (0.7, SeverityTier.MEDIUM),
            (0.62, SeverityTier.LOW),
        ],
    )
    def test_default_tier_bounds(self, registry, score, tier):
        alerts = classify_and_aggregate([(_candidate(registry), score)], DetectConfig())
        assert alerts[0].tier is tier

    def test_custom_tier_bounds(self, registry):
        config = DetectConfig(tiers=TierThresholds(critical=0.7, high=0.6, medium=0.5))
        alerts = classify_and_aggregate([(_candidate(registry), 0.7)], config)
        assert alerts[0].tier is SeverityTier.CRITICAL


class TestAggregation:
    def test_same_location_and_kind_merge(self, registry):
        """Overlapping rules at one spot collapse into the highest score."""
        config = DetectConfig(confidence_threshold=0.0)
        scored = [
            (_candidate(registry, rule_id="HT-001", literal="0.5", name="a_limit"), 0.7),
            (_candidate(registry, rule_id="HT-002", literal="0.5", name="f"), 0.8),
        ]
        [alert] = classify_and_aggregate(scored, config)
        assert alert.confidence == 0.8
        assert alert.rule_id == "HT-002"

    def test_tie_keeps_first(self, registry):
        config = DetectConfig(confidence_threshold=0.0)
        scored = [
            (_candidate(registry, rule_id="HT-001", literal="0.5", name="a_limit"), 0.75),
            (_candidate(registry, rule_id="HT-002", literal="0.5", name="f"), 0.75),
        ]
        [alert] = classify_and_aggregate(scored, config)
        assert alert.rule_id == "HT-001"

    def test_different_kinds_do_not_merge(self, registry):
        config = DetectConfig(confidence_threshold=0.0)
        scored = [
            (_candidate(registry, rule_id="UW-001"), 0.7),
            (_candidate(registry, rule_id="CL-001"), 0.7),
        ]
        assert len(classify_and_aggregate(scored, config)) == 2

    def test_sorted_by_line_column_kind(self, registry):
        config = DetectConfig(confidence_threshold=0.0)
        scored = [
            (_candidate(registry, rule_id="CL-001", line=2, column=5), 0.7),
            (_candidate(registry, rule_id="UW-001", line=2, column=5), 0.7),
            (_candidate(registry, rule_id="UW-001", line=1, column=9), 0.7),
            (_candidate(registry, rule_id="UW-001", line=2, column=1), 0.7),
        ]
        alerts = classify_and_aggregate(scored, config)
        assert [(a.line, a.column, a.kind) for a in alerts] == [
            (1, 9, IssueKind.UNWRAP_ABUSE),
            (2, 1, IssueKind.UNWRAP_ABUSE),
            (2, 5, IssueKind.UNWRAP_ABUSE),
            (2, 5, IssueKind.CLONE_ABUSE),
        ]

    def test_custom_kinds_sort_after_builtins(self, registry):
        extended = registry.extended([
            _custom_rule("ZZ", "zz"),
        ])
        config = DetectConfig(confidence_threshold=0.0)
        custom = MatchCandidate(
            kind=CustomKind("ZZ"), rule=extended.get("CUSTOM-001"), line=1, column=1,
            offset=0, text="zz", source_line="zz",
        )
        scored = [(custom, 0.5), (_candidate(registry), 0.5)]
        kinds = [a.kind for a in classify_and_aggregate(scored, config)]
        assert kinds == [IssueKind.UNWRAP_ABUSE, CustomKind("ZZ")]


class TestAlertContent:
    def test_renders_templates(self, registry):
        candidate = _candidate(
            registry, rule_id="MN-001", source="if confidence > 0.85 {", literal="0.85"
        )
        [alert] = classify_and_aggregate([(candidate, 0.9)], DetectConfig())
        assert "0.85" in alert.rationale
        assert "confidence_threshold" in alert.suggestion
        assert alert.snippet == "if confidence > 0.85 {"

    def test_path_is_attached(self, registry):
        [alert] = classify_and_aggregate([(_candidate(registry), 0.7)], DetectConfig(), path="a.rs")
        assert alert.path == "a.rs"

    def test_snippet_is_trimmed(self, registry):
        source = "x.unwrap(); " + "y" * 100
        config = DetectConfig(max_snippet_length=20)
        [alert] = classify_and_aggregate([(_candidate(registry, source=source), 0.7)], config)
        assert alert.snippet == source[:20] + "..."


class TestInternalErrors:
    @pytest.mark.parametrize("bad", [1.5, -0.1, float("nan"), float("inf")])
    def test_out_of_range_score_raises(self, registry, bad):
        with pytest.raises(InternalError):
            classify_and_aggregate([(_candidate(registry), bad)], DetectConfig())


class TestHelpers:
    def test_trim_snippet_short(self):
        assert trim_snippet("abc", 5) == "abc"

    def test_trim_snippet_long(self):
        assert trim_snippet("abcdef", 3) == "abc..."

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("if entropy > 0.7 {", "entropy"),
            ("let q = similarity(a, b);", "similarity"),
            ("if x > 0.5 {", "behavioral"),
        ],
    )
    def test_infer_config_name(self, line, expected):
        assert infer_config_name(line) == expected


def _custom_rule(kind_name, pattern):
    return PatternRule(
        kind=CustomKind(kind_name),
        pattern=pattern,
        base_weight=0.5,
        rationale="custom",
        suggestion="fix",
    )
