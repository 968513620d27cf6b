"""Tests for the pattern registry."""

from __future__ import annotations

import re

import pytest

from smellhound.core.errors import (
    ConfigError,
    InvalidConfigError,
    PatternCompilationError,
    RuleConflictError,
)
from smellhound.core.models import CustomKind, IssueKind, PatternRule
from smellhound.scanner.registry import BUILTIN_RULES, PatternRegistry


def _rule(
    pattern: str = r"TODO",
    kind=CustomKind("TodoMarker"),
    weight: float = 0.7,
    rule_id: str = "",
    rationale: str = "Found {match}",
    suggestion: str = "Resolve it",
) -> PatternRule:
    return PatternRule(
        kind=kind,
        pattern=pattern,
        base_weight=weight,
        rationale=rationale,
        suggestion=suggestion,
        rule_id=rule_id,
    )


class TestDefaultRegistry:
    def test_contains_all_builtin_rules(self):
        """Default construction should register every built-in rule in order."""
        registry = PatternRegistry.default()
        assert [r.rule_id for r in registry.rules()] == [r.rule_id for r in BUILTIN_RULES]

    def test_covers_every_builtin_kind(self):
        """Each built-in IssueKind should have at least one rule."""
        registry = PatternRegistry.default()
        assert set(registry.kinds()) == set(IssueKind)

    def test_rules_are_compiled(self):
        """Registered rules carry their compiled pattern."""
        for rule in PatternRegistry.default().rules():
            assert isinstance(rule.regex, re.Pattern)

    def test_builtin_rules_are_not_mutated(self):
        """Registration stores copies; the module-level rules stay uncompiled."""
        PatternRegistry.default()
        assert all(rule.regex is None for rule in BUILTIN_RULES)

    def test_independent_instances(self):
        """Two registries do not share state."""
        a = PatternRegistry.default()
        b = PatternRegistry.default()
        a.register(_rule())
        assert len(a) == len(b) + 1


class TestRegister:
    def test_returns_given_rule_id(self):
        registry = PatternRegistry()
        assert registry.register(_rule(rule_id="PRJ-001")) == "PRJ-001"
        assert "PRJ-001" in registry

    def test_assigns_custom_ids(self):
        """Rules without an id get sequential CUSTOM ids."""
        registry = PatternRegistry()
        first = registry.register(_rule(pattern="TODO"))
        second = registry.register(_rule(pattern="FIXME"))
        assert (first, second) == ("CUSTOM-001", "CUSTOM-002")

    def test_malformed_pattern_raises(self):
        """An uncompilable pattern is a PatternCompilationError (a ConfigError)."""
        registry = PatternRegistry()
        with pytest.raises(PatternCompilationError) as exc_info:
            registry.register(_rule(pattern=r"(unclosed"))
        assert isinstance(exc_info.value, ConfigError)
        assert exc_info.value.pattern == "(unclosed"

    def test_empty_matching_pattern_raises(self):
        """Patterns that can match nothing at all are rejected."""
        with pytest.raises(PatternCompilationError):
            PatternRegistry().register(_rule(pattern=r"x*"))

    def test_conflicting_base_weight_raises(self):
        """Registering a kind twice with different weights fails."""
        registry = PatternRegistry()
        registry.register(_rule(pattern="TODO", weight=0.7))
        with pytest.raises(RuleConflictError):
            registry.register(_rule(pattern="FIXME", weight=0.8))

    def test_same_kind_same_weight_is_allowed(self):
        registry = PatternRegistry()
        registry.register(_rule(pattern="TODO", weight=0.7))
        registry.register(_rule(pattern="FIXME", weight=0.7))
        assert len(registry) == 2

    def test_duplicate_rule_id_raises(self):
        registry = PatternRegistry()
        registry.register(_rule(pattern="TODO", rule_id="PRJ-001"))
        with pytest.raises(RuleConflictError):
            registry.register(_rule(pattern="FIXME", rule_id="PRJ-001"))

    @pytest.mark.parametrize("weight", [-0.1, 1.5, float("nan"), True])
    def test_weight_out_of_domain_raises(self, weight):
        with pytest.raises(InvalidConfigError):
            PatternRegistry().register(_rule(weight=weight))

    @pytest.mark.parametrize("min_literals", [-1, True, 1.5])
    def test_min_literals_out_of_domain_raises(self, min_literals):
        rule = PatternRule(
            kind=CustomKind("ArgCount"), pattern=r"f\((?P<args>[^)]*)\)", base_weight=0.5,
            rationale="", suggestion="", min_literals=min_literals,
        )
        with pytest.raises(InvalidConfigError):
            PatternRegistry().register(rule)

    def test_malformed_template_raises(self):
        """Positional placeholders cannot be rendered and are rejected."""
        with pytest.raises(InvalidConfigError):
            PatternRegistry().register(_rule(rationale="value {0}"))

    def test_failed_registration_leaves_registry_unchanged(self):
        registry = PatternRegistry()
        with pytest.raises(ConfigError):
            registry.register(_rule(pattern="(bad"))
        assert len(registry) == 0


class TestExtended:
    def test_extended_returns_new_registry(self):
        """extended() leaves the original untouched."""
        base = PatternRegistry.default()
        extended = base.extended([_rule(rule_id="PRJ-001")])
        assert "PRJ-001" in extended
        assert "PRJ-001" not in base
        assert len(extended) == len(base) + 1

    def test_extended_skips_used_custom_ids(self):
        base = PatternRegistry([_rule(pattern="TODO")])
        extended = base.extended([_rule(pattern="FIXME")])
        assert [r.rule_id for r in extended.rules()] == ["CUSTOM-001", "CUSTOM-002"]

    def test_extended_checks_conflicts_against_existing_rules(self):
        base = PatternRegistry.default()
        conflicting = _rule(pattern="magic", kind=IssueKind.MAGIC_NUMBER, weight=0.1)
        with pytest.raises(RuleConflictError):
            base.extended([conflicting])
