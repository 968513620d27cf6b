"""Configuration management for smellhound (smellhound.toml parsing + defaults)."""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[no-redef]

from smellhound.core.errors import InvalidConfigError
from smellhound.core.models import IssueKind, PatternRule, SeverityTier, resolve_kind

CONFIG_FILENAME = "smellhound.toml"

# Reciprocal of the golden ratio.
DEFAULT_CONFIDENCE_THRESHOLD = 0.618

ENV_THRESHOLD = "SMELLHOUND_CONFIDENCE_THRESHOLD"
ENV_IGNORED_LITERALS = "SMELLHOUND_IGNORED_LITERALS"
ENV_EXEMPT_PATHS = "SMELLHOUND_EXEMPT_PATHS"


@dataclass(frozen=True)
class TierThresholds:
    """Lower bounds (inclusive) of each severity tier.  Anything below ``medium`` is Low."""

    critical: float = 0.9
    high: float = 0.8
    medium: float = 0.65

    def tier_for(self, score: float) -> SeverityTier:
        if score >= self.critical:
            return SeverityTier.CRITICAL
        if score >= self.high:
            return SeverityTier.HIGH
        if score >= self.medium:
            return SeverityTier.MEDIUM
        return SeverityTier.LOW


@dataclass(frozen=True)
class ScoringPolicy:
    """Constants of the confidence scoring function.

    Attributes:
        repetition_step:        Raise per additional identical match in a file.
        repetition_cap:         Number of additional matches that still count.
        named_constant_penalty: Lowering applied when a literal's value is
                                already bound to an UPPER_CASE constant.
        test_path_penalty:      Lowering applied to files that look like tests.
        keyword_boost:          Raise applied to literal matches with a
                                threshold-like word nearby.
        window_radius:          Lines above and below a match searched for
                                keywords.
        threshold_keywords:     The threshold-like words.
        test_path_pattern:      Regular expression identifying test paths.
    """

    repetition_step: float = 0.05
    repetition_cap: int = 4
    named_constant_penalty: float = 0.5
    test_path_penalty: float = 0.3
    keyword_boost: float = 0.1
    window_radius: int = 2
    threshold_keywords: tuple[str, ...] = (
        "threshold",
        "limit",
        "bound",
        "tolerance",
        "cutoff",
        "quality",
        "similarity",
        "cosine",
        "gate",
        "circuit",
        "entropy",
    )
    test_path_pattern: str = (
        r"(?:^|/)(?:tests?|benches|spec)/"
        r"|(?:^|/)test_[^/]*$"
        r"|_test\.\w+$"
        r"|\.(?:test|spec)\.\w+$"
    )


@dataclass(frozen=True)
class DetectConfig:
    """Caller-supplied configuration of one scan.  Read-only while scanning."""

    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    max_snippet_length: int = 500
    max_line_length: int = 2000
    enabled_kinds: frozenset[IssueKind] = frozenset(IssueKind)
    custom_rules: tuple[PatternRule, ...] = ()
    exclude_rules: frozenset[str] = frozenset()
    ignored_literals: tuple[str, ...] = ("0", "1", "2", "100", "1000", "1e-10", "0.0", "1.0")
    literal_exempt_paths: tuple[str, ...] = (
        "config.rs",
        "config.py",
        "settings.py",
        "constants.rs",
        "constants.py",
    )
    tiers: TierThresholds = field(default_factory=TierThresholds)
    scoring: ScoringPolicy = field(default_factory=ScoringPolicy)
    max_file_bytes: int = 2_000_000
    max_workers: int | None = None

    def validate(self) -> None:
        """Raise :class:`InvalidConfigError` for any out-of-domain value."""
        _check_unit("confidence_threshold", self.confidence_threshold)
        _check_positive_int("max_snippet_length", self.max_snippet_length)
        _check_positive_int("max_line_length", self.max_line_length)
        _check_positive_int("max_file_bytes", self.max_file_bytes)
        if self.max_workers is not None:
            _check_positive_int("max_workers", self.max_workers)

        for kind in self.enabled_kinds:
            if not isinstance(kind, IssueKind):
                raise InvalidConfigError(f"enabled_kinds: {kind!r} is not a built-in IssueKind")
        for rule in self.custom_rules:
            if not isinstance(rule, PatternRule):
                raise InvalidConfigError(f"custom_rules: {rule!r} is not a PatternRule")

        for value in self.ignored_literals:
            if parse_literal(value) is None:
                raise InvalidConfigError(f"ignored_literals: {value!r} is not numeric")

        t = self.tiers
        for name in ("critical", "high", "medium"):
            _check_unit(f"tiers.{name}", getattr(t, name))
        if not (t.medium <= t.high <= t.critical):
            raise InvalidConfigError(
                f"tiers must satisfy medium <= high <= critical, got "
                f"{t.medium} / {t.high} / {t.critical}"
            )

        s = self.scoring
        for name in ("repetition_step", "named_constant_penalty", "test_path_penalty", "keyword_boost"):
            _check_unit(f"scoring.{name}", getattr(s, name))
        if not isinstance(s.repetition_cap, int) or s.repetition_cap < 0:
            raise InvalidConfigError(f"scoring.repetition_cap must be >= 0, got {s.repetition_cap!r}")
        if not isinstance(s.window_radius, int) or s.window_radius < 0:
            raise InvalidConfigError(f"scoring.window_radius must be >= 0, got {s.window_radius!r}")


@dataclass
class ProjectConfig:
    """Everything read from ``smellhound.toml``: discovery settings plus the DetectConfig."""

    detect: DetectConfig = field(default_factory=DetectConfig)
    exclude_patterns: list[str] = field(
        default_factory=lambda: [
            "target/*",
            ".git/*",
            "node_modules/*",
            "venv/*",
            ".venv/*",
            "__pycache__/*",
        ]
    )
    include_extensions: list[str] = field(default_factory=lambda: [".rs", ".py"])
    fail_on: SeverityTier | None = SeverityTier.CRITICAL


def parse_literal(text: str) -> float | None:
    """Numeric value of a source literal such as ``0.85``, ``5.0f32`` or ``1_000``."""
    cleaned = text.strip().lower().replace("_", "")
    for suffix in ("f32", "f64"):
        if cleaned.endswith(suffix):
            cleaned = cleaned[: -len(suffix)]
            break
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_tier(name: str | None) -> SeverityTier | None:
    """Parse a ``fail_on`` value.  ``"none"`` disables failing on alerts."""
    if name is None:
        return None
    if not isinstance(name, str):
        raise InvalidConfigError(f"fail_on must be a string, got {name!r}")
    if name.strip().lower() == "none":
        return None
    try:
        return SeverityTier(name.strip().lower())
    except ValueError:
        raise InvalidConfigError(
            f"unknown severity tier {name!r} (expected critical, high, medium, low or none)"
        ) from None


def load_config(project_path: Path | None = None) -> ProjectConfig:
    """Load configuration from smellhound.toml if present, otherwise return defaults.

    Environment overrides are applied last.
    """
    config = ProjectConfig()

    if project_path is None:
        project_path = Path.cwd()

    config_file = project_path / CONFIG_FILENAME
    if config_file.is_file():
        try:
            with open(config_file, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise InvalidConfigError(f"{config_file}: {exc}") from exc
        config = _apply_toml(config, data)

    config.detect = apply_env_overrides(config.detect)
    return config


def _apply_toml(config: ProjectConfig, data: dict[str, Any]) -> ProjectConfig:
    detect = config.detect
    updates: dict[str, Any] = {}

    if "scan" in data:
        s = data["scan"]
        if "confidence_threshold" in s:
            updates["confidence_threshold"] = _as_float("scan.confidence_threshold", s["confidence_threshold"])
        if "max_snippet_length" in s:
            updates["max_snippet_length"] = s["max_snippet_length"]
        if "max_line_length" in s:
            updates["max_line_length"] = s["max_line_length"]
        if "max_file_bytes" in s:
            updates["max_file_bytes"] = s["max_file_bytes"]
        if "disabled_kinds" in s:
            disabled = set()
            for name in _as_str_list("scan.disabled_kinds", s["disabled_kinds"]):
                try:
                    disabled.add(IssueKind.from_name(name))
                except ValueError as exc:
                    raise InvalidConfigError(f"scan.disabled_kinds: {exc}") from None
            updates["enabled_kinds"] = frozenset(k for k in IssueKind if k not in disabled)
        if "ignore" in s:
            updates["exclude_rules"] = frozenset(_as_str_list("scan.ignore", s["ignore"]))
        if "exclude_patterns" in s:
            config.exclude_patterns = _as_str_list("scan.exclude_patterns", s["exclude_patterns"])
        if "include_extensions" in s:
            config.include_extensions = [
                ext if ext.startswith(".") else f".{ext}"
                for ext in _as_str_list("scan.include_extensions", s["include_extensions"])
            ]
        if "fail_on" in s:
            config.fail_on = parse_tier(s["fail_on"])

    if "tiers" in data:
        t = data["tiers"]
        tier_updates = {
            name: _as_float(f"tiers.{name}", t[name])
            for name in ("critical", "high", "medium")
            if name in t
        }
        updates["tiers"] = replace(detect.tiers, **tier_updates)

    if "literals" in data:
        lit = data["literals"]
        if "ignored_values" in lit:
            updates["ignored_literals"] = tuple(
                str(v) for v in _as_list("literals.ignored_values", lit["ignored_values"])
            )
        if "exempt_paths" in lit:
            updates["literal_exempt_paths"] = tuple(_as_str_list("literals.exempt_paths", lit["exempt_paths"]))

    if "rules" in data:
        updates["custom_rules"] = tuple(
            _rule_from_table(i, table) for i, table in enumerate(_as_list("rules", data["rules"]))
        )

    config.detect = replace(detect, **updates)
    return config


def _rule_from_table(index: int, table: Any) -> PatternRule:
    if not isinstance(table, Mapping):
        raise InvalidConfigError(f"rules[{index}] must be a table")
    missing = [key for key in ("kind", "pattern") if key not in table]
    if missing:
        raise InvalidConfigError(f"rules[{index}] is missing {', '.join(missing)}")
    kind = resolve_kind(str(table["kind"]))
    return PatternRule(
        kind=kind,
        pattern=str(table["pattern"]),
        base_weight=_as_float(f"rules[{index}].base_weight", table.get("base_weight", 0.7)),
        rationale=str(table.get("rationale", f"Project rule {kind.label} matched '{{match}}'")),
        suggestion=str(table.get("suggestion", "Review this code")),
        rule_id=str(table.get("id", "")),
    )


def apply_env_overrides(
    config: DetectConfig, environ: Mapping[str, str] | None = None
) -> DetectConfig:
    """Apply ``SMELLHOUND_*`` environment overrides.

    An unparsable threshold is ignored; a parsable one is clamped to [0, 1].
    """
    env = os.environ if environ is None else environ
    updates: dict[str, Any] = {}

    raw = env.get(ENV_THRESHOLD)
    if raw is not None:
        try:
            value = float(raw)
        except ValueError:
            value = None
        if value is not None and math.isfinite(value):
            updates["confidence_threshold"] = max(0.0, min(1.0, value))

    raw = env.get(ENV_IGNORED_LITERALS)
    if raw is not None:
        updates["ignored_literals"] = tuple(_split_csv(raw))

    raw = env.get(ENV_EXEMPT_PATHS)
    if raw is not None:
        updates["literal_exempt_paths"] = tuple(_split_csv(raw))

    return replace(config, **updates) if updates else config


def _split_csv(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def _check_unit(name: str, value: Any) -> None:
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not math.isfinite(value)
        or not 0.0 <= value <= 1.0
    ):
        raise InvalidConfigError(f"{name} must be a number in [0, 1], got {value!r}")


def _check_positive_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidConfigError(f"{name} must be a positive integer, got {value!r}")


def _as_float(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfigError(f"{name} must be a number, got {value!r}")
    return float(value)


def _as_list(name: str, value: Any) -> list[Any]:
    if not isinstance(value, list):
        raise InvalidConfigError(f"{name} must be a list, got {value!r}")
    return value


def _as_str_list(name: str, value: Any) -> list[str]:
    items = _as_list(name, value)
    if not all(isinstance(item, str) for item in items):
        raise InvalidConfigError(f"{name} must be a list of strings")
    return items
