"""smellhound - fast detector for magic numbers and code smells.

Library usage::

    from smellhound import DetectConfig, scan_code

    for alert in scan_code(source, DetectConfig(confidence_threshold=0.7)):
        print(alert.kind.label, alert.tier.label, alert.line)
"""

from smellhound._version import __version__
from smellhound.core.config import DetectConfig, ScoringPolicy, TierThresholds
from smellhound.core.errors import (
    ConfigError,
    DetectError,
    FileReadError,
    FileTooLargeError,
    InternalError,
    InvalidConfigError,
    PatternCompilationError,
    RuleConflictError,
)
from smellhound.core.models import (
    Alert,
    CustomKind,
    ExitStatus,
    IssueKind,
    MatchCandidate,
    PatternRule,
    ScanResult,
    SeverityTier,
)
from smellhound.scanner.engine import Detector, scan_code, scan_files
from smellhound.scanner.registry import BUILTIN_RULES, PatternRegistry

__all__ = [
    "__version__",
    "Alert",
    "BUILTIN_RULES",
    "ConfigError",
    "CustomKind",
    "DetectConfig",
    "DetectError",
    "Detector",
    "ExitStatus",
    "FileReadError",
    "FileTooLargeError",
    "InternalError",
    "InvalidConfigError",
    "IssueKind",
    "MatchCandidate",
    "PatternCompilationError",
    "PatternRegistry",
    "PatternRule",
    "RuleConflictError",
    "ScanResult",
    "ScoringPolicy",
    "SeverityTier",
    "TierThresholds",
    "scan_code",
    "scan_files",
]
