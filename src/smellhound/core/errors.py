"""Error taxonomy for the detection engine.

Configuration problems fail a scan immediately.  File read problems are
isolated per file by the batch scanner.  ``InternalError`` means an engine
invariant broke and is never caught inside the package.
"""

from __future__ import annotations

from pathlib import Path


class DetectError(Exception):
    """Base class for every error raised by smellhound."""


class ConfigError(DetectError):
    """The configuration or rule set cannot be used."""


class InvalidConfigError(ConfigError):
    """A configuration value is outside its domain."""


class RuleConflictError(ConfigError):
    """A rule clashes with one that is already registered."""


class PatternCompilationError(ConfigError):
    """A rule's pattern is malformed."""

    def __init__(self, pattern: str, reason: str, rule_id: str = ""):
        self.pattern = pattern
        self.reason = reason
        self.rule_id = rule_id
        label = f"rule {rule_id}: " if rule_id else ""
        super().__init__(f"{label}invalid pattern {pattern!r}: {reason}")


class FileReadError(DetectError):
    """A single file could not be read.  Non-fatal in batch scans."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class FileTooLargeError(FileReadError):
    """A file exceeds the configured size cap."""

    def __init__(self, path: Path | str, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(path, f"file is {size} bytes (limit {limit})")


class InternalError(DetectError):
    """An engine invariant was violated (e.g. a score outside [0, 1])."""
