"""Detection engine: wires registry, matcher, scorer and classifier together."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from smellhound.core.config import DetectConfig
from smellhound.core.errors import FileReadError, FileTooLargeError
from smellhound.core.models import LITERAL_KINDS, Alert, CustomKind, PatternRule, ScanResult
from smellhound.scanner.classifier import classify_and_aggregate
from smellhound.scanner.matcher import find_candidates, split_lines
from smellhound.scanner.registry import PatternRegistry
from smellhound.scanner.scoring import FileContext, score_all

logger = logging.getLogger("smellhound.scanner")

PathLike = str | os.PathLike


class Detector:
    """Single entry point for scanning text or files.

    Construction validates the configuration and builds the active rule set,
    so a bad threshold or a malformed custom rule fails before any matching.
    A detector holds no mutable state and can be shared across threads.

    Usage::

        detector = Detector(DetectConfig(confidence_threshold=0.7))
        alerts = detector.scan_code(source, path="src/lib.rs")
        result = detector.scan_files(["a.rs", "b.rs"])
    """

    def __init__(
        self,
        config: DetectConfig | None = None,
        registry: PatternRegistry | None = None,
    ):
        self.config = config if config is not None else DetectConfig()
        self.config.validate()

        base = registry if registry is not None else PatternRegistry.default()
        if self.config.custom_rules:
            self.registry = base.extended(self.config.custom_rules)
        else:
            self.registry = base

        self.rules: tuple[PatternRule, ...] = tuple(
            rule for rule in self.registry.rules() if self._is_active(rule)
        )
        self._non_literal_rules = tuple(r for r in self.rules if r.kind not in LITERAL_KINDS)
        logger.debug(
            "Detector ready: %d of %d rules active, threshold %.3f",
            len(self.rules),
            len(self.registry),
            self.config.confidence_threshold,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def scan_code(self, text: str, path: PathLike | None = None) -> list[Alert]:
        """Scan one file's content.  *path*, when given, is attached to each alert."""
        path_str = os.fspath(path) if path is not None else None
        lines, offsets = split_lines(text)

        candidates = find_candidates(
            lines,
            self.rules_for(path_str),
            max_line_length=self.config.max_line_length,
            ignored_literals=self.config.ignored_literals,
            line_offsets=offsets,
        )
        context = FileContext(lines, candidates, path_str, self.config.scoring)
        return classify_and_aggregate(score_all(candidates, context), self.config, path_str)

    def scan_file(self, path: PathLike) -> list[Alert]:
        """Read and scan one file.  Raises :class:`FileReadError` if it cannot be read."""
        return self.scan_code(self._read(path), path)

    def scan_files(
        self, paths: Iterable[PathLike], max_workers: int | None = None
    ) -> ScanResult:
        """Scan a set of files on a worker pool.

        A file that cannot be read is reported in ``ScanResult.errors`` and
        does not stop the others.  Alerts are sorted by (path, line, column,
        kind) once every worker has finished.
        """
        unique = list(dict.fromkeys(os.fspath(p) for p in paths))
        workers = max_workers or self.config.max_workers
        result = ScanResult()

        if not unique:
            return result

        logger.debug("Scanning %d files", len(unique))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {pool.submit(self.scan_file, p): p for p in unique}
            for future in as_completed(futures):
                path = futures[future]
                try:
                    alerts = future.result()
                except FileReadError as exc:
                    logger.warning("Could not read %s: %s", path, exc.reason)
                    result.errors.append((path, exc))
                    continue
                result.alerts.extend(alerts)
                result.files_scanned += 1

        result.alerts.sort(key=Alert.sort_key)
        result.errors.sort(key=lambda item: item[0])
        return result

    def rules_for(self, path: str | None) -> tuple[PatternRule, ...]:
        """Active rules for *path*.  Config/constants files skip the literal rules."""
        if path is not None and self._is_literal_exempt(path):
            return self._non_literal_rules
        return self.rules

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_active(self, rule: PatternRule) -> bool:
        if rule.rule_id in self.config.exclude_rules:
            return False
        if isinstance(rule.kind, CustomKind):
            return True
        return rule.kind in self.config.enabled_kinds

    def _is_literal_exempt(self, path: str) -> bool:
        normalized = path.replace("\\", "/")
        return any(pattern in normalized for pattern in self.config.literal_exempt_paths)

    def _read(self, path: PathLike) -> str:
        file_path = Path(path)
        try:
            size = file_path.stat().st_size
            if size > self.config.max_file_bytes:
                raise FileTooLargeError(path, size, self.config.max_file_bytes)
            return file_path.read_text(errors="ignore")
        except OSError as exc:
            raise FileReadError(path, exc.strerror or str(exc)) from exc


def scan_code(
    text: str,
    config: DetectConfig | None = None,
    registry: PatternRegistry | None = None,
    path: PathLike | None = None,
) -> list[Alert]:
    """Scan one file's content with a throwaway :class:`Detector`."""
    return Detector(config, registry).scan_code(text, path)


def scan_files(
    paths: Iterable[PathLike],
    config: DetectConfig | None = None,
    registry: PatternRegistry | None = None,
) -> ScanResult:
    """Scan a set of files with a throwaway :class:`Detector`."""
    return Detector(config, registry).scan_files(paths)
