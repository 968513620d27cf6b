"""Collect the files a scan should look at."""

from __future__ import annotations

from collections.abc import Iterable
from fnmatch import fnmatch
from pathlib import Path


def discover_files(
    target: Path,
    include_extensions: Iterable[str] = (".rs", ".py"),
    exclude_patterns: Iterable[str] = (),
) -> list[Path]:
    """Collect source files under *target*, excluding configured patterns.

    A file target is returned as-is (even with another extension, since the
    caller named it explicitly).  Exclude patterns are globs matched against
    the path relative to *target*, both from its start and at any directory
    boundary, so ``target/*`` also drops ``crates/core/target/...``.
    """
    if target.is_file():
        return [target]
    if not target.is_dir():
        return []

    extensions = {ext.lower() for ext in include_extensions}
    patterns = list(exclude_patterns)
    files: list[Path] = []

    for path in target.rglob("*"):
        if not path.is_file() or path.suffix.lower() not in extensions:
            continue
        rel = path.relative_to(target).as_posix()
        if is_excluded(rel, patterns):
            continue
        files.append(path)

    return sorted(files)


def is_excluded(rel_path: str, patterns: Iterable[str]) -> bool:
    for pattern in patterns:
        pattern = pattern.rstrip("/")
        if fnmatch(rel_path, pattern) or fnmatch(rel_path, f"*/{pattern}"):
            return True
        # Bare directory names ("target") exclude everything beneath them.
        if "/" not in pattern and not any(ch in pattern for ch in "*?[") and pattern in rel_path.split("/")[:-1]:
            return True
    return False
