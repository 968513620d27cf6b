"""smellhound scan / scan-magic commands."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

import click
from rich.markup import escape

from smellhound.core.config import DEFAULT_CONFIDENCE_THRESHOLD, load_config, parse_tier
from smellhound.core.errors import ConfigError
from smellhound.core.models import LITERAL_KINDS, ExitStatus, IssueKind, ScanResult
from smellhound.core.output import (
    error_console,
    get_progress,
    print_scan_report,
    render_markdown_report,
    result_to_dict,
)
from smellhound.scanner.discovery import discover_files
from smellhound.scanner.engine import Detector

logger = logging.getLogger("smellhound.cli")

OUTPUT_FORMATS = ["text", "json", "markdown"]
FAIL_ON_CHOICES = ["critical", "high", "medium", "low", "none"]


@click.command()
@click.argument("path", type=click.Path(path_type=Path), default=".")
@click.option("--threshold", type=float, default=None, help="Confidence threshold (0.0-1.0)")
@click.option("--output", "output_fmt", type=click.Choice(OUTPUT_FORMATS), default="text", help="Output format")
@click.option("--fail-on", type=click.Choice(FAIL_ON_CHOICES), default=None, help="Lowest tier that fails the run")
@click.option("--jobs", type=click.IntRange(min=1), default=None, help="Worker threads for file scanning")
def scan(path: Path, threshold: float | None, output_fmt: str, fail_on: str | None, jobs: int | None):
    """Scan code for all code smells.

    PATH can be a single file or a directory.
    """
    _run_scan(path, threshold, output_fmt, fail_on, jobs, kinds=None, title="smellhound Results")


@click.command("scan-magic")
@click.argument("path", type=click.Path(path_type=Path), default=".")
@click.option(
    "--threshold",
    type=float,
    default=DEFAULT_CONFIDENCE_THRESHOLD,
    show_default=True,
    help="Confidence threshold (0.0-1.0)",
)
@click.option("--output", "output_fmt", type=click.Choice(OUTPUT_FORMATS), default="text", help="Output format")
@click.option("--fail-on", type=click.Choice(FAIL_ON_CHOICES), default=None, help="Lowest tier that fails the run")
@click.option("--jobs", type=click.IntRange(min=1), default=None, help="Worker threads for file scanning")
def scan_magic(path: Path, threshold: float, output_fmt: str, fail_on: str | None, jobs: int | None):
    """Scan code for magic numbers and hardcoded values.

    PATH can be a single file or a directory.
    """
    _run_scan(
        path, threshold, output_fmt, fail_on, jobs,
        kinds=LITERAL_KINDS, title="Magic Number Detection Report",
    )


def _run_scan(
    path: Path,
    threshold: float | None,
    output_fmt: str,
    fail_on: str | None,
    jobs: int | None,
    kinds: frozenset[IssueKind] | None,
    title: str,
) -> None:
    try:
        project = load_config(Path.cwd())
        updates: dict = {}
        if threshold is not None:
            updates["confidence_threshold"] = threshold
        if jobs is not None:
            updates["max_workers"] = jobs
        if kinds is not None:
            updates["enabled_kinds"] = project.detect.enabled_kinds & kinds
            updates["custom_rules"] = tuple(r for r in project.detect.custom_rules if r.kind in kinds)
        detect = replace(project.detect, **updates)
        fail_tier = parse_tier(fail_on) if fail_on is not None else project.fail_on
        detector = Detector(detect)
    except ConfigError as exc:
        error_console.print(f"[red]Configuration error:[/red] {escape(str(exc))}")
        sys.exit(int(ExitStatus.CONFIG_ERROR))

    if not path.exists():
        error_console.print(f"[red]Path not found:[/red] {escape(str(path))}")
        sys.exit(int(ExitStatus.CONFIG_ERROR))

    files = discover_files(path, project.include_extensions, project.exclude_patterns)
    logger.debug("Discovered %d files under %s", len(files), path)

    if output_fmt == "text":
        with get_progress() as progress:
            task = progress.add_task(f"Scanning {len(files)} files...", total=None)
            result = detector.scan_files(files)
            progress.update(task, completed=True)
    else:
        result = detector.scan_files(files)

    _emit(result, output_fmt, title)
    sys.exit(int(result.exit_status(fail_tier)))


def _emit(result: ScanResult, output_fmt: str, title: str) -> None:
    if output_fmt == "json":
        click.echo(json.dumps(result_to_dict(result), indent=2))
    elif output_fmt == "markdown":
        click.echo(render_markdown_report(result, title=title))
    else:
        print_scan_report(result, title=title)
