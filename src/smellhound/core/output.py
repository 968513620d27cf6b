"""Rich terminal formatting and report rendering for smellhound output."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from smellhound.core.models import Alert, ScanResult, SeverityTier

console = Console()
error_console = Console(stderr=True)


TIER_ICONS = {
    SeverityTier.CRITICAL: "[red]●[/red]",
    SeverityTier.HIGH: "[dark_orange]●[/dark_orange]",
    SeverityTier.MEDIUM: "[yellow]●[/yellow]",
    SeverityTier.LOW: "[blue]●[/blue]",
}

TIER_COLORS = {
    SeverityTier.CRITICAL: "red",
    SeverityTier.HIGH: "dark_orange",
    SeverityTier.MEDIUM: "yellow",
    SeverityTier.LOW: "blue",
}

TIER_ORDER = [SeverityTier.CRITICAL, SeverityTier.HIGH, SeverityTier.MEDIUM, SeverityTier.LOW]


def format_alert(alert: Alert) -> str:
    """Format a single alert for terminal output."""
    icon = TIER_ICONS.get(alert.tier, "●")
    location = f"{alert.path}:" if alert.path else "line "
    location += f"{alert.line}:{alert.column}"
    first_line = alert.snippet.splitlines()[0] if alert.snippet else ""

    return (
        f"  {icon} {alert.kind.label}  [dim]{escape(location)}[/dim]  ({alert.confidence:.0%})\n"
        f"     {escape(first_line)}\n"
        f"     Why: {escape(alert.rationale)}\n"
        f"     Fix: {escape(alert.suggestion)}"
    )


def print_scan_report(result: ScanResult, title: str = "smellhound Results") -> None:
    """Print alerts grouped by tier, then per-file read errors."""
    lines = [""]
    lines.append(f"  Found {len(result.alerts)} issues in {result.files_scanned} files")
    lines.append("")

    for tier in TIER_ORDER:
        tier_alerts = [a for a in result.alerts if a.tier == tier]
        if not tier_alerts:
            continue
        color = TIER_COLORS[tier]
        lines.append(f"  [{color} bold]{tier.label.upper()}[/{color} bold] ({len(tier_alerts)} issues)")
        for alert in tier_alerts:
            lines.append(format_alert(alert))
            lines.append("")

    if result.errors:
        lines.append(f"  [red]{len(result.errors)} files could not be read:[/red]")
        for path, error in result.errors:
            lines.append(f"    [dim]{escape(path)}[/dim]  {escape(str(getattr(error, 'reason', error)))}")
        lines.append("")

    if result.critical_count:
        border = "red"
    elif result.alerts or result.errors:
        border = "yellow"
    else:
        border = "green"

    console.print(Panel(
        "\n".join(lines),
        title=f"[bold]{title}[/bold]",
        border_style=border,
        padding=(0, 1),
    ))


def result_to_dict(result: ScanResult) -> dict[str, Any]:
    """Convert a ScanResult to a JSON-serializable dict."""
    return {
        "files_scanned": result.files_scanned,
        "summary": {tier.value: result.count(tier) for tier in TIER_ORDER},
        "alerts": [a.to_dict() for a in result.alerts],
        "errors": [
            {"file": path, "error": type(error).__name__, "message": str(error)}
            for path, error in result.errors
        ],
    }


def render_markdown_report(
    result: ScanResult,
    title: str = "Magic Number Detection Report",
    generated_at: datetime | None = None,
) -> str:
    """Render a Markdown report with per-file findings and next steps."""
    generated_at = generated_at or datetime.now(timezone.utc)
    grouped = result.by_path()

    lines = [f"# {title}", "", f"Generated: {generated_at.isoformat()}", ""]
    lines.append("## Summary")
    lines.append(f"- Files scanned: {result.files_scanned}")
    lines.append(f"- Total issues found: {len(result.alerts)}")
    for tier in TIER_ORDER:
        lines.append(f"- {tier.label}: {result.count(tier)}")
    lines.append("")

    if grouped:
        lines.append("## Files with Issues")
        lines.append("")
    for path, alerts in grouped.items():
        lines.append(f"### {path}")
        lines.append("")
        lines.append(f"Found {len(alerts)} issues:")
        lines.append("")
        for i, alert in enumerate(alerts, start=1):
            lines.append(f"{i}. **{alert.kind.label}** at line {alert.line}:{alert.column}")
            lines.append(f"   - **Why**: {alert.rationale}")
            lines.append(f"   - **Suggestion**: {alert.suggestion}")
            lines.append(f"   - **Confidence**: {alert.confidence:.2f} ({alert.tier.label})")
            lines.append(f"   - **Code**: `{alert.snippet}`")
            lines.append("")

    if result.errors:
        lines.append("## Unreadable Files")
        lines.append("")
        for path, error in result.errors:
            lines.append(f"- `{path}`: {getattr(error, 'reason', error)}")
        lines.append("")

    lines.append("## Next Steps")
    lines.append("")
    lines.append("1. Review each finding and decide whether the value belongs in configuration")
    lines.append("2. Add the corresponding fields to the project's config type")
    lines.append("3. Replace hardcoded values with config reads")
    lines.append("4. Add tests that verify the config-driven behavior")
    lines.append("")
    return "\n".join(lines)


def get_progress() -> Progress:
    """Create a progress instance for scanning."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=error_console,
        transient=True,
    )
