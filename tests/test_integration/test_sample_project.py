"""Integration test: discover -> scan -> report over the bundled sample project."""

from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from smellhound.core.config import load_config
from smellhound.core.models import ExitStatus, IssueKind, SeverityTier
from smellhound.core.output import render_markdown_report, result_to_dict
from smellhound.scanner.discovery import discover_files
from smellhound.scanner.engine import Detector

SAMPLE_PROJECT = Path(__file__).resolve().parents[2] / "examples" / "sample_project"


@pytest.fixture
def sample_project(tmp_path: Path, monkeypatch) -> Path:
    """A private copy of examples/sample_project."""
    for name in (
        "SMELLHOUND_CONFIDENCE_THRESHOLD",
        "SMELLHOUND_IGNORED_LITERALS",
        "SMELLHOUND_EXEMPT_PATHS",
    ):
        monkeypatch.delenv(name, raising=False)
    target = tmp_path / "sample_project"
    shutil.copytree(SAMPLE_PROJECT, target)
    return target


def _scan(project: Path):
    config = load_config(project)
    files = discover_files(project, config.include_extensions, config.exclude_patterns)
    return Detector(config.detect).scan_files(files)


class TestSampleProject:
    def test_discovers_rust_and_python(self, sample_project: Path):
        files = discover_files(sample_project)
        names = [f.name for f in files]
        assert sorted(names) == ["config.rs", "healing.rs", "worker.py"]

    def test_every_builtin_kind_is_found(self, sample_project: Path):
        result = _scan(sample_project)
        assert result.errors == []
        assert result.files_scanned == 3
        assert {a.kind for a in result.alerts} == set(IssueKind)

    def test_alerts_per_file(self, sample_project: Path):
        grouped = _scan(sample_project).by_path()
        counts = {Path(path).name: len(alerts) for path, alerts in grouped.items()}
        assert counts == {"healing.rs": 11, "config.rs": 1, "worker.py": 4}

    def test_config_file_only_gets_non_literal_rules(self, sample_project: Path):
        result = _scan(sample_project)
        config_alerts = [a for a in result.alerts if a.path.endswith("config.rs")]
        assert [a.kind for a in config_alerts] == [IssueKind.HARDCODED_TIMEOUT]

    def test_named_constant_suppresses_repeat_literal(self, sample_project: Path):
        """worker.py compares against 0.92, which SIMILARITY_CUTOFF already names."""
        result = _scan(sample_project)
        worker = [a for a in result.alerts if a.path.endswith("worker.py")]
        assert IssueKind.MAGIC_NUMBER not in {a.kind for a in worker}

    def test_entropy_check_is_the_only_critical(self, sample_project: Path):
        result = _scan(sample_project)
        [critical] = [a for a in result.alerts if a.tier is SeverityTier.CRITICAL]
        assert critical.kind is IssueKind.MAGIC_NUMBER
        assert critical.path.endswith("healing.rs")
        assert critical.line == 15
        assert "0.73" in critical.rationale
        assert result.exit_status() == ExitStatus.ALERTS

    def test_project_config_is_honoured(self, sample_project: Path):
        (sample_project / "smellhound.toml").write_text(
            '[scan]\nconfidence_threshold = 0.8\ninclude_extensions = [".rs"]\n'
        )
        result = _scan(sample_project)
        assert result.files_scanned == 2
        assert all(a.confidence >= 0.8 for a in result.alerts)

    def test_reports_render(self, sample_project: Path):
        result = _scan(sample_project)
        data = json.loads(json.dumps(result_to_dict(result)))
        assert len(data["alerts"]) == len(result.alerts)
        report = render_markdown_report(result)
        assert report.count("### ") == 3
