"""Tests for settings-driven wiring and the command line interface."""

from pathlib import Path

from typer.testing import CliRunner

from repository_manager import cli
from repository_manager.config import Settings
from repository_manager.core.orchestrator import build_orchestrator
from repository_manager.errors import NotFoundError
from repository_manager.index import InMemoryArtifactIndex
from repository_manager.integrations.project_source import HttpProjectSource
from repository_manager.store.tools import GitTool, ZipFileArchiver

from .fakes import COMMIT_A, PROJECT_ID

runner = CliRunner()


def test_build_orchestrator_from_settings(tmp_path):
    settings = Settings(
        base_path=str(tmp_path / "store"),
        archiver="zipfile",
        project_source_url="projects.internal:9000",
        max_archive_bytes=1024,
        keep_archives=False,
    )

    orchestrator = build_orchestrator(settings, InMemoryArtifactIndex())
    try:
        assert orchestrator.store.base_path == Path(tmp_path / "store").resolve()
        assert orchestrator.store.max_file_size == 1024
        assert isinstance(orchestrator.store.archiver, ZipFileArchiver)
        assert isinstance(orchestrator.store.vcs, GitTool)
        assert isinstance(orchestrator.source, HttpProjectSource)
        assert orchestrator.source.base_url == "http://projects.internal:9000"
        assert orchestrator.keep_archives is False
    finally:
        orchestrator.source.close()


def test_cli_resolve_reports_failure(monkeypatch, orchestrator):
    def missing(project_id, commit):
        raise NotFoundError(f"Project {project_id} not found")

    monkeypatch.setattr(orchestrator, "resolve", missing)
    monkeypatch.setattr(cli, "build_orchestrator", lambda settings, index: orchestrator)

    result = runner.invoke(cli.app, ["resolve", PROJECT_ID, COMMIT_A])

    assert result.exit_code == 1
    assert "NotFoundError" in result.output


def test_cli_resolve_prints_record(monkeypatch, orchestrator):
    monkeypatch.setattr(cli, "build_orchestrator", lambda settings, index: orchestrator)

    result = runner.invoke(cli.app, ["resolve", PROJECT_ID, COMMIT_A])

    assert result.exit_code == 0
    assert "demo" in result.output
    assert orchestrator.index.find_exact(PROJECT_ID, COMMIT_A) is not None
