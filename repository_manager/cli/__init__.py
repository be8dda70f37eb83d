"""
Command Line Interface for the Repository Manager.
"""

from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import print as rprint

from ..config import get_settings
from ..core.orchestrator import build_orchestrator
from ..db.base import get_session_local, init_database
from ..db.services import SqlArtifactIndex
from ..errors import RepositoryManagerError
from ..logs import configure_logging

app = typer.Typer(help="Repository Manager - per-commit bundles of upstream projects")
console = Console()


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, help="Port to run the API server on"),
    host: Optional[str] = typer.Option(None, help="Host to bind the server to"),
    dev: bool = typer.Option(False, help="Run in development mode (auto-reload)"),
):
    """Start the HTTP API."""
    settings = get_settings()
    rprint(Panel.fit("Starting Repository Manager", style="bold blue"))
    uvicorn.run(
        "repository_manager.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=dev,
        workers=1 if dev else settings.api_workers,
    )


@app.command("init-db")
def init_db():
    """Create the database tables."""
    configure_logging(get_settings())
    init_database()
    console.print("✅ Database initialized")


@app.command()
def resolve(
    project_id: str = typer.Argument(..., help="Project id (UUID)"),
    commit: str = typer.Argument(..., help="40-character commit hash"),
):
    """Resolve a commit bundle locally and print its index record."""
    settings = get_settings()
    configure_logging(settings)
    init_database()

    orchestrator = build_orchestrator(settings, SqlArtifactIndex(get_session_local()))
    try:
        record = orchestrator.resolve(project_id, commit)
    except RepositoryManagerError as e:
        console.print(f"❌ {type(e).__name__}: {e.message}", style="bold red")
        raise typer.Exit(code=1)
    finally:
        orchestrator.source.close()

    table = Table(title="Artifact", show_header=True, header_style="bold magenta")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Project", record.project_id)
    table.add_row("Commit", record.commit_hash)
    table.add_row("Name", record.project_name)
    table.add_row("Working tree", record.working_tree_path)
    table.add_row("Bundle", record.bundle_path)
    console.print(table)


if __name__ == "__main__":
    app()
