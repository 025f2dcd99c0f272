"""
Command line interface for repodock.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .github import OrgRepoLister, OrgReposError
from .logger import configure_logging, get_logger, redirect_logging_to_file
from .provisioning import (
    CloneExecutionError,
    DestinationError,
    ProvisioningOrchestrator,
    ProvisionRequest,
)
from .storage import ProjectRegistry

app = typer.Typer(name="repodock", help="Clone GitHub repositories into managed projects.")
configure_logging(enable_console=False)
log = get_logger(__name__)
console = Console()

_LISTING_HINTS = {
    "cli_not_installed": "GitHub CLI (gh) is not installed. Install it from https://cli.github.com/",
    "auth_failed": 'GitHub authentication failed: {message}. Run "gh auth login" to authenticate.',
    "command_failed": "Failed to list repositories: {message}",
}


@app.command()
def clone(
    repo: str = typer.Argument(..., help="Repository in owner/name form."),
    destination: Path = typer.Argument(..., help="Directory to clone into; must not exist."),
    name: Optional[str] = typer.Option(
        None, "--name", "-n", help="Project name (defaults to the repository name)."
    ),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Write detailed logs to this file."
    ),
) -> None:
    """Clone a repository and register it as a project."""
    if log_file:
        redirect_logging_to_file(log_file.resolve())
        typer.echo(f"Logging detailed output to {log_file.resolve()}")

    orchestrator = ProvisioningOrchestrator()
    request = ProvisionRequest(
        repo_full_name=repo, destination_path=str(destination), project_name=name
    )
    with console.status(f"Cloning {repo}..."):
        try:
            outcome = asyncio.run(orchestrator.provision(request))
        except (DestinationError, CloneExecutionError) as exc:
            typer.echo(f"[ERROR] {exc}")
            raise typer.Exit(code=2)

    if not outcome.ok or outcome.project is None:
        typer.echo(f"[ERROR] {outcome.message}")
        raise typer.Exit(code=1)

    project = outcome.project
    log.info("cli_project_created", project=project.id, repo=repo)
    typer.echo(
        f"Created project {project.name} ({project.id}) -> "
        f"{project.repositories[0].git_repo_path}"
    )


@app.command()
def repos(
    org: str = typer.Argument(..., help="GitHub organization."),
    search: Optional[str] = typer.Option(
        None, "--search", "-s", help="Case-insensitive name filter."
    ),
) -> None:
    """List non-archived repositories of an organization."""
    result = asyncio.run(OrgRepoLister().list_repos(org, search))
    if isinstance(result, OrgReposError):
        typer.echo(f"[ERROR] {_LISTING_HINTS[result.type].format(message=result.message)}")
        raise typer.Exit(code=2)

    table = Table(title=f"{org} repositories")
    table.add_column("Name", style="bold")
    table.add_column("Description")
    table.add_column("Clone URL")
    for info in result:
        table.add_row(info.name, info.description or "", info.clone_url)
    console.print(table)


@app.command()
def projects() -> None:
    """List registered projects."""
    registry = ProjectRegistry()
    for project in registry.list():
        paths = ", ".join(repo.git_repo_path for repo in project.repositories)
        typer.echo(f"- {project.name} [{project.id}] {paths}")


@app.command()
def serve(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
) -> None:
    """Run the HTTP API."""
    from .api.main import run

    run(log_level=logging.DEBUG if verbose else None)


if __name__ == "__main__":  # pragma: no cover
    app()
