"""BTW command-line interface."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .constants import DEFAULT_AI_TARGET, STATE_FILE, WORKFLOWS_DIR
from .engine import InjectionEngine
from .exceptions import BTWError
from .fs import PathResolver
from .logging import configure_logging
from .manifest import load_manifest
from .models import AITarget, EjectOptions, InjectOptions, Manifest, MultiInjectOptions
from .state import StateManager
from .workflow import WorkflowManager

app = typer.Typer(
    name="btw",
    help="BTW: inject workflow agents into AI coding assistant configuration",
    add_completion=False,
)
console = Console()


def _get_version_string() -> str:
    try:
        return get_version("btw")
    except PackageNotFoundError:
        return "unknown"


def version_callback(value: bool) -> None:
    """Callback for --version flag."""
    if value:
        console.print(f"BTW version {_get_version_string()}")
        raise typer.Exit


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """BTW: inject workflow agents into AI coding assistant configuration."""
    configure_logging()


def _resolve_project(project: Path | None) -> Path:
    if project is not None:
        return project.resolve()
    return PathResolver().find_project_root(Path.cwd()) or Path.cwd()


def _build_engine() -> InjectionEngine:
    """Create an engine that records injections when a state file exists."""
    state_manager: StateManager | None = None
    if STATE_FILE.exists():
        state_manager = StateManager(STATE_FILE)
        try:
            state_manager.initialize(create_if_missing=False)
        except BTWError as e:
            console.print(f"[yellow]Warning:[/yellow] Ignoring state file: {e.message}")
            state_manager = None
    return InjectionEngine(state_manager=state_manager)


def _workflow_manager() -> WorkflowManager:
    state_manager = StateManager(STATE_FILE)
    state_manager.initialize()
    return WorkflowManager(
        state_manager,
        engine=InjectionEngine(state_manager=state_manager),
        workflows_dir=WORKFLOWS_DIR,
    )


def _load_workflow_manifest(workflow: str) -> Manifest:
    """Load from a path when one exists, otherwise from the installed workflow store."""
    path = Path(workflow)
    if path.exists():
        return load_manifest(path)
    return load_manifest(WORKFLOWS_DIR / workflow)


def _print_error(error: BTWError) -> None:
    console.print(f"[red]Error:[/red] {error}")
    if error.hint:
        console.print(f"[dim]Hint: {error.hint}[/dim]")


@app.command()
def inject(
    workflow: str = typer.Argument(
        ...,
        help="Installed workflow ID, or path to btw.yaml or a workflow directory",
    ),
    target: AITarget = typer.Option(
        DEFAULT_AI_TARGET,
        "--target",
        "-t",
        help="AI target to inject into",
    ),
    all_targets: bool = typer.Option(
        False,
        "--all-targets",
        help="Inject into every target the manifest declares",
    ),
    project: Path | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project path (defaults to the enclosing project of the cwd)",
        file_okay=False,
        dir_okay=True,
    ),
    backup: bool = typer.Option(
        True,
        "--backup/--no-backup",
        help="Back up an existing instructions file before writing",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite content injected by a different workflow",
    ),
    merge: bool = typer.Option(
        False,
        "--merge",
        help="Keep existing non-BTW content in the instructions file",
    ),
) -> None:
    """Inject a workflow into AI tool configuration."""
    project_root = _resolve_project(project)

    try:
        manifest = _load_workflow_manifest(workflow)
        engine = _build_engine()

        if all_targets:
            outcome = engine.inject_multiple(
                manifest,
                MultiInjectOptions(
                    project_root=project_root, backup=backup, force=force, merge=merge,
                ),
            )
            for injected_target, result in outcome.results.items():
                console.print(
                    f"[green]✓[/green] {injected_target}: {result.config_path} "
                    f"({result.agent_count} agents)",
                )
            for failed_target, error in outcome.failures.items():
                console.print(f"[red]✗[/red] {failed_target}: {error}")
            if not outcome.success:
                raise typer.Exit(1)
            return

        result = engine.inject(
            manifest,
            target,
            InjectOptions(project_root=project_root, backup=backup, force=force, merge=merge),
        )
    except BTWError as e:
        _print_error(e)
        raise typer.Exit(1) from e

    if not result.success or result.data is None:
        console.print(f"[red]Error:[/red] {result.error or 'Failed to inject workflow'}")
        raise typer.Exit(1)

    data = result.data
    console.print(f"[green]✓[/green] Workflow '{manifest.id}' injected into {target}")
    console.print(f"  • Config path: {data.config_path}")
    console.print(f"  • Agents injected: {data.agent_count}")
    if data.backup_created and data.backup_path:
        console.print(f"  • Backup: {data.backup_path}")


@app.command()
def eject(
    target: AITarget | None = typer.Option(
        None,
        "--target",
        "-t",
        help="AI target to eject from (default: every injected target)",
    ),
    project: Path | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project path (defaults to the enclosing project of the cwd)",
        file_okay=False,
        dir_okay=True,
    ),
    restore_backup: bool = typer.Option(
        False,
        "--restore-backup",
        help="Restore the pre-injection backup instead of stripping the block",
    ),
    clean: bool = typer.Option(
        False,
        "--clean",
        help="Remove the whole tool directory",
    ),
) -> None:
    """Remove injected workflow content from AI tool configuration."""
    project_root = _resolve_project(project)
    engine = _build_engine()

    try:
        if target is None:
            result = engine.eject_all(project_root, restore_backup=restore_backup, clean=clean)
        else:
            result = engine.eject(
                target,
                EjectOptions(
                    project_root=project_root, restore_backup=restore_backup, clean=clean,
                ),
            )
    except BTWError as e:
        _print_error(e)
        raise typer.Exit(1) from e

    for warning in result.warnings or []:
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    if not result.success:
        console.print(f"[red]Error:[/red] {result.error or 'Failed to eject workflow'}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Ejected from {target or 'all injected targets'}")


@app.command()
def add(
    source: Path = typer.Argument(..., help="Local workflow directory containing btw.yaml"),
    project: Path | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project path (defaults to the enclosing project of the cwd)",
        file_okay=False,
        dir_okay=True,
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an already installed workflow",
    ),
    workflow_id: str | None = typer.Option(
        None,
        "--id",
        help="Install under this ID instead of the manifest's",
    ),
) -> None:
    """Install a workflow from a local directory and track it in the project."""
    project_root = _resolve_project(project)

    try:
        workflow = _workflow_manager().add(
            source, project_root, force=force, workflow_id=workflow_id,
        )
    except BTWError as e:
        _print_error(e)
        raise typer.Exit(1) from e

    console.print(f"[green]✓[/green] Workflow '{workflow.workflow_id}' added")
    console.print(f"  • Version: {workflow.version}")
    console.print(f"  • Source: {workflow.source}")
    console.print(f"Run `btw inject {workflow.workflow_id}` to inject it.")


@app.command("list")
def list_workflows(
    project: Path | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project path (defaults to the enclosing project of the cwd)",
        file_okay=False,
        dir_okay=True,
    ),
    active_only: bool = typer.Option(
        False,
        "--active-only",
        help="Show only active workflows",
    ),
) -> None:
    """List workflows installed in the project."""
    project_root = _resolve_project(project)

    try:
        details = _workflow_manager().list(project_root, active_only=active_only, detailed=True)
    except BTWError as e:
        _print_error(e)
        raise typer.Exit(1) from e

    if not details:
        console.print("No workflows installed. Run `btw add <path>` to add one.")
        return

    table = Table(title=f"Workflows: {project_root}")
    table.add_column("ID", style="cyan")
    table.add_column("Version")
    table.add_column("Name")
    table.add_column("Installed at")
    table.add_column("Last injected")

    for detail in details:
        table.add_row(
            detail.state.workflow_id,
            detail.state.version,
            detail.manifest.title if detail.manifest else "[red]missing[/red]",
            detail.state.installed_at,
            detail.state.last_injected_at or "-",
        )

    console.print(table)


@app.command()
def remove(
    workflow_id: str = typer.Argument(..., help="ID of the workflow to remove"),
    project: Path | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project path (defaults to the enclosing project of the cwd)",
        file_okay=False,
        dir_okay=True,
    ),
    purge: bool = typer.Option(
        False,
        "--purge",
        help="Remove the tool directories instead of restoring backups",
    ),
    keep_injection: bool = typer.Option(
        False,
        "--keep-injection",
        help="Leave injected content in place",
    ),
) -> None:
    """Eject a workflow and remove it from the project."""
    project_root = _resolve_project(project)

    try:
        warnings = _workflow_manager().remove(
            project_root, workflow_id, purge=purge, keep_injection=keep_injection,
        )
    except BTWError as e:
        _print_error(e)
        raise typer.Exit(1) from e

    for warning in warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    console.print(f"[green]✓[/green] Workflow '{workflow_id}' removed")


@app.command()
def status(
    project: Path | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project path (defaults to the enclosing project of the cwd)",
        file_okay=False,
        dir_okay=True,
    ),
) -> None:
    """Show injection status for every supported target."""
    project_root = _resolve_project(project)
    engine = _build_engine()

    table = Table(title=f"Injection status: {project_root}")
    table.add_column("Target", style="cyan")
    table.add_column("Injected")
    table.add_column("Workflow")
    table.add_column("Injected at")
    table.add_column("Backup")

    for target, target_status in engine.get_all_statuses(project_root).items():
        table.add_row(
            str(target),
            "[green]yes[/green]" if target_status.is_injected else "no",
            target_status.workflow_id or "-",
            target_status.injected_at or "-",
            str(target_status.backup_path) if target_status.has_backup else "-",
        )

    console.print(table)


@app.command()
def validate(
    project: Path | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project path (defaults to the enclosing project of the cwd)",
        file_okay=False,
        dir_okay=True,
    ),
) -> None:
    """Check that every target's configuration files are well-formed."""
    project_root = _resolve_project(project)
    results = _build_engine().validate(project_root)

    for target, valid in results.items():
        mark = "[green]✓[/green]" if valid else "[red]✗[/red]"
        console.print(f"{mark} {target}")

    if not all(results.values()):
        raise typer.Exit(1)


@app.command()
def targets() -> None:
    """List supported AI targets."""
    for target in InjectionEngine().get_supported_targets():
        console.print(f"  • {target}")


@app.command()
def version() -> None:
    """Show BTW version."""
    console.print(f"BTW version {_get_version_string()}")


if __name__ == "__main__":
    app()
