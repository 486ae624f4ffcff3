"""gitscope command line — define, bind, find, and grep projects."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm
from rich.table import Table

from .config import GitscopeConfig
from .exceptions import GitscopeError
from .facade import ProjectSession
from .registry import COMPLETION, SCOPED_DIRS, SEARCH_PATTERNS
from .store import ProjectStore

if TYPE_CHECKING:
    from collections.abc import Mapping

app = typer.Typer(help="Project-scoped file lookup and search over git working copies.")
console = Console()
err_console = Console(stderr=True)


def _scope_variables(
    dirs: list[str] | None,
    patterns: list[str] | None,
    completion: str | None,
) -> dict[str, Any]:
    variables: dict[str, Any] = {}
    if dirs:
        variables[SCOPED_DIRS] = dirs
    if patterns:
        variables[SEARCH_PATTERNS] = patterns
    if completion:
        variables[COMPLETION] = completion
    return variables


def _confirm(directory: str, values: Mapping[str, Any]) -> bool:
    err_console.print(f"[yellow]{directory} sets values that are not trusted:[/yellow]")
    for name, value in values.items():
        err_console.print(f"  {name} = {value!r}", markup=False)
    return Confirm.ask("Apply them for this command?", console=err_console, default=False)


def _config(ctx: typer.Context) -> GitscopeConfig:
    return ctx.obj["config"]


def _open(ctx: typer.Context) -> tuple[ProjectStore, ProjectSession]:
    config = _config(ctx)
    store = ProjectStore.from_config(config)
    session = ProjectSession(
        store.load(),
        config=config,
        confirm=_confirm,
        reporter=lambda message: err_console.print(f"[yellow]{message}[/yellow]"),
    )
    return store, session


def _fail(error: Exception) -> typer.Exit:
    err_console.print(f"[red]✗ {error}[/red]")
    return typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    data_dir: Path | None = typer.Option(None, "--data-dir", help="Project store directory"),
    git: str | None = typer.Option(None, "--git", help="Git executable"),
    timeout: float | None = typer.Option(None, "--timeout", help="Git timeout in seconds"),
) -> None:
    """Project-scoped file lookup and search over git working copies."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )
    ctx.obj = {
        "config": GitscopeConfig.from_env(
            data_dir=data_dir, git_executable=git, timeout=timeout
        )
    }


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


@app.command()
def define(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Project class name"),
    dirs: list[str] | None = typer.Option(None, "--dir", "-d", help="Scoped dir (repeatable)"),
    patterns: list[str] | None = typer.Option(None, "--pattern", "-p", help="Search glob"),
    completion: str | None = typer.Option(None, "--completion", "-c", help="default | fuzzy"),
):
    """Define (or redefine) a project class."""
    store, session = _open(ctx)
    with store:
        try:
            session.define_project_class(name, _scope_variables(dirs, patterns, completion))
            store.save(session.registry)
        except GitscopeError as e:
            raise _fail(e) from e
    console.print(f"[green]✓ Defined {name}[/green]")


@app.command()
def bind(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Directory to mark as a project"),
    class_name: str = typer.Argument(..., help="Project class to bind"),
    dirs: list[str] | None = typer.Option(None, "--dir", "-d", help="Override scoped directories"),
    patterns: list[str] | None = typer.Option(None, "--pattern", "-p", help="Override globs"),
    completion: str | None = typer.Option(None, "--completion", "-c", help="Override completion"),
):
    """Bind a directory to a project class."""
    store, session = _open(ctx)
    with store:
        try:
            binding = session.bind_directory(
                path, class_name, _scope_variables(dirs, patterns, completion)
            )
            store.save(session.registry)
        except GitscopeError as e:
            raise _fail(e) from e
    console.print(f"[green]✓ Bound {binding.path} to {class_name}[/green]")


@app.command()
def unbind(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Bound directory"),
):
    """Remove a directory binding."""
    store, session = _open(ctx)
    with store:
        if not session.unbind_directory(path):
            raise _fail(GitscopeError(f"No binding at {path}"))
        store.save(session.registry)
    console.print(f"[green]✓ Unbound {path}[/green]")


@app.command()
def classes(ctx: typer.Context):
    """List project classes."""
    store, session = _open(ctx)
    with store:
        table = Table(title="Project classes")
        table.add_column("Name", style="cyan")
        table.add_column("Scoped dirs")
        table.add_column("Patterns")
        table.add_column("Completion", style="dim")
        for project_class in session.registry.list_classes():
            v = project_class.variables
            table.add_row(
                project_class.name,
                ", ".join(v.get(SCOPED_DIRS, ())) or "(whole tree)",
                ", ".join(v.get(SEARCH_PATTERNS, ("*",))),
                str(v.get(COMPLETION, "default")),
            )
        console.print(table)


@app.command()
def bindings(ctx: typer.Context):
    """List bound directories."""
    store, session = _open(ctx)
    with store:
        table = Table(title="Bindings")
        table.add_column("Directory", style="cyan")
        table.add_column("Class")
        table.add_column("Overrides", style="dim")
        for binding in session.registry.list_bindings():
            overrides = ", ".join(f"{k}={v!r}" for k, v in binding.overrides.items())
            table.add_row(binding.path, binding.class_name, overrides)
        console.print(table)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@app.command()
def status(
    ctx: typer.Context,
    path: Path | None = typer.Argument(None, help="Location to resolve [default: cwd]"),
):
    """Show how a location resolves."""
    store, session = _open(ctx)
    with store:
        try:
            resolution = session.status(path)
        except GitscopeError as e:
            raise _fail(e) from e
    console.print(f"[bold]{resolution.location}[/bold]: {resolution.state.value}")
    if resolution.context is not None:
        c = resolution.context
        console.print(f"  root:     {c.root}")
        console.print(f"  class:    {c.class_name}")
        console.print(f"  dirs:     {', '.join(c.scoped_dirs) or '(whole tree)'}")
        console.print(f"  patterns: {', '.join(c.search_patterns)}")
    elif resolution.message:
        console.print(f"  [yellow]{resolution.message}[/yellow]")
    if not resolution.is_active:
        raise typer.Exit(1)


@app.command()
def files(
    ctx: typer.Context,
    path: Path | None = typer.Argument(None, help="Location [default: cwd]"),
):
    """List the files in scope."""
    store, session = _open(ctx)
    with store:
        try:
            result = session.list_files(path)
        except GitscopeError as e:
            raise _fail(e) from e
    if not result.success:
        raise _fail(GitscopeError(result.message))
    for rel in result.paths:
        console.print(rel, markup=False, highlight=False)


@app.command()
def find(
    ctx: typer.Context,
    path: Path | None = typer.Argument(None, help="Location [default: cwd]"),
):
    """Pick a file in the project and print its absolute path."""
    store, session = _open(ctx)
    with store:
        try:
            selected = session.find_file(path)
        except GitscopeError as e:
            raise _fail(e) from e
    if selected is None:
        raise typer.Exit(1)
    console.print(str(selected), markup=False, highlight=False)


@app.command()
def grep(
    ctx: typer.Context,
    pattern: str | None = typer.Argument(None, help="Pattern (prompted for when omitted)"),
    path: Path | None = typer.Option(None, "--path", "-C", help="Location [default: cwd]"),
):
    """Search the project's scoped patterns."""
    store, session = _open(ctx)
    with store:
        try:
            result = session.search_project(pattern, path)
        except GitscopeError as e:
            raise _fail(e) from e
    if not result.success:
        raise typer.Exit(1)
    console.print(result.output, end="", markup=False, highlight=False)
    console.print(f"[dim]{result.message}[/dim]")


if __name__ == "__main__":
    app()
