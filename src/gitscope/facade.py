"""ProjectSession — project-aware file lookup and search.

Gates every operation on the location resolving to an active project,
prompts through the project's completion strategy, and delegates the
queries to ``QueryRunner``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.prompt import Prompt

from .completion import resolve_completion
from .config import GitscopeConfig
from .context import ContextResolver, Resolution
from .query_types import GrepQueryResult
from .registry import ProjectRegistry
from .roots import RootResolver
from .runner import QueryRunner

if TYPE_CHECKING:
    import os
    from collections.abc import Callable, Mapping

    from .context import ActiveProjectContext
    from .query_types import FileListResult
    from .registry import ProjectBinding, ProjectClass

logger = logging.getLogger(__name__)


def _log_report(message: str) -> None:
    logger.info(message)


def _ask_pattern(prompt: str) -> str:
    return Prompt.ask(prompt, console=Console(stderr=True), default="", show_default=False)


class ProjectSession:
    """Facade wiring the registry, resolver, runner, and completion strategies.

    Usage::

        session = ProjectSession()
        session.define_project_class(
            "cpp-proj",
            {"scoped_dirs": ["src", "include"], "search_patterns": ["*.cpp", "*.h"]},
        )
        session.bind_directory("/repo", "cpp-proj")
        path = session.find_file("/repo/src")
        result = session.search_project("TODO", "/repo/src")

    Args:
        registry: Classes and bindings.  A fresh registry by default.
        config: Runtime settings.
        runner: Executes git.  Built from *config* by default.
        root_resolver: Locates roots.  Built from *config* by default.
        confirm: Asked before applying values missing from the trust list.
        reporter: Receives one descriptive message per failed operation.
        ask: Prompts for a search pattern when none is given.
    """

    def __init__(
        self,
        registry: ProjectRegistry | None = None,
        *,
        config: GitscopeConfig | None = None,
        runner: QueryRunner | None = None,
        root_resolver: RootResolver | None = None,
        confirm: Callable[[str, Mapping[str, Any]], bool] | None = None,
        reporter: Callable[[str], None] | None = None,
        ask: Callable[[str], str] | None = None,
    ) -> None:
        self.config = config or GitscopeConfig()
        self.registry = registry if registry is not None else ProjectRegistry()
        self.runner = runner or QueryRunner(
            self.config.git_executable, timeout=self.config.timeout
        )
        self.resolver = ContextResolver(
            self.registry,
            root_resolver or RootResolver(self.config.marker),
            confirm=confirm,
            default_completion=self.config.default_completion,
        )
        self.report = reporter or _log_report
        self.ask = ask or _ask_pattern

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def define_project_class(
        self,
        name: str,
        variables: Mapping[str, Any] | None = None,
        file_kind_overrides: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> ProjectClass:
        """Register a reusable project class."""
        return self.registry.define_project_class(name, variables, file_kind_overrides)

    def bind_directory(
        self,
        path: str | os.PathLike[str],
        class_name: str,
        overrides: Mapping[str, Any] | None = None,
        file_kind_overrides: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> ProjectBinding:
        """Mark *path* as a project of class *class_name*."""
        return self.registry.bind_directory(
            str(path), class_name, overrides, file_kind_overrides
        )

    def unbind_directory(self, path: str | os.PathLike[str]) -> bool:
        """Remove the binding at *path*."""
        found = self.registry.unbind_directory(str(path))
        if found:
            self.resolver.invalidate()
        return found

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def status(
        self,
        location: str | os.PathLike[str] | None = None,
        *,
        file_kind: str | None = None,
    ) -> Resolution:
        """Resolve *location* without raising for non-project locations."""
        return self.resolver.resolve(location if location is not None else Path.cwd(), file_kind)

    def context(
        self,
        location: str | os.PathLike[str] | None = None,
        *,
        file_kind: str | None = None,
    ) -> ActiveProjectContext:
        """Return the active context for *location* (default: the current directory).

        Raises:
            NotInProjectError: the location is not inside an active project.
        """
        resolution = self.status(location, file_kind=file_kind)
        if resolution.context is None:
            error = resolution.error()
            self.report(str(error))
            raise error
        return resolution.context

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def list_files(
        self,
        location: str | os.PathLike[str] | None = None,
        *,
        file_kind: str | None = None,
    ) -> FileListResult:
        """List the files in scope for the project at *location*."""
        return self.runner.list_files(self.context(location, file_kind=file_kind))

    def find_file(
        self,
        location: str | os.PathLike[str] | None = None,
        *,
        file_kind: str | None = None,
        prompt: str = "Find file",
    ) -> Path | None:
        """Prompt for a file in the project and return its absolute path.

        Returns ``None`` when the listing failed or was empty (no prompt is
        shown), when the user cancelled, or when the selection is not one of
        the listed files.

        Raises:
            NotInProjectError: the location is not inside an active project.
        """
        ctx = self.context(location, file_kind=file_kind)
        listing = self.runner.list_files(ctx)
        if not listing.success:
            self.report(f"Could not list files in {ctx.root}: {listing.message}")
            return None
        if not listing.paths:
            self.report(f"No files in scope under {ctx.root}")
            return None

        strategy = ctx.completion or resolve_completion(self.config.default_completion)
        choice = strategy.choose(prompt, listing.paths)
        if choice is None:
            return None
        if choice not in listing.paths:
            self.report(f"Not a file in scope under {ctx.root}: {choice}")
            return None
        return ctx.absolute(choice)

    def search_project(
        self,
        pattern: str | None = None,
        location: str | os.PathLike[str] | None = None,
        *,
        file_kind: str | None = None,
        prompt: str = "Search project",
    ) -> GrepQueryResult:
        """Search the project's scoped patterns, prompting for *pattern* if omitted.

        Raises:
            NotInProjectError: the location is not inside an active project.
        """
        ctx = self.context(location, file_kind=file_kind)
        if pattern is None:
            pattern = self.ask(prompt).strip()
        result = self.runner.search(pattern, ctx)
        if not result.success:
            self.report(result.message)
        return result
