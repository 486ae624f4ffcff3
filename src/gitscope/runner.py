"""QueryRunner — run scoped ``git ls-files`` and ``git grep`` queries.

Commands are always executed as argument vectors, never through a
shell, so the search pattern and every pathspec stay one argument each.
Failures of the git process are returned as unsuccessful results;
only a configured timeout raises.
"""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import SubprocessTimeout
from .query_types import FileListResult, GrepHit, GrepQueryResult, LineMatch
from .scope import listing_filter_args, render_command, search_pattern_args

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from .context import ActiveProjectContext

logger = logging.getLogger(__name__)

DEFAULT_GIT = "git"

# Exit status reported when the git executable (or the root) cannot be used.
EXIT_NOT_RUN = 127

_GREP_LINE_RE = re.compile(r"^(?P<path>.+?):(?P<line>\d+):(?P<content>.*)$")


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of one git invocation.

    Attributes:
        argv: The argument vector that was run.
        returncode: Exit status of the process.
        stdout: Standard output, decoded as UTF-8.
        stderr: Standard error, decoded as UTF-8.
    """

    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


def parse_grep_output(output: str) -> tuple[GrepHit, ...]:
    """Group ``path:line:content`` lines into hits, preserving order.

    Lines that do not have that shape (e.g. ``Binary file x matches``)
    are skipped.
    """
    grouped: dict[str, list[LineMatch]] = {}
    for raw in output.splitlines():
        m = _GREP_LINE_RE.match(raw)
        if m is None:
            continue
        grouped.setdefault(m.group("path"), []).append(
            LineMatch(line_number=int(m.group("line")), line_content=m.group("content"))
        )
    return tuple(GrepHit(path=p, line_matches=tuple(lines)) for p, lines in grouped.items())


def split_listing(output: str) -> tuple[str, ...]:
    """Split ``git ls-files`` output on newlines, discarding empty entries."""
    return tuple(line for line in output.split("\n") if line)


class QueryRunner:
    """Executes git queries against a resolved project.

    Args:
        git: Git executable name or path.
        timeout: Seconds before a git process is abandoned.  ``None``
            waits indefinitely.
    """

    def __init__(self, git: str = DEFAULT_GIT, *, timeout: float | None = None) -> None:
        self.git = git
        self.timeout = timeout

    def run_git(self, args: Sequence[str], cwd: str | Path) -> CommandResult:
        """Run ``git <args>`` in *cwd* and capture its output."""
        argv = (self.git, *args)
        logger.debug("Running %s in %s", render_command(argv), cwd)
        try:
            proc = subprocess.run(
                argv,
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise SubprocessTimeout(
                f"{render_command(argv)} timed out after {self.timeout} seconds"
            ) from e
        except OSError as e:
            logger.warning("Could not run %s: %s", self.git, e)
            return CommandResult(argv=argv, returncode=EXIT_NOT_RUN, stdout="", stderr=str(e))

        return CommandResult(
            argv=argv,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_files_command(self, context: ActiveProjectContext) -> list[str]:
        """Git arguments that list the files in scope."""
        return ["-c", "core.quotePath=false", "ls-files", "--", *listing_filter_args(context)]

    def search_command(self, pattern: str, context: ActiveProjectContext) -> list[str]:
        """Git arguments that search the files in scope for *pattern*."""
        return [
            "-c",
            "core.quotePath=false",
            "grep",
            "-n",
            "--no-color",
            "-e",
            pattern,
            "--",
            *search_pattern_args(context),
        ]

    def list_files(self, context: ActiveProjectContext) -> FileListResult:
        """List tracked files under the project's scope, relative to its root."""
        root = str(context.root)
        result = self.run_git(self.list_files_command(context), context.root)

        if not result.success:
            message = result.stderr.strip() or f"git ls-files exited with {result.returncode}"
            logger.warning("Listing %s failed: %s", root, message)
            return FileListResult(
                success=False,
                message=message,
                root=root,
                exit_status=result.returncode,
                command=result.argv,
            )

        paths = split_listing(result.stdout)
        return FileListResult(
            success=True,
            message=f"{len(paths)} file(s)",
            paths=paths,
            root=root,
            exit_status=result.returncode,
            command=result.argv,
        )

    def search(self, pattern: str, context: ActiveProjectContext) -> GrepQueryResult:
        """Search the project's scoped patterns for *pattern*."""
        root = str(context.root)
        if not pattern:
            return GrepQueryResult(
                success=False,
                message="Empty search pattern",
                pattern=pattern,
                root=root,
            )

        result = self.run_git(self.search_command(pattern, context), context.root)

        if not result.success:
            if result.returncode == 1 and not result.stderr.strip():
                message = "No matches"
            else:
                message = result.stderr.strip() or f"git grep exited with {result.returncode}"
                logger.warning("Search in %s failed: %s", root, message)
            return GrepQueryResult(
                success=False,
                message=message,
                pattern=pattern,
                root=root,
                output=result.stdout,
                exit_status=result.returncode,
                command=result.argv,
            )

        hits = parse_grep_output(result.stdout)
        lines = sum(len(h.line_matches) for h in hits)
        return GrepQueryResult(
            success=True,
            message=f"{lines} match(es) in {len(hits)} file(s)",
            hits=hits,
            pattern=pattern,
            root=root,
            output=result.stdout,
            exit_status=result.returncode,
            command=result.argv,
        )
