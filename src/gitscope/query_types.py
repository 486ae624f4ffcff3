"""Query response types for file listing and search.

Both result types carry ``success`` plus the git exit status, so a
project whose query matched nothing is distinguishable from a query
that could not run.  Neither is used to signal "not in a project";
that is ``NotInProjectError``.

Evidence type (``LineMatch``) carries the proof of why a hit matched.
``GrepHit`` is a path-first container.  Result types wrap hits with
metadata about the command that produced them.
"""

from __future__ import annotations

from dataclasses import dataclass

# =====================================================================
# Evidence types
# =====================================================================


@dataclass(frozen=True, slots=True)
class LineMatch:
    """A single line match within a file.

    Attributes:
        line_number: 1-indexed line number.
        line_content: The matched line text.
    """

    line_number: int
    line_content: str


# =====================================================================
# Hit types
# =====================================================================


@dataclass(frozen=True, slots=True)
class GrepHit:
    """A file containing search matches.

    Attributes:
        path: Path of the file, relative to the project root.
        line_matches: Individual line matches within this file.
    """

    path: str
    line_matches: tuple[LineMatch, ...] = ()


# =====================================================================
# Result types
# =====================================================================


@dataclass(frozen=True, slots=True)
class FileListResult:
    """Result of listing the files of a project.

    Attributes:
        success: Whether git exited with status 0.
        message: Human-readable status message.
        paths: Paths relative to ``root``, in git's order.
        root: The project root the listing ran in.
        exit_status: Exit status of the git process.
        command: The argument vector that was run.
    """

    success: bool
    message: str
    paths: tuple[str, ...] = ()
    root: str = ""
    exit_status: int = 0
    command: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.paths)


@dataclass(frozen=True, slots=True)
class GrepQueryResult:
    """Result of a content search.

    Attributes:
        success: Whether git exited with status 0 (at least one match).
        message: Human-readable status message.
        hits: Files containing matches, each with line evidence.
        pattern: The pattern that was searched for.
        root: The project root the search ran in.
        output: Raw matched-line output, ``path:line:content`` per line.
        exit_status: Exit status of the git process.
        command: The argument vector that was run.
    """

    success: bool
    message: str
    hits: tuple[GrepHit, ...] = ()
    pattern: str = ""
    root: str = ""
    output: str = ""
    exit_status: int = 0
    command: tuple[str, ...] = ()

    @property
    def files_matched(self) -> int:
        """Number of files with at least one match."""
        return len(self.hits)

    @property
    def lines_matched(self) -> int:
        """Total number of matched lines across all files."""
        return sum(len(h.line_matches) for h in self.hits)
