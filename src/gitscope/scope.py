"""Scope engine — turn a project's scope into git pathspec arguments.

Listing is restricted to the scoped directories themselves.  Search is
restricted to each pattern *within* each scoped directory: the pathspecs
are the cross product ``dir/pattern`` (outer loop over directories,
inner loop over patterns), not the patterns anywhere in the tree.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .utils import join_scoped

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .context import ActiveProjectContext


@dataclass(frozen=True, slots=True)
class Scope:
    """Directories and patterns queries are restricted to.

    Attributes:
        dirs: Scoped directories, relative to the root.  Empty for the whole tree.
        patterns: Search globs, in order.
    """

    dirs: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()


def current_scope(context: ActiveProjectContext) -> Scope:
    """Return the scope of *context*."""
    return Scope(dirs=tuple(context.scoped_dirs), patterns=tuple(context.search_patterns))


def _maybe_quote(args: Iterable[str], escape: bool) -> list[str]:
    if escape:
        return [shlex.quote(a) for a in args]
    return list(args)


def listing_filter_args(context: ActiveProjectContext, *, escape: bool = False) -> list[str]:
    """Pathspec arguments for ``git ls-files``.

    Empty when the project covers the whole tree, otherwise one argument
    per scoped directory.  With ``escape=True`` each argument is quoted
    individually for use in a composite shell string.
    """
    return _maybe_quote(context.scoped_dirs, escape)


def search_pattern_args(context: ActiveProjectContext, *, escape: bool = False) -> list[str]:
    """Pathspec arguments for ``git grep``.

    Examples (dirs ``["src", "include"]``, patterns ``["*.cpp", "*.h"]``)::

        ["src/*.cpp", "src/*.h", "include/*.cpp", "include/*.h"]
    """
    if not context.scoped_dirs:
        return _maybe_quote(context.search_patterns, escape)
    return _maybe_quote(
        (join_scoped(d, p) for d in context.scoped_dirs for p in context.search_patterns),
        escape,
    )


def render_command(argv: Iterable[str]) -> str:
    """Render an argument vector as a single shell-safe string."""
    return shlex.join(list(argv))
