"""Completion strategies — pluggable interactive choosers.

A strategy takes a prompt and a candidate list and returns one
candidate, or ``None`` when the user cancels.  Projects select a
strategy through the ``completion`` scope variable, either by name
(``"default"``, ``"fuzzy"``), by passing a callable, or by passing a
strategy instance.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from rapidfuzz import fuzz, process, utils
from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from .exceptions import InvalidScopeError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from typing import TextIO

logger = logging.getLogger(__name__)

DEFAULT_COMPLETION = "default"


@runtime_checkable
class CompletionStrategy(Protocol):
    """Chooses one candidate interactively."""

    def choose(self, prompt: str, candidates: Sequence[str]) -> str | None:
        """Return the selected candidate, or ``None`` if the user cancelled."""
        ...


class BlockingPrompt:
    """Plain line prompt.

    Accepts an exact candidate, or any input that matches exactly one
    candidate as a substring.  Ambiguous input lists the matches and asks
    again; empty input cancels.
    """

    def __init__(
        self,
        console: Console | None = None,
        *,
        stream: TextIO | None = None,
        max_listed: int = 10,
    ) -> None:
        self.console = console or Console(stderr=True)
        self.stream = stream
        self.max_listed = max_listed

    def choose(self, prompt: str, candidates: Sequence[str]) -> str | None:
        if not candidates:
            return None
        lookup = set(candidates)
        while True:
            answer = Prompt.ask(
                prompt,
                console=self.console,
                default="",
                show_default=False,
                stream=self.stream,
            ).strip()
            if not answer:
                return None
            if answer in lookup:
                return answer

            matches = [c for c in candidates if answer in c]
            if len(matches) == 1:
                return matches[0]
            if not matches:
                self.console.print(f"[yellow]No match for {answer!r}[/yellow]")
                continue

            self.console.print(f"[cyan]{len(matches)} candidates match {answer!r}:[/cyan]")
            for match in matches[: self.max_listed]:
                self.console.print(f"  {match}", markup=False)
            if len(matches) > self.max_listed:
                self.console.print(f"  ... {len(matches) - self.max_listed} more")


class IncrementalPrompt:
    """Fuzzy, narrowing prompt backed by rapidfuzz.

    Each query narrows the remaining pool to fuzzy matches and shows the
    best ``limit`` of them, numbered.  Entering a number picks that row;
    a query leaving a single match picks it directly.
    """

    def __init__(
        self,
        console: Console | None = None,
        *,
        stream: TextIO | None = None,
        limit: int = 20,
        score_cutoff: float = 50.0,
    ) -> None:
        self.console = console or Console(stderr=True)
        self.stream = stream
        self.limit = limit
        self.score_cutoff = score_cutoff

    def rank(self, query: str, pool: Sequence[str]) -> list[tuple[str, float]]:
        """Rank *pool* against *query*, best first, dropping scores under the cutoff."""
        matches = process.extract(
            query,
            pool,
            scorer=fuzz.WRatio,
            processor=utils.default_process,
            limit=None,
            score_cutoff=self.score_cutoff,
        )
        return [(choice, score) for choice, score, _ in matches]

    def choose(self, prompt: str, candidates: Sequence[str]) -> str | None:
        if not candidates:
            return None
        pool = list(candidates)
        shown: list[str] = []
        while True:
            query = Prompt.ask(
                prompt,
                console=self.console,
                default="",
                show_default=False,
                stream=self.stream,
            ).strip()
            if not query:
                return None
            if shown and query.isdigit() and 1 <= int(query) <= len(shown):
                return shown[int(query) - 1]
            if query in pool:
                return query

            ranked = self.rank(query, pool)
            if not ranked:
                self.console.print(f"[yellow]No match for {query!r}[/yellow]")
                continue
            if len(ranked) == 1:
                return ranked[0][0]

            pool = [choice for choice, _ in ranked]
            shown = pool[: self.limit]
            self._render(shown, ranked, len(pool))

    def _render(self, shown: list[str], ranked: list[tuple[str, float]], total: int) -> None:
        table = Table(show_header=True, header_style="bold")
        table.add_column("#", justify="right", style="yellow")
        table.add_column("Path", style="cyan")
        table.add_column("Score", justify="right", style="dim")
        for i, (choice, score) in enumerate(ranked[: len(shown)], start=1):
            table.add_row(str(i), choice, f"{score:.0f}")
        self.console.print(table)
        if total > len(shown):
            self.console.print(f"[dim]{total - len(shown)} more; refine the query[/dim]")


class CustomCompletion:
    """Adapts a plain ``callback(prompt, candidates)`` into a strategy."""

    def __init__(self, callback: Callable[[str, Sequence[str]], str | None]) -> None:
        self.callback = callback

    def choose(self, prompt: str, candidates: Sequence[str]) -> str | None:
        if not candidates:
            return None
        return self.callback(prompt, candidates)

    def __repr__(self) -> str:
        return f"CustomCompletion({self.callback!r})"


# ---------------------------------------------------------------------------
# Named strategies
# ---------------------------------------------------------------------------

_FACTORIES: dict[str, Callable[[], CompletionStrategy]] = {
    "default": BlockingPrompt,
    "blocking": BlockingPrompt,
    "fuzzy": IncrementalPrompt,
    "incremental": IncrementalPrompt,
}


def register_completion(name: str, factory: Callable[[], CompletionStrategy]) -> None:
    """Make *factory* selectable by *name* in the ``completion`` variable."""
    _FACTORIES[name] = factory


def completion_names() -> list[str]:
    """Return all registered strategy names, sorted."""
    return sorted(_FACTORIES)


def resolve_completion(value: Any) -> CompletionStrategy:
    """Turn a ``completion`` variable value into a strategy instance."""
    if value is None:
        value = DEFAULT_COMPLETION
    if isinstance(value, type):
        value = value()
    if isinstance(value, CompletionStrategy):
        return value
    if isinstance(value, str):
        factory = _FACTORIES.get(value)
        if factory is None:
            raise InvalidScopeError(
                f"Unknown completion strategy {value!r}; "
                f"expected one of {', '.join(completion_names())}"
            )
        return factory()
    if callable(value):
        return CustomCompletion(value)
    raise InvalidScopeError(f"Cannot use {value!r} as a completion strategy")
