"""Tests for completion strategies."""

from __future__ import annotations

import io

import pytest

from gitscope.completion import (
    BlockingPrompt,
    CompletionStrategy,
    CustomCompletion,
    IncrementalPrompt,
    completion_names,
    register_completion,
    resolve_completion,
)
from gitscope.exceptions import InvalidScopeError

CANDIDATES = ["src/main.cpp", "src/deep/util.cpp", "include/util.h", "docs/readme.md"]


def _stream(*lines: str) -> io.StringIO:
    return io.StringIO("".join(f"{line}\n" for line in lines))


# ---------------------------------------------------------------------------
# BlockingPrompt
# ---------------------------------------------------------------------------


class TestBlockingPrompt:
    def test_exact(self, quiet_console):
        prompt = BlockingPrompt(quiet_console, stream=_stream("include/util.h"))
        assert prompt.choose("Find file", CANDIDATES) == "include/util.h"

    def test_unique_substring(self, quiet_console):
        prompt = BlockingPrompt(quiet_console, stream=_stream("readme"))
        assert prompt.choose("Find file", CANDIDATES) == "docs/readme.md"

    def test_ambiguous_then_exact(self, quiet_console):
        prompt = BlockingPrompt(quiet_console, stream=_stream("util", "src/deep/util.cpp"))
        assert prompt.choose("Find file", CANDIDATES) == "src/deep/util.cpp"
        assert "2 candidates match" in quiet_console.file.getvalue()

    def test_no_match_then_cancel(self, quiet_console):
        prompt = BlockingPrompt(quiet_console, stream=_stream("zzz", ""))
        assert prompt.choose("Find file", CANDIDATES) is None
        assert "No match" in quiet_console.file.getvalue()

    def test_empty_candidates_never_prompts(self, quiet_console):
        stream = _stream("anything")
        assert BlockingPrompt(quiet_console, stream=stream).choose("Find file", []) is None
        assert stream.tell() == 0


# ---------------------------------------------------------------------------
# IncrementalPrompt
# ---------------------------------------------------------------------------


class TestIncrementalPrompt:
    def test_rank_best_first(self, quiet_console):
        ranked = IncrementalPrompt(quiet_console).rank("readme", CANDIDATES)
        assert ranked[0][0] == "docs/readme.md"

    def test_pick_by_number(self, quiet_console):
        prompt = IncrementalPrompt(quiet_console, stream=_stream("util", "1"))
        choice = prompt.choose("Find file", CANDIDATES)
        assert choice in {"src/deep/util.cpp", "include/util.h"}

    def test_exact_candidate(self, quiet_console):
        prompt = IncrementalPrompt(quiet_console, stream=_stream("docs/readme.md"))
        assert prompt.choose("Find file", CANDIDATES) == "docs/readme.md"

    def test_single_match_returned(self, quiet_console):
        prompt = IncrementalPrompt(quiet_console, stream=_stream("readme.md"), score_cutoff=85)
        assert prompt.choose("Find file", CANDIDATES) == "docs/readme.md"

    def test_cancel(self, quiet_console):
        prompt = IncrementalPrompt(quiet_console, stream=_stream(""))
        assert prompt.choose("Find file", CANDIDATES) is None


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class TestResolveCompletion:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            pytest.param(None, BlockingPrompt, id="none"),
            pytest.param("default", BlockingPrompt, id="default"),
            pytest.param("blocking", BlockingPrompt, id="blocking"),
            pytest.param("fuzzy", IncrementalPrompt, id="fuzzy"),
            pytest.param("incremental", IncrementalPrompt, id="incremental"),
            pytest.param(IncrementalPrompt, IncrementalPrompt, id="class"),
        ],
    )
    def test_names(self, value, expected):
        assert isinstance(resolve_completion(value), expected)

    def test_instance_passes_through(self, quiet_console):
        strategy = BlockingPrompt(quiet_console)
        assert resolve_completion(strategy) is strategy

    def test_callable_wrapped(self):
        strategy = resolve_completion(lambda prompt, candidates: candidates[-1])
        assert isinstance(strategy, CustomCompletion)
        assert isinstance(strategy, CompletionStrategy)
        assert strategy.choose("p", ["a", "b"]) == "b"
        assert strategy.choose("p", []) is None

    def test_unknown_name(self):
        with pytest.raises(InvalidScopeError, match="Unknown completion strategy 'nope'"):
            resolve_completion("nope")

    def test_register(self):
        class First:
            def choose(self, prompt, candidates):
                return candidates[0]

        register_completion("first", First)
        assert "first" in completion_names()
        assert resolve_completion("first").choose("p", ["x", "y"]) == "x"
