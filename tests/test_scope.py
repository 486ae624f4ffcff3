"""Tests for the scope engine — pathspec construction."""

from __future__ import annotations

import shlex
from pathlib import Path

import pytest

from gitscope.context import ActiveProjectContext
from gitscope.scope import (
    Scope,
    current_scope,
    listing_filter_args,
    render_command,
    search_pattern_args,
)


def _ctx(dirs=(), patterns=("*",)) -> ActiveProjectContext:
    return ActiveProjectContext(
        location="/repo",
        root=Path("/repo"),
        scoped_dirs=tuple(dirs),
        search_patterns=tuple(patterns),
    )


class TestCurrentScope:
    def test_scope(self):
        assert current_scope(_ctx(["src"], ["*.py"])) == Scope(dirs=("src",), patterns=("*.py",))


class TestListingFilterArgs:
    def test_whole_tree_is_empty(self):
        assert listing_filter_args(_ctx()) == []

    def test_one_arg_per_dir(self):
        assert listing_filter_args(_ctx(["src", "include"])) == ["src", "include"]

    def test_escaped_individually(self):
        args = listing_filter_args(_ctx(["my dir", "it's"]), escape=True)
        assert len(args) == 2
        assert [shlex.split(a)[0] for a in args] == ["my dir", "it's"]


class TestSearchPatternArgs:
    def test_cpp_project_cross_product(self):
        ctx = _ctx(["src", "include"], ["*.cpp", "*.h"])
        assert search_pattern_args(ctx) == [
            "src/*.cpp",
            "src/*.h",
            "include/*.cpp",
            "include/*.h",
        ]

    def test_whole_tree_patterns_verbatim(self):
        assert search_pattern_args(_ctx([], ["*.cpp", "*.h"])) == ["*.cpp", "*.h"]

    @pytest.mark.parametrize(
        ("dirs", "patterns"),
        [
            pytest.param([], ["*"], id="whole-tree-one"),
            pytest.param([], ["*.a", "*.b", "*.c"], id="whole-tree-three"),
            pytest.param(["a"], ["*.x"], id="one-by-one"),
            pytest.param(["a", "b", "c"], ["*.x", "*.y"], id="three-by-two"),
        ],
    )
    def test_length(self, dirs, patterns):
        expected = len(dirs) * len(patterns) if dirs else len(patterns)
        assert len(search_pattern_args(_ctx(dirs, patterns))) == expected
        assert len(search_pattern_args(_ctx(dirs, patterns), escape=True)) == expected

    def test_escaped_keeps_one_argument_per_glob(self):
        ctx = _ctx(["my src"], ["*.c; rm -rf x", "*.h"])
        escaped = search_pattern_args(ctx, escape=True)
        assert shlex.split(" ".join(escaped)) == ["my src/*.c; rm -rf x", "my src/*.h"]


class TestRenderCommand:
    def test_render_quotes_metacharacters(self):
        rendered = render_command(["git", "grep", "-e", "a b", "--", "src/*.cpp"])
        assert shlex.split(rendered) == ["git", "grep", "-e", "a b", "--", "src/*.cpp"]
