"""Tests for RootResolver and locate_dominating."""

from __future__ import annotations

import shutil

import pytest

from gitscope.exceptions import NotFoundError
from gitscope.roots import RootResolver, locate_dominating


class TestLocateDominating:
    def test_from_nested_directory(self, repo):
        assert locate_dominating(repo / "src" / "deep", ".git") == repo

    def test_from_file(self, repo):
        assert locate_dominating(repo / "src" / "main.cpp", ".git") == repo

    def test_from_root_itself(self, repo):
        assert locate_dominating(repo, ".git") == repo

    def test_closest_marker_wins(self, repo):
        sub = repo / "src" / "deep"
        (sub / ".git").write_text("gitdir: ../../.git/modules/deep\n")
        assert locate_dominating(sub / "util.cpp", ".git") == sub

    def test_none_found(self, tmp_path):
        assert locate_dominating(tmp_path / "x", ".gitscope-test-marker-absent") is None


class TestRootResolver:
    def test_resolve(self, repo):
        assert RootResolver().resolve_root(repo / "include") == repo

    def test_not_found(self, tmp_path):
        resolver = RootResolver(marker=".gitscope-test-marker-absent")
        with pytest.raises(NotFoundError, match="No .gitscope-test-marker-absent"):
            resolver.resolve_root(tmp_path / "x")
        assert resolver.find_root(tmp_path / "x") is None

    def test_idempotent(self, repo):
        resolver = RootResolver()
        assert resolver.resolve_root(repo / "src") == resolver.resolve_root(repo / "src")

    def test_cache_notices_removed_marker(self, tmp_path):
        root = tmp_path / "proj"
        (root / ".marker").mkdir(parents=True)
        (root / "a").mkdir()
        resolver = RootResolver(marker=".marker", cache=True)
        assert resolver.resolve_root(root / "a") == root.resolve()

        shutil.rmtree(root / ".marker")
        with pytest.raises(NotFoundError):
            resolver.resolve_root(root / "a")

    def test_cache_notices_new_closer_marker_after_clear(self, tmp_path):
        root = tmp_path / "proj"
        (root / ".marker").mkdir(parents=True)
        (root / "a").mkdir()
        resolver = RootResolver(marker=".marker", cache=True)
        resolver.resolve_root(root / "a")
        (root / "a" / ".marker").mkdir()
        resolver.clear_cache()
        assert resolver.resolve_root(root / "a") == (root / "a").resolve()

    @pytest.mark.parametrize("marker", ["", "a/b"])
    def test_invalid_marker(self, marker):
        with pytest.raises(ValueError, match="Invalid metadata marker"):
            RootResolver(marker=marker)
