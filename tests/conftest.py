"""Shared fixtures for gitscope tests."""

from __future__ import annotations

import io
import shutil
import subprocess
from typing import TYPE_CHECKING

import pytest
from rich.console import Console
from sqlmodel import SQLModel, create_engine

from gitscope.registry import ProjectRegistry
from gitscope.runner import CommandResult, QueryRunner

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from sqlalchemy import Engine


@pytest.fixture
def engine() -> Engine:
    """In-memory SQLite engine with all tables created."""
    eng = create_engine("sqlite://", echo=False)
    SQLModel.metadata.create_all(eng)
    return eng


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A directory that looks like a working copy: ``.git`` plus src/include/docs."""
    root = tmp_path / "repo"
    (root / ".git").mkdir(parents=True)
    (root / "src" / "deep").mkdir(parents=True)
    (root / "include").mkdir()
    (root / "docs").mkdir()
    (root / "src" / "main.cpp").write_text("int main() { return 0; }\n")
    (root / "src" / "deep" / "util.cpp").write_text("// TODO: util\n")
    (root / "include" / "util.h").write_text("#pragma once\n")
    (root / "docs" / "readme.md").write_text("TODO docs\n")
    return root.resolve()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A real git working copy with tracked files (requires git)."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    root = tmp_path / "gitrepo"
    (root / "src").mkdir(parents=True)
    (root / "include").mkdir()
    (root / "docs").mkdir()
    (root / "src" / "main.cpp").write_text("int main() {\n  // TODO: args\n  return 0;\n}\n")
    (root / "src" / "notes.txt").write_text("TODO: not a source file\n")
    (root / "include" / "main.h").write_text("// TODO: header\n")
    (root / "docs" / "guide.md").write_text("TODO: write the guide\n")
    subprocess.run(["git", "init", "-q"], cwd=root, check=True)
    subprocess.run(["git", "add", "."], cwd=root, check=True)
    return root.resolve()


@pytest.fixture
def registry() -> ProjectRegistry:
    return ProjectRegistry()


@pytest.fixture
def quiet_console() -> Console:
    """Console writing into a buffer instead of the terminal."""
    return Console(file=io.StringIO(), force_terminal=False, width=120)


class StubRunner(QueryRunner):
    """QueryRunner that returns canned results instead of running git."""

    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        super().__init__()
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.calls: list[tuple[tuple[str, ...], str]] = []

    def run_git(self, args: Sequence[str], cwd: str | Path) -> CommandResult:
        argv = (self.git, *args)
        self.calls.append((argv, str(cwd)))
        return CommandResult(
            argv=argv, returncode=self.returncode, stdout=self.stdout, stderr=self.stderr
        )


@pytest.fixture
def make_runner() -> type[StubRunner]:
    """Factory for canned runners: ``make_runner(returncode=1, stderr="...")``."""
    return StubRunner


@pytest.fixture
def stub_runner() -> StubRunner:
    return StubRunner(stdout="src/main.cpp\nsrc/deep/util.cpp\ninclude/util.h\n")
