"""GitscopeConfig — runtime settings with environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .completion import DEFAULT_COMPLETION
from .roots import DEFAULT_MARKER
from .runner import DEFAULT_GIT

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

DB_FILENAME = "projects.db"


def _default_data_dir() -> Path:
    """Return the global data directory (``~/.gitscope``)."""
    return Path.home() / ".gitscope"


@dataclass
class GitscopeConfig:
    """Settings shared by the resolver, runner, and store."""

    git_executable: str = DEFAULT_GIT
    """Git executable name or path."""

    marker: str = DEFAULT_MARKER
    """Metadata marker identifying a working-copy root."""

    timeout: float | None = None
    """Seconds before a git process is abandoned.  ``None`` waits indefinitely."""

    default_completion: Any = DEFAULT_COMPLETION
    """Completion strategy for projects that set none."""

    data_dir: Path = field(default_factory=_default_data_dir)
    """Where the persistent project store lives."""

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir).expanduser()
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    @property
    def db_path(self) -> Path:
        """SQLite file holding classes, bindings, and trusted values."""
        return self.data_dir / DB_FILENAME

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> GitscopeConfig:
        """Build a config from ``GITSCOPE_*`` environment variables.

        Recognized: ``GITSCOPE_GIT``, ``GITSCOPE_MARKER``, ``GITSCOPE_TIMEOUT``,
        ``GITSCOPE_COMPLETION``, ``GITSCOPE_DATA_DIR``.  Keyword *overrides*
        take precedence.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        if env.get("GITSCOPE_GIT"):
            values["git_executable"] = env["GITSCOPE_GIT"]
        if env.get("GITSCOPE_MARKER"):
            values["marker"] = env["GITSCOPE_MARKER"]
        if env.get("GITSCOPE_TIMEOUT"):
            try:
                values["timeout"] = float(env["GITSCOPE_TIMEOUT"])
            except ValueError:
                logger.warning("Ignoring non-numeric GITSCOPE_TIMEOUT=%r", env["GITSCOPE_TIMEOUT"])
        if env.get("GITSCOPE_COMPLETION"):
            values["default_completion"] = env["GITSCOPE_COMPLETION"]
        if env.get("GITSCOPE_DATA_DIR"):
            values["data_dir"] = Path(env["GITSCOPE_DATA_DIR"])
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
