"""RootResolver — locate the enclosing git working-copy root."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from .exceptions import NotFoundError
from .utils import location_key, starting_directory

if TYPE_CHECKING:
    import os
    from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MARKER = ".git"


def locate_dominating(path: str | os.PathLike[str], marker: str) -> Path | None:
    """Walk upward from *path* to the first directory containing *marker*.

    The marker may be a directory (a normal checkout) or a file (worktrees
    and submodules use a ``.git`` file).  Returns ``None`` when the
    filesystem root is reached without a match.
    """
    current = starting_directory(path)
    while True:
        if (current / marker).exists():
            return current
        if current == current.parent:
            return None
        current = current.parent


class RootResolver:
    """Resolves locations to working-copy roots.

    With ``cache=True`` resolved roots are memoized per starting location.
    A memoized root is re-checked on every hit so that a removed marker
    is noticed; resolution stays idempotent while the filesystem is
    unchanged.
    """

    def __init__(self, marker: str = DEFAULT_MARKER, *, cache: bool = False) -> None:
        if not marker or "/" in marker:
            raise ValueError(f"Invalid metadata marker: {marker!r}")
        self.marker = marker
        self._cache_enabled = cache
        self._cache: dict[str, Path] = {}
        self._lock = threading.Lock()

    def resolve_root(self, path: str | os.PathLike[str]) -> Path:
        """Return the closest ancestor of *path* that contains the marker.

        Raises:
            NotFoundError: no ancestor up to the filesystem root has the marker.
        """
        key = location_key(path)

        if self._cache_enabled:
            with self._lock:
                cached = self._cache.get(key)
            if cached is not None:
                if (cached / self.marker).exists():
                    logger.debug("Root cache hit for %s -> %s", key, cached)
                    return cached
                with self._lock:
                    self._cache.pop(key, None)

        root = locate_dominating(path, self.marker)
        if root is None:
            raise NotFoundError(f"No {self.marker} found above {key}")

        if self._cache_enabled:
            with self._lock:
                self._cache[key] = root
        logger.debug("Resolved root for %s -> %s", key, root)
        return root

    def find_root(self, path: str | os.PathLike[str]) -> Path | None:
        """Like ``resolve_root`` but returns ``None`` instead of raising."""
        try:
            return self.resolve_root(path)
        except NotFoundError:
            return None

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
