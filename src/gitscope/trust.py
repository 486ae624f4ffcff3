"""TrustList — explicit allow-list of configuration values safe to apply."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .utils import location_key

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)


def freeze_value(value: Any) -> Any:
    """Return a hashable, order-preserving form of a configuration value."""
    if isinstance(value, (list, tuple)):
        return tuple(freeze_value(v) for v in value)
    if isinstance(value, dict):
        return tuple(sorted((str(k), freeze_value(v)) for k, v in value.items()))
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze_value(v) for v in value)
    return value


@dataclass(frozen=True, slots=True)
class TrustEntry:
    """A single trusted value.

    Attributes:
        directory: Normalized absolute directory the value was bound to.
        variable: Scope variable name.
        value: Frozen (hashable) form of the value.
    """

    directory: str
    variable: str
    value: Any


class TrustList:
    """Auditable set of ``(directory, variable, value)`` entries.

    Values applied to a location are only accepted without confirmation
    when every one of them is listed here.  Entries are added through
    ``ProjectRegistry.bind_directory`` or by loading a persisted store,
    never implicitly.
    """

    def __init__(self) -> None:
        self._entries: set[TrustEntry] = set()

    def add(self, directory: str, variables: Mapping[str, Any]) -> list[TrustEntry]:
        """Trust every value in *variables* for *directory*. Returns the new entries."""
        key = location_key(directory)
        added: list[TrustEntry] = []
        for name, value in variables.items():
            entry = TrustEntry(directory=key, variable=name, value=freeze_value(value))
            if entry not in self._entries:
                self._entries.add(entry)
                added.append(entry)
        if added:
            logger.debug("Trusted %d value(s) for %s", len(added), key)
        return added

    def is_trusted(self, directory: str, variable: str, value: Any) -> bool:
        """Check a single value."""
        entry = TrustEntry(
            directory=location_key(directory), variable=variable, value=freeze_value(value)
        )
        return entry in self._entries

    def untrusted(self, directory: str, variables: Mapping[str, Any]) -> list[str]:
        """Return the names of variables whose values are not trusted, in order."""
        return [
            name
            for name, value in variables.items()
            if not self.is_trusted(directory, name, value)
        ]

    def revoke(self, directory: str) -> int:
        """Drop all entries for *directory*. Returns the number removed."""
        key = location_key(directory)
        doomed = {e for e in self._entries if e.directory == key}
        self._entries -= doomed
        return len(doomed)

    def extend(self, entries: Iterable[TrustEntry]) -> None:
        """Add pre-built entries (used when loading a persisted store)."""
        for entry in entries:
            self._entries.add(entry)

    def entries(self) -> list[TrustEntry]:
        """List all entries, sorted by directory then variable."""
        return sorted(self._entries, key=lambda e: (e.directory, e.variable, repr(e.value)))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry: object) -> bool:
        return entry in self._entries
