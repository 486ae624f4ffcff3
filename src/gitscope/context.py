"""ActiveProjectContext and the per-location resolution state machine.

A location moves through ``UNBOUND -> ROOT_PENDING -> ACTIVE``.  A bound
location stops short of ``ACTIVE`` as ``UNTRUSTED`` (values refused),
``ROOT_MISSING`` or ``SCOPE_MISSING``.  Active contexts are cached per
``(location, file_kind)`` and dropped when the binding they came from
changes or their root or scoped directories disappear.  Non-active
resolutions are never cached, so the next access re-evaluates them.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .completion import DEFAULT_COMPLETION, CompletionStrategy, resolve_completion
from .exceptions import (
    NotFoundError,
    NotInProjectError,
    UntrustedConfigurationError,
)
from .registry import (
    COMPLETION,
    DEFAULT_SEARCH_PATTERNS,
    SCOPED_DIRS,
    SEARCH_PATTERNS,
)
from .roots import RootResolver
from .utils import location_key

if TYPE_CHECKING:
    import os
    from collections.abc import Callable, Mapping
    from pathlib import Path

    from .registry import ProjectBinding, ProjectRegistry

logger = logging.getLogger(__name__)


class ProjectState(str, Enum):
    """Resolution state of a location."""

    UNBOUND = "unbound"
    ROOT_PENDING = "root_pending"
    ACTIVE = "active"
    ROOT_MISSING = "root_missing"
    UNTRUSTED = "untrusted"
    SCOPE_MISSING = "scope_missing"


@dataclass(frozen=True)
class ActiveProjectContext:
    """Resolved project state for one location.

    Attributes:
        location: Normalized absolute location this context was resolved for.
        root: Working-copy root (contains the metadata marker).
        scoped_dirs: Relative directories that exist under ``root``; empty for the whole tree.
        search_patterns: Ordered globs for ``git grep``.
        completion: Strategy used to prompt for a file.
        class_name: Project class the binding refers to.
        binding_path: Directory of the binding that produced this context.
        binding_revision: Revision of that binding, for invalidation.
        class_revision: Revision of the class definition, for invalidation.
        file_kind: File kind the variables were resolved for, if any.
        variables: Full effective variables (including non-scope ones).
    """

    location: str
    root: Path
    scoped_dirs: tuple[str, ...] = ()
    search_patterns: tuple[str, ...] = DEFAULT_SEARCH_PATTERNS
    completion: CompletionStrategy | None = field(default=None, compare=False)
    class_name: str = ""
    binding_path: str = ""
    binding_revision: int = 0
    class_revision: int = 0
    file_kind: str | None = None
    variables: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), compare=False
    )

    @property
    def is_whole_tree(self) -> bool:
        """True when no scoped directories restrict queries."""
        return not self.scoped_dirs

    def absolute(self, relative_path: str) -> Path:
        """Resolve a root-relative path to an absolute one."""
        return self.root / relative_path


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of resolving a location."""

    state: ProjectState
    location: str
    context: ActiveProjectContext | None = None
    message: str = ""

    @property
    def is_active(self) -> bool:
        return self.state is ProjectState.ACTIVE and self.context is not None

    def error(self) -> NotInProjectError:
        """Exception describing why no context is available."""
        message = self.message or f"Not in a project: {self.location}"
        if self.state is ProjectState.UNTRUSTED:
            return UntrustedConfigurationError(message)
        return NotInProjectError(message)


class ContextResolver:
    """Derives ActiveProjectContexts from bindings and caches them per location.

    Args:
        registry: Source of classes, bindings, and the trust list.
        root_resolver: Locates working-copy roots.  Defaults to ``.git``.
        confirm: Called as ``confirm(directory, untrusted_values)`` when a
            binding carries values that are not on the trust list.  Return
            True to apply them once.  Without a callback such bindings
            resolve as ``UNTRUSTED``.
        default_completion: Strategy used when a project sets no ``completion``.
    """

    def __init__(
        self,
        registry: ProjectRegistry,
        root_resolver: RootResolver | None = None,
        *,
        confirm: Callable[[str, Mapping[str, Any]], bool] | None = None,
        default_completion: Any = DEFAULT_COMPLETION,
    ) -> None:
        self.registry = registry
        self.root_resolver = root_resolver or RootResolver()
        self.confirm = confirm
        self.default_completion = default_completion
        self._cache: dict[tuple[str, str | None], ActiveProjectContext] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(
        self,
        location: str | os.PathLike[str],
        file_kind: str | None = None,
    ) -> Resolution:
        """Run the state machine for *location*."""
        key = location_key(location)
        cache_key = (key, file_kind)

        binding = self.registry.find_binding(key)
        if binding is None:
            self._evict(cache_key)
            return Resolution(
                state=ProjectState.UNBOUND,
                location=key,
                message=f"{key} is not inside a bound project directory",
            )

        with self._lock:
            cached = self._cache.get(cache_key)
        if cached is not None:
            if self._is_current(cached, binding):
                logger.debug("Context cache hit for %s", key)
                return Resolution(state=ProjectState.ACTIVE, location=key, context=cached)
            self._evict(cache_key)

        return self._activate(key, binding, file_kind)

    def context_for(
        self,
        location: str | os.PathLike[str],
        file_kind: str | None = None,
    ) -> ActiveProjectContext:
        """Return the active context for *location*.

        Raises:
            NotInProjectError: the location is unbound, its root is missing, or
                none of its scoped directories exist.
            UntrustedConfigurationError: its values were not trusted or confirmed.
        """
        resolution = self.resolve(location, file_kind)
        if resolution.context is None:
            raise resolution.error()
        return resolution.context

    def invalidate(self, location: str | os.PathLike[str] | None = None) -> None:
        """Drop cached contexts for *location* (all file kinds), or everything."""
        with self._lock:
            if location is None:
                self._cache.clear()
                return
            key = location_key(location)
            for cache_key in [k for k in self._cache if k[0] == key]:
                del self._cache[cache_key]

    def cached_context(
        self,
        location: str | os.PathLike[str],
        file_kind: str | None = None,
    ) -> ActiveProjectContext | None:
        """Peek at the cache without resolving."""
        with self._lock:
            return self._cache.get((location_key(location), file_kind))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _evict(self, cache_key: tuple[str, str | None]) -> None:
        with self._lock:
            self._cache.pop(cache_key, None)

    def _is_current(self, context: ActiveProjectContext, binding: ProjectBinding) -> bool:
        if context.binding_path != binding.path or context.binding_revision != binding.revision:
            return False
        if not self.registry.has_class(binding.class_name):
            return False
        if self.registry.get_class(binding.class_name).revision != context.class_revision:
            return False
        if not (context.root / self.root_resolver.marker).exists():
            return False
        return all((context.root / d).is_dir() for d in context.scoped_dirs)

    def _activate(
        self,
        key: str,
        binding: ProjectBinding,
        file_kind: str | None,
    ) -> Resolution:
        project_class = self.registry.get_class(binding.class_name)
        variables = self.registry.effective_variables(binding, file_kind)

        untrusted = self.registry.trust.untrusted(binding.path, variables)
        if untrusted:
            pending = {name: variables[name] for name in untrusted}
            logger.warning(
                "Untrusted values for %s: %s", binding.path, ", ".join(sorted(pending))
            )
            if self.confirm is None or not self.confirm(binding.path, pending):
                return Resolution(
                    state=ProjectState.UNTRUSTED,
                    location=key,
                    message=(
                        f"Values for {', '.join(sorted(pending))} in {binding.path} "
                        "are not trusted"
                    ),
                )

        logger.debug("%s is %s", key, ProjectState.ROOT_PENDING.value)
        # Applying root_init, which every class carries, resolves the root.
        try:
            root = self.root_resolver.resolve_root(key)
        except NotFoundError as e:
            return Resolution(state=ProjectState.ROOT_MISSING, location=key, message=str(e))
        if not root.is_dir():
            return Resolution(
                state=ProjectState.ROOT_MISSING,
                location=key,
                message=f"Project root is no longer a directory: {root}",
            )

        configured = tuple(variables.get(SCOPED_DIRS, ()))
        scoped_dirs = tuple(d for d in configured if (root / d).is_dir())
        missing = [d for d in configured if d not in scoped_dirs]
        if missing:
            logger.warning("Scoped directories missing under %s: %s", root, ", ".join(missing))
            if not scoped_dirs:
                return Resolution(
                    state=ProjectState.SCOPE_MISSING,
                    location=key,
                    message=(
                        f"None of the scoped directories exist under {root}: "
                        f"{', '.join(missing)}"
                    ),
                )

        context = ActiveProjectContext(
            location=key,
            root=root,
            scoped_dirs=scoped_dirs,
            search_patterns=tuple(variables.get(SEARCH_PATTERNS, DEFAULT_SEARCH_PATTERNS)),
            completion=resolve_completion(variables.get(COMPLETION, self.default_completion)),
            class_name=binding.class_name,
            binding_path=binding.path,
            binding_revision=binding.revision,
            class_revision=project_class.revision,
            file_kind=file_kind,
            variables=MappingProxyType(dict(variables)),
        )
        if not untrusted:
            with self._lock:
                self._cache[(key, file_kind)] = context
        return Resolution(state=ProjectState.ACTIVE, location=key, context=context)
