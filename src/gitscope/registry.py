"""ProjectRegistry, ProjectClass, and ProjectBinding."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .exceptions import DuplicateClassError, InvalidScopeError, UnknownClassError
from .trust import TrustList
from .utils import (
    is_within,
    location_key,
    normalize_relative_dir,
    validate_pattern,
    validate_relative_dir,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Scope variables
# ---------------------------------------------------------------------------

ROOT_INIT = "root_init"
"""Present (and ``True``) in every class; applying it resolves the working-copy root."""

SCOPED_DIRS = "scoped_dirs"
"""Relative directories queries are restricted to.  Empty means the whole tree."""

SEARCH_PATTERNS = "search_patterns"
"""Ordered globs that ``git grep`` is restricted to."""

COMPLETION = "completion"
"""Completion strategy: a registered name, a callable, or a strategy instance."""

DEFAULT_SEARCH_PATTERNS: tuple[str, ...] = ("*",)

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def _normalize_variables(variables: Mapping[str, Any]) -> dict[str, Any]:
    """Validate well-known variables and coerce sequences to tuples."""
    out: dict[str, Any] = {}
    for name, value in variables.items():
        if not isinstance(name, str) or not name:
            raise InvalidScopeError(f"Scope variable names must be non-empty strings: {name!r}")

        if name == ROOT_INIT:
            if value is not True:
                raise InvalidScopeError(
                    f"{ROOT_INIT} cannot be disabled; got {value!r}"
                )
        elif name == SCOPED_DIRS:
            if isinstance(value, str) or not isinstance(value, Sequence):
                raise InvalidScopeError(f"{SCOPED_DIRS} must be a sequence of directories")
            dirs: list[str] = []
            for d in value:
                ok, err = validate_relative_dir(d)
                if not ok:
                    raise InvalidScopeError(err)
                d = normalize_relative_dir(d)
                if d not in dirs:
                    dirs.append(d)
            value = tuple(dirs)
        elif name == SEARCH_PATTERNS:
            if isinstance(value, str) or not isinstance(value, Sequence):
                raise InvalidScopeError(f"{SEARCH_PATTERNS} must be a sequence of globs")
            if not value:
                raise InvalidScopeError(f"{SEARCH_PATTERNS} needs at least one glob")
            for p in value:
                ok, err = validate_pattern(p)
                if not ok:
                    raise InvalidScopeError(err)
            value = tuple(value)
        elif name == COMPLETION:
            if not (isinstance(value, str) or callable(value) or hasattr(value, "choose")):
                raise InvalidScopeError(
                    f"{COMPLETION} must be a strategy name, a callable, or a strategy"
                )
        elif isinstance(value, list):
            value = tuple(value)

        out[name] = value
    return out


def _normalize_kind_overrides(
    overrides: Mapping[str, Mapping[str, Any]] | None,
) -> Mapping[str, Mapping[str, Any]]:
    if not overrides:
        return _EMPTY
    return MappingProxyType(
        {kind: MappingProxyType(_normalize_variables(vs)) for kind, vs in overrides.items()}
    )


def _value_family(name: str, value: Any) -> str | None:
    """Coarse type family used to detect incompatible redefinitions."""
    if value is None:
        return None
    if name == COMPLETION:
        return "strategy"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, str):
        return "str"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, Sequence):
        return "sequence"
    return type(value).__name__


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectClass:
    """A named, reusable set of scope variables.

    Immutable once registered; redefining a name registers a new object.
    """

    name: str
    """Identifier used by bindings, e.g. ``"cpp-proj"``."""

    variables: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    """Scope variable name -> default value.  Always contains ``root_init``."""

    file_kind_overrides: Mapping[str, Mapping[str, Any]] = field(default_factory=lambda: _EMPTY)
    """File kind (e.g. ``"python"``) -> variables that replace the defaults."""

    revision: int = 0
    """Registry revision at which this definition was registered."""


@dataclass(frozen=True)
class ProjectBinding:
    """Association of a concrete directory with a ProjectClass."""

    path: str
    """Normalized absolute directory."""

    class_name: str

    overrides: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    """Per-directory values layered over the class variables."""

    file_kind_overrides: Mapping[str, Mapping[str, Any]] = field(default_factory=lambda: _EMPTY)
    """Per-directory, per-file-kind values (highest precedence)."""

    revision: int = 0
    """Registry revision at which this binding was created."""


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ProjectRegistry:
    """Registry of project classes and directory bindings.

    Resolves locations to the binding of the closest bound ancestor and
    computes the effective scope variables for a location.
    """

    def __init__(self, trust: TrustList | None = None) -> None:
        self._classes: dict[str, ProjectClass] = {}
        self._bindings: dict[str, ProjectBinding] = {}
        self._revision = 0
        self.trust = trust if trust is not None else TrustList()

    def _next_revision(self) -> int:
        self._revision += 1
        return self._revision

    @property
    def revision(self) -> int:
        """Monotonic counter bumped by every definition and binding."""
        return self._revision

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def define_project_class(
        self,
        name: str,
        variables: Mapping[str, Any] | None = None,
        file_kind_overrides: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> ProjectClass:
        """Register (or replace) a project class.

        ``root_init`` is always added.  Redefining a name replaces the
        previous definition unless a variable changes type.
        """
        if not name:
            raise InvalidScopeError("Project class name cannot be empty")

        normalized = _normalize_variables(variables or {})
        normalized[ROOT_INIT] = True
        kinds = _normalize_kind_overrides(file_kind_overrides)

        previous = self._classes.get(name)
        if previous is not None:
            for var, old_value in previous.variables.items():
                if var not in normalized:
                    continue
                old_family = _value_family(var, old_value)
                new_family = _value_family(var, normalized[var])
                if old_family and new_family and old_family != new_family:
                    raise DuplicateClassError(
                        f"Project class {name!r} already defines {var!r} as {old_family}, "
                        f"not {new_family}"
                    )
            logger.info("Redefining project class %r", name)

        project_class = ProjectClass(
            name=name,
            variables=MappingProxyType(normalized),
            file_kind_overrides=kinds,
            revision=self._next_revision(),
        )
        self._classes[name] = project_class

        # Directories already bound to this class opted in through bind_directory.
        for binding in self._bindings.values():
            if binding.class_name == name:
                self.trust.revoke(binding.path)
                self._trust_binding(binding)

        return project_class

    def get_class(self, name: str) -> ProjectClass:
        """Look up a class by name."""
        try:
            return self._classes[name]
        except KeyError:
            raise UnknownClassError(f"Unknown project class: {name}") from None

    def has_class(self, name: str) -> bool:
        return name in self._classes

    def list_classes(self) -> list[ProjectClass]:
        """List all classes, sorted by name."""
        return sorted(self._classes.values(), key=lambda c: c.name)

    # ------------------------------------------------------------------
    # Bindings
    # ------------------------------------------------------------------

    def bind_directory(
        self,
        path: str,
        class_name: str,
        overrides: Mapping[str, Any] | None = None,
        file_kind_overrides: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> ProjectBinding:
        """Bind *path* to a registered class and trust the resulting values."""
        if class_name not in self._classes:
            raise UnknownClassError(f"Unknown project class: {class_name}")

        binding = ProjectBinding(
            path=location_key(path),
            class_name=class_name,
            overrides=MappingProxyType(_normalize_variables(overrides or {})),
            file_kind_overrides=_normalize_kind_overrides(file_kind_overrides),
            revision=self._next_revision(),
        )
        self._bindings[binding.path] = binding
        self._trust_binding(binding)
        logger.info("Bound %s to project class %r", binding.path, class_name)
        return binding

    def add_binding(self, binding: ProjectBinding) -> None:
        """Add a pre-built binding without touching the trust list.

        Used when loading a persisted store, whose trust entries are
        loaded separately.
        """
        if binding.class_name not in self._classes:
            raise UnknownClassError(f"Unknown project class: {binding.class_name}")
        binding = ProjectBinding(
            path=location_key(binding.path),
            class_name=binding.class_name,
            overrides=MappingProxyType(_normalize_variables(binding.overrides)),
            file_kind_overrides=_normalize_kind_overrides(binding.file_kind_overrides),
            revision=self._next_revision(),
        )
        self._bindings[binding.path] = binding

    def unbind_directory(self, path: str) -> bool:
        """Remove the binding at *path* and revoke its trust. Return True if found."""
        key = location_key(path)
        binding = self._bindings.pop(key, None)
        if binding is None:
            return False
        self.trust.revoke(key)
        self._next_revision()
        logger.info("Unbound %s", key)
        return True

    def get_binding(self, path: str) -> ProjectBinding | None:
        """Exact lookup of the binding at *path*."""
        return self._bindings.get(location_key(path))

    def has_binding(self, path: str) -> bool:
        return location_key(path) in self._bindings

    def list_bindings(self) -> list[ProjectBinding]:
        """List all bindings, sorted by path."""
        return sorted(self._bindings.values(), key=lambda b: b.path)

    def find_binding(self, location: str) -> ProjectBinding | None:
        """Find the binding of the closest bound ancestor of *location*.

        Longest matching directory wins; ``/repo2`` never matches ``/repo``.
        """
        best: ProjectBinding | None = None
        best_len = -1
        for path, binding in self._bindings.items():
            if len(path) > best_len and is_within(location, path):
                best = binding
                best_len = len(path)
        return best

    # ------------------------------------------------------------------
    # Effective values
    # ------------------------------------------------------------------

    def effective_variables(
        self,
        binding: ProjectBinding,
        file_kind: str | None = None,
    ) -> dict[str, Any]:
        """Merge class defaults, class kind overrides, binding overrides, binding kind overrides."""
        project_class = self.get_class(binding.class_name)
        merged: dict[str, Any] = dict(project_class.variables)
        if file_kind is not None:
            merged.update(project_class.file_kind_overrides.get(file_kind, _EMPTY))
        merged.update(binding.overrides)
        if file_kind is not None:
            merged.update(binding.file_kind_overrides.get(file_kind, _EMPTY))
        merged[ROOT_INIT] = True
        return merged

    def _trust_binding(self, binding: ProjectBinding) -> None:
        project_class = self._classes[binding.class_name]
        kinds: list[str | None] = [None]
        kinds.extend(project_class.file_kind_overrides)
        kinds.extend(k for k in binding.file_kind_overrides if k not in kinds)
        for kind in kinds:
            self.trust.add(binding.path, self.effective_variables(binding, kind))
