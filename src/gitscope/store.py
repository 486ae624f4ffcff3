"""ProjectStore — persist a ProjectRegistry in SQLite via SQLModel."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine, select

from .exceptions import StorageError
from .models import ProjectBindingRecord, ProjectClassRecord, TrustedValueRecord
from .registry import ProjectBinding, ProjectRegistry
from .trust import TrustEntry, freeze_value

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from .config import GitscopeConfig

logger = logging.getLogger(__name__)

_TABLES = [
    ProjectClassRecord.__table__,
    ProjectBindingRecord.__table__,
    TrustedValueRecord.__table__,
]


def _dumps(value: Any, what: str) -> str:
    try:
        return json.dumps(value, sort_keys=True)
    except (TypeError, ValueError) as e:
        raise StorageError(f"Cannot persist {what}: {e}") from e


def _loads(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        raise StorageError(f"Corrupt {what} in project store: {e}") from e


def _plain(mapping: Any) -> Any:
    """Convert mapping proxies and tuples into JSON-friendly dicts and lists."""
    if hasattr(mapping, "items"):
        return {str(k): _plain(v) for k, v in mapping.items()}
    if isinstance(mapping, (list, tuple)):
        return [_plain(v) for v in mapping]
    return mapping


class ProjectStore:
    """SQLite-backed persistence for classes, bindings, and trust entries.

    - ``save`` replaces the stored state with the registry's state
    - ``load`` rebuilds a registry; trust entries come only from the
      ``gitscope_trusted`` table, never from the bindings themselves

    Usage::

        with ProjectStore("~/.gitscope/projects.db") as store:
            registry = store.load()
            registry.bind_directory("/repo", "cpp-proj")
            store.save(registry)
    """

    def __init__(self, location: str | Path | None = None, *, engine: Engine | None = None) -> None:
        if engine is None:
            if location is None:
                raise ValueError("ProjectStore needs a database location or an engine")
            engine = create_engine(self._url_for(location), echo=False)
        self._engine = engine
        try:
            SQLModel.metadata.create_all(self._engine, tables=_TABLES)
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot open project store: {e}") from e

    @staticmethod
    def _url_for(location: str | Path) -> str:
        text = str(location)
        if "://" in text:
            return text
        path = Path(text).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{path}"

    @classmethod
    def from_config(cls, config: GitscopeConfig) -> ProjectStore:
        return cls(config.db_path)

    @property
    def engine(self) -> Engine:
        return self._engine

    # ------------------------------------------------------------------
    # Save / load
    # ------------------------------------------------------------------

    def save(self, registry: ProjectRegistry) -> None:
        """Replace the stored state with *registry*'s classes, bindings, and trust list."""
        class_rows = [
            ProjectClassRecord(
                name=c.name,
                variables=_dumps(_plain(c.variables), f"class {c.name!r}"),
                file_kind_overrides=_dumps(_plain(c.file_kind_overrides), f"class {c.name!r}"),
            )
            for c in registry.list_classes()
        ]
        binding_rows = [
            ProjectBindingRecord(
                path=b.path,
                class_name=b.class_name,
                overrides=_dumps(_plain(b.overrides), f"binding {b.path}"),
                file_kind_overrides=_dumps(_plain(b.file_kind_overrides), f"binding {b.path}"),
            )
            for b in registry.list_bindings()
        ]
        trust_rows = [
            TrustedValueRecord(
                directory=e.directory,
                variable=e.variable,
                value=_dumps(_plain(e.value), f"trusted value {e.variable!r}"),
            )
            for e in registry.trust.entries()
        ]

        try:
            with Session(self._engine) as session:
                for model in (TrustedValueRecord, ProjectBindingRecord, ProjectClassRecord):
                    for existing in session.exec(select(model)).all():
                        session.delete(existing)
                session.flush()
                session.add_all(class_rows)
                session.add_all(binding_rows)
                session.add_all(trust_rows)
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save project store: {e}") from e

        logger.debug(
            "Saved %d class(es), %d binding(s), %d trusted value(s)",
            len(class_rows),
            len(binding_rows),
            len(trust_rows),
        )

    def load(self, registry: ProjectRegistry | None = None) -> ProjectRegistry:
        """Load the stored state into *registry* (a new one by default)."""
        registry = registry if registry is not None else ProjectRegistry()
        try:
            with Session(self._engine) as session:
                classes = session.exec(select(ProjectClassRecord)).all()
                bindings = session.exec(select(ProjectBindingRecord)).all()
                trusted = session.exec(select(TrustedValueRecord)).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load project store: {e}") from e

        for record in classes:
            registry.define_project_class(
                record.name,
                _loads(record.variables, f"class {record.name!r}"),
                _loads(record.file_kind_overrides, f"class {record.name!r}") or None,
            )
        for record in bindings:
            if not registry.has_class(record.class_name):
                logger.warning(
                    "Skipping binding %s: unknown project class %r", record.path, record.class_name
                )
                continue
            registry.add_binding(
                ProjectBinding(
                    path=record.path,
                    class_name=record.class_name,
                    overrides=_loads(record.overrides, f"binding {record.path}"),
                    file_kind_overrides=_loads(
                        record.file_kind_overrides, f"binding {record.path}"
                    ),
                )
            )
        registry.trust.extend(
            TrustEntry(
                directory=record.directory,
                variable=record.variable,
                value=freeze_value(_loads(record.value, "trusted value")),
            )
            for record in trusted
        )
        return registry

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._engine.dispose()

    def __enter__(self) -> ProjectStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
