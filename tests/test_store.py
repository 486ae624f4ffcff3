"""Tests for ProjectStore persistence."""

from __future__ import annotations

import pytest
from sqlmodel import Session, select

from gitscope.config import GitscopeConfig
from gitscope.exceptions import StorageError
from gitscope.models import ProjectBindingRecord, ProjectClassRecord, TrustedValueRecord
from gitscope.registry import COMPLETION, SCOPED_DIRS, SEARCH_PATTERNS, ProjectRegistry
from gitscope.store import ProjectStore


@pytest.fixture
def populated(repo) -> ProjectRegistry:
    registry = ProjectRegistry()
    registry.define_project_class(
        "cpp-proj",
        {SCOPED_DIRS: ["src", "include"], SEARCH_PATTERNS: ["*.cpp", "*.h"]},
        {"python": {SEARCH_PATTERNS: ["*.py"]}},
    )
    registry.bind_directory(str(repo), "cpp-proj", {COMPLETION: "fuzzy"})
    return registry


class TestRoundTrip:
    def test_classes_bindings_and_trust(self, engine, populated, repo):
        store = ProjectStore(engine=engine)
        store.save(populated)
        loaded = store.load()

        cls = loaded.get_class("cpp-proj")
        assert cls.variables[SCOPED_DIRS] == ("src", "include")
        assert cls.file_kind_overrides["python"][SEARCH_PATTERNS] == ("*.py",)

        binding = loaded.get_binding(str(repo))
        assert binding is not None
        assert binding.overrides[COMPLETION] == "fuzzy"

        assert len(loaded.trust) == len(populated.trust)
        effective = loaded.effective_variables(binding)
        assert loaded.trust.untrusted(binding.path, effective) == []
        python_vars = loaded.effective_variables(binding, "python")
        assert loaded.trust.untrusted(binding.path, python_vars) == []

    def test_save_replaces_previous_state(self, engine, populated, repo):
        store = ProjectStore(engine=engine)
        store.save(populated)
        populated.unbind_directory(str(repo))
        store.save(populated)

        with Session(engine) as session:
            assert session.exec(select(ProjectBindingRecord)).all() == []
            assert session.exec(select(TrustedValueRecord)).all() == []
            assert len(session.exec(select(ProjectClassRecord)).all()) == 1

    def test_load_into_existing_registry(self, engine, populated):
        ProjectStore(engine=engine).save(populated)
        target = ProjectRegistry()
        assert ProjectStore(engine=engine).load(target) is target
        assert target.has_class("cpp-proj")

    def test_file_backed(self, tmp_path, populated):
        config = GitscopeConfig(data_dir=tmp_path / "data")
        with ProjectStore.from_config(config) as store:
            store.save(populated)
        assert config.db_path.exists()
        with ProjectStore.from_config(config) as store:
            assert [c.name for c in store.load().list_classes()] == ["cpp-proj"]


class TestLoadEdgeCases:
    def test_binding_to_unknown_class_skipped(self, engine, repo):
        with Session(engine) as session:
            session.add(
                ProjectBindingRecord(
                    path=str(repo), class_name="gone", overrides="{}", file_kind_overrides="{}"
                )
            )
            session.commit()
        loaded = ProjectStore(engine=engine).load()
        assert loaded.list_bindings() == []

    def test_bindings_are_not_trusted_implicitly(self, engine, repo):
        with Session(engine) as session:
            session.add(ProjectClassRecord(name="p", variables='{"scoped_dirs": ["src"]}'))
            session.add(ProjectBindingRecord(path=str(repo), class_name="p"))
            session.commit()
        loaded = ProjectStore(engine=engine).load()
        binding = loaded.get_binding(str(repo))
        assert binding is not None
        assert loaded.trust.untrusted(binding.path, loaded.effective_variables(binding))

    def test_corrupt_json(self, engine):
        with Session(engine) as session:
            session.add(ProjectClassRecord(name="p", variables="{not json"))
            session.commit()
        with pytest.raises(StorageError, match="Corrupt"):
            ProjectStore(engine=engine).load()


class TestSaveErrors:
    def test_callable_completion_cannot_be_persisted(self, engine):
        registry = ProjectRegistry()
        registry.define_project_class("p", {COMPLETION: lambda prompt, candidates: None})
        with pytest.raises(StorageError, match="Cannot persist"):
            ProjectStore(engine=engine).save(registry)

    def test_requires_location_or_engine(self):
        with pytest.raises(ValueError):
            ProjectStore()
