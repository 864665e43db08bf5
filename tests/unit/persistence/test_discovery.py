"""Unit tests for registrar discovery from module patterns, plugin files and entry points."""

from __future__ import annotations

import logging
import textwrap
from types import SimpleNamespace

import pytest

from persistkit.persistence import discovery
from persistkit.persistence.database.registrar import DbProviderRegistrar
from persistkit.persistence.discovery import discover_entry_point_registrars, discover_registrars
from persistkit.persistence.file.providers import json_provider
from persistkit.persistence.file.providers.json_provider import JsonFileProviderRegistrar
from persistkit.persistence.file.registrar import FileProviderRegistrar

PLUGIN_SOURCE = textwrap.dedent(
    '''
    from abc import abstractmethod

    from persistkit.persistence.file.providers.json_provider import JsonFileProviderRegistrar, JsonSerializer
    from persistkit.persistence.file.registrar import FileProviderRegistrar


    class YamlishProviderRegistrar(FileProviderRegistrar):
        @property
        def provider_name(self):
            return "Yamlish"

        @property
        def file_extension(self):
            return ".yml"

        def create_serializer(self, entity_type):
            return JsonSerializer(entity_type)


    class PartialRegistrar(FileProviderRegistrar):
        @abstractmethod
        def extra(self):
            ...


    class NeedsArgumentsRegistrar(YamlishProviderRegistrar):
        def __init__(self, flavour):
            self.flavour = flavour


    class _HiddenRegistrar(YamlishProviderRegistrar):
        pass
    '''
)


def test_dotted_pattern_finds_builtin_file_providers() -> None:
    registrars = discover_registrars(FileProviderRegistrar, "persistkit.persistence.file.providers.*")

    assert [registrar.provider_name for registrar in registrars] == ["Csv", "Json", "Xml"]


def test_dotted_pattern_finds_builtin_database_providers() -> None:
    registrars = discover_registrars(DbProviderRegistrar, "persistkit.persistence.database.providers.*")

    assert sorted(registrar.provider_name for registrar in registrars) == ["MySql", "PostgreSQL", "SqlServer", "Sqlite"]


def test_module_source_yields_only_classes_defined_there() -> None:
    registrars = discover_registrars(FileProviderRegistrar, json_provider)

    assert len(registrars) == 1
    assert isinstance(registrars[0], JsonFileProviderRegistrar)


def test_plugin_file_skips_abstract_private_foreign_and_argument_classes(tmp_path) -> None:
    (tmp_path / "yamlish_provider.py").write_text(PLUGIN_SOURCE, encoding="utf-8")

    registrars = discover_registrars(FileProviderRegistrar, str(tmp_path / "*_provider.py"))

    assert [registrar.provider_name for registrar in registrars] == ["Yamlish"]
    assert registrars[0].file_extension == ".yml"


def test_broken_plugin_is_logged_and_skipped(tmp_path, caplog: pytest.LogCaptureFixture) -> None:
    (tmp_path / "a_broken_provider.py").write_text("raise RuntimeError('plugin exploded')\n", encoding="utf-8")
    (tmp_path / "b_yamlish_provider.py").write_text(PLUGIN_SOURCE, encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="persistkit.persistence.discovery"):
        registrars = discover_registrars(FileProviderRegistrar, str(tmp_path / "*_provider.py"))

    assert [registrar.provider_name for registrar in registrars] == ["Yamlish"]
    assert "plugin exploded" in caplog.text


def test_missing_module_yields_nothing(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="persistkit.persistence.discovery"):
        registrars = discover_registrars(FileProviderRegistrar, "persistkit.no_such_module")

    assert registrars == []
    assert "persistkit.no_such_module" in caplog.text


def test_only_last_segment_may_be_a_wildcard() -> None:
    assert discover_registrars(FileProviderRegistrar, "persistkit.*.providers.*") == []


def test_entry_points_accept_classes_instances_and_modules(monkeypatch: pytest.MonkeyPatch) -> None:
    class EntryPoint(SimpleNamespace):
        def load(self):
            if isinstance(self.target, Exception):
                raise self.target
            return self.target

    published = [
        EntryPoint(name="a-class", value="pkg:JsonFileProviderRegistrar", target=JsonFileProviderRegistrar),
        EntryPoint(name="b-instance", value="pkg:instance", target=JsonFileProviderRegistrar()),
        EntryPoint(name="c-module", value="pkg.json_provider", target=json_provider),
        EntryPoint(name="d-broken", value="pkg:missing", target=ImportError("missing dependency")),
        EntryPoint(name="e-wrong", value="pkg:thing", target=object()),
    ]
    requested: list[str] = []

    def fake_entry_points(*, group: str):
        requested.append(group)
        return published

    monkeypatch.setattr(discovery, "entry_points", fake_entry_points)

    registrars = discover_entry_point_registrars(FileProviderRegistrar, "persistkit.file_providers")

    assert requested == ["persistkit.file_providers"]
    assert len(registrars) == 3
    assert all(isinstance(registrar, JsonFileProviderRegistrar) for registrar in registrars)
