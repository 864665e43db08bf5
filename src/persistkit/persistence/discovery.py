"""Find registrar implementations in plugin modules.

A *source* is one of:

* a dotted module glob such as ``persistkit.persistence.file.providers.*``,
  matched against the submodules of the parent package;
* a filesystem glob such as ``/opt/plugins/*_provider.py``, loaded from disk;
* a plain dotted module name, or an already-imported module.

Every public, concrete class defined in those modules that subclasses the
requested contract and can be built without arguments is instantiated once.
Modules that fail to import and registrars whose constructor raises are
logged and skipped so one broken plugin never hides the others.
"""

from __future__ import annotations

import fnmatch
import glob
import hashlib
import importlib
import importlib.util
import inspect
import logging
import os
import pkgutil
import sys
from importlib.metadata import entry_points
from pathlib import Path
from types import ModuleType
from typing import Iterable, Iterator, List, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_WILDCARDS = ("*", "?", "[")


def discover_registrars(contract: type[T], source: str | ModuleType | Iterable[str | ModuleType]) -> List[T]:
    """Instantiate every registrar implementing ``contract`` found in ``source``.

    Order is stable: modules sorted by name, classes in definition order.
    """

    registrars: List[T] = []
    for module in _load_modules(source):
        registrars.extend(_registrars_in_module(contract, module))
    return registrars


def discover_entry_point_registrars(contract: type[T], group: str) -> List[T]:
    """Load registrars published by installed distributions under ``group``.

    An entry point may name a registrar class, a ready-made registrar
    instance, or a module that is scanned like any other source.
    """

    registrars: List[T] = []
    for entry_point in sorted(entry_points(group=group), key=lambda item: item.name):
        try:
            target = entry_point.load()
        except Exception as exc:
            LOGGER.warning("Skipping entry point %s (%s): %s", entry_point.name, entry_point.value, exc)
            continue

        if isinstance(target, ModuleType):
            registrars.extend(_registrars_in_module(contract, target))
        elif isinstance(target, type):
            if not issubclass(target, contract) or inspect.isabstract(target):
                LOGGER.warning("Entry point %s does not name a concrete %s", entry_point.name, contract.__name__)
                continue
            instance = _instantiate(target)
            if instance is not None:
                registrars.append(instance)
        elif isinstance(target, contract):
            registrars.append(target)
        else:
            LOGGER.warning("Entry point %s does not provide a %s", entry_point.name, contract.__name__)
    return registrars


def _load_modules(source: str | ModuleType | Iterable[str | ModuleType]) -> List[ModuleType]:
    if isinstance(source, ModuleType):
        return [source]
    if isinstance(source, str):
        text = source.strip()
        if not text:
            return []
        if _is_path_pattern(text):
            return _load_from_files(text)
        return _load_from_dotted(text)

    modules: List[ModuleType] = []
    for item in source:
        modules.extend(_load_modules(item))
    return modules


def _is_path_pattern(text: str) -> bool:
    return "/" in text or os.sep in text or text.endswith(".py")


def _load_from_dotted(pattern: str) -> List[ModuleType]:
    if not any(char in pattern for char in _WILDCARDS):
        module = _import(pattern)
        return [module] if module is not None else []

    parent_name, _, leaf = pattern.rpartition(".")
    if not parent_name or any(char in parent_name for char in _WILDCARDS):
        LOGGER.warning("Unsupported module pattern %r; only the last segment may contain wildcards", pattern)
        return []
    parent = _import(parent_name)
    if parent is None:
        return []
    search_path = getattr(parent, "__path__", None)
    if search_path is None:
        LOGGER.warning("Module pattern %r does not refer to a package", pattern)
        return []

    names = sorted(
        info.name
        for info in pkgutil.iter_modules(search_path)
        if fnmatch.fnmatchcase(info.name, leaf) and not info.name.startswith("_")
    )
    modules = (_import(f"{parent_name}.{name}") for name in names)
    return [module for module in modules if module is not None]


def _load_from_files(pattern: str) -> List[ModuleType]:
    modules: List[ModuleType] = []
    for raw_path in sorted(glob.glob(os.path.expanduser(pattern))):
        path = Path(raw_path).resolve()
        if path.suffix != ".py" or path.name.startswith("_"):
            continue
        digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:8]
        module_name = f"persistkit_plugin_{path.stem}_{digest}"
        existing = sys.modules.get(module_name)
        if existing is not None:
            modules.append(existing)
            continue
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            LOGGER.warning("Skipping plugin file %s: not importable", path)
            continue
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            sys.modules.pop(module_name, None)
            LOGGER.warning("Skipping plugin file %s: %s", path, exc)
            continue
        modules.append(module)
    return modules


def _import(name: str) -> ModuleType | None:
    try:
        return importlib.import_module(name)
    except Exception as exc:
        LOGGER.warning("Skipping plugin module %s: %s", name, exc)
        return None


def _registrars_in_module(contract: type[T], module: ModuleType) -> Iterator[T]:
    for name, candidate in list(vars(module).items()):
        if name.startswith("_") or not isinstance(candidate, type):
            continue
        if candidate is contract or not issubclass(candidate, contract):
            continue
        if candidate.__module__ != module.__name__ or inspect.isabstract(candidate):
            continue
        if not _constructible_without_args(candidate):
            LOGGER.debug("Skipping %s.%s: constructor requires arguments", module.__name__, name)
            continue
        instance = _instantiate(candidate)
        if instance is not None:
            yield instance


def _constructible_without_args(cls: type) -> bool:
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return True
    for parameter in signature.parameters.values():
        if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        if parameter.default is inspect.Parameter.empty:
            return False
    return True


def _instantiate(cls: type[T]) -> T | None:
    try:
        return cls()
    except Exception as exc:
        LOGGER.warning("Skipping registrar %s.%s: %s", cls.__module__, cls.__qualname__, exc)
        return None


__all__ = ["discover_entry_point_registrars", "discover_registrars"]
