"""Factory helpers that select and build data stores from configuration.

These helpers centralize the logic for honoring the ``[storage]`` section of
:mod:`persistkit.settings`. Provider registrars are discovered at runtime, so
adding a format or database backend never requires a change here. Every
misconfiguration surfaces as :class:`StorageConfigurationError` when the store
is built, never later on first use.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path

import sqlalchemy as sa

from persistkit.core.errors import StorageConfigurationError
from persistkit.observability import Observability, get_observability
from persistkit.persistence.base import DataStore, LocatableDataStore
from persistkit.persistence.database.connection_string import parse_connection_string
from persistkit.persistence.database.context import EngineOptions
from persistkit.persistence.database.registrar import DbContextRegistrar, DbProviderRegistrar, StorageBindings
from persistkit.persistence.database.store import DbDataStore
from persistkit.persistence.discovery import discover_entry_point_registrars, discover_registrars
from persistkit.persistence.file.registrar import FileProviderRegistrar
from persistkit.persistence.file.store import FileDataStore
from persistkit.persistence.registry import ProviderRegistry
from persistkit.settings import Settings, StorageSettings, get_settings

LOGGER = logging.getLogger(__name__)

FILE_KIND = "File"
DATABASE_KIND = "Database"


def discover_file_providers(settings: Settings | None = None) -> ProviderRegistry[FileProviderRegistrar]:
    """Return every file format found by module pattern and entry points."""

    resolved = settings or get_settings()
    registry = ProviderRegistry[FileProviderRegistrar](kind="file")
    registry.register_all(discover_registrars(FileProviderRegistrar, resolved.plugins.file_pattern))
    registry.register_all(
        discover_entry_point_registrars(FileProviderRegistrar, resolved.plugins.file_entry_point_group)
    )
    return registry


def discover_database_providers(settings: Settings | None = None) -> ProviderRegistry[DbProviderRegistrar]:
    """Return every database backend found by module pattern and entry points."""

    resolved = settings or get_settings()
    registry = ProviderRegistry[DbProviderRegistrar](kind="database")
    registry.register_all(discover_registrars(DbProviderRegistrar, resolved.plugins.database_pattern))
    registry.register_all(
        discover_entry_point_registrars(DbProviderRegistrar, resolved.plugins.database_entry_point_group)
    )
    return registry


def discover_context_registrar(settings: Settings | None = None) -> DbContextRegistrar:
    """Load the business-layer module that owns the database schema.

    Raises:
        StorageConfigurationError: If the module cannot be imported or defines
            no :class:`DbContextRegistrar`.
    """

    resolved = settings or get_settings()
    module_name = resolved.plugins.context_module
    try:
        module = importlib.import_module(module_name)
    except Exception as exc:
        raise StorageConfigurationError(
            f"Could not load the database context module '{module_name}': {exc}"
        ) from exc

    registrars = discover_registrars(DbContextRegistrar, module)
    if not registrars:
        raise StorageConfigurationError(
            f"No DbContextRegistrar implementation found in '{module_name}'. "
            "Ensure the business layer defines one."
        )
    if len(registrars) > 1:
        LOGGER.warning(
            "Found %d context registrars in %s; using %s",
            len(registrars),
            module_name,
            type(registrars[0]).__name__,
        )
    return registrars[0]


def resolve_connection_string(storage: StorageSettings, settings: Settings | None = None) -> str:
    """Return the connection string for ``storage``.

    An inline ``connection_string`` wins over ``connection_string_name``.

    Raises:
        StorageConfigurationError: If neither yields a non-empty value.
    """

    if storage.connection_string and storage.connection_string.strip():
        return storage.connection_string.strip()

    name = (storage.connection_string_name or "").strip()
    if name:
        resolved = settings or get_settings()
        value = resolved.connection_string_for(name)
        if value and value.strip():
            return value.strip()
        raise StorageConfigurationError(
            f"Connection string '{name}' was not found. Add it to the [connection_strings] section."
        )

    raise StorageConfigurationError(
        "Database storage requires 'storage.connection_string' or 'storage.connection_string_name'."
    )


def resolve_file_path(
    entity_type: type,
    registrar: FileProviderRegistrar,
    storage: StorageSettings,
    settings: Settings | None = None,
) -> Path:
    """Return ``storage.file_path`` or ``{data_dir}/{EntityTypeName}{extension}``."""

    if storage.file_path is not None:
        return Path(storage.file_path)
    resolved = settings or get_settings()
    return Path(resolved.data_dir) / f"{entity_type.__name__}{registrar.file_extension}"


def build_data_store(
    entity_type: type,
    *,
    settings: Settings | None = None,
    storage: StorageSettings | None = None,
    bindings: StorageBindings | None = None,
    observability: Observability | None = None,
) -> DataStore:
    """Return the data store configured for ``entity_type``.

    Args:
        entity_type: Entity class the store will load and save.
        settings: Settings to honor; defaults to :func:`get_settings`.
        storage: Overrides ``settings.storage`` (used to target a second medium).
        bindings: Wiring shared between stores; a database context registered
            here is reused by later calls.
        observability: Metrics and event sink; defaults to the shared instance.

    Returns:
        A :class:`FileDataStore` or :class:`DbDataStore`, also bound in ``bindings``.

    Raises:
        StorageConfigurationError: If the kind, provider, context or
            connection string cannot be resolved.
    """

    resolved = settings or get_settings()
    target = storage or resolved.storage
    bindings = bindings if bindings is not None else StorageBindings()
    obs = observability or get_observability(component="datastore", settings=resolved)

    kind = (target.kind or "").strip().lower()
    if kind == DATABASE_KIND.lower():
        store: DataStore = _build_database_store(entity_type, target, resolved, bindings, obs)
    elif kind == FILE_KIND.lower():
        store = _build_file_store(entity_type, target, resolved, obs)
    else:
        raise StorageConfigurationError(
            f"Unknown storage kind '{target.kind}'. Expected '{FILE_KIND}' or '{DATABASE_KIND}'."
        )

    bindings.bind_data_store(entity_type, store)
    LOGGER.info("Using %s for %s", describe_data_source(store, storage=target), entity_type.__name__)
    return store


def _build_file_store(
    entity_type: type,
    storage: StorageSettings,
    settings: Settings,
    observability: Observability,
) -> FileDataStore:
    registrar = discover_file_providers(settings).resolve(storage.provider)
    path = resolve_file_path(entity_type, registrar, storage, settings)
    serializer = registrar.create_serializer(entity_type)
    return FileDataStore(path, serializer, entity_type=entity_type, observability=observability)


def _build_database_store(
    entity_type: type,
    storage: StorageSettings,
    settings: Settings,
    bindings: StorageBindings,
    observability: Observability,
) -> DbDataStore:
    if bindings.context_factory is None:
        registrar = discover_database_providers(settings).resolve(storage.provider)
        context_registrar = discover_context_registrar(settings)
        connection_string = resolve_connection_string(storage, settings)

        def configure(options: EngineOptions) -> None:
            registrar.configure(options, connection_string)

        try:
            context_registrar.register_db_context(bindings, configure)
        except (ValueError, OSError, sa.exc.ArgumentError) as exc:
            raise StorageConfigurationError(
                f"Invalid connection string for provider '{registrar.provider_name}': {exc}"
            ) from exc
    return DbDataStore(entity_type, bindings.require_context_factory(), observability=observability)


def describe_data_source(store: DataStore, *, storage: StorageSettings | None = None) -> str:
    """Return ``"{Kind} · {Provider} · {Location}"`` for display."""

    target = storage or get_settings().storage
    if isinstance(store, LocatableDataStore):
        kind, location = FILE_KIND, store.location
    elif isinstance(store, DbDataStore):
        kind, location = DATABASE_KIND, _database_location(store)
    else:
        kind, location = (target.kind or "").strip() or FILE_KIND, store.description
    return f"{kind} · {target.provider} · {location}"


def _database_location(store: DbDataStore) -> str:
    options = getattr(store.context_factory, "options", None)
    url = getattr(options, "url", None)
    if url is None:
        return store.description
    parsed = sa.make_url(url)
    if parsed.get_backend_name() == "sqlite":
        return parsed.database or ":memory:"
    odbc = parsed.query.get("odbc_connect")
    if isinstance(odbc, str):
        # The raw ODBC string may carry a password.
        parts = parse_connection_string(odbc)
        return f"{parts.get('server', '?')}/{parts.get('database', '?')}"
    return parsed.render_as_string(hide_password=True)


__all__ = [
    "build_data_store",
    "describe_data_source",
    "discover_context_registrar",
    "discover_database_providers",
    "discover_file_providers",
    "resolve_connection_string",
    "resolve_file_path",
]
