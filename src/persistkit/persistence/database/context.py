"""Engine options builder and the session-scoped database context."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Protocol

import sqlalchemy as sa
from sqlalchemy import Engine
from sqlalchemy.engine import URL
from sqlalchemy.orm import Session, sessionmaker

from persistkit.core.errors import StorageConfigurationError

LOGGER = logging.getLogger(__name__)


@dataclass
class EngineOptions:
    """Mutable builder that a provider registrar fills in before the engine exists."""

    url: URL | str | None = None
    connect_args: Dict[str, Any] = field(default_factory=dict)
    engine_kwargs: Dict[str, Any] = field(default_factory=dict)

    def use(self, url: URL | str, *, connect_args: Mapping[str, Any] | None = None, **engine_kwargs: Any) -> "EngineOptions":
        """Point the options at ``url``; later calls replace the URL and merge the extras."""

        self.url = url
        if connect_args:
            self.connect_args.update(connect_args)
        self.engine_kwargs.update(engine_kwargs)
        return self

    @property
    def is_configured(self) -> bool:
        return self.url is not None

    @property
    def backend_name(self) -> str:
        """str: Dialect name of the configured URL, for example ``sqlite``."""

        if self.url is None:
            return ""
        return sa.make_url(self.url).get_backend_name()

    def build_engine(self, *, echo: bool = False) -> Engine:
        """Instantiate the SQLAlchemy engine described by these options.

        Raises:
            StorageConfigurationError: If no provider has configured a URL yet.
        """

        if self.url is None:
            raise StorageConfigurationError("No database provider configured the engine options.")
        kwargs: Dict[str, Any] = {"pool_pre_ping": True}
        kwargs.update(self.engine_kwargs)
        return sa.create_engine(self.url, echo=echo, connect_args=dict(self.connect_args), **kwargs)


class DbContext:
    """One unit of database work: a session plus the entity-to-table map.

    Use as a context manager; the session is closed on exit.
    """

    def __init__(self, session: Session, tables: Mapping[type, sa.Table]) -> None:
        self.session = session
        self._tables = tables

    def table_for(self, entity_type: type) -> sa.Table:
        table = self._tables.get(entity_type)
        if table is None:
            raise StorageConfigurationError(
                f"No table is mapped for entity type '{entity_type.__name__}'. "
                "Register it with the database context registrar."
            )
        return table

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "DbContext":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class DbContextFactory(Protocol):
    """Creates fresh :class:`DbContext` instances; the store never sees the schema directly."""

    def create_context(self) -> DbContext:
        ...


class SqlAlchemyContextFactory:
    """Context factory over a lazily created engine.

    The engine is built on first use from ``options`` and, when
    ``create_schema`` is set, missing tables in ``metadata`` are created once.
    """

    def __init__(
        self,
        options: EngineOptions,
        metadata: sa.MetaData,
        tables: Mapping[type, sa.Table],
        *,
        create_schema: bool = True,
    ) -> None:
        self.options = options
        self.metadata = metadata
        self.tables = dict(tables)
        self._create_schema = create_schema
        self._engine: Engine | None = None
        self._sessions: sessionmaker | None = None
        self._lock = threading.Lock()

    @property
    def engine(self) -> Engine:
        return self._ensure_engine()[0]

    def create_context(self) -> DbContext:
        _, sessions = self._ensure_engine()
        return DbContext(sessions(), self.tables)

    def _ensure_engine(self) -> tuple[Engine, sessionmaker]:
        with self._lock:
            if self._engine is None or self._sessions is None:
                engine = self.options.build_engine()
                if self._create_schema:
                    self.metadata.create_all(engine, checkfirst=True)
                self._engine = engine
                self._sessions = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
                LOGGER.debug("Created %s engine for %d mapped tables", engine.dialect.name, len(self.tables))
            return self._engine, self._sessions

    def dispose(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
            self._engine = None
            self._sessions = None


__all__ = ["DbContext", "DbContextFactory", "EngineOptions", "SqlAlchemyContextFactory"]
