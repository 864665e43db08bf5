"""SQLite backend through the standard library ``sqlite3`` driver."""

from __future__ import annotations

from pathlib import Path

import sqlalchemy as sa
from sqlalchemy.engine import URL
from sqlalchemy.pool import StaticPool

from persistkit.persistence.database.connection_string import first_value, is_url, parse_connection_string
from persistkit.persistence.database.context import EngineOptions
from persistkit.persistence.database.registrar import DbProviderRegistrar

MEMORY = ":memory:"


class SqliteProviderRegistrar(DbProviderRegistrar):
    """Accepts ``Data Source=path.db``, a bare file path or a ``sqlite://`` URL.

    Relative paths resolve against the working directory. The parent
    directory of the database file is created when missing.
    """

    @property
    def provider_name(self) -> str:
        return "Sqlite"

    def configure(self, options: EngineOptions, connection_string: str) -> None:
        connect_args = {"check_same_thread": False}
        if is_url(connection_string):
            url = sa.make_url(connection_string)
            database = url.database or MEMORY
        else:
            database = self._database_path(connection_string)
            url = URL.create("sqlite", database=None if database == MEMORY else database)

        if database == MEMORY:
            # A single shared connection, otherwise each pooled connection sees its own empty database.
            options.use(url, connect_args=connect_args, poolclass=StaticPool)
            return

        Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)
        options.use(url, connect_args=connect_args)

    @staticmethod
    def _database_path(connection_string: str) -> str:
        value = connection_string.strip()
        if "=" not in value:
            return value or MEMORY
        parts = parse_connection_string(value)
        path = first_value(parts, "data source", "datasource", "filename", "database")
        if not path:
            raise ValueError("SQLite connection string must specify 'Data Source'.")
        return Path(path).expanduser().as_posix() if path != MEMORY else MEMORY
