"""PostgreSQL backend through psycopg 3 (``pip install persistkit[postgresql]``)."""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.engine import URL

from persistkit.persistence.database.connection_string import (
    first_value,
    is_url,
    parse_connection_string,
    split_host_port,
)
from persistkit.persistence.database.context import EngineOptions
from persistkit.persistence.database.registrar import DbProviderRegistrar


class PostgreSQLProviderRegistrar(DbProviderRegistrar):
    """Accepts ``postgresql://`` URLs or ``Host=...;Database=...;Username=...`` strings."""

    @property
    def provider_name(self) -> str:
        return "PostgreSQL"

    def configure(self, options: EngineOptions, connection_string: str) -> None:
        if is_url(connection_string):
            url = sa.make_url(connection_string)
            if url.drivername == "postgresql":
                url = url.set(drivername="postgresql+psycopg")
            options.use(url)
            return

        parts = parse_connection_string(connection_string)
        host, port = split_host_port(first_value(parts, "host", "server", default="localhost"))
        port_value = first_value(parts, "port")
        url = URL.create(
            "postgresql+psycopg",
            username=first_value(parts, "username", "user id", "user", "uid"),
            password=first_value(parts, "password", "pwd"),
            host=host,
            port=int(port_value) if port_value else port,
            database=first_value(parts, "database", "initial catalog"),
        )
        timeout = first_value(parts, "timeout", "connect timeout")
        connect_args = {"connect_timeout": int(timeout)} if timeout and timeout.isdigit() else None
        options.use(url, connect_args=connect_args)
