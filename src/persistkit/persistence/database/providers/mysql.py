"""MySQL and MariaDB backend through PyMySQL (``pip install persistkit[mysql]``)."""

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

POOL_RECYCLE_SECONDS = 3600


class MySqlProviderRegistrar(DbProviderRegistrar):
    """Accepts ``mysql://`` URLs or ``Server=...;Database=...;User=...`` strings.

    Connections are recycled hourly so the server's ``wait_timeout`` never
    closes a pooled connection underneath the engine.
    """

    @property
    def provider_name(self) -> str:
        return "MySql"

    def configure(self, options: EngineOptions, connection_string: str) -> None:
        if is_url(connection_string):
            url = sa.make_url(connection_string)
            if url.drivername == "mysql":
                url = url.set(drivername="mysql+pymysql")
            options.use(url, pool_recycle=POOL_RECYCLE_SECONDS)
            return

        parts = parse_connection_string(connection_string)
        host, port = split_host_port(first_value(parts, "server", "host", "data source", default="localhost"))
        port_value = first_value(parts, "port")
        url = URL.create(
            "mysql+pymysql",
            username=first_value(parts, "user", "user id", "uid", "username"),
            password=first_value(parts, "password", "pwd"),
            host=host,
            port=int(port_value) if port_value else port,
            database=first_value(parts, "database", "initial catalog"),
            query={"charset": first_value(parts, "charset", "character set", default="utf8mb4")},
        )
        options.use(url, pool_recycle=POOL_RECYCLE_SECONDS)
