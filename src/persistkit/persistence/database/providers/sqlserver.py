"""SQL Server backend through pyodbc (``pip install persistkit[sqlserver]``)."""

from __future__ import annotations

from typing import Dict

import sqlalchemy as sa
from sqlalchemy.engine import URL

from persistkit.persistence.database.connection_string import is_truthy, is_url, parse_connection_string
from persistkit.persistence.database.context import EngineOptions
from persistkit.persistence.database.registrar import DbProviderRegistrar

DEFAULT_DRIVER = "ODBC Driver 18 for SQL Server"

# ADO.NET keyword -> ODBC keyword
_ODBC_KEYS = {
    "server": "SERVER",
    "data source": "SERVER",
    "address": "SERVER",
    "database": "DATABASE",
    "initial catalog": "DATABASE",
    "user id": "UID",
    "uid": "UID",
    "user": "UID",
    "password": "PWD",
    "pwd": "PWD",
    "encrypt": "Encrypt",
    "trustservercertificate": "TrustServerCertificate",
    "connection timeout": "Connection Timeout",
    "connect timeout": "Connection Timeout",
    "application name": "APP",
    "driver": "DRIVER",
}


class SqlServerProviderRegistrar(DbProviderRegistrar):
    @property
    def provider_name(self) -> str:
        return "SqlServer"

    def configure(self, options: EngineOptions, connection_string: str) -> None:
        if is_url(connection_string):
            options.use(sa.make_url(connection_string))
            return
        odbc = to_odbc_connection_string(connection_string)
        options.use(URL.create("mssql+pyodbc", query={"odbc_connect": odbc}), fast_executemany=True)


def to_odbc_connection_string(connection_string: str) -> str:
    """Rewrite an ADO.NET style SQL Server connection string for the ODBC driver."""

    parts = parse_connection_string(connection_string)
    odbc: Dict[str, str] = {"DRIVER": "{" + DEFAULT_DRIVER + "}"}
    for key, value in parts.items():
        if key in {"trusted_connection", "integrated security"}:
            if is_truthy(value):
                odbc["Trusted_Connection"] = "yes"
            continue
        target = _ODBC_KEYS.get(key)
        if target is None:
            continue
        if target == "DRIVER" and not value.startswith("{"):
            value = "{" + value + "}"
        if target in {"Encrypt", "TrustServerCertificate"}:
            value = "yes" if is_truthy(value) else "no"
        odbc[target] = value
    return ";".join(f"{key}={value}" for key, value in odbc.items())
