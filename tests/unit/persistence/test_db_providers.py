"""Unit tests for the built-in database provider registrars."""

from __future__ import annotations

import pytest
from sqlalchemy.pool import StaticPool

from persistkit.persistence.database.connection_string import (
    first_value,
    is_url,
    parse_connection_string,
    split_host_port,
)
from persistkit.persistence.database.context import EngineOptions
from persistkit.persistence.database.providers.mysql import MySqlProviderRegistrar
from persistkit.persistence.database.providers.postgresql import PostgreSQLProviderRegistrar
from persistkit.persistence.database.providers.sqlite import SqliteProviderRegistrar
from persistkit.persistence.database.providers.sqlserver import (
    SqlServerProviderRegistrar,
    to_odbc_connection_string,
)


def _configure(registrar, connection_string: str) -> EngineOptions:
    options = EngineOptions()
    registrar.configure(options, connection_string)
    return options


def test_parse_connection_string_lowercases_keys_and_strips_quotes() -> None:
    parts = parse_connection_string(" Server = db01 ; Password='a;b=c'; Database=Catalog;")

    assert parts == {"server": "db01", "password": "a;b=c", "database": "Catalog"}


def test_parse_connection_string_rejects_segment_without_equals() -> None:
    with pytest.raises(ValueError, match="Malformed connection string segment"):
        parse_connection_string("Server=db01;oops")


def test_connection_string_helpers() -> None:
    assert is_url("postgresql://user@host/db")
    assert is_url("sqlite:///catalog.db")
    assert not is_url("Data Source=catalog.db")
    assert first_value({"uid": "app"}, "user id", "uid") == "app"
    assert first_value({}, "user id", default="sa") == "sa"
    assert split_host_port("db01,1433") == ("db01", 1433)
    assert split_host_port("db01:5432") == ("db01", 5432)
    assert split_host_port("db01", 3306) == ("db01", 3306)


def test_sqlite_data_source_creates_parent_directory(tmp_path) -> None:
    database = tmp_path / "nested" / "catalog.db"

    options = _configure(SqliteProviderRegistrar(), f"Data Source={database}")

    assert options.backend_name == "sqlite"
    assert options.url.database == database.as_posix()
    assert options.connect_args == {"check_same_thread": False}
    assert database.parent.is_dir()


def test_sqlite_memory_database_shares_one_connection() -> None:
    options = _configure(SqliteProviderRegistrar(), "Data Source=:memory:")

    assert options.url.database is None
    assert options.engine_kwargs["poolclass"] is StaticPool


def test_sqlite_accepts_url_and_bare_path(tmp_path) -> None:
    from_url = _configure(SqliteProviderRegistrar(), f"sqlite:///{tmp_path / 'a.db'}")
    from_path = _configure(SqliteProviderRegistrar(), str(tmp_path / "b.db"))

    assert from_url.url.database == str(tmp_path / "a.db")
    assert from_path.url.database == str(tmp_path / "b.db")


def test_sqlite_requires_data_source() -> None:
    with pytest.raises(ValueError, match="Data Source"):
        _configure(SqliteProviderRegistrar(), "Mode=ReadWrite")


def test_sqlserver_translates_ado_connection_string() -> None:
    options = _configure(
        SqlServerProviderRegistrar(),
        "Server=tcp:db01,1433;Initial Catalog=Catalog;User Id=app;Password=s3cret;"
        "Encrypt=True;TrustServerCertificate=False",
    )

    assert options.url.drivername == "mssql+pyodbc"
    assert options.engine_kwargs["fast_executemany"] is True
    odbc = options.url.query["odbc_connect"]
    assert odbc.startswith("DRIVER={ODBC Driver 18 for SQL Server};")
    assert "SERVER=tcp:db01,1433" in odbc
    assert "DATABASE=Catalog" in odbc
    assert "UID=app" in odbc
    assert "Encrypt=yes" in odbc
    assert "TrustServerCertificate=no" in odbc


def test_sqlserver_integrated_security_and_custom_driver() -> None:
    odbc = to_odbc_connection_string(
        "Data Source=.\\SQLEXPRESS;Database=Catalog;Integrated Security=SSPI;Driver=ODBC Driver 17 for SQL Server"
    )

    assert "Trusted_Connection=yes" in odbc
    assert "DRIVER={ODBC Driver 17 for SQL Server}" in odbc
    assert "SERVER=.\\SQLEXPRESS" in odbc


def test_postgresql_builds_psycopg_url() -> None:
    options = _configure(
        PostgreSQLProviderRegistrar(),
        "Host=db.example.com;Port=5433;Database=catalog;Username=app;Password=s3cret;Timeout=15",
    )

    url = options.url
    assert url.drivername == "postgresql+psycopg"
    assert (url.host, url.port, url.database, url.username) == ("db.example.com", 5433, "catalog", "app")
    assert options.connect_args == {"connect_timeout": 15}


def test_postgresql_plain_url_gets_psycopg_driver() -> None:
    options = _configure(PostgreSQLProviderRegistrar(), "postgresql://app@localhost/catalog")

    assert options.url.drivername == "postgresql+psycopg"


def test_mysql_builds_pymysql_url_with_recycle() -> None:
    options = _configure(MySqlProviderRegistrar(), "Server=db:3307;Database=shop;User=app;Password=pw")

    url = options.url
    assert url.drivername == "mysql+pymysql"
    assert (url.host, url.port, url.database) == ("db", 3307, "shop")
    assert url.query["charset"] == "utf8mb4"
    assert options.engine_kwargs["pool_recycle"] == 3600
    assert options.backend_name == "mysql"


def test_provider_names() -> None:
    names = [
        registrar.provider_name
        for registrar in (
            SqliteProviderRegistrar(),
            SqlServerProviderRegistrar(),
            PostgreSQLProviderRegistrar(),
            MySqlProviderRegistrar(),
        )
    ]

    assert names == ["Sqlite", "SqlServer", "PostgreSQL", "MySql"]
