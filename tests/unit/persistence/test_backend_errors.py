"""Unit tests for backend error classification and translation."""

from __future__ import annotations

import pytest
import sqlalchemy as sa

from persistkit.core.errors import FailureKind
from persistkit.persistence.database.errors import classify_backend_error, driver_family, translate_backend_error


def _driver_error(module: str, *args: object, **attributes: object) -> Exception:
    """Build an exception that looks like it was raised by the DBAPI driver in ``module``."""

    error_cls = type("DriverError", (Exception,), {"__module__": module})
    error = error_cls(*args)
    for name, value in attributes.items():
        setattr(error, name, value)
    return error


def _wrap(wrapper: type[sa.exc.DBAPIError], orig: Exception) -> sa.exc.DBAPIError:
    return wrapper("INSERT INTO Product", {}, orig)


@pytest.mark.parametrize(
    ("module", "family"),
    [
        ("pyodbc", "mssql"),
        ("pymysql.err", "mysql"),
        ("psycopg.errors", "postgresql"),
        ("psycopg2.errors", "postgresql"),
        ("sqlite3", "sqlite"),
        ("somedriver", ""),
    ],
)
def test_driver_family_from_module(module, family) -> None:
    assert driver_family(_driver_error(module)) == family


@pytest.mark.parametrize(
    ("orig", "wrapper", "kind"),
    [
        # SQL Server
        (_driver_error("pyodbc", "40001", "Transaction was deadlocked (1205) (SQLExecDirectW)"), sa.exc.OperationalError, FailureKind.DEADLOCK),
        (_driver_error("pyodbc", "HYT00", "Query timeout expired (0) (SQLExecDirectW)"), sa.exc.OperationalError, FailureKind.TIMEOUT),
        (_driver_error("pyodbc", "23000", "Violation of PRIMARY KEY constraint (2627) (SQLExecDirectW)"), sa.exc.IntegrityError, FailureKind.DUPLICATE_KEY),
        (_driver_error("pyodbc", "23000", "Cannot insert duplicate key row (2601) (SQLExecDirectW)"), sa.exc.IntegrityError, FailureKind.DUPLICATE_KEY),
        (_driver_error("pyodbc", "23000", "The DELETE statement conflicted with the REFERENCE constraint (547)"), sa.exc.IntegrityError, FailureKind.FOREIGN_KEY),
        (
            _driver_error(
                "pyodbc",
                "23000",
                "[23000] [SQL Server]Violation of PRIMARY KEY constraint 'PK_Product'. "
                "The duplicate key value is (1205). (2627) (SQLExecDirectW); "
                "[01000] [SQL Server]The statement has been terminated. (3621)",
            ),
            sa.exc.IntegrityError,
            FailureKind.DUPLICATE_KEY,
        ),
        (_driver_error("pyodbc", "23000", "The duplicate key value is (-2). (2601) (SQLExecDirectW)"), sa.exc.IntegrityError, FailureKind.DUPLICATE_KEY),
        (_driver_error("pyodbc", "23000", "Constraint failed for key value (1205)"), sa.exc.IntegrityError, FailureKind.INTEGRITY),
        # MySQL
        (_driver_error("pymysql.err", 1213, "Deadlock found when trying to get lock"), sa.exc.OperationalError, FailureKind.DEADLOCK),
        (_driver_error("pymysql.err", 1205, "Lock wait timeout exceeded"), sa.exc.OperationalError, FailureKind.TIMEOUT),
        (_driver_error("pymysql.err", 1062, "Duplicate entry '1' for key 'PRIMARY'"), sa.exc.IntegrityError, FailureKind.DUPLICATE_KEY),
        (_driver_error("pymysql.err", 1451, "Cannot delete or update a parent row"), sa.exc.IntegrityError, FailureKind.FOREIGN_KEY),
        (_driver_error("pymysql.err", 2003, "Can't connect to MySQL server"), sa.exc.OperationalError, FailureKind.CONNECTION),
        # PostgreSQL
        (_driver_error("psycopg.errors", "deadlock detected", sqlstate="40P01"), sa.exc.OperationalError, FailureKind.DEADLOCK),
        (_driver_error("psycopg.errors", "could not serialize access", sqlstate="40001"), sa.exc.OperationalError, FailureKind.DEADLOCK),
        (_driver_error("psycopg.errors", "canceling statement due to statement timeout", sqlstate="57014"), sa.exc.OperationalError, FailureKind.TIMEOUT),
        (_driver_error("psycopg2.errors", "duplicate key value", pgcode="23505"), sa.exc.IntegrityError, FailureKind.DUPLICATE_KEY),
        (_driver_error("psycopg.errors", "violates foreign key constraint", sqlstate="23503"), sa.exc.IntegrityError, FailureKind.FOREIGN_KEY),
        (_driver_error("psycopg.errors", "null value in column", sqlstate="23502"), sa.exc.IntegrityError, FailureKind.INTEGRITY),
        # SQLite
        (_driver_error("sqlite3", "database is locked", sqlite_errorcode=5), sa.exc.OperationalError, FailureKind.DEADLOCK),
        (_driver_error("sqlite3", "UNIQUE constraint failed: Product.id", sqlite_errorcode=1555), sa.exc.IntegrityError, FailureKind.DUPLICATE_KEY),
        (_driver_error("sqlite3", "FOREIGN KEY constraint failed", sqlite_errorcode=787), sa.exc.IntegrityError, FailureKind.FOREIGN_KEY),
        (_driver_error("sqlite3", "NOT NULL constraint failed: Product.name", sqlite_errorcode=1299), sa.exc.IntegrityError, FailureKind.INTEGRITY),
        (_driver_error("sqlite3", "unable to open database file", sqlite_errorcode=14), sa.exc.OperationalError, FailureKind.CONNECTION),
    ],
)
def test_native_codes_map_to_failure_kinds(orig, wrapper, kind) -> None:
    assert classify_backend_error(_wrap(wrapper, orig)) is kind


def test_pool_timeout_is_timeout() -> None:
    assert classify_backend_error(sa.exc.TimeoutError("QueuePool limit reached")) is FailureKind.TIMEOUT


def test_unknown_sqlalchemy_error_is_unexpected() -> None:
    assert classify_backend_error(sa.exc.InvalidRequestError("bad request")) is FailureKind.UNEXPECTED


@pytest.mark.parametrize(
    ("kind_error", "expected_kind", "expected_text", "retryable"),
    [
        (
            _wrap(sa.exc.OperationalError, _driver_error("pymysql.err", 1213, "Deadlock found")),
            FailureKind.DEADLOCK,
            "Database deadlock detected. Please retry the operation.",
            True,
        ),
        (
            _wrap(sa.exc.IntegrityError, _driver_error("pymysql.err", 1062, "Duplicate entry")),
            FailureKind.DUPLICATE_KEY,
            "Cannot insert duplicate data. A unique constraint was violated.",
            False,
        ),
        (
            _wrap(sa.exc.OperationalError, _driver_error("pymysql.err", 2003, "Can't connect to MySQL server")),
            FailureKind.CONNECTION,
            "Database connection failed: Can't connect to MySQL server.",
            True,
        ),
        (
            _wrap(sa.exc.IntegrityError, _driver_error("psycopg.errors", "check violation", sqlstate="23514")),
            FailureKind.INTEGRITY,
            "Database update failed: check violation.",
            False,
        ),
    ],
)
def test_translate_builds_actionable_messages(kind_error, expected_kind, expected_text, retryable) -> None:
    error = translate_backend_error(kind_error, operation="save")

    assert error.kind is expected_kind
    assert str(error).startswith(expected_text)
    assert error.retryable is retryable
    assert error.operation == "save"


def test_translate_unexpected_mentions_operation() -> None:
    error = translate_backend_error(sa.exc.InvalidRequestError("boom"), operation="load")
    assert str(error).startswith("An unexpected error occurred while loading data: boom")
    assert error.kind is FailureKind.UNEXPECTED
