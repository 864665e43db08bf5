"""Translate SQLAlchemy and DBAPI failures into :class:`DataStoreError`.

Each driver reports failures differently: pyodbc carries a SQLSTATE plus the
SQL Server error number inside the message, PyMySQL an integer error code,
psycopg a SQLSTATE and sqlite3 an extended result code. The driver family is
inferred from the module of the wrapped DBAPI exception so the mapping works
without importing any optional driver.
"""

from __future__ import annotations

import re
from typing import Iterable, Set

import sqlalchemy as sa

from persistkit.core.errors import DataStoreError, FailureKind

_DEADLOCK_CODES = {"mssql": {1205}, "mysql": {1213}}
_TIMEOUT_CODES = {"mssql": {-2}, "mysql": {1205}}
_UNIQUE_CODES = {"mssql": {2601, 2627}, "mysql": {1062}, "sqlite": {2067, 1555}}
_FOREIGN_KEY_CODES = {"mssql": {547}, "mysql": {1451, 1452}, "sqlite": {787}}

_DEADLOCK_STATES = {"40P01", "40001"}
_TIMEOUT_STATES = {"57014", "HYT00", "HYT01"}
_UNIQUE_STATES = {"23505"}
_FOREIGN_KEY_STATES = {"23503"}

_SQLITE_BUSY = 5
_SQLITE_LOCKED = 6

_DRIVER_FAMILIES = {
    "pyodbc": "mssql",
    "pymssql": "mssql",
    "pymysql": "mysql",
    "MySQLdb": "mysql",
    "mysql": "mysql",
    "psycopg": "postgresql",
    "psycopg2": "postgresql",
    "asyncpg": "postgresql",
    "sqlite3": "sqlite",
}

_NATIVE_NUMBER = re.compile(r"\((-?\d+)\)")
# pyodbc ends each diagnostic record with "(native error) (SQLFunctionW)".
_ODBC_RECORD_END = re.compile(r"\((-?\d+)\)\s*\(SQL\w+\)")

_MESSAGES = {
    FailureKind.TIMEOUT: "Database operation timed out. The server might be busy or unreachable. Please retry the operation.",
    FailureKind.DEADLOCK: "Database deadlock detected. Please retry the operation.",
    FailureKind.DUPLICATE_KEY: "Cannot insert duplicate data. A unique constraint was violated.",
    FailureKind.FOREIGN_KEY: "Cannot complete operation due to foreign key constraint violation.",
}


def driver_family(orig: BaseException | None) -> str:
    """Return ``mssql``, ``mysql``, ``postgresql``, ``sqlite`` or an empty string."""

    if orig is None:
        return ""
    root = type(orig).__module__.split(".")[0]
    return _DRIVER_FAMILIES.get(root, "")


def _native_codes(family: str, orig: BaseException) -> Set[int]:
    codes: Set[int] = set()
    if family == "mysql":
        if orig.args and isinstance(orig.args[0], int):
            codes.add(orig.args[0])
    elif family == "mssql":
        for arg in orig.args:
            if isinstance(arg, int):
                codes.add(arg)
            elif isinstance(arg, str):
                codes.update(_odbc_native_numbers(arg))
        number = getattr(orig, "number", None)
        if isinstance(number, int):
            codes.add(number)
    elif family == "sqlite":
        code = getattr(orig, "sqlite_errorcode", None)
        if isinstance(code, int):
            codes.add(code)
    return codes


def _odbc_native_numbers(message: str) -> Set[int]:
    # Only the number closing a record is the error code; key values quoted in
    # the message text, such as "The duplicate key value is (1205).", are not.
    record_codes = _ODBC_RECORD_END.findall(message)
    if record_codes:
        return {int(code) for code in record_codes}
    numbers = _NATIVE_NUMBER.findall(message)
    return {int(numbers[-1])} if numbers else set()


def _sqlstate(family: str, orig: BaseException) -> str:
    for attribute in ("sqlstate", "pgcode"):
        value = getattr(orig, attribute, None)
        if isinstance(value, str) and value:
            return value.upper()
    if family == "mssql" and orig.args and isinstance(orig.args[0], str) and len(orig.args[0]) == 5:
        return orig.args[0].upper()
    return ""


def _matches(codes: Iterable[int], family: str, table: dict[str, set[int]]) -> bool:
    return bool(set(codes) & table.get(family, set()))


def classify_backend_error(exc: BaseException) -> FailureKind:
    """Return the failure kind for a SQLAlchemy exception (or a raw DBAPI one)."""

    if isinstance(exc, sa.exc.TimeoutError):
        return FailureKind.TIMEOUT

    orig = exc.orig if isinstance(exc, sa.exc.DBAPIError) else exc
    family = driver_family(orig)
    codes = _native_codes(family, orig) if orig is not None else set()
    state = _sqlstate(family, orig) if orig is not None else ""
    message = str(orig or exc).lower()

    if family == "sqlite":
        primary = {code & 0xFF for code in codes}
        if primary & {_SQLITE_BUSY, _SQLITE_LOCKED} or "database is locked" in message or "table is locked" in message:
            return FailureKind.DEADLOCK
        if _matches(codes, family, _UNIQUE_CODES) or "unique constraint failed" in message:
            return FailureKind.DUPLICATE_KEY
        if _matches(codes, family, _FOREIGN_KEY_CODES) or "foreign key constraint failed" in message:
            return FailureKind.FOREIGN_KEY

    # SQLSTATE class 23 is an integrity violation, never a transient failure.
    if not state.startswith("23"):
        # MySQL 1205 is a lock wait timeout, not a deadlock, so the timeout check runs first.
        if _matches(codes, family, _TIMEOUT_CODES) or state in _TIMEOUT_STATES:
            return FailureKind.TIMEOUT
        if _matches(codes, family, _DEADLOCK_CODES) or state in _DEADLOCK_STATES:
            return FailureKind.DEADLOCK
    if _matches(codes, family, _UNIQUE_CODES) or state in _UNIQUE_STATES:
        return FailureKind.DUPLICATE_KEY
    if _matches(codes, family, _FOREIGN_KEY_CODES) or state in _FOREIGN_KEY_STATES:
        return FailureKind.FOREIGN_KEY

    if isinstance(exc, sa.exc.IntegrityError):
        return FailureKind.INTEGRITY
    if isinstance(exc, (sa.exc.OperationalError, sa.exc.InterfaceError, sa.exc.DisconnectionError)):
        return FailureKind.CONNECTION
    if isinstance(exc, sa.exc.DBAPIError) and exc.connection_invalidated:
        return FailureKind.CONNECTION
    return FailureKind.UNEXPECTED


def translate_backend_error(exc: BaseException, *, operation: str) -> DataStoreError:
    """Build the user-facing :class:`DataStoreError` for ``exc``.

    The caller raises the result ``from exc`` so the backend exception stays
    reachable through ``__cause__``.
    """

    kind = classify_backend_error(exc)
    detail = _detail(exc)
    if kind in _MESSAGES:
        message = _MESSAGES[kind]
    elif kind is FailureKind.CONNECTION:
        message = (
            f"Database connection failed: {detail}. "
            "Please check your connection string and ensure the database server is running."
        )
    elif kind is FailureKind.INTEGRITY:
        message = (
            f"Database update failed: {detail}. "
            "This may be due to constraint violations or data integrity issues."
        )
    else:
        verb = "loading" if operation == "load" else "saving"
        message = f"An unexpected error occurred while {verb} data: {detail}"
    return DataStoreError(message, kind=kind, operation=operation)


def _detail(exc: BaseException) -> str:
    orig = getattr(exc, "orig", None)
    source = orig if orig is not None else exc
    args = getattr(source, "args", ())
    # pyodbc and PyMySQL put the readable message after the error code.
    text = args[-1] if len(args) > 1 and isinstance(args[-1], str) else str(source)
    text = text.strip()
    return text.splitlines()[0] if text else type(source).__name__


__all__ = ["classify_backend_error", "driver_family", "translate_backend_error"]
