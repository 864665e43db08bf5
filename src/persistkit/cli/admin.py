"""Administrative commands for inspecting and migrating catalog storage.

Usage::

    persistkit-admin providers
    persistkit-admin describe
    persistkit-admin list
    persistkit-admin copy --kind Database --provider Sqlite --connection-string "Data Source=Data/catalog.db"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Sequence

from persistkit.catalog import Product, build_unit_of_work
from persistkit.core.entity import entity_to_mapping
from persistkit.core.errors import DataStoreError, StorageConfigurationError
from persistkit.observability import configure_logging
from persistkit.persistence.database.registrar import StorageBindings
from persistkit.services.factories import (
    build_data_store,
    describe_data_source,
    discover_database_providers,
    discover_file_providers,
)
from persistkit.settings import Settings, StorageSettings, get_settings

EXIT_OK = 0
EXIT_STORAGE_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments.

    Args:
        argv: Optional list of CLI arguments. When ``None``, defaults to ``sys.argv``.
    """

    parser = argparse.ArgumentParser(prog="persistkit-admin", description="Inspect and migrate catalog storage")
    parser.add_argument("--log-level", default=None, help="Override runtime.log_level for this invocation")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("providers", help="List discovered file and database providers")
    subparsers.add_parser("describe", help="Print the active data source")
    subparsers.add_parser("list", help="Print every product in the active store as JSON")

    copy = subparsers.add_parser("copy", help="Copy the product snapshot into another storage target")
    copy.add_argument("--kind", required=True, help="Target storage kind (File or Database)")
    copy.add_argument("--provider", required=True, help="Target provider name, for example Csv or Sqlite")
    copy.add_argument("--path", default=None, help="Target file path (File kind)")
    copy.add_argument("--connection-string", default=None, help="Target connection string (Database kind)")
    copy.add_argument(
        "--connection-string-name",
        default=None,
        help="Name of a connection string in the [connection_strings] section",
    )
    return parser.parse_args(argv)


def _print_providers(settings: Settings) -> int:
    print("File providers:", ", ".join(discover_file_providers(settings).names()) or "none")
    print("Database providers:", ", ".join(discover_database_providers(settings).names()) or "none")
    return EXIT_OK


def _describe(settings: Settings) -> int:
    store = build_data_store(Product, settings=settings)
    print(describe_data_source(store, storage=settings.storage))
    return EXIT_OK


async def _list_products(settings: Settings) -> int:
    async with build_unit_of_work(settings) as unit_of_work:
        products = await unit_of_work.products.get_all()
    payload = [entity_to_mapping(product, mode="json") for product in products]
    print(json.dumps(payload, indent=2))
    return EXIT_OK


def _target_storage(args: argparse.Namespace) -> StorageSettings:
    file_path = None
    if args.path:
        file_path = Path(args.path).expanduser()
        if not file_path.is_absolute():
            file_path = (Path.cwd() / file_path).resolve()
    return StorageSettings(
        kind=args.kind,
        provider=args.provider,
        file_path=file_path,
        connection_string=args.connection_string,
        connection_string_name=args.connection_string_name,
    )


async def _copy(args: argparse.Namespace, settings: Settings) -> int:
    target_storage = _target_storage(args)
    target = build_data_store(Product, settings=settings, storage=target_storage, bindings=StorageBindings())

    async with build_unit_of_work(settings) as unit_of_work:
        products = await unit_of_work.products.get_all()
    written = await target.save(products)
    print(f"Copied {written} products to {describe_data_source(target, storage=target_storage)}")
    return EXIT_OK


def run(args: argparse.Namespace, settings: Settings) -> int:
    if args.command == "providers":
        return _print_providers(settings)
    if args.command == "describe":
        return _describe(settings)
    if args.command == "list":
        return asyncio.run(_list_products(settings))
    if args.command == "copy":
        return asyncio.run(_copy(args, settings))
    raise ValueError(f"Unknown command {args.command!r}")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for ``persistkit-admin``; returns the process exit code."""

    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings, level=args.log_level)
    try:
        return run(args, settings)
    except StorageConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR
    except DataStoreError as exc:
        hint = " The operation can be retried." if exc.retryable else ""
        print(f"Storage error: {exc}{hint}", file=sys.stderr)
        return EXIT_STORAGE_ERROR


if __name__ == "__main__":  # pragma: no cover - manual invocation
    sys.exit(main())
