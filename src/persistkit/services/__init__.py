"""Service-layer helpers that wire configuration to concrete stores."""

from persistkit.services.factories import build_data_store, describe_data_source

__all__ = ["build_data_store", "describe_data_source"]
