"""Storage backends and the machinery that selects between them."""

from persistkit.persistence.base import DataStore, LocatableDataStore

__all__ = ["DataStore", "LocatableDataStore"]
