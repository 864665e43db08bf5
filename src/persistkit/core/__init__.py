"""Storage-agnostic domain primitives: entities, results, errors, repositories."""

from persistkit.core.entity import Entity, EntityT
from persistkit.core.errors import DataStoreError, FailureKind, PersistKitError, StorageConfigurationError
from persistkit.core.repository import Repository
from persistkit.core.result import OperationResult
from persistkit.core.unit_of_work import UnitOfWork

__all__ = [
    "DataStoreError",
    "Entity",
    "EntityT",
    "FailureKind",
    "OperationResult",
    "PersistKitError",
    "Repository",
    "StorageConfigurationError",
    "UnitOfWork",
]
