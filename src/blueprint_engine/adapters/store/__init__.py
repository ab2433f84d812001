"""Blueprint and retry job persistence adapters."""

from blueprint_engine.adapters.store.base import BlueprintNotFoundError, BlueprintRepository
from blueprint_engine.adapters.store.memory import InMemoryBlueprintRepository
from blueprint_engine.adapters.store.sql import SqlAlchemyBlueprintRepository

__all__ = [
    "BlueprintNotFoundError",
    "BlueprintRepository",
    "InMemoryBlueprintRepository",
    "SqlAlchemyBlueprintRepository",
]
