"""Database layer."""

from blueprint_engine.db.models import Base, BlueprintModel, RetryJobModel
from blueprint_engine.db.session import SessionLocal, engine, get_session_context, init_db

__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "get_session_context",
    "init_db",
    # Models
    "BlueprintModel",
    "RetryJobModel",
]
