"""SQLAlchemy ORM models."""

from datetime import datetime
from typing import Any
from uuid import UUID as PyUUID
from uuid import uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests and local runs)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class BlueprintModel(Base):
    """User-submitted content-to-plan request ORM model."""

    __tablename__ = "habit_blueprints"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    goal: Mapped[str] = mapped_column(Text, nullable=False)
    content_source: Mapped[str] = mapped_column(Text, nullable=False)
    content_type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), server_default="pending", index=True)
    ai_output: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    source_payload: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    retry_jobs: Mapped[list["RetryJobModel"]] = relationship(
        "RetryJobModel", back_populates="blueprint", cascade="all, delete-orphan"
    )


class RetryJobModel(Base):
    """Pending blueprint generation attempt ORM model."""

    __tablename__ = "blueprint_retry_jobs"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    blueprint_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("habit_blueprints.id", ondelete="CASCADE"), index=True
    )
    request_data: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_retry_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    error_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    blueprint: Mapped["BlueprintModel"] = relationship(
        "BlueprintModel", back_populates="retry_jobs"
    )
