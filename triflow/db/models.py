"""SQLModel database models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, UniqueConstraint
from sqlmodel import Column, Field, SQLModel


class WorkflowModel(SQLModel, table=True):
    """Workflow database model."""

    __tablename__ = "workflows"

    id: str = Field(primary_key=True)
    name: str = Field(index=True)
    description: str | None = Field(default=None)

    # Nodes with their input edges, plus settings
    definition: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class ExecutionModel(SQLModel, table=True):
    """Immutable record of a finished run. Never holds credentials."""

    __tablename__ = "executions"

    id: str = Field(primary_key=True)
    workflow_id: str = Field(index=True)
    thread_id: str = Field(index=True)
    user_id: str | None = Field(default=None, index=True)

    status: str = Field(index=True)  # succeeded, failed, partially-failed

    # Per-node results in completion order
    node_results: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    error: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))

    started_at: datetime = Field(default_factory=datetime.now, index=True)
    completed_at: datetime | None = Field(default=None)


class UserCredentialModel(SQLModel, table=True):
    """User-scoped provider credential."""

    __tablename__ = "user_credentials"
    __table_args__ = (UniqueConstraint("user_id", "provider"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    provider: str = Field(index=True)
    secret: str

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class ThreadMessageModel(SQLModel, table=True):
    """One conversation turn in a thread."""

    __tablename__ = "thread_messages"

    id: int | None = Field(default=None, primary_key=True)
    thread_id: str = Field(index=True)
    role: str  # system, user, assistant
    content: str
    created_at: datetime = Field(default_factory=datetime.now)
