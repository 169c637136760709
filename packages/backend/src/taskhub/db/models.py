"""SQLAlchemy ORM models — single source of truth for the database schema.

Declarative mapping in SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table; Alembic migrations are generated from these.

Column types are kept portable (plain strings for ids and enums) so the
same models work against PostgreSQL in production and SQLite in tests.
User ids are not generated here: they are the identity provider's subject
ids, copied verbatim on first login.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    func,
    true,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


USER_ROLES = ("admin", "manager", "member", "viewer")
PROJECT_STATUSES = (
    "idea", "planning", "in_progress", "on_hold", "completed", "cancelled",
)
PROJECT_PRIORITIES = ("critical", "high", "medium", "low")
TASK_STATUSES = (
    "not_started", "in_progress", "blocked", "in_review", "completed", "cancelled",
)
TASK_PHASES = (
    "discovery", "planning", "development", "testing", "training",
    "rollout", "monitoring",
)


def one_of(table: str, column: str, values: tuple[str, ...]) -> CheckConstraint:
    """CHECK constraint restricting a string column to a fixed vocabulary."""
    allowed = ", ".join(f"'{v}'" for v in values)
    return CheckConstraint(f"{column} IN ({allowed})", name=f"ck_{table}_{column}")


class User(Base):
    """Application profile for an authenticated identity.

    The primary key is the identity provider's subject id, so there is
    at most one profile per identity. Rows are created on first login
    by the auth callback and never deleted by it.
    """

    __tablename__ = "users"
    __table_args__ = (
        one_of("users", "role", USER_ROLES),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="member", server_default="member"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=utcnow
    )


class Project(Base):
    """A body of work made of tasks."""

    __tablename__ = "projects"
    __table_args__ = (
        one_of("projects", "status", PROJECT_STATUSES),
        one_of("projects", "priority", PROJECT_PRIORITIES),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="idea", server_default="idea"
    )
    priority: Mapped[str] = mapped_column(
        String(20), nullable=False, default="medium", server_default="medium"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=utcnow
    )

    tasks: Mapped[list["Task"]] = relationship(back_populates="project")


class Task(Base):
    """A unit of work inside a project."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_project_id", "project_id"),
        one_of("tasks", "status", TASK_STATUSES),
        one_of("tasks", "phase", TASK_PHASES),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="not_started", server_default="not_started"
    )
    phase: Mapped[str] = mapped_column(
        String(20), nullable=False, default="discovery", server_default="discovery"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=utcnow
    )

    project: Mapped["Project"] = relationship(back_populates="tasks")
