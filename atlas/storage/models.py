"""SQLAlchemy ORM models for Atlas.

Ids and timestamps are assigned by the repository layer, never by the
database or the caller.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, TypeDecorator
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend.

    SQLite drops tzinfo on the way in; values read back are re-tagged as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)


class User(TimestampMixin, Base):
    __tablename__ = "user"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    projects: Mapped[list["Project"]] = relationship(back_populates="owner")


class Session(TimestampMixin, Base):
    __tablename__ = "session"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("user.id"), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)


class Project(TimestampMixin, Base):
    __tablename__ = "project"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    llm_context: Mapped[str] = mapped_column(Text, nullable=False, default="")
    owner_id: Mapped[str] = mapped_column(ForeignKey("user.id"), nullable=False)

    owner: Mapped["User"] = relationship(back_populates="projects")
    tasks: Mapped[list["Task"]] = relationship(back_populates="project")

    __table_args__ = (
        Index("idx_project_owner", "owner_id"),
        Index("idx_project_updated", "updated_at"),
    )


class Task(TimestampMixin, Base):
    __tablename__ = "task"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="todo")
    deadline: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    llm_context: Mapped[str] = mapped_column(Text, nullable=False, default="")
    project_id: Mapped[str] = mapped_column(ForeignKey("project.id"), nullable=False)

    project: Mapped["Project"] = relationship(back_populates="tasks")

    __table_args__ = (
        Index("idx_task_project", "project_id"),
        Index("idx_task_deadline", "deadline"),
    )


class TaskDependency(TimestampMixin, Base):
    """Each row means ``task_id`` depends on ``depends_on_task_id``."""

    __tablename__ = "task_dependency"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    task_id: Mapped[str] = mapped_column(ForeignKey("task.id"), nullable=False)
    depends_on_task_id: Mapped[str] = mapped_column(ForeignKey("task.id"), nullable=False)

    __table_args__ = (
        Index("idx_task_dependency_task", "task_id"),
    )


class ProjectAssignee(TimestampMixin, Base):
    __tablename__ = "project_assignee"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    project_id: Mapped[str] = mapped_column(ForeignKey("project.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(ForeignKey("user.id"), nullable=False)

    __table_args__ = (
        Index("idx_project_assignee_project", "project_id"),
    )


class TaskAssignee(TimestampMixin, Base):
    __tablename__ = "task_assignee"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    task_id: Mapped[str] = mapped_column(ForeignKey("task.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(ForeignKey("user.id"), nullable=False)

    __table_args__ = (
        Index("idx_task_assignee_task", "task_id"),
        Index("idx_task_assignee_user", "user_id"),
    )


class TaskActivity(TimestampMixin, Base):
    """Comments, status changes and other interactions on a task."""

    __tablename__ = "task_activity"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    task_id: Mapped[str] = mapped_column(ForeignKey("task.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(ForeignKey("user.id"), nullable=False)
    action: Mapped[str] = mapped_column(Text, nullable=False)
    llm_context: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (
        Index("idx_task_activity_task", "task_id"),
    )


ENTITY_MODELS: dict[str, type[Base]] = {
    "user": User,
    "session": Session,
    "project": Project,
    "task": Task,
    "taskDependency": TaskDependency,
    "projectAssignee": ProjectAssignee,
    "taskAssignee": TaskAssignee,
    "taskActivity": TaskActivity,
}


def utcnow(after: Optional[datetime] = None) -> datetime:
    """Current UTC time, strictly later than ``after`` when given."""
    now = datetime.now(timezone.utc)
    if after is not None and now <= after:
        now = after + timedelta(microseconds=1)
    return now
