import enum
import uuid
from datetime import datetime, UTC
from sqlalchemy import Column, String, ForeignKey, Text, DateTime, Enum
from sqlalchemy.orm import relationship
from app.database import Base


def _utcnow():
    return datetime.now(UTC)


class TaskStatus(str, enum.Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(TaskStatus, name="task_status"), nullable=False, default=TaskStatus.TODO)
    creator_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    creator = relationship("User", back_populates="created_tasks")
    assignments = relationship(
        "TaskAssignment",
        back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TaskAssignment.assigned_at",
    )


class TaskAssignment(Base):
    """Join row linking a task to one assignee; the composite key forbids duplicates."""

    __tablename__ = "task_assignments"

    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)
    assigned_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    task = relationship("Task", back_populates="assignments")
    user = relationship("User", back_populates="assignments")
