"""Task authorization and visibility.

A task is visible to its creator and to every assignee. Creator and assignees
may update it; only the creator may delete it. Every method receives the
caller, already resolved from the session cookie, and commits before
returning.
"""

import logging
from datetime import datetime, UTC
from typing import Iterable, List

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from app.errors import ForbiddenError, NotFoundError, UnknownReferenceError
from app.models.task import Task, TaskAssignment, TaskStatus
from app.models.user import User
from app.schemas.task import TaskCreate, TaskOut, TaskUpdate
from app.schemas.user import UserOut

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def task_to_out(task: Task) -> TaskOut:
    """Project a task row into its API shape, assignment rows flattened to user summaries."""
    return TaskOut(
        id=task.id,
        title=task.title,
        description=task.description,
        status=task.status,
        creator_id=task.creator_id,
        created_by=UserOut.model_validate(task.creator),
        assignees=[UserOut.model_validate(a.user) for a in task.assignments],
        created_at=_as_utc(task.created_at),
        updated_at=_as_utc(task.updated_at),
    )


def _distinct(ids: Iterable[str]) -> List[str]:
    # keeps first-seen order
    return list(dict.fromkeys(ids))


class TaskService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Task).options(
            joinedload(Task.creator),
            selectinload(Task.assignments).joinedload(TaskAssignment.user),
        )

    def _get(self, task_id: str) -> Task:
        task = self._query().filter(Task.id == task_id).first()
        if task is None:
            raise NotFoundError("Task not found")
        return task

    @staticmethod
    def is_assignee(task: Task, user: User) -> bool:
        return any(a.user_id == user.id for a in task.assignments)

    @classmethod
    def can_view(cls, task: Task, user: User) -> bool:
        return task.creator_id == user.id or cls.is_assignee(task, user)

    # Updating follows the same rule as viewing.
    can_update = can_view

    @staticmethod
    def can_delete(task: Task, user: User) -> bool:
        return task.creator_id == user.id

    def _check_users_exist(self, user_ids: List[str]) -> None:
        if not user_ids:
            return
        found = {
            row.id for row in self.db.query(User.id).filter(User.id.in_(user_ids)).all()
        }
        missing = [uid for uid in user_ids if uid not in found]
        if missing:
            raise UnknownReferenceError(
                "Unknown assignee id(s): " + ", ".join(missing), missing_ids=missing
            )

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            # an assignee deleted between the existence check and the insert
            self.db.rollback()
            raise UnknownReferenceError("Unknown assignee id(s)")
        except Exception:
            self.db.rollback()
            raise

    def list_visible(self, user: User) -> List[TaskOut]:
        assigned = Task.assignments.any(TaskAssignment.user_id == user.id)
        tasks = (
            self._query()
            .filter(or_(Task.creator_id == user.id, assigned))
            .order_by(Task.created_at)
            .all()
        )
        return [task_to_out(t) for t in tasks]

    def create(self, user: User, data: TaskCreate) -> TaskOut:
        assignee_ids = _distinct(data.assignee_ids)
        self._check_users_exist(assignee_ids)

        task = Task(
            title=data.title,
            description=data.description,
            status=TaskStatus.TODO,
            creator_id=user.id,
        )
        task.assignments = [TaskAssignment(user_id=uid) for uid in assignee_ids]
        self.db.add(task)
        self._commit()
        logger.info("User %s created task %s (%d assignees)", user.id, task.id, len(assignee_ids))
        return task_to_out(self._get(task.id))

    def update(self, user: User, task_id: str, patch: TaskUpdate) -> TaskOut:
        task = self._get(task_id)
        if not self.can_update(task, user):
            logger.warning("User %s may not update task %s", user.id, task_id)
            raise ForbiddenError("Not authorized")

        assignee_ids = None
        if patch.replaces_assignees:
            assignee_ids = _distinct(patch.assignee_ids)
            self._check_users_exist(assignee_ids)

        if patch.has("title"):
            task.title = patch.title
        if patch.has("description"):
            task.description = patch.description
        if patch.has("status"):
            task.status = patch.status

        if assignee_ids is not None:
            # delete-all flushed before insert-all; both commit with the field changes
            task.assignments.clear()
            self.db.flush()
            task.assignments.extend(TaskAssignment(user_id=uid) for uid in assignee_ids)
            # the task row itself may be untouched, so onupdate would not fire
            task.updated_at = datetime.now(UTC)

        self._commit()
        logger.info("User %s updated task %s (fields: %s)", user.id, task_id, sorted(patch.model_fields_set))
        return task_to_out(self._get(task_id))

    def delete(self, user: User, task_id: str) -> None:
        task = self._get(task_id)
        if not self.can_delete(task, user):
            logger.warning("User %s may not delete task %s", user.id, task_id)
            raise ForbiddenError("Not authorized")
        self.db.delete(task)
        self._commit()
        logger.info("User %s deleted task %s", user.id, task_id)

    def list_assignable_users(self) -> List[UserOut]:
        users = self.db.query(User).order_by(User.name).all()
        return [UserOut.model_validate(u) for u in users]
