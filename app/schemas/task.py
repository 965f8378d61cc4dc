from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from app.models.task import TaskStatus
from app.schemas.user import UserOut


class _CamelModel(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_title(v):
    # blank titles are rejected; non-blank ones are stored as given
    if v is None:
        raise ValueError("title cannot be null")
    if not v.strip():
        raise ValueError("title cannot be empty")
    return v


class TaskCreate(_CamelModel):
    title: str
    description: Optional[str] = None
    assignee_ids: List[str] = []

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v):
        return _check_title(v)


class TaskUpdate(_CamelModel):
    """Partial update.

    Presence is tracked by ``model_fields_set``: a field left out of the body
    is not touched. ``description`` may be sent as null to clear it, while
    ``assigneeIds`` sent as null means the same as leaving it out.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    assignee_ids: Optional[List[str]] = None

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v):
        return _check_title(v)

    @field_validator("status")
    @classmethod
    def status_not_null(cls, v):
        if v is None:
            raise ValueError("status cannot be null")
        return v

    def has(self, field: str) -> bool:
        return field in self.model_fields_set

    @property
    def replaces_assignees(self) -> bool:
        return self.has("assignee_ids") and self.assignee_ids is not None


class TaskOut(_CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus
    creator_id: str
    created_by: UserOut
    assignees: List[UserOut]
    created_at: datetime
    updated_at: datetime
