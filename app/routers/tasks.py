from typing import List
from fastapi import APIRouter, Depends
from app.dependencies import get_current_user, get_task_service
from app.models.user import User
from app.schemas.task import TaskCreate, TaskOut, TaskUpdate
from app.schemas.user import UserOut
from app.services.tasks import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=List[TaskOut])
def list_tasks(user: User = Depends(get_current_user), service: TaskService = Depends(get_task_service)):
    """Tasks the caller created or is assigned to."""
    return service.list_visible(user)


@router.post("", response_model=TaskOut)
def create_task(task: TaskCreate, user: User = Depends(get_current_user), service: TaskService = Depends(get_task_service)):
    return service.create(user, task)


# Declared before /{task_id} so "users" is never read as a task id
@router.get("/users", response_model=List[UserOut])
def list_users(user: User = Depends(get_current_user), service: TaskService = Depends(get_task_service)):
    """Every account, as assignment candidates. Not scoped to any team."""
    return service.list_assignable_users()


@router.put("/{task_id}", response_model=TaskOut)
def update_task(task_id: str, patch: TaskUpdate, user: User = Depends(get_current_user), service: TaskService = Depends(get_task_service)):
    return service.update(user, task_id, patch)


@router.delete("/{task_id}")
def delete_task(task_id: str, user: User = Depends(get_current_user), service: TaskService = Depends(get_task_service)):
    service.delete(user, task_id)
    return {"message": "Task deleted successfully"}
