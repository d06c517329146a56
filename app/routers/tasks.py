from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.authorization import require_manager
from app.database import get_db
from app.deps.auth import CurrentUser, require_auth
from app.models.enums import PriorityLevel, TaskStatus
from app.schemas.common import ApiResponse, PageData, enum_value, ok, paged
from app.schemas.site import StatusStatistics
from app.schemas.task import TaskCreate, TaskHistoryResponse, TaskResponse, TaskUpdate
from app.services import tasks_service

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.get("", response_model=ApiResponse[PageData[TaskResponse]])
def list_tasks(
    search: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    priority: Optional[PriorityLevel] = None,
    assigned_to: Optional[int] = None,
    job_id: Optional[int] = None,
    job_unit_id: Optional[int] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_auth),
    db: Session = Depends(get_db),
):
    result = tasks_service.list_tasks(
        db,
        user.company_id,
        search=search,
        status=enum_value(status),
        priority=enum_value(priority),
        assigned_to=assigned_to,
        job_id=job_id,
        job_unit_id=job_unit_id,
        page=page,
        limit=limit,
    )
    return ok(paged(result))


@router.get("/statistics", response_model=ApiResponse[StatusStatistics])
def task_statistics(user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(tasks_service.task_statistics(db, user.company_id))


@router.get("/user/{user_id}", response_model=ApiResponse[List[TaskResponse]])
def tasks_for_user(user_id: int, user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(tasks_service.tasks_for_user(db, user.company_id, user_id))


@router.post("", response_model=ApiResponse[TaskResponse], status_code=201)
def create_task(
    payload: TaskCreate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return ok(tasks_service.create_task(db, user.company_id, user.user_id, payload), "Task created successfully")


@router.get("/{task_id}", response_model=ApiResponse[TaskResponse])
def get_task(task_id: int, user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(tasks_service.get_task(db, user.company_id, task_id))


@router.put("/{task_id}", response_model=ApiResponse[TaskResponse])
def update_task(
    task_id: int,
    payload: TaskUpdate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    task = tasks_service.update_task(db, user.company_id, task_id, user.user_id, payload)
    return ok(task, "Task updated successfully")


@router.delete("/{task_id}", response_model=ApiResponse[None])
def delete_task(task_id: int, user: CurrentUser = Depends(require_manager), db: Session = Depends(get_db)):
    tasks_service.delete_task(db, user.company_id, task_id)
    return ok(message="Task deleted successfully")


@router.post("/{task_id}/restore", response_model=ApiResponse[TaskResponse])
def restore_task(task_id: int, user: CurrentUser = Depends(require_manager), db: Session = Depends(get_db)):
    return ok(tasks_service.restore_task(db, user.company_id, task_id), "Task restored successfully")


@router.get("/{task_id}/history", response_model=ApiResponse[List[TaskHistoryResponse]])
def task_history(task_id: int, user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(tasks_service.task_history(db, user.company_id, task_id))
