import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, NotFoundError
from app.core.query import Op
from app.database import transaction
from app.repositories.base import Page, Row
from app.repositories.jobs import JobRepository
from app.repositories.tasks import TaskRepository
from app.repositories.users import UserRepository
from app.schemas.task import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)


def _check_job(db: Session, company_id: int, job_id: int) -> None:
    if JobRepository(db).find_by_id(job_id, company_id) is None:
        raise BadRequestError("Job does not exist or does not belong to your company")


def _check_assignee(db: Session, company_id: int, user_id: Optional[int]) -> None:
    if user_id is not None and UserRepository(db).find_by_id(user_id, company_id) is None:
        raise BadRequestError("Assigned user does not exist or does not belong to your company")


def _require_task(repo: TaskRepository, company_id: int, task_id: int) -> Row:
    task = repo.find_by_id(task_id, company_id)
    if task is None:
        raise NotFoundError("Task not found")
    return task


def list_tasks(
    db: Session,
    company_id: int,
    *,
    search: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    assigned_to: Optional[int] = None,
    job_id: Optional[int] = None,
    job_unit_id: Optional[int] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Page:
    repo = TaskRepository(db)
    filters = [
        repo.search(search),
        repo.filter("status", Op.EQ, status),
        repo.filter("priority", Op.EQ, priority),
        repo.filter("assigned_to", Op.EQ, assigned_to),
        repo.filter("job_id", Op.EQ, job_id),
        repo.filter("job_unit_id", Op.EQ, job_unit_id),
    ]
    return repo.list(company_id, filters, page, limit)


def get_task(db: Session, company_id: int, task_id: int) -> Row:
    return _require_task(TaskRepository(db), company_id, task_id)


def create_task(db: Session, company_id: int, user_id: int, payload: TaskCreate) -> Row:
    repo = TaskRepository(db)

    with transaction(db):
        _check_job(db, company_id, payload.job_id)
        _check_assignee(db, company_id, payload.assigned_to)
        task = repo.create(company_id, dict(payload.model_dump(), created_by=user_id))
        repo.add_history(task["id"], None, task["status"], user_id, "Task created")

    logger.info("Task created", extra={"company_id": company_id, "task_id": task["id"]})
    return task


def change_status(
    db: Session,
    company_id: int,
    task_id: int,
    user_id: int,
    status: str,
    notes: Optional[str] = None,
) -> Row:
    """Set a task's status and record the transition; caller owns the transaction."""
    repo = TaskRepository(db)
    current = _require_task(repo, company_id, task_id)
    task = repo.update(task_id, company_id, {"status": status})
    if task is None:
        raise NotFoundError("Task not found")
    if current["status"] != status:
        repo.add_history(task_id, current["status"], status, user_id, notes)
    return task


def update_task(db: Session, company_id: int, task_id: int, user_id: int, payload: TaskUpdate) -> Row:
    repo = TaskRepository(db)
    fields = payload.model_dump(exclude_unset=True)
    notes = fields.pop("status_notes", None)
    for required in ("job_id", "title", "status", "priority"):
        if required in fields and fields[required] is None:
            raise BadRequestError(f"{required} cannot be null")

    with transaction(db):
        current = _require_task(repo, company_id, task_id)
        if "job_id" in fields:
            _check_job(db, company_id, fields["job_id"])
        if fields.get("assigned_to") is not None:
            _check_assignee(db, company_id, fields["assigned_to"])

        task = repo.update(task_id, company_id, fields)
        if task is None:
            raise NotFoundError("Task not found")
        if "status" in fields and fields["status"] != current["status"]:
            repo.add_history(task_id, current["status"], fields["status"], user_id, notes)
    return task


def delete_task(db: Session, company_id: int, task_id: int) -> None:
    with transaction(db):
        if not TaskRepository(db).soft_delete(task_id, company_id):
            raise NotFoundError("Task not found")


def restore_task(db: Session, company_id: int, task_id: int) -> Row:
    with transaction(db):
        task = TaskRepository(db).restore(task_id, company_id)
        if task is None:
            raise NotFoundError("Task not found or already active")
    logger.info("Task restored", extra={"company_id": company_id, "task_id": task_id})
    return task


def task_history(db: Session, company_id: int, task_id: int) -> List[Row]:
    repo = TaskRepository(db)
    _require_task(repo, company_id, task_id)
    return repo.history(task_id)


def task_statistics(db: Session, company_id: int) -> dict:
    by_status = TaskRepository(db).count_by(company_id, "status")
    return {"total": sum(by_status.values()), "by_status": by_status}


def tasks_for_user(db: Session, company_id: int, user_id: int) -> List[Row]:
    return TaskRepository(db).for_user(company_id, user_id)
