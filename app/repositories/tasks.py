from typing import List

from app.core.query import Op, bound
from app.models.task import Task, TaskStatusHistory
from app.repositories.base import Row, TenantRepository, TenantScope

VIA_JOB = TenantScope(
    joins="INNER JOIN jobs j ON j.id = {a}.job_id",
    condition="j.company_id = :{p} AND j.deleted_at IS NULL",
    ownership="job_id IN (SELECT id FROM jobs WHERE company_id = :{p} AND deleted_at IS NULL)",
)


class TaskRepository(TenantRepository):
    model = Task
    alias = "t"
    scope = VIA_JOB
    search_columns = ("title", "description")
    updatable = (
        "job_id",
        "job_unit_id",
        "assigned_to",
        "title",
        "description",
        "status",
        "priority",
        "due_date",
    )
    default_limit = 20

    def for_user(self, company_id: int, user_id: int) -> List[Row]:
        # NULL due dates last on every backend
        order = "CASE WHEN t.due_date IS NULL THEN 1 ELSE 0 END, t.due_date ASC, t.created_at DESC, t.id DESC"
        return self.find_all(company_id, [self.filter("assigned_to", Op.EQ, user_id)], order=order)

    def for_job(self, company_id: int, job_id: int) -> List[Row]:
        order = "CASE WHEN t.due_date IS NULL THEN 1 ELSE 0 END, t.due_date ASC, t.created_at DESC, t.id DESC"
        return self.find_all(company_id, [self.filter("job_id", Op.EQ, job_id)], order=order)

    def add_history(self, task_id: int, old_status, new_status: str, changed_by: int, notes=None) -> None:
        self.db.add(
            TaskStatusHistory(
                task_id=task_id,
                old_status=old_status,
                new_status=new_status,
                changed_by=changed_by,
                notes=notes,
            )
        )
        self.db.flush()

    def history(self, task_id: int) -> List[Row]:
        table = TaskStatusHistory.__table__
        sql = (
            "SELECT h.id, h.task_id, h.old_status, h.new_status, h.changed_by, h.notes, h.changed_at "
            "FROM task_status_history h WHERE h.task_id = :p1 "
            "ORDER BY h.changed_at DESC, h.id DESC"
        )
        stmt = bound(sql, task_id).columns(*table.c)
        return [dict(r) for r in self.db.execute(stmt).mappings().all()]
