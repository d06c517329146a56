from typing import Iterable, List

from sqlalchemy.orm import Session

from app.core.query import Clause, Filter, Op, bound
from app.models.job import Job, JobManager, JobWorker
from app.repositories.base import TenantRepository, TenantScope


class JobRepository(TenantRepository):
    model = Job
    alias = "j"
    search_columns = ("name", "description", "job_number")
    updatable = (
        "site_id",
        "job_number",
        "name",
        "description",
        "job_type",
        "status",
        "priority",
        "start_date",
        "end_date",
        "completed_date",
        "assigned_to",
    )

    def worker_ids(self, job_id: int) -> List[int]:
        return self._assigned_ids("job_workers", job_id)

    def manager_ids(self, job_id: int) -> List[int]:
        return self._assigned_ids("job_managers", job_id)

    def replace_workers(self, job_id: int, user_ids: Iterable[int]) -> None:
        self._replace(JobWorker, job_id, user_ids)

    def replace_managers(self, job_id: int, user_ids: Iterable[int]) -> None:
        self._replace(JobManager, job_id, user_ids)

    def _assigned_ids(self, table: str, job_id: int) -> List[int]:
        sql = f"SELECT user_id FROM {table} WHERE job_id = :p1 ORDER BY user_id"
        return [int(r[0]) for r in self.db.execute(bound(sql, job_id)).all()]

    def _replace(self, model, job_id: int, user_ids: Iterable[int]) -> None:
        self.db.execute(bound(f"DELETE FROM {model.__tablename__} WHERE job_id = :p1", job_id))
        for user_id in sorted({int(u) for u in user_ids}):
            self.db.add(model(job_id=job_id, user_id=user_id))
        self.db.flush()


ASSIGNED_WORKER = TenantScope(
    joins="INNER JOIN job_workers jw ON jw.job_id = {a}.id",
    condition="{a}.company_id = :{p}",
)


class AssignedJobRepository(JobRepository):
    """Jobs seen through one worker's assignments.

    The worker filter is part of every read, so the ``job_workers`` join
    yields at most one row per job.
    """

    scope = ASSIGNED_WORKER
    order_by = ("start_date DESC", "created_at DESC", "id DESC")
    default_limit = 20

    def __init__(self, db: Session, worker_id: int) -> None:
        super().__init__(db)
        self.worker_id = worker_id

    def clause(self, company_id: int, filters: Iterable[Filter] = ()) -> Clause:
        assigned = Filter("jw.user_id", Op.EQ, self.worker_id)
        return super().clause(company_id, [assigned, *filters])
