from app.models.budget import BudgetCategory, BudgetExpense, SiteBudget
from app.models.check_in import CheckInLog
from app.models.company import Company
from app.models.job import Job, JobManager, JobWorker
from app.models.safety_incident import SafetyIncident
from app.models.site import Site
from app.models.task import Task, TaskStatusHistory
from app.models.team import Team, TeamMember
from app.models.user import User

__all__ = [
    "BudgetCategory",
    "BudgetExpense",
    "CheckInLog",
    "Company",
    "Job",
    "JobManager",
    "JobWorker",
    "SafetyIncident",
    "Site",
    "SiteBudget",
    "Task",
    "TaskStatusHistory",
    "Team",
    "TeamMember",
    "User",
]
