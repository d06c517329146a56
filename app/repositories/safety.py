from app.models.safety_incident import SafetyIncident
from app.repositories.base import TenantRepository, TenantScope

VIA_JOB_OR_SITE = TenantScope(
    joins="LEFT JOIN jobs j ON j.id = {a}.job_id LEFT JOIN sites s ON s.id = {a}.site_id",
    condition="(j.company_id = :{p} OR s.company_id = :{p})",
    ownership=(
        "(job_id IN (SELECT id FROM jobs WHERE company_id = :{p}) "
        "OR site_id IN (SELECT id FROM sites WHERE company_id = :{p}))"
    ),
)


class SafetyIncidentRepository(TenantRepository):
    model = SafetyIncident
    alias = "si"
    scope = VIA_JOB_OR_SITE
    search_columns = ("description",)
    updatable = ("job_id", "site_id", "incident_date", "description", "severity", "status")
    order_by = ("incident_date DESC", "created_at DESC", "id DESC")
    default_limit = 20
