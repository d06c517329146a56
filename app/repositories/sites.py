from app.core.query import bound
from app.models.site import Site
from app.repositories.base import TenantRepository


class SiteRepository(TenantRepository):
    model = Site
    alias = "s"
    search_columns = ("name", "address")
    updatable = ("name", "address", "latitude", "longitude", "radius", "status")

    def live_job_count(self, site_id: int, company_id: int) -> int:
        sql = (
            "SELECT COUNT(*) FROM jobs "
            "WHERE site_id = :p1 AND company_id = :p2 AND deleted_at IS NULL"
        )
        return int(self.db.execute(bound(sql, site_id, company_id)).scalar() or 0)
