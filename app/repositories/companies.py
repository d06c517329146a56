from typing import Any, Mapping

from app.models.company import Company
from app.repositories.base import Row, TenantRepository, TenantScope


class CompanyRepository(TenantRepository):
    model = Company
    alias = "co"
    # a company is its own tenant
    scope = TenantScope(condition="{a}.id = :{p}", ownership="id = :{p}")
    updatable = ("name", "email", "phone", "address")

    def create_company(self, values: Mapping[str, Any]) -> Row:
        row = Company(**values)
        self.db.add(row)
        self.db.flush()
        return self.find_by_id(row.id, row.id)
