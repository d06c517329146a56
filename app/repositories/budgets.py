from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.core.query import Op, bound
from app.models.budget import BudgetCategory, BudgetExpense, SiteBudget
from app.repositories.base import Row, TenantRepository, TenantScope

CENTS = Decimal("0.01")

VIA_BUDGET = TenantScope(
    joins="INNER JOIN site_budgets b ON b.id = {a}.site_budget_id",
    condition="b.company_id = :{p} AND b.deleted_at IS NULL",
    ownership="site_budget_id IN (SELECT id FROM site_budgets WHERE company_id = :{p} AND deleted_at IS NULL)",
)


def to_money(value: Any) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS)


class SiteBudgetRepository(TenantRepository):
    model = SiteBudget
    alias = "b"
    updatable = ("total_budget",)

    def find_by_site(self, site_id: int, company_id: int) -> Optional[Row]:
        rows = self.find_all(company_id, [self.filter("site_id", Op.EQ, site_id)])
        return rows[0] if rows else None

    def recompute_category_spent(self, category_id: int) -> None:
        sql = (
            "UPDATE site_budget_categories SET spent_amount = ("
            "SELECT COALESCE(SUM(amount), 0) FROM site_budget_expenses "
            "WHERE category_id = :p1 AND deleted_at IS NULL"
            "), updated_at = CURRENT_TIMESTAMP WHERE id = :p1"
        )
        self.db.execute(bound(sql, category_id))

    def recompute_totals(self, budget_id: int) -> None:
        """Re-derive allocated and spent from live children in one statement."""
        sql = (
            "UPDATE site_budgets SET "
            "allocated_budget = ("
            "SELECT COALESCE(SUM(c.allocated_amount), 0) FROM site_budget_categories c "
            "WHERE c.site_budget_id = :p1 AND c.deleted_at IS NULL"
            "), "
            "spent_budget = ("
            "SELECT COALESCE(SUM(c.spent_amount), 0) FROM site_budget_categories c "
            "WHERE c.site_budget_id = :p1 AND c.deleted_at IS NULL"
            "), "
            "updated_at = CURRENT_TIMESTAMP "
            "WHERE id = :p1"
        )
        self.db.execute(bound(sql, budget_id))

    def soft_delete_children(self, budget_id: int) -> None:
        for table in ("site_budget_expenses", "site_budget_categories"):
            sql = (
                f"UPDATE {table} SET deleted_at = CURRENT_TIMESTAMP, updated_at = CURRENT_TIMESTAMP "
                "WHERE site_budget_id = :p1 AND deleted_at IS NULL"
            )
            self.db.execute(bound(sql, budget_id))

    def total_expenses(self, budget_id: int) -> Decimal:
        sql = (
            "SELECT COALESCE(SUM(amount), 0) FROM site_budget_expenses "
            "WHERE site_budget_id = :p1 AND deleted_at IS NULL"
        )
        return to_money(self.db.execute(bound(sql, budget_id)).scalar())

    def expense_dates_and_amounts(self, budget_id: int) -> List[Row]:
        table = BudgetExpense.__table__
        sql = (
            "SELECT e.expense_date, e.amount FROM site_budget_expenses e "
            "WHERE e.site_budget_id = :p1 AND e.deleted_at IS NULL "
            "ORDER BY e.expense_date"
        )
        stmt = bound(sql, budget_id).columns(table.c.expense_date, table.c.amount)
        return [dict(r) for r in self.db.execute(stmt).mappings().all()]

    def top_vendors(self, budget_id: int, limit: int = 10) -> List[Dict[str, Any]]:
        sql = (
            "SELECT vendor, SUM(amount) AS total, COUNT(*) AS expense_count "
            "FROM site_budget_expenses "
            "WHERE site_budget_id = :p1 AND deleted_at IS NULL AND vendor IS NOT NULL "
            "GROUP BY vendor ORDER BY total DESC, vendor ASC LIMIT :p2"
        )
        rows = self.db.execute(bound(sql, budget_id, limit)).all()
        return [
            {"vendor": vendor, "total": to_money(total), "expense_count": int(n)}
            for vendor, total, n in rows
        ]


class BudgetCategoryRepository(TenantRepository):
    model = BudgetCategory
    alias = "c"
    scope = VIA_BUDGET
    updatable = ("category_name", "description", "allocated_amount", "is_custom")
    order_by = ("category_name ASC", "id ASC")

    def for_budget(self, budget_id: int, company_id: int) -> List[Row]:
        return self.find_all(company_id, [self.filter("site_budget_id", Op.EQ, budget_id)])

    def soft_delete_expenses(self, category_id: int) -> None:
        sql = (
            "UPDATE site_budget_expenses SET deleted_at = CURRENT_TIMESTAMP, updated_at = CURRENT_TIMESTAMP "
            "WHERE category_id = :p1 AND deleted_at IS NULL"
        )
        self.db.execute(bound(sql, category_id))


class BudgetExpenseRepository(TenantRepository):
    model = BudgetExpense
    alias = "e"
    scope = VIA_BUDGET
    search_columns = ("vendor",)
    updatable = (
        "category_id",
        "job_id",
        "expense_name",
        "description",
        "amount",
        "expense_date",
        "vendor",
        "receipt_url",
    )
    order_by = ("expense_date DESC", "created_at DESC", "id DESC")
    default_limit = 50
