"""Site budgets, their categories and expenses.

Every category or expense mutation is followed by a rollup rebuild in the
same transaction: category ``spent_amount`` is re-summed from its live
expenses, then the budget's ``allocated_budget`` and ``spent_budget`` are
re-summed from its live categories. Nothing is patched incrementally.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, ConflictError, NotFoundError
from app.core.query import Op
from app.database import transaction
from app.repositories.base import Page, Row
from app.repositories.budgets import (
    BudgetCategoryRepository,
    BudgetExpenseRepository,
    SiteBudgetRepository,
    to_money,
)
from app.repositories.jobs import JobRepository
from app.repositories.sites import SiteRepository
from app.schemas.budget import (
    BudgetCreate,
    BudgetUpdate,
    CategoryCreate,
    CategoryUpdate,
    ExpenseCreate,
    ExpenseUpdate,
)

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = (
    "Labor",
    "Materials",
    "Equipment",
    "Subcontractors",
    "Permits & Fees",
    "Utilities",
    "Insurance",
    "Miscellaneous",
)

HUNDRED = Decimal("100")


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    if not whole:
        return Decimal("0.00")
    return to_money(Decimal(part) / Decimal(whole) * HUNDRED)


def rebuild_rollups(db: Session, budget_id: int, category_ids: Iterable[Optional[int]] = ()) -> None:
    budgets = SiteBudgetRepository(db)
    for category_id in sorted({c for c in category_ids if c is not None}):
        budgets.recompute_category_spent(category_id)
    budgets.recompute_totals(budget_id)


def _require_budget(db: Session, company_id: int, budget_id: int) -> Row:
    budget = SiteBudgetRepository(db).find_by_id(budget_id, company_id)
    if budget is None:
        raise NotFoundError("Budget not found")
    return budget


def _require_category(db: Session, company_id: int, budget_id: int, category_id: int) -> Row:
    category = BudgetCategoryRepository(db).find_by_id(category_id, company_id)
    if category is None or category["site_budget_id"] != budget_id:
        raise NotFoundError("Category not found")
    return category


def _require_expense(db: Session, company_id: int, budget_id: int, expense_id: int) -> Row:
    expense = BudgetExpenseRepository(db).find_by_id(expense_id, company_id)
    if expense is None or expense["site_budget_id"] != budget_id:
        raise NotFoundError("Expense not found")
    return expense


def _check_category_in_budget(db: Session, company_id: int, budget_id: int, category_id: int) -> None:
    category = BudgetCategoryRepository(db).find_by_id(category_id, company_id)
    if category is None or category["site_budget_id"] != budget_id:
        raise BadRequestError("Category does not belong to this budget")


def _check_job(db: Session, company_id: int, job_id: Optional[int]) -> None:
    if job_id is not None and JobRepository(db).find_by_id(job_id, company_id) is None:
        raise BadRequestError("Job does not exist or does not belong to your company")


def _with_categories(db: Session, company_id: int, budget: Row) -> Row:
    budget["categories"] = BudgetCategoryRepository(db).for_budget(budget["id"], company_id)
    return budget


def create_budget_rows(
    db: Session,
    company_id: int,
    site_id: int,
    total_budget: Decimal,
    created_by: Optional[int],
    categories: Optional[List[CategoryCreate]] = None,
) -> Row:
    """Insert a budget and its categories without committing."""
    budgets = SiteBudgetRepository(db)
    if budgets.find_by_site(site_id, company_id) is not None:
        raise ConflictError("Budget already exists for this site")

    budget = budgets.create(
        company_id,
        {"site_id": site_id, "total_budget": total_budget, "created_by": created_by},
    )

    category_repo = BudgetCategoryRepository(db)
    if categories is None:
        rows = [
            {"category_name": name, "allocated_amount": Decimal("0"), "is_custom": False}
            for name in DEFAULT_CATEGORIES
        ]
    else:
        rows = [c.model_dump() for c in categories]
    for values in rows:
        category_repo.create(company_id, dict(values, site_budget_id=budget["id"]))

    rebuild_rollups(db, budget["id"])
    return budgets.find_by_id(budget["id"], company_id)


def create_budget(db: Session, company_id: int, user_id: int, payload: BudgetCreate) -> Row:
    with transaction(db):
        if SiteRepository(db).find_by_id(payload.site_id, company_id) is None:
            raise BadRequestError("Site does not exist or does not belong to your company")
        budget = create_budget_rows(
            db,
            company_id,
            payload.site_id,
            payload.total_budget,
            user_id,
            payload.categories,
        )

    logger.info(
        "Budget created",
        extra={"company_id": company_id, "budget_id": budget["id"], "site_id": payload.site_id},
    )
    return _with_categories(db, company_id, budget)


def get_budget(db: Session, company_id: int, budget_id: int) -> Row:
    return _with_categories(db, company_id, _require_budget(db, company_id, budget_id))


def get_budget_by_site(db: Session, company_id: int, site_id: int) -> Row:
    budget = SiteBudgetRepository(db).find_by_site(site_id, company_id)
    if budget is None:
        raise NotFoundError("Budget not found for this site")
    return _with_categories(db, company_id, budget)


def get_summary(db: Session, company_id: int, site_id: int) -> dict:
    budget = get_budget_by_site(db, company_id, site_id)
    total = to_money(budget["total_budget"])
    allocated = to_money(budget["allocated_budget"])
    spent = to_money(budget["spent_budget"])
    return {
        "budget_id": budget["id"],
        "site_id": budget["site_id"],
        "total_budget": total,
        "allocated_budget": allocated,
        "spent_budget": spent,
        "remaining_budget": total - spent,
        "unallocated_budget": total - allocated,
        "utilization_percentage": percentage(spent, total),
        "categories": budget["categories"],
    }


def update_budget(db: Session, company_id: int, budget_id: int, payload: BudgetUpdate) -> Row:
    fields = payload.model_dump(exclude_unset=True)
    if "total_budget" in fields and fields["total_budget"] is None:
        raise BadRequestError("total_budget cannot be null")

    with transaction(db):
        budget = SiteBudgetRepository(db).update(budget_id, company_id, fields)
        if budget is None:
            raise NotFoundError("Budget not found")
    return _with_categories(db, company_id, budget)


def delete_budget(db: Session, company_id: int, budget_id: int) -> None:
    budgets = SiteBudgetRepository(db)
    with transaction(db):
        if not budgets.soft_delete(budget_id, company_id):
            raise NotFoundError("Budget not found")
        budgets.soft_delete_children(budget_id)


def delete_budget_for_site(db: Session, company_id: int, site_id: int) -> None:
    """Soft-delete a site's budget if it has one; caller owns the transaction."""
    budgets = SiteBudgetRepository(db)
    budget = budgets.find_by_site(site_id, company_id)
    if budget is not None:
        budgets.soft_delete(budget["id"], company_id)
        budgets.soft_delete_children(budget["id"])


def list_categories(db: Session, company_id: int, budget_id: int) -> List[Row]:
    _require_budget(db, company_id, budget_id)
    return BudgetCategoryRepository(db).for_budget(budget_id, company_id)


def create_category(db: Session, company_id: int, budget_id: int, payload: CategoryCreate) -> Row:
    repo = BudgetCategoryRepository(db)
    with transaction(db):
        _require_budget(db, company_id, budget_id)
        category = repo.create(company_id, dict(payload.model_dump(), site_budget_id=budget_id))
        rebuild_rollups(db, budget_id, [category["id"]])
    return repo.find_by_id(category["id"], company_id)


def update_category(
    db: Session,
    company_id: int,
    budget_id: int,
    category_id: int,
    payload: CategoryUpdate,
) -> Row:
    repo = BudgetCategoryRepository(db)
    fields = payload.model_dump(exclude_unset=True)
    for required in ("category_name", "allocated_amount"):
        if required in fields and fields[required] is None:
            raise BadRequestError(f"{required} cannot be null")

    with transaction(db):
        _require_budget(db, company_id, budget_id)
        _require_category(db, company_id, budget_id, category_id)
        category = repo.update(category_id, company_id, fields)
        if category is None:
            raise NotFoundError("Category not found")
        rebuild_rollups(db, budget_id, [category_id])
    return repo.find_by_id(category_id, company_id)


def delete_category(db: Session, company_id: int, budget_id: int, category_id: int) -> None:
    """Soft-delete a category together with its expenses."""
    repo = BudgetCategoryRepository(db)
    with transaction(db):
        _require_budget(db, company_id, budget_id)
        _require_category(db, company_id, budget_id, category_id)
        repo.soft_delete_expenses(category_id)
        if not repo.soft_delete(category_id, company_id):
            raise NotFoundError("Category not found")
        rebuild_rollups(db, budget_id, [category_id])


def list_expenses(
    db: Session,
    company_id: int,
    budget_id: int,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category_id: Optional[int] = None,
    vendor: Optional[str] = None,
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Page:
    _require_budget(db, company_id, budget_id)
    repo = BudgetExpenseRepository(db)
    filters = [
        repo.filter("site_budget_id", Op.EQ, budget_id),
        repo.filter("expense_date", Op.GTE, start_date),
        repo.filter("expense_date", Op.LTE, end_date),
        repo.filter("category_id", Op.EQ, category_id),
        repo.search(vendor),
        repo.filter("amount", Op.GTE, min_amount),
        repo.filter("amount", Op.LTE, max_amount),
    ]
    return repo.list(company_id, filters, page, limit)


def create_expense(
    db: Session,
    company_id: int,
    user_id: int,
    budget_id: int,
    payload: ExpenseCreate,
) -> Row:
    repo = BudgetExpenseRepository(db)
    with transaction(db):
        _require_budget(db, company_id, budget_id)
        _check_category_in_budget(db, company_id, budget_id, payload.category_id)
        _check_job(db, company_id, payload.job_id)
        expense = repo.create(
            company_id,
            dict(payload.model_dump(), site_budget_id=budget_id, created_by=user_id),
        )
        rebuild_rollups(db, budget_id, [payload.category_id])

    logger.info(
        "Expense recorded",
        extra={"company_id": company_id, "budget_id": budget_id, "expense_id": expense["id"]},
    )
    return expense


def update_expense(
    db: Session,
    company_id: int,
    budget_id: int,
    expense_id: int,
    payload: ExpenseUpdate,
) -> Row:
    repo = BudgetExpenseRepository(db)
    fields = payload.model_dump(exclude_unset=True)
    for required in ("category_id", "expense_name", "amount", "expense_date"):
        if required in fields and fields[required] is None:
            raise BadRequestError(f"{required} cannot be null")

    with transaction(db):
        _require_budget(db, company_id, budget_id)
        existing = _require_expense(db, company_id, budget_id, expense_id)
        if "category_id" in fields:
            _check_category_in_budget(db, company_id, budget_id, fields["category_id"])
        if fields.get("job_id") is not None:
            _check_job(db, company_id, fields["job_id"])

        expense = repo.update(expense_id, company_id, fields)
        if expense is None:
            raise NotFoundError("Expense not found")
        rebuild_rollups(db, budget_id, [existing["category_id"], expense["category_id"]])
    return expense


def delete_expense(db: Session, company_id: int, budget_id: int, expense_id: int) -> None:
    repo = BudgetExpenseRepository(db)
    with transaction(db):
        _require_budget(db, company_id, budget_id)
        existing = _require_expense(db, company_id, budget_id, expense_id)
        if not repo.soft_delete(expense_id, company_id):
            raise NotFoundError("Expense not found")
        rebuild_rollups(db, budget_id, [existing["category_id"]])


def get_analytics(db: Session, company_id: int, budget_id: int) -> dict:
    _require_budget(db, company_id, budget_id)
    budgets = SiteBudgetRepository(db)
    categories = BudgetCategoryRepository(db).for_budget(budget_id, company_id)

    breakdown = []
    for c in sorted(categories, key=lambda c: (-to_money(c["allocated_amount"]), c["id"])):
        allocated = to_money(c["allocated_amount"])
        spent = to_money(c["spent_amount"])
        breakdown.append(
            {
                "category_id": c["id"],
                "category_name": c["category_name"],
                "allocated_amount": allocated,
                "spent_amount": spent,
                "remaining_amount": allocated - spent,
                "utilization_percentage": percentage(spent, allocated),
            }
        )

    monthly: "OrderedDict[tuple, dict]" = OrderedDict()
    for row in budgets.expense_dates_and_amounts(budget_id):
        key = (row["expense_date"].year, row["expense_date"].month)
        bucket = monthly.setdefault(
            key, {"year": key[0], "month": key[1], "total": Decimal("0.00"), "expense_count": 0}
        )
        bucket["total"] += to_money(row["amount"])
        bucket["expense_count"] += 1

    return {
        "category_breakdown": breakdown,
        "monthly_expenses": [monthly[k] for k in sorted(monthly, reverse=True)],
        "top_vendors": budgets.top_vendors(budget_id),
        "total_expenses": budgets.total_expenses(budget_id),
    }
