from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.authorization import require_manager
from app.database import get_db
from app.deps.auth import CurrentUser, require_auth
from app.schemas.budget import (
    BudgetAnalytics,
    BudgetCreate,
    BudgetResponse,
    BudgetSummary,
    BudgetUpdate,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ExpenseCreate,
    ExpenseResponse,
    ExpenseUpdate,
)
from app.schemas.common import ApiResponse, PageData, ok, paged
from app.services import budgets_service

router = APIRouter(prefix="/budgets", tags=["Budgets"])


@router.post("", response_model=ApiResponse[BudgetResponse], status_code=201)
def create_budget(
    payload: BudgetCreate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    budget = budgets_service.create_budget(db, user.company_id, user.user_id, payload)
    return ok(budget, "Budget created successfully")


@router.get("/site/{site_id}", response_model=ApiResponse[BudgetResponse])
def get_budget_by_site(site_id: int, user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(budgets_service.get_budget_by_site(db, user.company_id, site_id))


@router.get("/site/{site_id}/summary", response_model=ApiResponse[BudgetSummary])
def get_summary(site_id: int, user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(budgets_service.get_summary(db, user.company_id, site_id))


@router.get("/{budget_id}", response_model=ApiResponse[BudgetResponse])
def get_budget(budget_id: int, user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(budgets_service.get_budget(db, user.company_id, budget_id))


@router.put("/{budget_id}", response_model=ApiResponse[BudgetResponse])
def update_budget(
    budget_id: int,
    payload: BudgetUpdate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    budget = budgets_service.update_budget(db, user.company_id, budget_id, payload)
    return ok(budget, "Budget updated successfully")


@router.delete("/{budget_id}", response_model=ApiResponse[None])
def delete_budget(budget_id: int, user: CurrentUser = Depends(require_manager), db: Session = Depends(get_db)):
    budgets_service.delete_budget(db, user.company_id, budget_id)
    return ok(message="Budget deleted successfully")


@router.get("/{budget_id}/categories", response_model=ApiResponse[List[CategoryResponse]])
def list_categories(budget_id: int, user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(budgets_service.list_categories(db, user.company_id, budget_id))


@router.post("/{budget_id}/categories", response_model=ApiResponse[CategoryResponse], status_code=201)
def create_category(
    budget_id: int,
    payload: CategoryCreate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    category = budgets_service.create_category(db, user.company_id, budget_id, payload)
    return ok(category, "Category created successfully")


@router.put("/{budget_id}/categories/{category_id}", response_model=ApiResponse[CategoryResponse])
def update_category(
    budget_id: int,
    category_id: int,
    payload: CategoryUpdate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    category = budgets_service.update_category(db, user.company_id, budget_id, category_id, payload)
    return ok(category, "Category updated successfully")


@router.delete("/{budget_id}/categories/{category_id}", response_model=ApiResponse[None])
def delete_category(
    budget_id: int,
    category_id: int,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    budgets_service.delete_category(db, user.company_id, budget_id, category_id)
    return ok(message="Category deleted successfully")


@router.get("/{budget_id}/expenses", response_model=ApiResponse[PageData[ExpenseResponse]])
def list_expenses(
    budget_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category_id: Optional[int] = None,
    vendor: Optional[str] = None,
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_auth),
    db: Session = Depends(get_db),
):
    result = budgets_service.list_expenses(
        db,
        user.company_id,
        budget_id,
        start_date=start_date,
        end_date=end_date,
        category_id=category_id,
        vendor=vendor,
        min_amount=min_amount,
        max_amount=max_amount,
        page=page,
        limit=limit,
    )
    return ok(paged(result))


@router.post("/{budget_id}/expenses", response_model=ApiResponse[ExpenseResponse], status_code=201)
def create_expense(
    budget_id: int,
    payload: ExpenseCreate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    expense = budgets_service.create_expense(db, user.company_id, user.user_id, budget_id, payload)
    return ok(expense, "Expense created successfully")


@router.put("/{budget_id}/expenses/{expense_id}", response_model=ApiResponse[ExpenseResponse])
def update_expense(
    budget_id: int,
    expense_id: int,
    payload: ExpenseUpdate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    expense = budgets_service.update_expense(db, user.company_id, budget_id, expense_id, payload)
    return ok(expense, "Expense updated successfully")


@router.delete("/{budget_id}/expenses/{expense_id}", response_model=ApiResponse[None])
def delete_expense(
    budget_id: int,
    expense_id: int,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    budgets_service.delete_expense(db, user.company_id, budget_id, expense_id)
    return ok(message="Expense deleted successfully")


@router.get("/{budget_id}/analytics", response_model=ApiResponse[BudgetAnalytics])
def get_analytics(budget_id: int, user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(budgets_service.get_analytics(db, user.company_id, budget_id))
