from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import RequestModel

Money = Decimal


class CategoryCreate(RequestModel):
    category_name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    allocated_amount: Money = Field(default=Decimal("0"), ge=0, max_digits=14, decimal_places=2)
    is_custom: bool = True


class CategoryUpdate(RequestModel):
    category_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    allocated_amount: Optional[Money] = Field(default=None, ge=0, max_digits=14, decimal_places=2)


class BudgetCreate(RequestModel):
    site_id: int
    total_budget: Money = Field(ge=0, max_digits=14, decimal_places=2)
    categories: Optional[List[CategoryCreate]] = None


class BudgetUpdate(RequestModel):
    total_budget: Optional[Money] = Field(default=None, ge=0, max_digits=14, decimal_places=2)


class ExpenseCreate(RequestModel):
    category_id: int
    job_id: Optional[int] = None
    expense_name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    amount: Money = Field(ge=0, max_digits=14, decimal_places=2)
    expense_date: date
    vendor: Optional[str] = Field(default=None, max_length=255)
    receipt_url: Optional[str] = None


class ExpenseUpdate(RequestModel):
    category_id: Optional[int] = None
    job_id: Optional[int] = None
    expense_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    amount: Optional[Money] = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    expense_date: Optional[date] = None
    vendor: Optional[str] = Field(default=None, max_length=255)
    receipt_url: Optional[str] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    site_budget_id: int
    category_name: str
    description: Optional[str] = None
    allocated_amount: Money
    spent_amount: Money
    is_custom: bool
    created_at: datetime
    updated_at: datetime


class ExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    site_budget_id: int
    category_id: int
    job_id: Optional[int] = None
    expense_name: str
    description: Optional[str] = None
    amount: Money
    expense_date: date
    vendor: Optional[str] = None
    receipt_url: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class BudgetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    site_id: int
    company_id: int
    total_budget: Money
    allocated_budget: Money
    spent_budget: Money
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    categories: List[CategoryResponse] = Field(default_factory=list)


class BudgetSummary(BaseModel):
    budget_id: int
    site_id: int
    total_budget: Money
    allocated_budget: Money
    spent_budget: Money
    remaining_budget: Money
    unallocated_budget: Money
    utilization_percentage: Money
    categories: List[CategoryResponse]


class CategoryBreakdown(BaseModel):
    category_id: int
    category_name: str
    allocated_amount: Money
    spent_amount: Money
    remaining_amount: Money
    utilization_percentage: Money


class MonthlyExpense(BaseModel):
    year: int
    month: int
    total: Money
    expense_count: int


class VendorTotal(BaseModel):
    vendor: str
    total: Money
    expense_count: int


class BudgetAnalytics(BaseModel):
    category_breakdown: List[CategoryBreakdown]
    monthly_expenses: List[MonthlyExpense]
    top_vendors: List[VendorTotal]
    total_expenses: Money
