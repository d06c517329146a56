from sqlalchemy import (
    CheckConstraint,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)

from app.database import Base


class SiteBudget(Base):
    __tablename__ = "site_budgets"
    __table_args__ = (
        CheckConstraint("total_budget >= 0", name="ck_site_budgets_total_nonnegative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    total_budget = Column(Numeric(14, 2), nullable=False, default=0)
    allocated_budget = Column(Numeric(14, 2), nullable=False, default=0)
    spent_budget = Column(Numeric(14, 2), nullable=False, default=0)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())
    deleted_at = Column(DateTime, nullable=True)


class BudgetCategory(Base):
    __tablename__ = "site_budget_categories"
    __table_args__ = (
        CheckConstraint("allocated_amount >= 0", name="ck_site_budget_categories_allocated_nonnegative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    site_budget_id = Column(Integer, ForeignKey("site_budgets.id"), nullable=False, index=True)
    category_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    allocated_amount = Column(Numeric(14, 2), nullable=False, default=0)
    spent_amount = Column(Numeric(14, 2), nullable=False, default=0)
    is_custom = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())
    deleted_at = Column(DateTime, nullable=True)


class BudgetExpense(Base):
    __tablename__ = "site_budget_expenses"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_site_budget_expenses_amount_nonnegative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    site_budget_id = Column(Integer, ForeignKey("site_budgets.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("site_budget_categories.id"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=True, index=True)
    expense_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    expense_date = Column(Date, nullable=False)
    vendor = Column(String(255), nullable=True)
    receipt_url = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())
    deleted_at = Column(DateTime, nullable=True)
