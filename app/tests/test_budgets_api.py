from decimal import Decimal

from app import database
from app.database import transaction
from app.repositories.budgets import BudgetCategoryRepository, SiteBudgetRepository
from app.services import budgets_service


def _site_with_budget(client, tenant, name="North Yard"):
    site = client.post("/sites", headers=tenant.headers, json={"name": name}).json()["data"]
    budget = client.get(f"/budgets/site/{site['id']}", headers=tenant.headers)
    assert budget.status_code == 200, budget.text
    return site, budget.json()["data"]


def _category(budget, name):
    return next(c for c in budget["categories"] if c["category_name"] == name)


def _money(value) -> Decimal:
    return Decimal(str(value))


def test_site_creation_seeds_budget_with_default_categories(client, tenant):
    site, budget = _site_with_budget(client, tenant)

    assert budget["site_id"] == site["id"]
    assert _money(budget["total_budget"]) == 0
    assert sorted(c["category_name"] for c in budget["categories"]) == sorted(
        [
            "Labor",
            "Materials",
            "Equipment",
            "Subcontractors",
            "Permits & Fees",
            "Utilities",
            "Insurance",
            "Miscellaneous",
        ]
    )
    assert all(c["is_custom"] is False for c in budget["categories"])

    duplicate = client.post(
        "/budgets", headers=tenant.headers, json={"site_id": site["id"], "total_budget": "1000"}
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "Budget already exists for this site"


def test_rollups_follow_category_and_expense_changes(client, tenant):
    site, budget = _site_with_budget(client, tenant)
    budget_id = budget["id"]
    labor = _category(budget, "Labor")
    materials = _category(budget, "Materials")

    resp = client.put(f"/budgets/{budget_id}", headers=tenant.headers, json={"total_budget": "500000"})
    assert resp.status_code == 200, resp.text

    for category, amount in ((labor, "200000"), (materials, "150000")):
        resp = client.put(
            f"/budgets/{budget_id}/categories/{category['id']}",
            headers=tenant.headers,
            json={"allocated_amount": amount},
        )
        assert resp.status_code == 200, resp.text

    summary = client.get(f"/budgets/site/{site['id']}/summary", headers=tenant.headers).json()["data"]
    assert _money(summary["allocated_budget"]) == Decimal("350000")
    assert _money(summary["spent_budget"]) == 0
    assert _money(summary["unallocated_budget"]) == Decimal("150000")

    expense = client.post(
        f"/budgets/{budget_id}/expenses",
        headers=tenant.headers,
        json={
            "category_id": labor["id"],
            "expense_name": "Framing crew, week 1",
            "amount": "5000",
            "expense_date": "2026-03-02",
            "vendor": "Ridge Staffing",
        },
    )
    assert expense.status_code == 201, expense.text
    expense_id = expense.json()["data"]["id"]

    summary = client.get(f"/budgets/site/{site['id']}/summary", headers=tenant.headers).json()["data"]
    assert _money(summary["spent_budget"]) == Decimal("5000")
    assert _money(summary["remaining_budget"]) == Decimal("495000")
    assert _money(summary["utilization_percentage"]) == Decimal("1.00")
    assert _money(_category(summary, "Labor")["spent_amount"]) == Decimal("5000")

    resp = client.delete(f"/budgets/{budget_id}/expenses/{expense_id}", headers=tenant.headers)
    assert resp.status_code == 200

    summary = client.get(f"/budgets/site/{site['id']}/summary", headers=tenant.headers).json()["data"]
    assert _money(summary["spent_budget"]) == 0
    assert _money(_category(summary, "Labor")["spent_amount"]) == 0
    assert _money(summary["allocated_budget"]) == Decimal("350000")


def test_moving_an_expense_between_categories_resums_both(client, tenant):
    _, budget = _site_with_budget(client, tenant)
    budget_id = budget["id"]
    labor = _category(budget, "Labor")
    equipment = _category(budget, "Equipment")

    expense = client.post(
        f"/budgets/{budget_id}/expenses",
        headers=tenant.headers,
        json={
            "category_id": labor["id"],
            "expense_name": "Excavator rental",
            "amount": "1200.50",
            "expense_date": "2026-03-05",
        },
    ).json()["data"]

    moved = client.put(
        f"/budgets/{budget_id}/expenses/{expense['id']}",
        headers=tenant.headers,
        json={"category_id": equipment["id"]},
    )
    assert moved.status_code == 200, moved.text

    current = client.get(f"/budgets/{budget_id}", headers=tenant.headers).json()["data"]
    assert _money(_category(current, "Labor")["spent_amount"]) == 0
    assert _money(_category(current, "Equipment")["spent_amount"]) == Decimal("1200.50")
    assert _money(current["spent_budget"]) == Decimal("1200.50")


def test_deleting_a_category_drops_its_expenses_from_totals(client, tenant):
    _, budget = _site_with_budget(client, tenant)
    budget_id = budget["id"]

    custom = client.post(
        f"/budgets/{budget_id}/categories",
        headers=tenant.headers,
        json={"category_name": "Landscaping", "allocated_amount": "8000"},
    )
    assert custom.status_code == 201, custom.text
    category = custom.json()["data"]
    assert category["is_custom"] is True

    client.post(
        f"/budgets/{budget_id}/expenses",
        headers=tenant.headers,
        json={
            "category_id": category["id"],
            "expense_name": "Sod",
            "amount": "750",
            "expense_date": "2026-04-01",
        },
    )
    current = client.get(f"/budgets/{budget_id}", headers=tenant.headers).json()["data"]
    assert _money(current["allocated_budget"]) == Decimal("8000")
    assert _money(current["spent_budget"]) == Decimal("750")

    resp = client.delete(f"/budgets/{budget_id}/categories/{category['id']}", headers=tenant.headers)
    assert resp.status_code == 200

    current = client.get(f"/budgets/{budget_id}", headers=tenant.headers).json()["data"]
    assert _money(current["allocated_budget"]) == 0
    assert _money(current["spent_budget"]) == 0
    expenses = client.get(f"/budgets/{budget_id}/expenses", headers=tenant.headers).json()["data"]
    assert expenses["total"] == 0


def test_expense_validation(client, tenant):
    _, budget = _site_with_budget(client, tenant)
    _, other_budget = _site_with_budget(client, tenant, name="South Yard")
    foreign_category = _category(other_budget, "Labor")

    wrong_budget = client.post(
        f"/budgets/{budget['id']}/expenses",
        headers=tenant.headers,
        json={
            "category_id": foreign_category["id"],
            "expense_name": "Misfiled",
            "amount": "10",
            "expense_date": "2026-04-01",
        },
    )
    assert wrong_budget.status_code == 400
    assert wrong_budget.json()["error"] == "Category does not belong to this budget"

    negative = client.post(
        f"/budgets/{budget['id']}/expenses",
        headers=tenant.headers,
        json={
            "category_id": _category(budget, "Labor")["id"],
            "expense_name": "Refund",
            "amount": "-10",
            "expense_date": "2026-04-01",
        },
    )
    assert negative.status_code == 400


def test_expense_filters_and_analytics(client, tenant):
    _, budget = _site_with_budget(client, tenant)
    budget_id = budget["id"]
    labor = _category(budget, "Labor")
    materials = _category(budget, "Materials")
    client.put(
        f"/budgets/{budget_id}/categories/{materials['id']}",
        headers=tenant.headers,
        json={"allocated_amount": "1000"},
    )

    rows = [
        (materials, "Lumber", "400", "2026-02-10", "Home Depot"),
        (materials, "Drywall", "100", "2026-03-03", "home depot"),
        (labor, "Electrician", "900", "2026-03-15", "Spark Electric"),
    ]
    for category, name, amount, when, vendor in rows:
        resp = client.post(
            f"/budgets/{budget_id}/expenses",
            headers=tenant.headers,
            json={
                "category_id": category["id"],
                "expense_name": name,
                "amount": amount,
                "expense_date": when,
                "vendor": vendor,
            },
        )
        assert resp.status_code == 201, resp.text

    listing = client.get(f"/budgets/{budget_id}/expenses", headers=tenant.headers).json()["data"]
    assert listing["limit"] == 50
    assert [e["expense_name"] for e in listing["items"]] == ["Electrician", "Drywall", "Lumber"]

    filtered = client.get(
        f"/budgets/{budget_id}/expenses",
        headers=tenant.headers,
        params={"vendor": "DEPOT", "min_amount": "150", "start_date": "2026-01-01"},
    ).json()["data"]
    assert [e["expense_name"] for e in filtered["items"]] == ["Lumber"]

    analytics = client.get(f"/budgets/{budget_id}/analytics", headers=tenant.headers).json()["data"]
    assert _money(analytics["total_expenses"]) == Decimal("1400")

    assert analytics["category_breakdown"][0]["category_name"] == "Materials"
    materials_row = analytics["category_breakdown"][0]
    assert _money(materials_row["spent_amount"]) == Decimal("500")
    assert _money(materials_row["remaining_amount"]) == Decimal("500")
    assert _money(materials_row["utilization_percentage"]) == Decimal("50.00")
    labor_row = next(r for r in analytics["category_breakdown"] if r["category_name"] == "Labor")
    assert _money(labor_row["utilization_percentage"]) == 0

    months = [(m["year"], m["month"], _money(m["total"])) for m in analytics["monthly_expenses"]]
    assert months == [(2026, 3, Decimal("1000")), (2026, 2, Decimal("400"))]

    vendors = analytics["top_vendors"]
    assert vendors[0]["vendor"] == "Spark Electric"
    assert _money(vendors[0]["total"]) == Decimal("900")


def test_budgets_are_tenant_scoped(client, tenant, other_tenant):
    site, budget = _site_with_budget(client, tenant)

    assert client.get(f"/budgets/{budget['id']}", headers=other_tenant.headers).status_code == 404
    assert client.get(f"/budgets/site/{site['id']}", headers=other_tenant.headers).status_code == 404
    assert client.get(f"/budgets/{budget['id']}/categories", headers=other_tenant.headers).status_code == 404
    resp = client.put(
        f"/budgets/{budget['id']}/categories/{budget['categories'][0]['id']}",
        headers=other_tenant.headers,
        json={"allocated_amount": "1"},
    )
    assert resp.status_code == 404


def test_deleting_the_site_removes_its_budget(client, tenant):
    site, budget = _site_with_budget(client, tenant)

    assert client.delete(f"/sites/{site['id']}", headers=tenant.headers).status_code == 200
    assert client.get(f"/budgets/{budget['id']}", headers=tenant.headers).status_code == 404
    assert client.get(f"/budgets/site/{site['id']}", headers=tenant.headers).status_code == 404


def _rebuild_and_read(budget_id, company_id, category_ids):
    db = database.SessionLocal()
    try:
        with transaction(db):
            budgets_service.rebuild_rollups(db, budget_id, category_ids)
        budget = SiteBudgetRepository(db).find_by_id(budget_id, company_id)
        categories = {c["id"]: c["spent_amount"] for c in BudgetCategoryRepository(db).for_budget(budget_id, company_id)}
    finally:
        db.close()
    return budget["allocated_budget"], budget["spent_budget"], categories


def test_rebuilding_rollups_twice_changes_nothing(client, tenant):
    _, budget = _site_with_budget(client, tenant)
    budget_id = budget["id"]
    labor = _category(budget, "Labor")
    client.put(
        f"/budgets/{budget_id}/categories/{labor['id']}",
        headers=tenant.headers,
        json={"allocated_amount": "2500"},
    )
    for amount in ("100.25", "99.75"):
        client.post(
            f"/budgets/{budget_id}/expenses",
            headers=tenant.headers,
            json={
                "category_id": labor["id"],
                "expense_name": "Day rate",
                "amount": amount,
                "expense_date": "2026-05-04",
            },
        )
    category_ids = [c["id"] for c in budget["categories"]]

    first = _rebuild_and_read(budget_id, tenant.company_id, category_ids)
    second = _rebuild_and_read(budget_id, tenant.company_id, category_ids)

    assert first == second
    assert _money(first[0]) == Decimal("2500")
    assert _money(first[1]) == Decimal("200.00")
    assert _money(first[2][labor["id"]]) == Decimal("200.00")

    current = client.get(f"/budgets/{budget_id}", headers=tenant.headers).json()["data"]
    assert _money(current["spent_budget"]) == _money(first[1])
