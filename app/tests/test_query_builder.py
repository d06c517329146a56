from datetime import date

import pytest
from sqlalchemy import Date

from app.core.query import Filter, Op, bound, build_set, build_where, clamp_pagination

BASE = "x.deleted_at IS NULL AND x.company_id = :p1"


def test_present_filters_are_appended_in_declaration_order():
    clause = build_where(
        BASE,
        [7],
        [
            Filter("x.status", Op.EQ, "active"),
            Filter("x.site_id", Op.EQ, None),
            Filter("x.start_date", Op.GTE, date(2026, 1, 1), type_=Date()),
            Filter("x.end_date", Op.LTE, date(2026, 3, 31)),
        ],
    )

    assert clause.sql == (
        "x.deleted_at IS NULL AND x.company_id = :p1 "
        "AND x.status = :p2 AND x.start_date >= :p3 AND x.end_date <= :p4"
    )
    assert clause.params == [7, "active", date(2026, 1, 1), date(2026, 3, 31)]
    assert clause.next_index == 5
    assert isinstance(clause.types[3], Date)


def test_same_filters_build_identical_clauses():
    def build():
        return build_where(
            BASE,
            [3],
            [Filter("x.priority", Op.EQ, "high"), Filter("x.assigned_to", Op.EQ, 11)],
        )

    first, second = build(), build()
    assert first.sql == second.sql
    assert first.params == second.params


def test_no_filters_leaves_base_predicate():
    clause = build_where(BASE, [7], [])
    assert clause.sql == BASE
    assert clause.params == [7]
    assert clause.next_index == 2


def test_search_ors_columns_against_one_unescaped_value():
    clause = build_where(BASE, [7], [Filter(("x.name", "x.description"), Op.SEARCH, "50%_off")])

    assert clause.sql == (
        f"{BASE} AND (LOWER(x.name) LIKE LOWER(:p2) OR LOWER(x.description) LIKE LOWER(:p2))"
    )
    assert clause.params == [7, "%50%_off%"]
    assert clause.next_index == 3


def test_explicit_presence_overrides_value_check():
    clause = build_where(
        BASE,
        [7],
        [
            Filter("x.is_active", Op.EQ, True, present=False),
            Filter("x.assigned_to", Op.EQ, None, present=True),
        ],
    )
    assert clause.sql == f"{BASE} AND x.assigned_to = :p2"
    assert clause.params == [7, None]


def test_statement_binds_pagination_after_filter_params():
    clause = build_where(BASE, [7], [Filter("x.status", Op.EQ, "active")])
    n = clause.next_index
    stmt = clause.statement(f"SELECT x.id FROM jobs x WHERE {clause.sql} LIMIT :p{n} OFFSET :p{n + 1}", 5, 10)

    assert stmt.compile().params == {"p1": 7, "p2": "active", "p3": 5, "p4": 10}


def test_build_set_keeps_explicit_none_and_stamps_updated_at():
    clause = build_set({"description": None, "name": "Foundation"}, ("name", "description", "status"))

    assert clause.sql == "name = :p1, description = :p2, updated_at = CURRENT_TIMESTAMP"
    assert clause.params == ["Foundation", None]
    assert clause.next_index == 3


def test_build_set_with_no_fields_is_empty():
    clause = build_set({}, ("name", "status"))
    assert clause.sql == ""
    assert clause.params == []
    assert clause.next_index == 1


def test_build_set_rejects_unknown_columns():
    with pytest.raises(ValueError):
        build_set({"company_id": 2}, ("name",))


@pytest.mark.parametrize(
    "page,limit,default,expected",
    [
        (None, None, 10, (1, 10, 0)),
        (0, 500, 10, (1, 100, 0)),
        (-2, 0, 20, (1, 20, 0)),
        (3, 5, 10, (3, 5, 10)),
        (2, 100, 50, (2, 100, 100)),
        (10**19, 5, 10, (1_000_000, 5, 4_999_995)),
    ],
)
def test_clamp_pagination(page, limit, default, expected):
    assert clamp_pagination(page, limit, default) == expected


def test_bound_numbers_values_from_one():
    stmt = bound("UPDATE jobs SET status = :p1 WHERE id = :p2", "archived", 4)
    assert stmt.compile().params == {"p1": "archived", "p2": 4}
