"""Tests for the reconciliation pass."""

from __future__ import annotations

import copy

import pytest

from budget_recon.analytics.aggregation import calculate_month_totals, reconcile_month, week_totals
from budget_recon.config.loader import Settings
from budget_recon.core.models import (
    FixedCost,
    IncomeSource,
    MonthRecord,
    Pot,
    UnplannedExpense,
    VariableCost,
    WeeklyBreakdownRow,
)


def _april() -> MonthRecord:
    # April 2026: weeks 1-5, 6-12, 13-19, 20-26, 27-30
    return MonthRecord(
        key="2026-04",
        year=2026,
        month=4,
        month_name="April",
        income_sources=[IncomeSource(source="Salary", estimated=2500, actual=2500)],
        fixed_costs=[
            FixedCost(category="Rent", estimated_amount=900, date="1", paid=True),
            FixedCost(category="Gym", estimated_amount=30, actual_amount=30, date="14", card="Amex"),
            FixedCost(category="Insurance", estimated_amount=50, actual_amount=50, date=""),
        ],
        variable_costs=[
            VariableCost(category="Food", estimated_amount=250),
            VariableCost(category="Activities", estimated_amount=100, actual_amount=999),
        ],
        unplanned_expenses=[
            UnplannedExpense(name="Boiler", amount=150, date="2", paid=True),
            UnplannedExpense(name="Gift", amount=20, date="3", paid=False),
        ],
        pots=[Pot(category="ISA", estimated_amount=200, actual_amount=200)],
        weekly_breakdown=[
            WeeklyBreakdownRow(date_range="1-5", cells={"food": "Estimate: £1.00\n=20+5"}),
            WeeklyBreakdownRow(date_range="6-12", cells={"Food": "=10*2", "activities": "=junk"}),
        ],
    )


def test_food_estimate_over_four_weeks() -> None:
    rec = MonthRecord(
        key="2021-02", year=2021, month=2,
        variable_costs=[VariableCost(category="Food", estimated_amount=280)],
    )
    out = reconcile_month(rec)
    assert len(out.weeks) == 4
    for row in out.record.weekly_breakdown:
        assert row.cells["food"].split("\n")[0] == "Estimate: £70.00"
        assert row.estimate == pytest.approx(70.0)


def test_paid_rent_lands_in_first_week() -> None:
    out = reconcile_month(_april())
    first = out.record.weekly_breakdown[0]
    assert first.date_range == "1-5"
    assert "Rent: £900.00 ✓" in first.payments_due
    assert "Boiler: £150.00 ✓" in first.payments_due
    assert "Gift: £20.00" in first.payments_due
    # paid rent + paid boiler + food 25; unpaid gift excluded
    assert out.week_summaries[0].actual == pytest.approx(900 + 150 + 25)
    assert first.actual == pytest.approx(1075)


def test_week_estimate_uses_planned_items_only() -> None:
    out = reconcile_month(_april())
    s = out.week_summaries[0]
    assert s.payments_estimate == pytest.approx(900)
    # 250/5 and 100/5 rounded into the estimate lines
    assert s.estimate == pytest.approx(900 + 50 + 20)


def test_unpaid_fixed_cost_not_in_week_actual() -> None:
    out = reconcile_month(_april())
    gym_week = out.week_summaries[2]  # 13-19
    assert gym_week.payments_estimate == pytest.approx(30)
    assert gym_week.payments_actual == 0.0
    assert "Gym: £30.00 (Amex)" in out.record.weekly_breakdown[2].payments_due


def test_category_actuals_derived_from_cells() -> None:
    out = reconcile_month(_april())
    assert out.category_totals == {"Food": pytest.approx(45.0), "Activities": 0.0}
    vcs = {v.category: v.actual_amount for v in out.record.variable_costs}
    # stored actual is overwritten by the derived value
    assert vcs == {"Food": pytest.approx(45.0), "Activities": 0.0}


def test_user_lines_survive_and_estimates_refresh() -> None:
    out = reconcile_month(_april())
    rows = out.record.weekly_breakdown
    assert rows[0].cells["food"] == "Estimate: £50.00\n=20+5"
    assert rows[1].cells["food"] == "Estimate: £50.00\n=10*2"
    assert rows[1].cells["activities"] == "Estimate: £20.00\n=junk"
    assert rows[2].cells["food"] == "Estimate: £50.00\n="


def test_month_totals() -> None:
    out = reconcile_month(_april())
    t = out.totals
    assert t.income.actual == 2500
    assert t.fixed_costs.estimated == pytest.approx(980)
    assert t.fixed_costs.actual == pytest.approx(80)
    assert t.variable_costs.estimated == pytest.approx(350)
    assert t.variable_costs.actual == pytest.approx(45)
    assert t.unplanned_expenses.actual == pytest.approx(170)
    assert t.expenses.actual == pytest.approx(80 + 45 + 170)
    assert t.expenses.estimated == pytest.approx(980 + 350)
    assert t.net_savings.actual == pytest.approx(2500 - 295 - 200)
    assert t.net_savings.estimated == pytest.approx(2500 - 1330 - 200)


def test_reconcile_is_idempotent() -> None:
    once = reconcile_month(_april())
    twice = reconcile_month(once.record)
    assert twice.record == once.record
    assert twice.totals == once.totals
    assert twice.week_summaries == once.week_summaries


def test_input_record_not_modified() -> None:
    rec = _april()
    before = copy.deepcopy(rec)
    reconcile_month(rec)
    assert rec == before


def test_seeds_default_categories() -> None:
    rec = MonthRecord(key="2026-04", year=2026, month=4)
    out = reconcile_month(rec, Settings())
    assert out.record.categories == ["Food", "Travel/Transport", "Activities"]
    assert set(out.record.weekly_breakdown[0].cells) == {"food", "travel-transport", "activities"}


def test_other_currency() -> None:
    settings = Settings()
    settings.display.currency = "$"
    rec = MonthRecord(
        key="2021-02", year=2021, month=2,
        variable_costs=[VariableCost(category="Food", estimated_amount=280)],
        fixed_costs=[FixedCost(category="Rent", estimated_amount=900, date="1", paid=True)],
    )
    out = reconcile_month(rec, settings)
    first = out.record.weekly_breakdown[0]
    assert first.cells["food"] == "Estimate: $70.00\n="
    assert first.payments_due == "Rent: $900.00 ✓"


def test_calculate_month_totals_and_week_totals() -> None:
    rec = MonthRecord(
        key="2026-04", year=2026, month=4,
        weekly_breakdown=[
            WeeklyBreakdownRow(date_range="1-5", estimate=10, actual=4),
            WeeklyBreakdownRow(date_range="6-12", estimate=5, actual=1),
        ],
    )
    wt = week_totals(rec.weekly_breakdown)
    assert (wt.estimated, wt.actual) == (15, 5)
    t = calculate_month_totals(rec)
    assert t.net_savings.actual == 0.0


def test_deleted_cost_leaves_week_payments_empty() -> None:
    rec = reconcile_month(_april()).record
    rec.fixed_costs = [c for c in rec.fixed_costs if c.category != "Rent"]
    rec.unplanned_expenses = []
    out = reconcile_month(rec)
    first = out.record.weekly_breakdown[0]
    assert first.payments_due == ""
    assert out.week_summaries[0].payments_estimate == 0.0
    assert out.week_summaries[0].actual == pytest.approx(25)


def test_redated_cost_moves_to_its_new_week() -> None:
    rec = reconcile_month(_april()).record
    rec.fixed_costs[0].date = "14"
    out = reconcile_month(rec)
    rows = out.record.weekly_breakdown
    assert rows[0].payments_due == "Boiler: £150.00 ✓\nGift: £20.00"
    assert rows[2].payments_due == "Rent: £900.00 ✓\nGym: £30.00 (Amex)"
    assert out.week_summaries[0].payments_estimate == 0.0


def test_paid_fixed_cost_counts_its_estimate() -> None:
    rec = MonthRecord(
        key="2026-04", year=2026, month=4,
        fixed_costs=[FixedCost(category="Rent", estimated_amount=900, actual_amount=950, date="1", paid=True)],
        variable_costs=[VariableCost(category="Food")],
    )
    out = reconcile_month(rec)
    assert out.week_summaries[0].payments_actual == pytest.approx(900)
    assert out.week_summaries[0].actual == pytest.approx(900)
    # the month totals still use the recorded actual
    assert out.totals.fixed_costs.actual == pytest.approx(950)


def test_categories_sharing_an_id_share_one_column() -> None:
    rec = MonthRecord(
        key="2021-02", year=2021, month=2,
        variable_costs=[
            VariableCost(category="Food", estimated_amount=100),
            VariableCost(category="food", estimated_amount=50),
        ],
        weekly_breakdown=[WeeklyBreakdownRow(date_range="1-7", cells={"food": "=10"})],
    )
    out = reconcile_month(rec)
    assert out.record.weekly_breakdown[0].cells["food"] == "Estimate: £37.50\n=10"
    assert [v.actual_amount for v in out.record.variable_costs] == [pytest.approx(10.0), 0.0]
    assert out.totals.variable_costs.estimated == pytest.approx(150)
    assert out.totals.variable_costs.actual == pytest.approx(10.0)
    assert out.weekly_estimate_total == pytest.approx(150)
