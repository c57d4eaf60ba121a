"""The reconciliation pass: every derived figure of a month, recomputed from scratch.

``reconcile_month`` takes a MonthRecord and returns a ReconciledMonth whose
record is a fresh copy with the weekly breakdown rebuilt, cells and
payments-due text synchronized, and all derived amounts refreshed. The input
record is not modified. Running the pass on its own output gives the same
output again.
"""
from __future__ import annotations
import copy
import logging
from typing import Dict, Iterable, List, Optional

from budget_recon.budgeting.cells import estimate_of, actual_of, synchronize_cell
from budget_recon.budgeting.expression import contribution, is_not_a_number
from budget_recon.budgeting.schema import align_rows_to_weeks, rebuild_schema, sanitize_category_id
from budget_recon.budgeting.weekly_budget import (
    dated_items_for_week,
    distribute_category_budget,
    synchronize_payments_due,
)
from budget_recon.config.loader import Settings
from budget_recon.core.dates import partition_month
from budget_recon.core.models import (
    EstimatedActual,
    MonthRecord,
    MonthTotals,
    ReconciledMonth,
    VariableCost,
    WeeklyBreakdownRow,
    WeekSummary,
)

logger = logging.getLogger(__name__)


def calculate_month_totals(record: MonthRecord) -> MonthTotals:
    t = MonthTotals()
    for i in record.income_sources:
        t.income.estimated += i.estimated
        t.income.actual += i.actual
    for c in record.fixed_costs:
        t.fixed_costs.estimated += c.estimated_amount
        t.fixed_costs.actual += c.actual_amount
    for v in record.variable_costs:
        t.variable_costs.estimated += v.estimated_amount
        t.variable_costs.actual += v.actual_amount
    for e in record.unplanned_expenses:
        t.unplanned_expenses.actual += e.amount
    for p in record.pots:
        t.pots.estimated += p.estimated_amount
        t.pots.actual += p.actual_amount

    # unplanned spending has no estimate: estimates come from planned budgets only
    t.expenses = EstimatedActual(
        estimated=t.fixed_costs.estimated + t.variable_costs.estimated,
        actual=t.fixed_costs.actual + t.variable_costs.actual + t.unplanned_expenses.actual,
    )
    t.net_savings = EstimatedActual(
        estimated=t.income.estimated - t.expenses.estimated - t.pots.estimated,
        actual=t.income.actual - t.expenses.actual - t.pots.actual,
    )
    return t


def week_totals(weekly_breakdown: Iterable[WeeklyBreakdownRow]) -> EstimatedActual:
    out = EstimatedActual()
    for row in weekly_breakdown:
        out.estimated += row.estimate
        out.actual += row.actual
    return out


def _seed_categories(record: MonthRecord, settings: Settings) -> None:
    if record.variable_costs:
        return
    record.variable_costs = [
        VariableCost(category=c) for c in settings.budget.default_variable_categories
    ]


def _distinct_by_id(categories: List[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for c in categories:
        cid = sanitize_category_id(c)
        if cid and cid not in seen:
            seen.add(cid)
            out.append(c)
    return out


def _weekly_budgets(variable_costs: List[VariableCost], week_count: int) -> Dict[str, float]:
    # entries sharing an id share one column, so their budgets are pooled
    budgets: Dict[str, float] = {}
    for vc in variable_costs:
        cid = sanitize_category_id(vc.category)
        if not cid:
            continue
        budgets[cid] = budgets.get(cid, 0.0) + distribute_category_budget(vc.estimated_amount, week_count)
    return budgets


def reconcile_month(record: MonthRecord, settings: Optional[Settings] = None) -> ReconciledMonth:
    settings = settings or Settings()
    symbol = settings.display.currency
    paid_mark = settings.display.paid_mark
    marker = settings.budget.payments_marker

    rec = copy.deepcopy(record)
    _seed_categories(rec, settings)

    weeks = partition_month(rec.year, rec.month)
    categories = _distinct_by_id(rec.categories)
    rows = rebuild_schema(categories, align_rows_to_weeks(weeks, rec.weekly_breakdown))
    budgets = _weekly_budgets(rec.variable_costs, len(weeks))

    category_totals: Dict[str, float] = {c: 0.0 for c in categories}
    summaries: List[WeekSummary] = []

    for week, row in zip(weeks, rows):
        items = dated_items_for_week(week, weeks, rec.fixed_costs, rec.unplanned_expenses)
        row.payments_due = synchronize_payments_due(row.payments_due, items, symbol, paid_mark, marker)

        s = WeekSummary(week=week)
        s.payments_estimate = sum(i.amount for i in items if i.planned)
        s.payments_actual = sum(i.amount for i in items if i.paid)

        for category in categories:
            cid = sanitize_category_id(category)
            row.cells[cid] = synchronize_cell(row.cells.get(cid, ""), budgets.get(cid, 0.0), symbol, marker)
            est = estimate_of(row.cells[cid], symbol)
            raw_actual = actual_of(row.cells[cid], symbol)
            if is_not_a_number(raw_actual):
                logger.debug("week %s, %s: actual-spending line does not evaluate; counted as 0",
                             row.date_range, category)
            act = contribution(raw_actual)
            s.category_estimates[category] = est
            s.category_actuals[category] = act
            category_totals[category] += act

        s.estimate = s.payments_estimate + sum(s.category_estimates.values())
        s.actual = s.payments_actual + sum(s.category_actuals.values())
        row.estimate = s.estimate
        row.actual = s.actual
        summaries.append(s)

    rec.weekly_breakdown = rows
    # actual spend per category is derived from the cells, one way;
    # the first entry for an id carries the column total, later duplicates 0
    by_id = {sanitize_category_id(c): v for c, v in category_totals.items()}
    for vc in rec.variable_costs:
        vc.actual_amount = by_id.pop(sanitize_category_id(vc.category), 0.0)

    weekly = week_totals(rows)
    return ReconciledMonth(
        record=rec,
        weeks=weeks,
        week_summaries=summaries,
        category_totals=category_totals,
        totals=calculate_month_totals(rec),
        weekly_estimate_total=weekly.estimated,
        weekly_actual_total=weekly.actual,
    )
