from __future__ import annotations
from typing import Dict, List, Mapping

from budget_recon.analytics.aggregation import calculate_month_totals
from budget_recon.core.models import MonthKey, MonthRecord

METRICS = ("income", "expenses", "savings")

def monthly_actuals(
    month_keys: List[MonthKey],
    all_months: Mapping[MonthKey, MonthRecord],
    metric: str,
) -> List[float]:
    """Actual value of ``metric`` per month, 0.0 for months that are missing."""
    out: List[float] = []
    for k in month_keys:
        rec = all_months.get(k)
        if rec is None:
            out.append(0.0)
            continue
        t = calculate_month_totals(rec)
        if metric == "income":
            out.append(t.income.actual)
        elif metric == "expenses":
            out.append(t.expenses.actual)
        elif metric == "savings":
            out.append(t.net_savings.actual)
        else:
            out.append(0.0)
    return out

def calculate_trend(
    month_keys: List[MonthKey],
    all_months: Mapping[MonthKey, MonthRecord],
    metric: str,
) -> Dict[str, object]:
    """
    Average of the monthly actuals, plus the change of the second half of the
    period against the first half, as a percentage of the first half.
    """
    if len(month_keys) < 2:
        return {"average": 0.0, "percentage": 0.0, "direction": "→ Stable"}

    values = monthly_actuals(month_keys, all_months, metric)
    average = sum(values) / len(values)

    half = len(values) // 2
    first, second = values[:half], values[half:]
    first_avg = sum(first) / len(first)
    second_avg = sum(second) / len(second)

    percentage = ((second_avg - first_avg) / abs(first_avg)) * 100 if first_avg != 0 else 0.0
    if percentage > 0:
        direction = "↑ Increasing"
    elif percentage < 0:
        direction = "↓ Decreasing"
    else:
        direction = "→ Stable"
    return {"average": average, "percentage": percentage, "direction": direction}
