from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List, Tuple
import pandas as pd

from budget_recon.core.dates import month_key, month_name
from budget_recon.core.models import (
    FixedCost,
    IncomeSource,
    MonthRecord,
    Pot,
    UnplannedExpense,
    VariableCost,
    WeeklyBreakdownRow,
)
from budget_recon.budgeting.schema import sanitize_category_id

COLUMNS = ["Section", "Category", "Field", "Value", "Date", "Card", "Paid", "Description", "Comments"]

WEEKLY = "Weekly Breakdown"
INCOME = "Income"
FIXED = "Fixed Costs"
VARIABLE = "Variable Costs"
UNPLANNED = "Unplanned Expenses"
POTS = "Pots"

def _to_str(x) -> str:
    if x is None or (not isinstance(x, str) and pd.isna(x)):
        return ""
    return str(x)

def _to_num(x) -> float:
    s = _to_str(x).replace(",", "").strip()
    if not s:
        return 0.0
    try:
        return float(s)
    except ValueError:
        return 0.0

def _yes(x) -> bool:
    return _to_str(x).strip().lower() in {"yes", "y", "true", "1", "✓"}

def _row(section: str, category: str, field: str, value: Any, date: str = "", card: str = "",
         paid: str = "", description: str = "", comments: str = "") -> Dict[str, Any]:
    return dict(zip(COLUMNS, [section, category, field, value, date, card, paid, description, comments]))

def month_to_frame(record: MonthRecord) -> pd.DataFrame:
    names = {sanitize_category_id(c): c for c in record.categories}
    rows: List[Dict[str, Any]] = []
    for i, w in enumerate(record.weekly_breakdown, start=1):
        wk = f"Week {i}"
        rows.append(_row(WEEKLY, wk, "Date Range", w.date_range))
        rows.append(_row(WEEKLY, wk, "Payments Due", w.payments_due))
        for cid, text in w.cells.items():
            rows.append(_row(WEEKLY, wk, names.get(cid, cid), text))
        rows.append(_row(WEEKLY, wk, "Estimate", w.estimate))
        rows.append(_row(WEEKLY, wk, "Actual", w.actual))
    for i, inc in enumerate(record.income_sources, start=1):
        name = inc.source or f"Income {i}"
        rows.append(_row(INCOME, name, "Estimated", inc.estimated, inc.date, description=inc.description, comments=inc.comments))
        rows.append(_row(INCOME, name, "Actual", inc.actual, inc.date, description=inc.description, comments=inc.comments))
    for c in record.fixed_costs:
        paid = "Yes" if c.paid else "No"
        rows.append(_row(FIXED, c.category, "Estimated", c.estimated_amount, c.date, c.card, paid, comments=c.comments))
        rows.append(_row(FIXED, c.category, "Actual", c.actual_amount, c.date, c.card, paid, comments=c.comments))
    for v in record.variable_costs:
        rows.append(_row(VARIABLE, v.category, "Monthly Budget", v.estimated_amount, comments=v.comments))
        rows.append(_row(VARIABLE, v.category, "Actual Spent", v.actual_amount, comments=v.comments))
    for e in record.unplanned_expenses:
        rows.append(_row(UNPLANNED, e.name, "Amount", e.amount, e.date, e.card, "Yes" if e.paid else "No", comments=e.comments))
    for p in record.pots:
        rows.append(_row(POTS, p.category, "Estimated", p.estimated_amount, comments=p.comments))
        rows.append(_row(POTS, p.category, "Actual", p.actual_amount, comments=p.comments))
    return pd.DataFrame(rows, columns=COLUMNS)

def write_month_csv(out_dir: Path, record: MonthRecord) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"month={record.key}.csv"
    month_to_frame(record).to_csv(path, index=False, encoding="utf-8")
    return path

def _grouped(df: pd.DataFrame, section: str) -> List[Tuple[str, pd.DataFrame]]:
    part = df[df["Section"] == section]
    # keep first-appearance order of categories
    order = list(dict.fromkeys(part["Category"].tolist()))
    return [(c, part[part["Category"] == c]) for c in order]

def _field(group: pd.DataFrame, name: str) -> Dict[str, Any]:
    hit = group[group["Field"] == name]
    if hit.empty:
        return {}
    return hit.iloc[0].to_dict()

def frame_to_month(df: pd.DataFrame, year: int, month: int) -> MonthRecord:
    missing = [c for c in COLUMNS[:4] if c not in df.columns]
    if missing:
        raise ValueError(f"Missing expected columns {missing}. Found: {list(df.columns)}")
    df = df.reindex(columns=COLUMNS).fillna("")
    df = df.apply(lambda col: col.map(_to_str))

    rec = MonthRecord(key=month_key(year, month), year=year, month=month, month_name=month_name(month))

    for _, g in _grouped(df, WEEKLY):
        row = WeeklyBreakdownRow()
        for _, r in g.iterrows():
            f, v = r["Field"], r["Value"]
            if f == "Date Range":
                row.date_range = v
            elif f == "Payments Due":
                row.payments_due = v
            elif f == "Estimate":
                row.estimate = _to_num(v)
            elif f == "Actual":
                row.actual = _to_num(v)
            elif f:
                row.cells[f] = v
        rec.weekly_breakdown.append(row)

    for name, g in _grouped(df, INCOME):
        est, act = _field(g, "Estimated"), _field(g, "Actual")
        first = est or act
        rec.income_sources.append(IncomeSource(
            source=name,
            estimated=_to_num(est.get("Value")),
            actual=_to_num(act.get("Value")),
            date=first.get("Date", ""),
            description=first.get("Description", ""),
            comments=first.get("Comments", ""),
        ))

    for name, g in _grouped(df, FIXED):
        est, act = _field(g, "Estimated"), _field(g, "Actual")
        first = est or act
        rec.fixed_costs.append(FixedCost(
            category=name,
            estimated_amount=_to_num(est.get("Value")),
            actual_amount=_to_num(act.get("Value")),
            date=first.get("Date", ""),
            card=first.get("Card", ""),
            paid=_yes(first.get("Paid")),
            comments=first.get("Comments", ""),
        ))

    for name, g in _grouped(df, VARIABLE):
        budget, spent = _field(g, "Monthly Budget"), _field(g, "Actual Spent")
        rec.variable_costs.append(VariableCost(
            category=name,
            estimated_amount=_to_num(budget.get("Value")),
            actual_amount=_to_num(spent.get("Value")),
            comments=(budget or spent).get("Comments", ""),
        ))

    for _, r in df[df["Section"] == UNPLANNED].iterrows():
        rec.unplanned_expenses.append(UnplannedExpense(
            name=r["Category"],
            amount=_to_num(r["Value"]),
            date=r["Date"],
            card=r["Card"],
            paid=_yes(r["Paid"]),
            comments=r["Comments"],
        ))

    for name, g in _grouped(df, POTS):
        est, act = _field(g, "Estimated"), _field(g, "Actual")
        rec.pots.append(Pot(
            category=name,
            estimated_amount=_to_num(est.get("Value")),
            actual_amount=_to_num(act.get("Value")),
            comments=(est or act).get("Comments", ""),
        ))
    return rec

def read_month_csv(csv_path: Path, year: int, month: int) -> MonthRecord:
    try:
        df = pd.read_csv(csv_path, dtype=object, keep_default_na=False)
    except pd.errors.EmptyDataError as e:
        raise ValueError(f"CSV file {csv_path} is empty or invalid") from e
    if df.empty:
        raise ValueError(f"CSV file {csv_path} is empty or invalid")
    return frame_to_month(df, year, month)
