from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from budget_recon.core.money import parse_number

MonthKey = str  # "YYYY-MM"

# persisted key prefix for a category cell inside a weekly breakdown row
CELL_KEY_PREFIX = "weekly-variable-"

# row keys that are never category cells
_ROW_FIELDS = {"dateRange", "weekRange", "paymentsDue", "estimate", "weeklyEstimate", "actual"}


def _text(v: Any) -> str:
    if v is None:
        return ""
    return str(v)


def _flag(v: Any) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in {"true", "yes", "y", "1", "✓"}
    return bool(v)


@dataclass
class Week:
    index: int
    start_date: int   # day of month
    end_date: int     # day of month, inclusive

    @property
    def date_range_label(self) -> str:
        return f"{self.start_date}-{self.end_date}"

    def contains(self, day: int) -> bool:
        return self.start_date <= day <= self.end_date

    @property
    def days(self) -> List[int]:
        return list(range(self.start_date, self.end_date + 1))


@dataclass
class IncomeSource:
    source: str = ""
    estimated: float = 0.0
    actual: float = 0.0
    date: str = ""
    description: str = ""
    comments: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "IncomeSource":
        return cls(
            source=_text(d.get("source")),
            estimated=parse_number(d.get("estimated")),
            actual=parse_number(d.get("actual")),
            date=_text(d.get("date")),
            description=_text(d.get("description")),
            comments=_text(d.get("comments")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "estimated": self.estimated,
            "actual": self.actual,
            "date": self.date,
            "description": self.description,
            "comments": self.comments,
        }


@dataclass
class FixedCost:
    category: str = ""
    estimated_amount: float = 0.0
    actual_amount: float = 0.0
    date: str = ""          # free text holding a day number, e.g. "1", "15th", "03/04"
    card: str = ""
    paid: bool = False
    comments: str = ""

    @property
    def due_amount(self) -> float:
        return self.estimated_amount or self.actual_amount

    @property
    def label(self) -> str:
        return self.category or "Fixed Cost"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FixedCost":
        return cls(
            category=_text(d.get("category")),
            estimated_amount=parse_number(d.get("estimatedAmount")),
            actual_amount=parse_number(d.get("actualAmount")),
            date=_text(d.get("date")),
            card=_text(d.get("card")),
            paid=_flag(d.get("paid", False)),
            comments=_text(d.get("comments")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "estimatedAmount": self.estimated_amount,
            "actualAmount": self.actual_amount,
            "date": self.date,
            "card": self.card,
            "paid": self.paid,
            "comments": self.comments,
        }


@dataclass
class VariableCost:
    category: str = ""
    estimated_amount: float = 0.0   # monthly budget
    actual_amount: float = 0.0      # derived from the weekly cells, never edited directly
    comments: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "VariableCost":
        return cls(
            category=_text(d.get("category")).strip(),
            estimated_amount=parse_number(d.get("estimatedAmount", d.get("monthlyBudget"))),
            actual_amount=parse_number(d.get("actualAmount", d.get("actualSpent"))),
            comments=_text(d.get("comments")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "estimatedAmount": self.estimated_amount,
            "actualAmount": self.actual_amount,
            "comments": self.comments,
        }


@dataclass
class UnplannedExpense:
    name: str = ""
    amount: float = 0.0
    date: str = ""
    card: str = ""
    paid: bool = False
    comments: str = ""

    @property
    def label(self) -> str:
        return self.name or "Unplanned"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "UnplannedExpense":
        return cls(
            name=_text(d.get("name")),
            amount=parse_number(d.get("amount")),
            date=_text(d.get("date")),
            card=_text(d.get("card")),
            paid=_flag(d.get("paid", False)),
            comments=_text(d.get("comments")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "amount": self.amount,
            "date": self.date,
            "card": self.card,
            "paid": self.paid,
            "comments": self.comments,
        }


@dataclass
class Pot:
    category: str = ""
    estimated_amount: float = 0.0
    actual_amount: float = 0.0
    comments: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Pot":
        return cls(
            category=_text(d.get("category")),
            estimated_amount=parse_number(d.get("estimatedAmount")),
            actual_amount=parse_number(d.get("actualAmount")),
            comments=_text(d.get("comments")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "estimatedAmount": self.estimated_amount,
            "actualAmount": self.actual_amount,
            "comments": self.comments,
        }


@dataclass
class WeeklyBreakdownRow:
    date_range: str = ""
    payments_due: str = ""
    # sanitized category id -> cell text; legacy rows may hold raw names until the schema is rebuilt
    cells: Dict[str, str] = field(default_factory=dict)
    estimate: float = 0.0
    actual: float = 0.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WeeklyBreakdownRow":
        cells: Dict[str, str] = {}
        for k, v in d.items():
            if k in _ROW_FIELDS:
                continue
            if k.startswith(CELL_KEY_PREFIX):
                cells[k[len(CELL_KEY_PREFIX):]] = _text(v)
            else:
                # legacy: stored under the raw category name
                cells.setdefault(k, _text(v))
        return cls(
            date_range=_text(d.get("dateRange") or d.get("weekRange")),
            payments_due=_text(d.get("paymentsDue")),
            cells=cells,
            estimate=parse_number(d.get("estimate", d.get("weeklyEstimate"))),
            actual=parse_number(d.get("actual")),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "dateRange": self.date_range,
            "paymentsDue": self.payments_due,
        }
        for cid, text in self.cells.items():
            out[CELL_KEY_PREFIX + cid] = text
        out["estimate"] = self.estimate
        out["actual"] = self.actual
        return out


@dataclass
class CategoryCell:
    """Structured view of one category/week cell.

    ``estimate_line`` is the machine-written ``Estimate: ...`` line (None when absent),
    ``actual_expression`` is the text after ``=`` on the actual-spending line
    (None when the cell has no such line), ``other_lines`` are kept verbatim.
    """
    estimate_line: Optional[str] = None
    actual_expression: Optional[str] = None
    other_lines: List[str] = field(default_factory=list)
    estimate: float = 0.0

    @property
    def has_actual(self) -> bool:
        return bool(self.actual_expression and self.actual_expression.strip())


@dataclass
class MonthRecord:
    key: MonthKey
    year: int
    month: int
    month_name: str = ""
    income_sources: List[IncomeSource] = field(default_factory=list)
    fixed_costs: List[FixedCost] = field(default_factory=list)
    variable_costs: List[VariableCost] = field(default_factory=list)
    unplanned_expenses: List[UnplannedExpense] = field(default_factory=list)
    pots: List[Pot] = field(default_factory=list)
    weekly_breakdown: List[WeeklyBreakdownRow] = field(default_factory=list)
    date_range: Dict[str, str] = field(default_factory=dict)
    created_at: str = ""
    updated_at: str = ""

    @property
    def categories(self) -> List[str]:
        """Variable-cost category names, order-preserving and de-duplicated."""
        seen = set()
        out: List[str] = []
        for vc in self.variable_costs:
            c = vc.category.strip()
            if c and c not in seen:
                seen.add(c)
                out.append(c)
        return out

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MonthRecord":
        key = _text(d.get("key"))
        year = int(parse_number(d.get("year")))
        month = int(parse_number(d.get("month")))
        if (not year or not month) and "-" in key:
            y, m = key.split("-", 1)
            year, month = int(y), int(m)
        return cls(
            key=key or f"{year:04d}-{month:02d}",
            year=year,
            month=month,
            month_name=_text(d.get("monthName")),
            income_sources=[IncomeSource.from_dict(x) for x in d.get("incomeSources") or []],
            fixed_costs=[FixedCost.from_dict(x) for x in d.get("fixedCosts") or []],
            variable_costs=[VariableCost.from_dict(x) for x in d.get("variableCosts") or []],
            unplanned_expenses=[UnplannedExpense.from_dict(x) for x in d.get("unplannedExpenses") or []],
            pots=[Pot.from_dict(x) for x in d.get("pots") or []],
            weekly_breakdown=[WeeklyBreakdownRow.from_dict(x) for x in d.get("weeklyBreakdown") or []],
            date_range=dict(d.get("dateRange") or {}),
            created_at=_text(d.get("createdAt")),
            updated_at=_text(d.get("updatedAt")),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "key": self.key,
            "year": self.year,
            "month": self.month,
            "monthName": self.month_name,
            "incomeSources": [x.to_dict() for x in self.income_sources],
            "fixedCosts": [x.to_dict() for x in self.fixed_costs],
            "variableCosts": [x.to_dict() for x in self.variable_costs],
            "unplannedExpenses": [x.to_dict() for x in self.unplanned_expenses],
            "pots": [x.to_dict() for x in self.pots],
            "weeklyBreakdown": [x.to_dict() for x in self.weekly_breakdown],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.date_range:
            out["dateRange"] = dict(self.date_range)
        return out


@dataclass
class EstimatedActual:
    estimated: float = 0.0
    actual: float = 0.0


@dataclass
class MonthTotals:
    income: EstimatedActual = field(default_factory=EstimatedActual)
    fixed_costs: EstimatedActual = field(default_factory=EstimatedActual)
    variable_costs: EstimatedActual = field(default_factory=EstimatedActual)
    unplanned_expenses: EstimatedActual = field(default_factory=EstimatedActual)
    pots: EstimatedActual = field(default_factory=EstimatedActual)
    expenses: EstimatedActual = field(default_factory=EstimatedActual)
    net_savings: EstimatedActual = field(default_factory=EstimatedActual)


@dataclass
class WeekSummary:
    week: Week
    payments_estimate: float = 0.0
    payments_actual: float = 0.0
    category_estimates: Dict[str, float] = field(default_factory=dict)
    category_actuals: Dict[str, float] = field(default_factory=dict)
    estimate: float = 0.0
    actual: float = 0.0


@dataclass
class ReconciledMonth:
    """Snapshot handed to the display layer after one reconciliation pass."""
    record: MonthRecord
    weeks: List[Week]
    week_summaries: List[WeekSummary]
    category_totals: Dict[str, float]      # category name -> actual spent across all weeks
    totals: MonthTotals
    weekly_estimate_total: float = 0.0
    weekly_actual_total: float = 0.0
