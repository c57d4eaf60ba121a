"""Keeps the weekly-breakdown columns in step with the variable-cost categories.

Every category owns exactly one cell per week, stored under its sanitized id
(``"Travel/Transport"`` -> ``"travel-transport"``). Rebuilding the schema moves
existing cell text to the current ids and drops columns whose category is gone.
"""
from __future__ import annotations
import logging
import re
from typing import Dict, List, Mapping, Optional

from budget_recon.core.models import (
    CELL_KEY_PREFIX,
    MonthRecord,
    VariableCost,
    Week,
    WeeklyBreakdownRow,
)

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def sanitize_category_id(category: str) -> str:
    return _NON_ALNUM.sub("-", (category or "").lower()).strip("-")


def _loose_key(key: str) -> str:
    k = key.strip()
    if k.lower().startswith(CELL_KEY_PREFIX):
        k = k[len(CELL_KEY_PREFIX):]
    return sanitize_category_id(k)


def _find_cell(cells: Dict[str, str], category: str, used: set) -> Optional[str]:
    """Key of the existing cell for ``category``: new id, raw name, then a loose scan."""
    cid = sanitize_category_id(category)
    for k in (cid, category, category.strip()):
        if k in cells and k not in used:
            return k
    for k in cells:
        if k not in used and _loose_key(k) == cid:
            return k
    return None


def rebuild_schema(
    categories: List[str],
    rows: List[WeeklyBreakdownRow],
    renames: Optional[Mapping[str, str]] = None,
) -> List[WeeklyBreakdownRow]:
    """Return rows whose cells are exactly one per category, keyed by sanitized id.

    ``renames`` maps old category name -> new name; a renamed category picks up
    the old category's cell when nothing is stored under the new name yet.
    Cells for categories no longer listed are discarded.
    """
    previous_names: Dict[str, List[str]] = {}
    for old, new in (renames or {}).items():
        previous_names.setdefault(sanitize_category_id(new), []).append(old)

    out: List[WeeklyBreakdownRow] = []
    for row in rows:
        used: set = set()
        cells: Dict[str, str] = {}
        for category in categories:
            cid = sanitize_category_id(category)
            if not cid or cid in cells:
                continue
            key = _find_cell(row.cells, category, used)
            if key is None:
                for old in previous_names.get(cid, []):
                    key = _find_cell(row.cells, old, used)
                    if key is not None:
                        break
            if key is None:
                logger.debug("week %s: new empty cell for %r", row.date_range, category)
                cells[cid] = ""
            else:
                used.add(key)
                cells[cid] = row.cells[key]
        dropped = [k for k in row.cells if k not in used and row.cells[k].strip()]
        if dropped:
            logger.info("week %s: discarding cells for removed categories %s", row.date_range, dropped)
        out.append(WeeklyBreakdownRow(
            date_range=row.date_range,
            payments_due=row.payments_due,
            cells=cells,
            estimate=row.estimate,
            actual=row.actual,
        ))
    return out


def align_rows_to_weeks(weeks: List[Week], rows: List[WeeklyBreakdownRow]) -> List[WeeklyBreakdownRow]:
    """One row per week, in week order, joined on the "start-end" label."""
    by_label: Dict[str, WeeklyBreakdownRow] = {}
    for r in rows:
        by_label.setdefault(r.date_range.strip(), r)
    out: List[WeeklyBreakdownRow] = []
    for w in weeks:
        existing = by_label.get(w.date_range_label)
        if existing is not None:
            out.append(existing)
        else:
            out.append(WeeklyBreakdownRow(date_range=w.date_range_label))
    return out


def add_category(record: MonthRecord, category: str, monthly_budget: float = 0.0) -> MonthRecord:
    name = (category or "").strip()
    if not name or sanitize_category_id(name) in {sanitize_category_id(c) for c in record.categories}:
        return record
    record.variable_costs.append(VariableCost(category=name, estimated_amount=monthly_budget))
    record.weekly_breakdown = rebuild_schema(record.categories, record.weekly_breakdown)
    return record


def rename_category(record: MonthRecord, old: str, new: str) -> MonthRecord:
    new_name = (new or "").strip()
    if not new_name or old == new_name:
        return record
    for vc in record.variable_costs:
        if vc.category == old:
            vc.category = new_name
    record.weekly_breakdown = rebuild_schema(record.categories, record.weekly_breakdown, renames={old: new_name})
    return record


def remove_category(record: MonthRecord, category: str) -> MonthRecord:
    """Drop the category and its column; its cell text is gone for good."""
    record.variable_costs = [vc for vc in record.variable_costs if vc.category != category]
    record.weekly_breakdown = rebuild_schema(record.categories, record.weekly_breakdown)
    return record
