from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from dateutil import parser as dup

from budget_recon.core.models import FixedCost, UnplannedExpense, Week
from budget_recon.core.money import DEFAULT_CURRENCY, format_currency

logger = logging.getLogger(__name__)

DEFAULT_PAID_MARK = "✓"
DEFAULT_MARKER = "Auto-generated"

_DIGITS = re.compile(r"\d+")

@dataclass
class DueItem:
    label: str
    amount: float        # shown in payments due; week estimate for fixed costs, week actual once paid
    card: str
    paid: bool
    day: int
    planned: bool        # fixed cost (True) or unplanned expense (False)

def parse_day_number(date_text: str) -> Optional[int]:
    """Day of month out of free text: "1", "15th", "03/04", "2025-04-15"."""
    s = (date_text or "").strip()
    if not s:
        return None
    nums = _DIGITS.findall(s)
    if not nums:
        return None
    day = int(nums[0])
    if not 1 <= day <= 31 and len(nums) > 1:
        # full date with the year first
        try:
            day = dup.parse(s, fuzzy=True).day
        except (ValueError, OverflowError):
            return None
    if not 1 <= day <= 31:
        logger.debug("no usable day in %r", date_text)
        return None
    return day

def assign_to_week(day: Optional[int], weeks: List[Week]) -> Optional[Week]:
    if day is None:
        return None
    for w in weeks:
        if w.contains(day):
            return w
    return None

def distribute_category_budget(monthly_budget: float, week_count: int) -> float:
    # even split, no remainder correction; the 2dp estimate lines may drift by up to 0.01 per week
    if week_count <= 0:
        return 0.0
    return monthly_budget / week_count

def dated_items_for_week(
    week: Week,
    weeks: List[Week],
    fixed_costs: Iterable[FixedCost],
    unplanned_expenses: Iterable[UnplannedExpense],
) -> List[DueItem]:
    items: List[DueItem] = []
    for c in fixed_costs:
        day = parse_day_number(c.date)
        w = assign_to_week(day, weeks)
        if w is None or w.index != week.index:
            continue
        items.append(DueItem(c.label, c.due_amount, c.card, c.paid, day, True))
    for e in unplanned_expenses:
        day = parse_day_number(e.date)
        w = assign_to_week(day, weeks)
        if w is None or w.index != week.index:
            continue
        items.append(DueItem(e.label, e.amount, e.card, e.paid, day, False))
    return items

def format_due_line(item: DueItem, symbol: str = DEFAULT_CURRENCY, paid_mark: str = DEFAULT_PAID_MARK) -> str:
    line = f"{item.label}: {format_currency(item.amount, symbol)}"
    if item.card:
        line += f" ({item.card})"
    if item.paid:
        line += f" {paid_mark}"
    return line

def build_payments_due_text(
    items: List[DueItem],
    symbol: str = DEFAULT_CURRENCY,
    paid_mark: str = DEFAULT_PAID_MARK,
) -> str:
    return "\n".join(format_due_line(i, symbol, paid_mark) for i in items)

def _due_line_pattern(symbol: str, paid_mark: str) -> re.Pattern:
    # "Label: £12.34", optionally followed by " (Card)" and the paid mark
    return re.compile(
        r"^.+?: " + re.escape(symbol) + r"-?\d+\.\d{2}(?: \([^)]*\))?"
        + (r"(?: " + re.escape(paid_mark) + r")?" if paid_mark else "") + r"$"
    )

def _only_due_lines(text: str, symbol: str, paid_mark: str) -> bool:
    pattern = _due_line_pattern(symbol, paid_mark)
    lines = [l.strip() for l in text.split("\n") if l.strip()]
    return bool(lines) and all(pattern.match(l) for l in lines)

def _collapsed(text: str, items: List[DueItem]) -> bool:
    lines = [l for l in text.split("\n") if l.strip()]
    if len(lines) != 1 or len(items) < 2:
        return False
    return all(f"{i.label}:" in lines[0] for i in items)

def synchronize_payments_due(
    existing: str,
    items: List[DueItem],
    symbol: str = DEFAULT_CURRENCY,
    paid_mark: str = DEFAULT_PAID_MARK,
    marker: str = DEFAULT_MARKER,
) -> str:
    """Regenerate the payments-due text unless the user has written their own.

    Regenerated when empty, when it carries the legacy marker (text before the
    marker is kept), when it was collapsed onto one line, or when every line
    has the shape of a generated due line, whatever its label. The last case
    drops lines for items that were deleted or moved to another week, and
    clears the text when the week has no items left. Anything else is left alone.
    """
    generated = build_payments_due_text(items, symbol, paid_mark)
    current = existing or ""
    if not current.strip():
        return generated
    if marker and marker in current:
        before = current.split(marker)[0].strip()
        before = re.sub(r"-{3,}", "", before).strip()
        if not generated:
            return before
        return f"{before}\n{generated}" if before else generated
    if _collapsed(current, items) or _only_due_lines(current, symbol, paid_mark):
        return generated
    return current

def payments_due_total(text: str, symbol: str = DEFAULT_CURRENCY) -> float:
    """First currency amount on each line of a payments-due text, summed."""
    if not text or not text.strip():
        return 0.0
    amount_re = re.compile(re.escape(symbol) + r"(-?[\d,]+(?:\.\d+)?)")
    total = 0.0
    for line in text.split("\n"):
        cleaned = re.sub(r"-{3,}", "", line).strip()
        if not cleaned:
            continue
        m = amount_re.search(cleaned.split("[")[0])
        if m:
            total += float(m.group(1).replace(",", ""))
    return total
