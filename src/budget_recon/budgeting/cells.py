"""Category cell text: a machine-written ``Estimate:`` line plus a user-owned ``=`` line.

A canonical cell reads::

    Estimate: £70.00
    =12.50+30

The estimate line is regenerated on every reconciliation pass. The line starting
with ``=`` belongs to the user and is never rewritten once it holds an expression.
Any other lines are carried along untouched.
"""
from __future__ import annotations
import logging
import re
from typing import List, Optional

from budget_recon.budgeting.expression import evaluate_expression
from budget_recon.core.models import CategoryCell
from budget_recon.core.money import DEFAULT_CURRENCY, format_currency, parse_number

logger = logging.getLogger(__name__)

ESTIMATE_PREFIX = "Estimate:"
ACTUAL_PREFIX = "="
DEFAULT_MARKER = "Auto-generated"

_NUMBER = re.compile(r"\d+(?:\.\d+)?")


def _is_estimate_line(line: str) -> bool:
  return line.strip().lower().startswith(ESTIMATE_PREFIX.lower())

def _is_actual_line(line: str) -> bool:
  return line.lstrip().startswith(ACTUAL_PREFIX)

def _actual_text(line: str) -> str:
  return line.lstrip()[len(ACTUAL_PREFIX):]

def estimate_line_for(amount: float, symbol: str = DEFAULT_CURRENCY) -> str:
  return f"{ESTIMATE_PREFIX} {format_currency(amount, symbol)}"


def parse_cell(text: Optional[str], symbol: str = DEFAULT_CURRENCY) -> CategoryCell:
  cell = CategoryCell()
  for line in (text or "").split("\n"):
    if cell.estimate_line is None and _is_estimate_line(line):
      cell.estimate_line = line.strip()
      cell.estimate = parse_number(cell.estimate_line.split(":", 1)[1], symbol)
    elif cell.actual_expression is None and _is_actual_line(line):
      cell.actual_expression = _actual_text(line)
    elif line.strip():
      cell.other_lines.append(line)
  return cell


def serialize_cell(cell: CategoryCell) -> str:
  lines: List[str] = []
  if cell.estimate_line is not None:
    lines.append(cell.estimate_line)
  lines.extend(cell.other_lines)
  lines.append(ACTUAL_PREFIX + (cell.actual_expression or ""))
  return "\n".join(lines)


def estimate_of(text: Optional[str], symbol: str = DEFAULT_CURRENCY) -> float:
  return parse_cell(text, symbol).estimate


def actual_of(text: Optional[str], symbol: str = DEFAULT_CURRENCY) -> float:
  """Raw evaluation of the actual-spending line; may be NOT_A_NUMBER."""
  return evaluate_expression(parse_cell(text, symbol).actual_expression, symbol)


def is_machine_generated(text: Optional[str], marker: str = DEFAULT_MARKER) -> bool:
  """True when every non-blank line is one the engine writes itself."""
  for line in (text or "").split("\n"):
    s = line.strip()
    if not s or _is_estimate_line(s):
      continue
    if marker and marker in s:
      continue
    if _is_actual_line(s) and not _actual_text(s).strip():
      continue
    return False
  return True


def is_legacy(text: Optional[str]) -> bool:
  lines = (text or "").split("\n")
  if not any(l.strip() for l in lines):
    return False
  return not any(_is_actual_line(l) or _is_estimate_line(l) for l in lines)


def migrate_legacy_cell(text: Optional[str], symbol: str = DEFAULT_CURRENCY) -> str:
  """Turn pre-mini-language content into the canonical two-line form.

  ``"90-55-20-40-15= 130"`` becomes ``"Estimate: £220.00"`` / ``"=90-55-20-40-15"``:
  the numbers before any ``=`` are summed into the estimate and the calculation
  text is kept as the actual-spending expression.
  """
  raw = (text or "").strip()
  if not raw:
    return serialize_cell(CategoryCell(estimate_line=estimate_line_for(0.0, symbol)))
  if not is_legacy(text):
    return text
  calc = raw.split("=", 1)[0] if "=" in raw else raw
  calc = " ".join(part.strip() for part in calc.splitlines() if part.strip())
  cleaned = calc.replace(symbol, "").replace(",", "") if symbol else calc.replace(",", "")
  estimate = sum(float(t) for t in _NUMBER.findall(cleaned))
  logger.debug("migrated legacy cell %r -> estimate %.2f", raw, estimate)
  return f"{estimate_line_for(estimate, symbol)}\n{ACTUAL_PREFIX}{calc}"


def synchronize_cell(
  existing: Optional[str],
  derived_estimate: float,
  symbol: str = DEFAULT_CURRENCY,
  marker: str = DEFAULT_MARKER,
) -> str:
  """Refresh the estimate of a cell without touching what the user typed.

  Empty or purely machine-written cells are regenerated as
  ``Estimate: <amount>`` over an empty ``=`` line. Otherwise only the estimate
  line is replaced (or inserted at the top); every other line, the ``=`` line
  included, comes back byte-identical.
  """
  new_estimate = estimate_line_for(derived_estimate, symbol)
  if is_machine_generated(existing, marker):
    return f"{new_estimate}\n{ACTUAL_PREFIX}"

  text = existing or ""
  if is_legacy(text):
    text = migrate_legacy_cell(text, symbol)

  lines = text.split("\n")
  idx = next((i for i, l in enumerate(lines) if _is_estimate_line(l)), None)
  if idx is None:
    lines.insert(0, new_estimate)
  elif lines[idx] != new_estimate:
    lines[idx] = new_estimate
  if not any(_is_actual_line(l) for l in lines):
    lines.append(ACTUAL_PREFIX)
  return "\n".join(lines)
