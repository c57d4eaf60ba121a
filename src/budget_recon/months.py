from __future__ import annotations
from datetime import datetime, timezone
from typing import List, Optional

from budget_recon.config.loader import Settings
from budget_recon.core.dates import _first_day, _last_day, month_key, month_name
from budget_recon.core.models import MonthRecord, VariableCost

def now_iso() -> str:
  return datetime.now(timezone.utc).isoformat()

def seed_variable_costs(categories: List[str]) -> List[VariableCost]:
  return [VariableCost(category=c, estimated_amount=0.0, actual_amount=0.0) for c in categories]

def create_new_month(year: int, month: int, settings: Optional[Settings] = None) -> MonthRecord:
  """Fresh month: empty collections, variable costs seeded from the default category list."""
  settings = settings or Settings()
  key = month_key(year, month)  # raises ValueError on a bad year/month
  stamp = now_iso()
  return MonthRecord(
    key=key,
    year=year,
    month=month,
    month_name=month_name(month),
    variable_costs=seed_variable_costs(settings.budget.default_variable_categories),
    date_range={
      "start": _first_day(year, month).isoformat(),
      "end": _last_day(year, month).isoformat(),
    },
    created_at=stamp,
    updated_at=stamp,
  )
