from __future__ import annotations
from datetime import date, timedelta
from typing import List, Tuple

from budget_recon.core.models import MonthKey, Week

MONTH_NAMES = [
  "January", "February", "March", "April", "May", "June",
  "July", "August", "September", "October", "November", "December",
]

def _first_day(year: int, month: int) -> date:
  return date(year, month, 1)

def _last_day(year: int, month: int) -> date:
  if month == 12:
    return date(year, 12, 31)
  return date(year, month + 1, 1) - timedelta(days=1)

def days_in_month(year: int, month: int) -> int:
  return _last_day(year, month).day

def month_key(year: int, month: int) -> MonthKey:
  if not year or not month or month < 1 or month > 12:
    raise ValueError(f"Invalid year or month: {year!r}-{month!r}")
  return f"{year:04d}-{month:02d}"

def parse_month_key(key: MonthKey) -> Tuple[int, int]:
  if not key or not isinstance(key, str):
    raise ValueError("Invalid month key")
  parts = key.split("-")
  if len(parts) != 2:
    raise ValueError(f"Invalid month key format: {key!r}")
  try:
    y, m = int(parts[0]), int(parts[1])
  except ValueError as e:
    raise ValueError(f"Invalid month key format: {key!r}") from e
  if m < 1 or m > 12:
    raise ValueError(f"Invalid month in key: {key!r}")
  return y, m

def month_name(month: int) -> str:
  if month < 1 or month > 12:
    raise ValueError(f"Invalid month number: {month}")
  return MONTH_NAMES[month - 1]

def current_month_key(today: date) -> MonthKey:
  return f"{today.year:04d}-{today.month:02d}"

def partition_month(year: int, month: int) -> List[Week]:
  """Monday-aligned weeks covering days 1..N of the month, clipped at both ends."""
  first = _first_day(year, month)
  n_days = days_in_month(year, month)
  # Monday on or before the 1st; a Sunday 1st belongs to the previous Monday's week
  start = 1 - first.weekday()
  weeks: List[Week] = []
  while start <= n_days:
    end = min(start + 6, n_days)
    weeks.append(Week(index=len(weeks), start_date=max(start, 1), end_date=end))
    start += 7
  return weeks
