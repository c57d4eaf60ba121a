from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional

from budget_recon.analytics.aggregation import reconcile_month
from budget_recon.budgeting.schema import add_category, remove_category, rename_category
from budget_recon.config.loader import Settings
from budget_recon.core.dates import parse_month_key
from budget_recon.core.models import MonthKey, ReconciledMonth
from budget_recon.ingest.month_csv import read_month_csv, write_month_csv
from budget_recon.months import create_new_month
from budget_recon.reports import upsert_monthly_summary, write_month_md, write_overall_trends_md
from budget_recon.storage import MonthStorage

logger = logging.getLogger(__name__)

def run_pipeline(
  settings: Settings,
  month: MonthKey,
  *,
  import_csv: Optional[Path] = None,
  export_csv: bool = False,
  renames: Optional[List[tuple]] = None,
  add: Optional[List[str]] = None,
  remove: Optional[List[str]] = None,
) -> ReconciledMonth:
  data_dir = settings.paths.data_dir
  reports_dir = settings.paths.reports_dir
  symbol = settings.display.currency
  year, m = parse_month_key(month)

  store = MonthStorage(data_dir)

  # 1) Load (or create) the month
  if import_csv is not None:
    record = read_month_csv(import_csv, year, m)
    logger.info("Imported %s from %s", month, import_csv.name)
  else:
    record = store.get_month(month)
    if record is None:
      record = create_new_month(year, m, settings)
      logger.info("Created new month %s", month)

  # 2) Category edits, schema follows
  for old, new in renames or []:
    rename_category(record, old, new)
  for name in add or []:
    add_category(record, name)
  for name in remove or []:
    remove_category(record, name)

  # 3) Reconcile and persist
  reconciled = reconcile_month(record, settings)
  store.save_month(month, reconciled.record)

  # 4) Reports
  upsert_monthly_summary(data_dir, reconciled)
  write_month_md(reports_dir, reconciled, symbol)
  write_overall_trends_md(reports_dir, store.get_all_months(), symbol)
  if export_csv:
    path = write_month_csv(data_dir, reconciled.record)
    logger.info("Exported %s", path)

  t = reconciled.totals
  logger.info(
    "Reconciled %s: %d weeks, expenses %.2f/%.2f, net savings %.2f/%.2f",
    month, len(reconciled.weeks),
    t.expenses.estimated, t.expenses.actual,
    t.net_savings.estimated, t.net_savings.actual,
  )
  return reconciled
