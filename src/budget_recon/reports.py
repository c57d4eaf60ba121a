from __future__ import annotations
import csv
from pathlib import Path
from typing import Dict, List, Mapping

from budget_recon.analytics.trends import calculate_trend, METRICS
from budget_recon.budgeting.weekly_budget import payments_due_total
from budget_recon.core.models import MonthKey, MonthRecord, ReconciledMonth
from budget_recon.core.money import format_currency

def ensure_dir(p: Path):
  p.mkdir(parents=True, exist_ok=True)

def _cell(text: str) -> str:
  # markdown table cells cannot hold raw newlines or pipes
  return text.replace("|", "\\|").replace("\n", "<br>")

def upsert_monthly_summary(data_dir: Path, reconciled: ReconciledMonth):
  ensure_dir(data_dir)
  path = data_dir / "monthly_summary.csv"
  rows: List[dict] = []
  if path.exists():
    with path.open("r", newline="", encoding="utf-8") as f:
      rows = list(csv.DictReader(f))

  t = reconciled.totals
  out = {
    "month": reconciled.record.key,
    "income": f"{t.income.actual:.2f}",
    "fixed_costs": f"{t.fixed_costs.actual:.2f}",
    "variable_costs": f"{t.variable_costs.actual:.2f}",
    "unplanned_expenses": f"{t.unplanned_expenses.actual:.2f}",
    "pots": f"{t.pots.actual:.2f}",
    "expenses": f"{t.expenses.actual:.2f}",
    "net_savings": f"{t.net_savings.actual:.2f}",
  }
  fieldnames = list(out.keys())

  # upsert by month
  rows = [r for r in rows if r.get("month") != out["month"]]
  rows.append(out)
  rows.sort(key=lambda r: r["month"])

  with path.open("w", newline="", encoding="utf-8") as f:
    w = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
    w.writeheader()
    for r in rows:
      for k in fieldnames:
        r.setdefault(k, "")
      w.writerow(r)
  return path

def write_month_md(reports_dir: Path, reconciled: ReconciledMonth, symbol: str = "£") -> Path:
  ensure_dir(reports_dir)
  rec = reconciled.record
  path = reports_dir / f"{rec.key}.md"
  t = reconciled.totals
  money = lambda v: format_currency(v, symbol)

  lines = []
  lines.append(f"# {rec.month_name} {rec.year} — Monthly Budget\n")
  lines.append("| | Estimated | Actual |")
  lines.append("|---|---:|---:|")
  lines.append(f"| Income | {money(t.income.estimated)} | {money(t.income.actual)} |")
  lines.append(f"| Fixed costs | {money(t.fixed_costs.estimated)} | {money(t.fixed_costs.actual)} |")
  lines.append(f"| Variable costs | {money(t.variable_costs.estimated)} | {money(t.variable_costs.actual)} |")
  lines.append(f"| Unplanned expenses | — | {money(t.unplanned_expenses.actual)} |")
  lines.append(f"| **Expenses** | {money(t.expenses.estimated)} | {money(t.expenses.actual)} |")
  lines.append(f"| Pots | {money(t.pots.estimated)} | {money(t.pots.actual)} |")
  lines.append(f"| **Net savings** | {money(t.net_savings.estimated)} | {money(t.net_savings.actual)} |")
  lines.append("")

  if rec.variable_costs:
    lines.append("## Variable costs\n")
    for vc in rec.variable_costs:
      lines.append(f"- **{vc.category}**: {money(vc.actual_amount)} of {money(vc.estimated_amount)}")
    lines.append("")

  categories = list(reconciled.category_totals.keys())
  lines.append("## Weekly breakdown\n")
  lines.append("| Week | Payments due | " + " | ".join(categories) + (" | " if categories else "") + "Estimate | Actual |")
  lines.append("|---|---|" + "---|" * len(categories) + "---:|---:|")
  for s, row in zip(reconciled.week_summaries, rec.weekly_breakdown):
    cells = [money(s.category_actuals.get(c, 0.0)) for c in categories]
    lines.append(
      f"| {s.week.date_range_label} | {_cell(row.payments_due) or '—'} | "
      + " | ".join(cells) + (" | " if cells else "")
      + f"{money(s.estimate)} | {money(s.actual)} |"
    )
  payments = sum(payments_due_total(r.payments_due, symbol) for r in rec.weekly_breakdown)
  lines.append(
    f"| **Totals** | {money(payments)} | "
    + " | ".join(money(reconciled.category_totals[c]) for c in categories) + (" | " if categories else "")
    + f"{money(reconciled.weekly_estimate_total)} | {money(reconciled.weekly_actual_total)} |"
  )
  lines.append("")

  path.write_text("\n".join(lines), encoding="utf-8")
  return path

def write_overall_trends_md(reports_dir: Path, all_months: Mapping[MonthKey, MonthRecord], symbol: str = "£"):
  ensure_dir(reports_dir)
  keys = sorted(all_months.keys())
  if not keys:
    return None

  lines = []
  lines.append("# Overall Trends\n")
  lines.append(f"- **Months covered:** {len(keys)}")
  for metric in METRICS:
    tr: Dict[str, object] = calculate_trend(keys, all_months, metric)
    lines.append(
      f"- **{metric.capitalize()}:** average {format_currency(tr['average'], symbol)}, "
      f"{tr['direction']} ({tr['percentage']:.1f}%)"
    )
  lines.append("")
  path = reports_dir / "overall_trends.md"
  path.write_text("\n".join(lines), encoding="utf-8")
  return path
