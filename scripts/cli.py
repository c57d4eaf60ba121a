from pathlib import Path
from datetime import date
import argparse
import logging
import sys

REPO = Path(__file__).resolve().parents[1]
SRC = REPO / "src"
if str(SRC) not in sys.path:
  sys.path.insert(0, str(SRC))

from budget_recon.config.loader import load_settings
from budget_recon.core.dates import current_month_key
from budget_recon.pipeline import run_pipeline

def _rename(value: str):
  old, sep, new = value.partition("=")
  if not sep:
    raise argparse.ArgumentTypeError("use OLD=NEW")
  return old.strip(), new.strip()

def main(argv=None):
  parser = argparse.ArgumentParser(description="Reconcile one month of the budget.")
  parser.add_argument("month", nargs="?", default=current_month_key(date.today()), help="YYYY-MM")
  parser.add_argument("--import-csv", type=Path, help="build the month from an exported CSV")
  parser.add_argument("--export-csv", action="store_true", help="write month=<key>.csv to the data dir")
  parser.add_argument("--rename", type=_rename, action="append", default=[], metavar="OLD=NEW")
  parser.add_argument("--add", action="append", default=[], metavar="CATEGORY")
  parser.add_argument("--remove", action="append", default=[], metavar="CATEGORY")
  parser.add_argument("-v", "--verbose", action="store_true")
  args = parser.parse_args(argv)

  logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s")

  cfg = load_settings(REPO)
  run_pipeline(
    cfg,
    args.month,
    import_csv=args.import_csv,
    export_csv=args.export_csv,
    renames=args.rename,
    add=args.add,
    remove=args.remove,
  )

if __name__ == "__main__":
  main()
