"""JSON-file persistence for month records: one ``<key>.json`` per month."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from budget_recon.core.models import MonthKey, MonthRecord
from budget_recon.months import now_iso

logger = logging.getLogger(__name__)


class MonthStorage:
    """Reads and writes month records under ``<data_dir>/months``."""

    def __init__(self, data_dir: Path):
        self.months_dir = Path(data_dir) / "months"

    def get_path(self, key: MonthKey) -> Path:
        if not key or not key.strip():
            raise ValueError("Month key cannot be empty")
        return self.months_dir / f"{key.strip()}.json"

    def _read(self, path: Path) -> Optional[MonthRecord]:
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load month file %s: %s", path.name, e)
            return None
        if not isinstance(data, dict):
            logger.warning("Month file %s does not hold an object; skipped", path.name)
            return None
        data.setdefault("key", path.stem)
        return MonthRecord.from_dict(data)

    def get_month(self, key: MonthKey) -> Optional[MonthRecord]:
        path = self.get_path(key)
        if not path.exists():
            return None
        return self._read(path)

    def get_all_months(self) -> Dict[MonthKey, MonthRecord]:
        months: Dict[MonthKey, MonthRecord] = {}
        if not self.months_dir.exists():
            return months
        for path in sorted(self.months_dir.glob("*.json")):
            rec = self._read(path)
            if rec is not None:
                months[rec.key] = rec
        return months

    def save_month(self, key: MonthKey, record: MonthRecord) -> bool:
        """Write the record, stamping ``updatedAt``.

        Raises:
            ValueError: If the key is empty
            OSError: If the file cannot be written
        """
        target = self.get_path(key)
        record.updated_at = now_iso()
        if not record.created_at:
            record.created_at = record.updated_at
        self.months_dir.mkdir(parents=True, exist_ok=True)
        try:
            with target.open("w", encoding="utf-8") as handle:
                json.dump(record.to_dict(), handle, indent=2, ensure_ascii=False)
        except OSError as e:
            raise OSError(f"Failed to save month to {target}: {e}") from e
        return True

    def delete_month(self, key: MonthKey) -> None:
        """Delete a month file; a missing file is ignored."""
        target = self.get_path(key)
        if not target.exists():
            return
        try:
            target.unlink()
        except OSError as e:
            raise OSError(f"Failed to delete month file {target}: {e}") from e
