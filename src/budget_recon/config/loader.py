from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

DEFAULT_VARIABLE_CATEGORIES = ["Food", "Travel/Transport", "Activities"]

@dataclass
class UserCfg:
  name: str = ""

@dataclass
class DisplayCfg:
  currency: str = "£"
  paid_mark: str = "✓"

@dataclass
class BudgetCfg:
  default_variable_categories: List[str] = field(default_factory=lambda: list(DEFAULT_VARIABLE_CATEGORIES))
  payments_marker: str = "Auto-generated"   # legacy token that flags machine-written payments text

@dataclass
class PathsCfg:
  data_dir: Path = Path("data")
  reports_dir: Path = Path("reports")
  config_dir: Path = Path("config")

@dataclass
class Settings:
  user: UserCfg = field(default_factory=UserCfg)
  display: DisplayCfg = field(default_factory=DisplayCfg)
  budget: BudgetCfg = field(default_factory=BudgetCfg)
  paths: PathsCfg = field(default_factory=PathsCfg)

def load_settings(repo_root: Path) -> Settings:
    """Load config/settings.yaml only."""
    cfg_dir = repo_root / "config"
    yaml_cfg = cfg_dir / "settings.yaml"

    try:
        import yaml  # type: ignore
    except Exception as e:
        raise ImportError(
            "PyYAML is required to read config/settings.yaml. Install with: pip install pyyaml"
        ) from e

    if not yaml_cfg.exists():
        raise FileNotFoundError(
            f"Missing {yaml_cfg}. Create it from the settings.yaml template."
        )

    y: Dict[str, Any] = yaml.safe_load(yaml_cfg.read_text(encoding="utf-8")) or {}

    # minimal structure checks (fail fast with clear messages)
    for section in ["paths", "display", "budget"]:
        if section not in y:
            raise KeyError(f"settings.yaml is missing the '{section}' section")

    user = y.get("user") or {}
    paths = y["paths"] or {}
    display = y["display"] or {}
    budget = y["budget"] or {}

    categories = budget.get("default_variable_categories")
    if categories is None:
        categories = list(DEFAULT_VARIABLE_CATEGORIES)

    return Settings(
        user=UserCfg(name=str(user.get("name", ""))),
        display=DisplayCfg(
            currency=str(display.get("currency", "£")),
            paid_mark=str(display.get("paid_mark", "✓")),
        ),
        budget=BudgetCfg(
            default_variable_categories=[str(c) for c in categories],
            payments_marker=str(budget.get("payments_marker", "Auto-generated")),
        ),
        paths=PathsCfg(
            data_dir=(repo_root / paths.get("data_dir", "data")).resolve(),
            reports_dir=(repo_root / paths.get("reports_dir", "reports")).resolve(),
            config_dir=cfg_dir.resolve(),
        ),
    )
