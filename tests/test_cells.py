"""Tests for the category cell text: parse, migrate and the preserve-vs-regenerate rule."""

from __future__ import annotations

import pytest

from budget_recon.budgeting.cells import (
    actual_of,
    estimate_of,
    is_machine_generated,
    migrate_legacy_cell,
    parse_cell,
    serialize_cell,
    synchronize_cell,
)
from budget_recon.budgeting.expression import is_not_a_number


def _actual_line(text: str) -> str:
    return next(l for l in text.split("\n") if l.lstrip().startswith("="))


def test_parse_canonical_cell() -> None:
    cell = parse_cell("Estimate: £70.00\n=12.50+30")
    assert cell.estimate_line == "Estimate: £70.00"
    assert cell.estimate == 70.0
    assert cell.actual_expression == "12.50+30"
    assert cell.other_lines == []
    assert cell.has_actual


def test_parse_keeps_other_lines() -> None:
    cell = parse_cell("Estimate: £10.00\nlunch with Sam\n=4+3")
    assert cell.other_lines == ["lunch with Sam"]
    assert serialize_cell(cell) == "Estimate: £10.00\nlunch with Sam\n=4+3"


def test_parse_empty_cell() -> None:
    cell = parse_cell("")
    assert cell.estimate_line is None
    assert cell.actual_expression is None
    assert not cell.has_actual


def test_estimate_and_actual_helpers() -> None:
    text = "Estimate: £70.00\n=20+5"
    assert estimate_of(text) == 70.0
    assert actual_of(text) == 25.0
    assert actual_of("Estimate: £70.00\n=") == 0.0
    assert is_not_a_number(actual_of("Estimate: £70.00\n=pizza"))


def test_sync_regenerates_empty_cell() -> None:
    assert synchronize_cell("", 70) == "Estimate: £70.00\n="
    assert synchronize_cell(None, 0) == "Estimate: £0.00\n="


def test_sync_regenerates_machine_only_cell() -> None:
    assert synchronize_cell("Estimate: £50.00\n=", 70) == "Estimate: £70.00\n="
    assert synchronize_cell("Auto-generated\nEstimate: £5.00", 70) == "Estimate: £70.00\n="


@pytest.mark.parametrize(
    "existing",
    [
        "Estimate: £50.00\n=20+5",
        "Estimate: £50.00\n= 20 + 5 ",
        "Estimate: £50.00\nnote to self\n=20+5",
        "=20+5",
        "Estimate: £70.00\n=oops",
    ],
)
def test_sync_preserves_actual_line(existing: str) -> None:
    updated = synchronize_cell(existing, 70)
    assert _actual_line(updated) == _actual_line(existing)
    assert "Estimate: £70.00" in updated.split("\n")
    # only the estimate line differs
    old_rest = [l for l in existing.split("\n") if not l.startswith("Estimate:")]
    new_rest = [l for l in updated.split("\n") if not l.startswith("Estimate:")]
    assert old_rest == new_rest


def test_sync_inserts_missing_estimate_above_content() -> None:
    assert synchronize_cell("=20+5", 70) == "Estimate: £70.00\n=20+5"


def test_sync_is_idempotent() -> None:
    once = synchronize_cell("Estimate: £50.00\n=20+5", 70)
    assert synchronize_cell(once, 70) == once
    blank = synchronize_cell("", 70)
    assert synchronize_cell(blank, 70) == blank


def test_machine_generated_detection() -> None:
    assert is_machine_generated("")
    assert is_machine_generated("Estimate: £1.00\n=")
    assert not is_machine_generated("Estimate: £1.00\n=5")
    assert not is_machine_generated("groceries 12")


def test_migrate_expression_with_result() -> None:
    out = migrate_legacy_cell("90-55-20-40-15= 130")
    assert out == "Estimate: £220.00\n=90-55-20-40-15"


def test_migrate_single_number() -> None:
    assert migrate_legacy_cell("40") == "Estimate: £40.00\n=40"
    assert migrate_legacy_cell("£1,200.50") == "Estimate: £1200.50\n=£1,200.50"


def test_migrate_leaves_canonical_text_alone() -> None:
    text = "Estimate: £70.00\n=5"
    assert migrate_legacy_cell(text) == text
    assert migrate_legacy_cell("") == "Estimate: £0.00\n="


def test_sync_migrates_legacy_and_keeps_calculation() -> None:
    out = synchronize_cell("90-55-20", 70)
    assert out == "Estimate: £70.00\n=90-55-20"
    assert actual_of(out) == 15.0


def test_old_total_line_still_counts() -> None:
    # earlier releases wrote the running total after '='
    out = synchronize_cell("40.00\n+5\n= £45.00", 40)
    assert out == "Estimate: £40.00\n40.00\n+5\n= £45.00"
    assert actual_of(out) == 45.0
