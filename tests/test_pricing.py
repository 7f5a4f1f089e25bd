"""Tests for visit pricing."""
from __future__ import annotations

import pytest

from app.services.catalog import CatalogEntry
from app.services.pricing import SelectedServiceLine, VisitPricingEngine

HAIRCUT = CatalogEntry(id=1, name="Haircut", category="haircut", base_price=150000, duration_minutes=45)
ROOT_LIFT = CatalogEntry(id=2, name="Root Lift", category="styling", base_price=200000, duration_minutes=60)
HAIR_REPAIR = CatalogEntry(
    id=3, name="Hair Repair", category="treatment", base_price=300000, duration_minutes=90
)


@pytest.fixture
def engine() -> VisitPricingEngine:
    return VisitPricingEngine()


def test_larger_discount_wins(engine) -> None:
    totals = engine.calculate([SelectedServiceLine(HAIR_REPAIR)], 5, "gold")

    assert totals.base_total == 300000
    assert totals.membership_discount == 10
    assert totals.custom_discount == 5
    assert totals.total_discount == 10
    assert totals.final_price == 270000
    assert totals.total_duration == 90
    # floor(27) x 1.5
    assert totals.points_earned == 40


def test_custom_discount_beats_membership(engine) -> None:
    totals = engine.calculate(
        [SelectedServiceLine(HAIRCUT), SelectedServiceLine(ROOT_LIFT)], 25, "silver"
    )

    assert totals.base_total == 350000
    assert totals.total_discount == 25
    assert totals.final_price == 262500
    assert totals.total_duration == 105


def test_custom_price_overrides_base_price(engine) -> None:
    totals = engine.calculate(
        [SelectedServiceLine(HAIRCUT, custom_price=120000), SelectedServiceLine(ROOT_LIFT)],
        0,
        "bronze",
    )

    assert totals.base_total == 320000
    assert totals.final_price == 320000
    assert totals.points_earned == 32


def test_final_price_rounds_half_up(engine) -> None:
    totals = engine.calculate([SelectedServiceLine(HAIRCUT, custom_price=30)], 15, "bronze")

    assert totals.final_price == 26


def test_unknown_tier_gets_no_membership_discount(engine) -> None:
    totals = engine.calculate([SelectedServiceLine(HAIRCUT)], 0, "legend")

    assert totals.membership_discount == 0
    assert totals.final_price == 150000


def test_empty_selection_is_all_zero(engine) -> None:
    totals = engine.calculate([], 50, "diamond")

    assert totals.to_dict() == {
        "base_total": 0,
        "membership_discount": 0,
        "custom_discount": 0,
        "total_discount": 0,
        "final_price": 0,
        "total_duration": 0,
        "points_earned": 0,
    }


def test_pricing_is_repeatable(engine) -> None:
    lines = [SelectedServiceLine(HAIRCUT), SelectedServiceLine(HAIR_REPAIR, notes="Damaged ends")]

    assert engine.calculate(lines, 5, "platinum") == engine.calculate(lines, 5, "platinum")
