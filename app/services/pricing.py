"""Totals for a single visit."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from .catalog import CatalogEntry, round_half_up
from .membership import TierCalculator


@dataclass(frozen=True)
class SelectedServiceLine:
    service: CatalogEntry
    custom_price: int | None = None
    notes: str | None = None

    @property
    def price(self) -> int:
        return self.service.base_price if self.custom_price is None else self.custom_price


@dataclass(frozen=True)
class VisitTotals:
    base_total: int
    membership_discount: int
    custom_discount: int
    total_discount: int
    final_price: int
    total_duration: int
    points_earned: int

    def to_dict(self) -> dict[str, int]:
        return {
            "base_total": self.base_total,
            "membership_discount": self.membership_discount,
            "custom_discount": self.custom_discount,
            "total_discount": self.total_discount,
            "final_price": self.final_price,
            "total_duration": self.total_duration,
            "points_earned": self.points_earned,
        }


class VisitPricingEngine:
    """Price one visit from its service lines, a manual discount and the member's tier.

    The manual discount and the membership discount never stack: the larger
    of the two is applied to the base total.
    """

    def __init__(self, tier_calculator: TierCalculator | None = None) -> None:
        self.tiers = tier_calculator or TierCalculator()

    def calculate(
        self,
        selected_services: Sequence[SelectedServiceLine],
        custom_discount_percent: int,
        membership_tier: str,
    ) -> VisitTotals:
        if not selected_services:
            return VisitTotals(0, 0, 0, 0, 0, 0, 0)

        base_total = sum(line.price for line in selected_services)
        membership_discount = self.tiers.get_level_info(membership_tier).discount_percentage
        total_discount = max(custom_discount_percent, membership_discount)
        final_price = round_half_up(Decimal(base_total) * (100 - Decimal(total_discount)) / 100)

        return VisitTotals(
            base_total=base_total,
            membership_discount=membership_discount,
            custom_discount=custom_discount_percent,
            total_discount=total_discount,
            final_price=final_price,
            total_duration=sum(line.service.duration_minutes for line in selected_services),
            points_earned=self.tiers.calculate_points_from_visit(final_price, membership_tier),
        )
