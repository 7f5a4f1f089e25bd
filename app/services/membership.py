"""Membership tier progression rules.

Tiers are ranked ``bronze < silver < gold < platinum < diamond``. A member
reaches a tier only when *both* the visit and the spending threshold of that
tier are met, so a big spender with few visits does not skip ahead.

Every function here is total: unknown tier values degrade to the lowest tier
instead of raising, and nothing touches the database. Persisting an upgrade
is the caller's job (see ``routes_extended.record_visit``).
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

MEMBERSHIP_TIERS: tuple[str, ...] = ("bronze", "silver", "gold", "platinum", "diamond")

# 1 loyalty point per 10,000 IDR spent, before the tier multiplier.
POINTS_UNIT = 10000


@dataclass(frozen=True)
class TierDefinition:
    tier: str
    name: str
    min_visits: int
    min_spending: int
    discount_percentage: int
    benefits: tuple[str, ...] = ()
    color: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "tier": self.tier,
            "name": self.name,
            "min_visits": self.min_visits,
            "min_spending": self.min_spending,
            "discount_percentage": self.discount_percentage,
            "benefits": list(self.benefits),
            "color": self.color,
        }


@dataclass(frozen=True)
class MemberCounters:
    """Snapshot of one member's counters as read from storage."""

    total_visits: int
    total_spent: int
    membership_tier: str = "bronze"


@dataclass(frozen=True)
class NextTierInfo:
    next_tier: TierDefinition | None
    visits_needed: int = 0
    spending_needed: int = 0

    def to_dict(self) -> dict[str, object]:
        if self.next_tier is None:
            return {"next_tier": None, "requirements_to_next": None}
        return {
            "next_tier": self.next_tier.to_dict(),
            "requirements_to_next": {
                "visits_needed": self.visits_needed,
                "spending_needed": self.spending_needed,
            },
        }


@dataclass(frozen=True)
class TierProgress:
    visit_progress: float
    spending_progress: float
    overall_progress: float
    is_max_tier: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "visit_progress": self.visit_progress,
            "spending_progress": self.spending_progress,
            "overall_progress": self.overall_progress,
            "is_max_tier": self.is_max_tier,
        }


@dataclass(frozen=True)
class UpgradeCheck:
    should_upgrade: bool
    new_tier: str | None = None
    points_earned: int | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"should_upgrade": self.should_upgrade}
        if self.should_upgrade:
            payload["new_tier"] = self.new_tier
            payload["points_earned"] = self.points_earned
        return payload


@dataclass(frozen=True)
class TierEstimate:
    estimated_months: int | None
    based_on_visits: bool
    based_on_spending: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "estimated_months": self.estimated_months,
            "based_on_visits": self.based_on_visits,
            "based_on_spending": self.based_on_spending,
        }


@dataclass(frozen=True)
class MembershipStats:
    total_members: int
    tier_distribution: dict[str, int] = field(default_factory=dict)
    average_visits_per_tier: dict[str, float] = field(default_factory=dict)
    average_spending_per_tier: dict[str, float] = field(default_factory=dict)
    top_tier_percentage: float = 0.0

    def to_dict(self) -> dict[str, object]:
        return {
            "total_members": self.total_members,
            "tier_distribution": dict(self.tier_distribution),
            "average_visits_per_tier": dict(self.average_visits_per_tier),
            "average_spending_per_tier": dict(self.average_spending_per_tier),
            "top_tier_percentage": self.top_tier_percentage,
        }


DEFAULT_LEVELS: tuple[TierDefinition, ...] = (
    TierDefinition(
        tier="bronze",
        name="Bronze Member",
        min_visits=0,
        min_spending=0,
        discount_percentage=0,
        benefits=("Basic membership", "Visit tracking"),
        color="#CD7F32",
    ),
    TierDefinition(
        tier="silver",
        name="Silver Member",
        min_visits=10,
        min_spending=1000000,
        discount_percentage=5,
        benefits=("5% discount", "Priority booking", "Birthday special"),
        color="#C0C0C0",
    ),
    TierDefinition(
        tier="gold",
        name="Gold Member",
        min_visits=20,
        min_spending=2500000,
        discount_percentage=10,
        benefits=("10% discount", "Complimentary consultation", "Exclusive events"),
        color="#FFD700",
    ),
    TierDefinition(
        tier="platinum",
        name="Platinum Member",
        min_visits=30,
        min_spending=5000000,
        discount_percentage=15,
        benefits=("15% discount", "Personal hairstylist", "Free home service"),
        color="#E5E4E2",
    ),
    TierDefinition(
        tier="diamond",
        name="Diamond Member",
        min_visits=50,
        min_spending=10000000,
        discount_percentage=20,
        benefits=("20% discount", "VIP treatment", "Unlimited consultations", "Referral rewards"),
        color="#B9F2FF",
    ),
)

DEFAULT_POINT_MULTIPLIERS: dict[str, float] = {
    "bronze": 1.0,
    "silver": 1.2,
    "gold": 1.5,
    "platinum": 1.8,
    "diamond": 2.0,
}

# Bonus points credited when a member lands on a tier.
DEFAULT_UPGRADE_POINTS: dict[str, int] = {
    "bronze": 0,
    "silver": 100,
    "gold": 250,
    "platinum": 500,
    "diamond": 1000,
}


def _percent_between(value: float, start: float, end: float) -> float:
    span = end - start
    if span <= 0:
        return 100.0
    return max(0.0, min(100.0, (value - start) / span * 100))


class TierCalculator:
    """Pure tier arithmetic over an ordered, immutable tier table.

    Usage:
        calculator = TierCalculator()
        tier = calculator.calculate_tier(total_visits=12, total_spent=1200000)
    """

    def __init__(
        self,
        levels: Sequence[TierDefinition] = DEFAULT_LEVELS,
        point_multipliers: Mapping[str, float] | None = None,
        upgrade_points: Mapping[str, int] | None = None,
    ) -> None:
        if not levels:
            raise ValueError("At least one tier definition is required")
        self.levels: tuple[TierDefinition, ...] = tuple(levels)
        self.point_multipliers = dict(
            DEFAULT_POINT_MULTIPLIERS if point_multipliers is None else point_multipliers
        )
        self.upgrade_points = dict(
            DEFAULT_UPGRADE_POINTS if upgrade_points is None else upgrade_points
        )

    @property
    def lowest(self) -> TierDefinition:
        return self.levels[0]

    def _index_of(self, tier: object) -> int:
        for index, level in enumerate(self.levels):
            if level.tier == tier:
                return index
        return -1

    def calculate_tier(self, total_visits: int, total_spent: int) -> str:
        for level in reversed(self.levels):
            if total_visits >= level.min_visits and total_spent >= level.min_spending:
                return level.tier
        return self.lowest.tier

    def get_level_info(self, tier: object) -> TierDefinition:
        index = self._index_of(tier)
        return self.levels[index] if index >= 0 else self.lowest

    def get_next_tier_info(self, tier: object) -> NextTierInfo:
        """Return the tier above ``tier`` and the gap between the two definitions.

        The needs are measured between tier thresholds, not from the member's
        own counters; use ``estimate_time_to_next_tier`` for the member's gap.
        """
        index = max(self._index_of(tier), 0)
        if index == len(self.levels) - 1:
            return NextTierInfo(next_tier=None)

        current = self.levels[index]
        upcoming = self.levels[index + 1]
        return NextTierInfo(
            next_tier=upcoming,
            visits_needed=max(0, upcoming.min_visits - current.min_visits),
            spending_needed=max(0, upcoming.min_spending - current.min_spending),
        )

    def calculate_progress(
        self, current_visits: int, current_spent: int, current_tier: object
    ) -> TierProgress:
        upcoming = self.get_next_tier_info(current_tier).next_tier
        if upcoming is None:
            return TierProgress(100.0, 100.0, 100.0, is_max_tier=True)

        current = self.get_level_info(current_tier)
        visit_progress = _percent_between(current_visits, current.min_visits, upcoming.min_visits)
        spending_progress = _percent_between(
            current_spent, current.min_spending, upcoming.min_spending
        )
        return TierProgress(
            visit_progress=visit_progress,
            spending_progress=spending_progress,
            overall_progress=min(visit_progress, spending_progress),
            is_max_tier=False,
        )

    def should_upgrade(self, counters: MemberCounters) -> UpgradeCheck:
        new_tier = self.calculate_tier(counters.total_visits, counters.total_spent)
        if new_tier == counters.membership_tier:
            return UpgradeCheck(should_upgrade=False)

        old_tier = self.get_level_info(counters.membership_tier).tier
        points = self.upgrade_points.get(new_tier, 0) - self.upgrade_points.get(old_tier, 0)
        return UpgradeCheck(should_upgrade=True, new_tier=new_tier, points_earned=max(0, points))

    def calculate_points_from_visit(self, visit_amount: float, tier: object) -> int:
        base_points = math.floor(visit_amount / POINTS_UNIT)
        multiplier = self.point_multipliers.get(self.get_level_info(tier).tier, 1.0)
        return math.floor(base_points * multiplier)

    def get_benefits(self, tier: object) -> list[str]:
        return list(self.get_level_info(tier).benefits)

    def get_discount(self, tier: object) -> int:
        return self.get_level_info(tier).discount_percentage

    def format_tier_name(self, tier: object) -> str:
        return self.get_level_info(tier).name

    def get_tier_color(self, tier: object) -> str:
        return self.get_level_info(tier).color

    def get_all_tiers(self) -> list[TierDefinition]:
        return list(self.levels)

    def get_tier_rank(self, tier: object) -> int:
        return max(self._index_of(tier), 0)

    def is_higher_tier(self, tier_a: object, tier_b: object) -> bool:
        return self.get_tier_rank(tier_a) > self.get_tier_rank(tier_b)

    def estimate_time_to_next_tier(
        self,
        current_visits: int,
        current_spent: int,
        current_tier: object,
        monthly_visits: float = 2,
        average_spend_per_visit: float = 300000,
    ) -> TierEstimate:
        """Estimate whole months until the member reaches the next tier.

        Unlike ``get_next_tier_info`` this measures the member's own remaining
        gap. ``estimated_months`` is ``None`` when the activity rates given can
        never close the gap (for example zero visits per month).
        """
        upcoming = self.get_next_tier_info(current_tier).next_tier
        if upcoming is None:
            return TierEstimate(estimated_months=0, based_on_visits=False, based_on_spending=False)

        visits_needed = max(0, upcoming.min_visits - current_visits)
        spending_needed = max(0, upcoming.min_spending - current_spent)

        if visits_needed == 0:
            months_for_visits = 0.0
        elif monthly_visits > 0:
            months_for_visits = visits_needed / monthly_visits
        else:
            months_for_visits = math.inf

        monthly_spend = monthly_visits * average_spend_per_visit
        if spending_needed == 0:
            months_for_spending = 0.0
        elif monthly_spend > 0:
            months_for_spending = spending_needed / monthly_spend
        else:
            months_for_spending = math.inf

        estimated = max(months_for_visits, months_for_spending)
        return TierEstimate(
            estimated_months=None if math.isinf(estimated) else math.ceil(estimated),
            based_on_visits=months_for_visits >= months_for_spending,
            based_on_spending=months_for_spending > months_for_visits,
        )

    def get_membership_stats(
        self, members: Iterable[MemberCounters], top_tier_from: str = "gold"
    ) -> MembershipStats:
        """Aggregate members by their cached tier.

        Members carrying an unknown tier are counted under the lowest tier.
        When ``top_tier_from`` is not in the table, the top tiers are the
        upper half of it by rank.
        """
        counts = {level.tier: 0 for level in self.levels}
        visits = {level.tier: 0 for level in self.levels}
        spent = {level.tier: 0 for level in self.levels}

        for member in members:
            tier = self.get_level_info(member.membership_tier).tier
            counts[tier] += 1
            visits[tier] += member.total_visits
            spent[tier] += member.total_spent

        total = sum(counts.values())
        threshold = self._index_of(top_tier_from)
        if threshold < 0:
            threshold = len(self.levels) // 2
        top_count = sum(
            count for tier, count in counts.items() if self.get_tier_rank(tier) >= threshold
        )
        return MembershipStats(
            total_members=total,
            tier_distribution=counts,
            average_visits_per_tier={
                tier: (visits[tier] / counts[tier] if counts[tier] else 0.0) for tier in counts
            },
            average_spending_per_tier={
                tier: (spent[tier] / counts[tier] if counts[tier] else 0.0) for tier in counts
            },
            top_tier_percentage=(top_count / total * 100) if total else 0.0,
        )


def levels_from_config(raw: Sequence[Mapping[str, object]] | None) -> tuple[TierDefinition, ...]:
    """Build a tier table from plain config mappings, falling back to the defaults."""
    if not raw:
        return DEFAULT_LEVELS
    return tuple(
        TierDefinition(
            tier=str(item["tier"]),
            name=str(item.get("name") or str(item["tier"]).title()),
            min_visits=int(item.get("min_visits", 0)),
            min_spending=int(item.get("min_spending", 0)),
            discount_percentage=int(item.get("discount_percentage", 0)),
            benefits=tuple(item.get("benefits") or ()),
            color=str(item.get("color") or ""),
        )
        for item in raw
    )
