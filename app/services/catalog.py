"""Service catalog helpers and combination validation."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Sequence

from .membership import TierCalculator

SERVICE_CATEGORIES: tuple[str, ...] = (
    "haircut",
    "styling",
    "treatment",
    "coloring",
    "beard",
    "wash",
    "combo",
)

BASIC_HAIRCUT = "Haircut"
TREATMENTS_NEEDING_HAIRCUT = frozenset({"Root Lift", "Down Perm", "Design Perm"})
MAX_TREATMENTS_PER_VISIT = 2
MAX_SESSION_MINUTES = 240
MAX_RECOMMENDATIONS = 3
EMPTY_SELECTION_MESSAGE = "Please select at least one service"

# Combos are matched by name, not by row id.
DEFAULT_COMBO_INCLUDES: dict[str, tuple[str, ...]] = {
    "Haircut + Root Lift": ("Haircut", "Root Lift"),
    "Haircut + Down Perm": ("Haircut", "Down Perm"),
    "Haircut + Down Perm + Root Lift": ("Haircut", "Down Perm", "Root Lift"),
    "Haircut + Design Perm": ("Haircut", "Design Perm"),
    "Haircut + Keratin Smooth": ("Haircut", "Keratin Smooth"),
    "Haircut + Hair Repair": ("Haircut", "Hair Repair"),
}

POPULAR_SERVICE_NAMES: tuple[str, ...] = (
    "Haircut",
    "Haircut + Root Lift",
    "Root Lift",
    "Haircut + Down Perm",
    "Design Perm",
)


def round_half_up(value: float | int | Decimal) -> int:
    """Round to the nearest whole currency unit, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class CatalogEntry:
    id: object
    name: str
    category: str
    base_price: int
    duration_minutes: int
    is_active: bool = True
    description: str | None = None
    requires_consultation: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "base_price": self.base_price,
            "duration_minutes": self.duration_minutes,
            "is_active": self.is_active,
            "description": self.description,
            "requires_consultation": self.requires_consultation,
        }


@dataclass(frozen=True)
class CombinationResult:
    is_valid: bool
    conflicts: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "is_valid": self.is_valid,
            "conflicts": list(self.conflicts),
            "warnings": list(self.warnings),
            "suggestions": list(self.suggestions),
        }


# Seed data for scripts/seed_services.py, prices in IDR.
DEFAULT_SERVICES: tuple[dict[str, object], ...] = (
    {"name": "Haircut", "category": "haircut", "base_price": 150000, "duration_minutes": 45,
     "description": "Classic men's haircut with styling", "requires_consultation": False},
    {"name": "Root Lift", "category": "styling", "base_price": 200000, "duration_minutes": 60,
     "description": "Root lifting treatment for volume", "requires_consultation": False},
    {"name": "Down Perm", "category": "treatment", "base_price": 350000, "duration_minutes": 120,
     "description": "Permanent wave treatment - downward style", "requires_consultation": True},
    {"name": "Design Perm", "category": "treatment", "base_price": 400000, "duration_minutes": 150,
     "description": "Custom design permanent wave treatment", "requires_consultation": True},
    {"name": "Keratin Smooth", "category": "treatment", "base_price": 500000, "duration_minutes": 180,
     "description": "Keratin smoothing treatment", "requires_consultation": True},
    {"name": "Hair Repair", "category": "treatment", "base_price": 300000, "duration_minutes": 90,
     "description": "Deep hair repair and conditioning treatment", "requires_consultation": False},
    {"name": "Home Service (JABODETABEK)", "category": "haircut", "base_price": 250000,
     "duration_minutes": 60, "description": "Haircut service at your location in JABODETABEK area",
     "requires_consultation": False},
    {"name": "Haircut + Root Lift", "category": "combo", "base_price": 320000, "duration_minutes": 105,
     "description": "Combination of haircut and root lift", "requires_consultation": False},
    {"name": "Haircut + Down Perm", "category": "combo", "base_price": 450000, "duration_minutes": 165,
     "description": "Combination of haircut and down perm", "requires_consultation": True},
    {"name": "Haircut + Down Perm + Root Lift", "category": "combo", "base_price": 600000,
     "duration_minutes": 225,
     "description": "Complete styling package with haircut, down perm, and root lift",
     "requires_consultation": True},
    {"name": "Haircut + Design Perm", "category": "combo", "base_price": 500000, "duration_minutes": 195,
     "description": "Combination of haircut and design perm", "requires_consultation": True},
    {"name": "Haircut + Keratin Smooth", "category": "combo", "base_price": 600000,
     "duration_minutes": 225, "description": "Combination of haircut and keratin smooth treatment",
     "requires_consultation": True},
    {"name": "Haircut + Hair Repair", "category": "combo", "base_price": 420000, "duration_minutes": 135,
     "description": "Combination of haircut and hair repair treatment", "requires_consultation": False},
)


def format_duration(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} minutes"
    hours, remaining = divmod(minutes, 60)
    if remaining == 0:
        return f"{hours} {'hour' if hours == 1 else 'hours'}"
    return f"{hours}h {remaining}m"


def format_price(amount: float) -> str:
    # Rupiah groups thousands with dots and shows no minor units.
    return "Rp " + f"{round_half_up(amount):,}".replace(",", ".")


class ServiceCombinationValidator:
    """Answer questions about a selection of catalog services.

    The catalog is a snapshot handed in by the caller; inactive entries are
    kept for lookups by name but never resolve from a selection of ids.
    """

    def __init__(
        self,
        catalog: Iterable[CatalogEntry],
        combo_includes: Mapping[str, Sequence[str]] | None = None,
        tier_calculator: TierCalculator | None = None,
    ) -> None:
        self.catalog: tuple[CatalogEntry, ...] = tuple(catalog)
        includes = DEFAULT_COMBO_INCLUDES if combo_includes is None else combo_includes
        self.combo_includes = {name: tuple(members) for name, members in includes.items()}
        self.tiers = tier_calculator or TierCalculator()

    def get_all_services(self) -> list[CatalogEntry]:
        return [service for service in self.catalog if service.is_active]

    def get_service_by_id(self, service_id: object) -> CatalogEntry | None:
        return next((s for s in self.catalog if s.id == service_id), None)

    def get_service_by_name(self, name: str) -> CatalogEntry | None:
        return next((s for s in self.catalog if s.name == name), None)

    def get_services_by_category(self, category: str) -> list[CatalogEntry]:
        return [s for s in self.catalog if s.category == category and s.is_active]

    def get_services_by_ids(self, service_ids: Iterable[object]) -> list[CatalogEntry]:
        wanted = list(service_ids)
        return [s for s in self.catalog if s.id in wanted and s.is_active]

    def get_combo_includes(self, combo_name: str) -> tuple[str, ...]:
        return self.combo_includes.get(combo_name, ())

    def calculate_total_price(
        self,
        service_ids: Iterable[object],
        discount_percent: float = 0,
        tier: str | None = None,
    ) -> int:
        """Catalog estimate: flat discount first, then the tier discount on top."""
        base_total = sum(s.base_price for s in self.get_services_by_ids(service_ids))
        total = base_total * (1 - discount_percent / 100)
        if tier:
            total = total * (1 - self.tiers.get_discount(tier) / 100)
        return round_half_up(total)

    def calculate_total_duration(self, service_ids: Iterable[object]) -> int:
        return sum(s.duration_minutes for s in self.get_services_by_ids(service_ids))

    def validate_combination(self, service_ids: Sequence[object]) -> CombinationResult:
        """Check a selection for redundant combos and advisory warnings.

        Only conflicts make a selection invalid; warnings and suggestions are
        advice for the hairstylist.
        """
        if not service_ids:
            return CombinationResult(is_valid=False, conflicts=[EMPTY_SELECTION_MESSAGE])

        services = self.get_services_by_ids(service_ids)
        conflicts: list[str] = []
        warnings: list[str] = []
        suggestions: list[str] = []

        has_combo = any(s.category == "combo" for s in services)
        has_basic_haircut = any(s.name == BASIC_HAIRCUT for s in services)

        for combo in (s for s in services if s.category == "combo"):
            included = self.get_combo_includes(combo.name)
            redundant = [s.name for s in services if s.category != "combo" and s.name in included]
            if redundant:
                conflicts.append(f"{combo.name} already includes: {', '.join(redundant)}")

        needs_haircut = any(s.name in TREATMENTS_NEEDING_HAIRCUT for s in services)
        if needs_haircut and not has_basic_haircut and not has_combo:
            warnings.append(
                "Some treatments work best with a fresh haircut. Consider adding a haircut."
            )
            suggestions.append(f'Add "{BASIC_HAIRCUT}" service for best results')

        treatments = [s for s in services if s.category == "treatment"]
        if len(treatments) > MAX_TREATMENTS_PER_VISIT:
            warnings.append("Multiple chemical treatments in one session may be intensive for hair.")

        total_duration = sum(s.duration_minutes for s in services)
        if total_duration > MAX_SESSION_MINUTES:
            warnings.append(
                f"Total session time: {round_half_up(total_duration / 60)} hours. "
                "Consider splitting into multiple visits."
            )

        if has_basic_haircut and not has_combo:
            others = [s for s in services if s.name != BASIC_HAIRCUT]
            if len(others) == 1:
                combo_name = f"{BASIC_HAIRCUT} + {others[0].name}"
                if self.get_service_by_name(combo_name) is not None:
                    suggestions.append(f'Consider "{combo_name}" combo for better value')

        return CombinationResult(
            is_valid=not conflicts,
            conflicts=conflicts,
            warnings=warnings,
            suggestions=suggestions,
        )

    def search_services(self, query: str) -> list[CatalogEntry]:
        needle = query.lower()
        return [
            s
            for s in self.catalog
            if s.is_active
            and (
                needle in s.name.lower()
                or needle in (s.description or "").lower()
                or needle in s.category.lower()
            )
        ]

    def get_popular_services(self) -> list[CatalogEntry]:
        found = (self.get_service_by_name(name) for name in POPULAR_SERVICE_NAMES)
        return [service for service in found if service is not None]

    def get_recommendations(self, previous_service_ids: Iterable[object]) -> list[CatalogEntry]:
        """Suggest follow-up services from what the member had before."""
        previous = self.get_services_by_ids(previous_service_ids)
        recommendations: list[CatalogEntry] = []

        if any(s.category == "treatment" for s in previous):
            hair_repair = self.get_service_by_name("Hair Repair")
            if hair_repair is not None:
                recommendations.append(hair_repair)

        # An empty history counts as "basic only".
        if all(s.category == "haircut" and s.name == BASIC_HAIRCUT for s in previous):
            for name in ("Root Lift", "Haircut + Root Lift"):
                service = self.get_service_by_name(name)
                if service is not None:
                    recommendations.append(service)

        return recommendations[:MAX_RECOMMENDATIONS]
