"""Build the pure calculators from app config and the current catalog."""
from __future__ import annotations

from flask import current_app

from .models import Service
from .services import (ServiceCombinationValidator, TierCalculator,
                       VisitPricingEngine, levels_from_config)


def tier_calculator() -> TierCalculator:
    return TierCalculator(levels_from_config(current_app.config.get("MEMBERSHIP_LEVELS")))


def service_validator(tiers: TierCalculator | None = None) -> ServiceCombinationValidator:
    """Snapshot the catalog table; inactive rows stay so combos resolve by name."""
    catalog = [service.to_catalog_entry() for service in Service.query.order_by(Service.service_id)]
    return ServiceCombinationValidator(
        catalog,
        combo_includes=current_app.config.get("COMBO_INCLUDES"),
        tier_calculator=tiers or tier_calculator(),
    )


def pricing_engine(tiers: TierCalculator | None = None) -> VisitPricingEngine:
    return VisitPricingEngine(tiers or tier_calculator())
