"""Pure business rules: membership tiers, service combinations and visit pricing."""
from __future__ import annotations

from .catalog import (CatalogEntry, CombinationResult, ServiceCombinationValidator,
                      format_duration, format_price, round_half_up)
from .membership import (MemberCounters, TierCalculator, TierDefinition,
                         levels_from_config)
from .pricing import SelectedServiceLine, VisitPricingEngine, VisitTotals

__all__ = [
    "CatalogEntry",
    "CombinationResult",
    "MemberCounters",
    "SelectedServiceLine",
    "ServiceCombinationValidator",
    "TierCalculator",
    "TierDefinition",
    "VisitPricingEngine",
    "VisitTotals",
    "format_duration",
    "format_price",
    "levels_from_config",
    "round_half_up",
]
