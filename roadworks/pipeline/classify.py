"""Impact categories for map icons, legend grouping and alert text."""

from __future__ import annotations

from collections import Counter
from enum import Enum
from typing import Iterable

from roadworks.common.models import EnrichedConstruction

SIDEWALK_BLOCKED_VALUES = frozenset({"Barré"})
TRANSIT_MOVED_VALUES = frozenset({"Déplacer", "Déplacé", "Retirer", "Retiré"})


class ImpactCategory(str, Enum):
    BOTH = "both"
    SIDEWALK_ONLY = "sidewalk_only"
    TRANSIT_ONLY = "transit_only"
    NONE = "none"


IMPACT_ICONS = {
    ImpactCategory.BOTH: "🚧",
    ImpactCategory.SIDEWALK_ONLY: "🔨",
    ImpactCategory.TRANSIT_ONLY: "🔴",
    ImpactCategory.NONE: "🔨",
}

IMPACT_LABELS = {
    ImpactCategory.BOTH: "Trottoir barré et arrêt de bus déplacé",
    ImpactCategory.SIDEWALK_ONLY: "Trottoir barré",
    ImpactCategory.TRANSIT_ONLY: "Arrêt de bus déplacé",
    ImpactCategory.NONE: "Chaussée seulement",
}


def _matches(value: str | None, sentinels: frozenset[str]) -> bool:
    if value is None:
        return False
    return value.strip() in sentinels


def classify(
    construction: EnrichedConstruction,
    *,
    sidewalk_blocked_values: frozenset[str] = SIDEWALK_BLOCKED_VALUES,
    transit_moved_values: frozenset[str] = TRANSIT_MOVED_VALUES,
) -> ImpactCategory:
    sidewalk = _matches(construction.sidewalk_impact, sidewalk_blocked_values)
    transit = _matches(construction.transit_impact, transit_moved_values)
    if sidewalk and transit:
        return ImpactCategory.BOTH
    if sidewalk:
        return ImpactCategory.SIDEWALK_ONLY
    if transit:
        return ImpactCategory.TRANSIT_ONLY
    return ImpactCategory.NONE


def legend_counts(categories: Iterable[ImpactCategory]) -> dict[ImpactCategory, int]:
    counts = Counter(categories)
    return {category: counts.get(category, 0) for category in ImpactCategory}
