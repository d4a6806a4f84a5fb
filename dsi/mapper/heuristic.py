"""Heuristic target suggestions for source data paths."""
from difflib import SequenceMatcher
from typing import List, Optional

from dsi.schema.models import MappingKind, MappingSet


class HeuristicMapper:
    """Suggest schema.org target properties for storefront data paths."""

    # Last path segment → schema.org Product property
    COMMON_TARGET_MAPPINGS = {
        "title": "name",
        "name": "name",
        "body_html": "description",
        "description": "description",
        "isbn": "identifier",
        "sku": "sku",
        "barcode": "gtin",
        "gtin": "gtin",
        "fabric_type": "material",
        "material": "material",
        "tags": "keywords",
        "vendor": "manufacturer",
        "brand": "brand",
        "average_rating": "review",
        "rating": "review",
        "inventory_quantity": "availability",
        "current_price": "price",
        "price": "price",
        "color": "color",
    }

    DEFAULT_TARGETS = [
        "identifier",
        "material",
        "keywords",
        "manufacturer",
        "review",
        "availability",
        "price",
        "name",
        "description",
        "sku",
        "gtin",
        "brand",
        "color",
    ]

    # Targets usually gated by conditions
    CONDITIONAL_TARGETS = {"review", "aggregateRating"}

    def __init__(self, targets: Optional[List[str]] = None):
        """Initialize mapper with the known target properties."""
        self.targets = targets or list(self.DEFAULT_TARGETS)

    def suggest_target(self, source: str) -> Optional[str]:
        """Suggest a target property for one source path."""
        if not source:
            return None

        leaf = source.split(".")[-1].lower()

        # Common mapping
        if leaf in self.COMMON_TARGET_MAPPINGS:
            return self.COMMON_TARGET_MAPPINGS[leaf]

        # Exact match
        for target in self.targets:
            if target.lower() == leaf:
                return target

        # Fuzzy match
        best_match = None
        best_ratio = 0.75

        for target in self.targets:
            ratio = SequenceMatcher(None, leaf, target.lower()).ratio()

            if ratio > best_ratio:
                best_ratio = ratio
                best_match = target

        return best_match

    def suggest_kind(self, target: str) -> MappingKind:
        if target in self.CONDITIONAL_TARGETS:
            return MappingKind.CONDITIONAL
        return MappingKind.PLAIN_TEXT

    def suggest_mappings(self, sources: List[str]) -> MappingSet:
        """Build a draft mapping set; unmatched sources get an empty target."""
        mapping_set = MappingSet()

        for source in sources:
            target = self.suggest_target(source) or ""
            mapping_set.add_rule(source=source, target=target, kind=self.suggest_kind(target))

        return mapping_set
