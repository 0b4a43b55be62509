import logging
from collections import defaultdict
from typing import Dict, List, NamedTuple, Optional, Tuple

from configurator.database.catalog_sources import CatalogSnapshot
from configurator.models.bom_models import PricingRule
from configurator.models.component_models import (
    Component, ComponentCategory, CompatibilityRule
)

logger = logging.getLogger(__name__)


class _CatalogIndex(NamedTuple):
    components: Tuple[Component, ...]
    by_id: Dict[str, Component]
    by_category: Dict[ComponentCategory, List[Component]]
    rules_by_component: Dict[str, CompatibilityRule]
    compatibility_rules: Tuple[CompatibilityRule, ...]
    pricing_rules: Tuple[PricingRule, ...]


class CatalogStore:
    """
    Read-only registry of components and rules

    The snapshot is built once and replaced wholesale by reload(); nothing
    mutates it in between, so concurrent readers are safe.
    """

    def __init__(self, components: List[Component] = None,
                 compatibility_rules: List[CompatibilityRule] = None,
                 pricing_rules: List[PricingRule] = None):
        self._install(CatalogSnapshot(
            components=list(components or []),
            compatibility_rules=list(compatibility_rules or []),
            pricing_rules=list(pricing_rules or [])
        ))

    @classmethod
    def from_source(cls, source) -> "CatalogStore":
        snapshot = source.load()
        return cls(snapshot.components, snapshot.compatibility_rules, snapshot.pricing_rules)

    def _install(self, snapshot: CatalogSnapshot):
        by_id: Dict[str, Component] = {}
        by_category: Dict[ComponentCategory, List[Component]] = defaultdict(list)
        for component in snapshot.components:
            by_id[component.id] = component
            by_category[component.category].append(component)

        rules: Dict[str, CompatibilityRule] = {}
        for rule in snapshot.compatibility_rules:
            if rule.component_id in rules:
                logger.warning(
                    f"Duplicate compatibility rule {rule.id} for {rule.component_id} ignored"
                )
                continue
            rules[rule.component_id] = rule

        # Swap everything in one assignment
        self._index = _CatalogIndex(
            tuple(snapshot.components),
            by_id,
            dict(by_category),
            rules,
            tuple(snapshot.compatibility_rules),
            tuple(snapshot.pricing_rules),
        )

    def reload(self, source):
        """Replace the whole snapshot with a fresh one from the source"""
        snapshot = source.load()
        self._install(snapshot)
        logger.info(f"Catalog reloaded: {len(snapshot.components)} components")

    @property
    def all_components(self) -> List[Component]:
        return list(self._index.components)

    @property
    def compatibility_rules(self) -> List[CompatibilityRule]:
        return list(self._index.compatibility_rules)

    @property
    def pricing_rules(self) -> List[PricingRule]:
        return list(self._index.pricing_rules)

    @property
    def rules_by_component(self) -> Dict[str, CompatibilityRule]:
        return dict(self._index.rules_by_component)

    def get_component(self, component_id: str) -> Optional[Component]:
        return self._index.by_id.get(component_id)

    def get_components(self, category: ComponentCategory) -> List[Component]:
        """Available components of a category, in catalog order"""
        return [c for c in self._index.by_category.get(category, []) if c.is_available]

    def get_rule(self, component_id: str) -> Optional[CompatibilityRule]:
        return self._index.rules_by_component.get(component_id)

    def get_statistics(self) -> Dict:
        components = self._index.components
        per_category = {category.value: 0 for category in ComponentCategory}
        for component in components:
            per_category[component.category.value] += 1

        return {
            "total_components": len(components),
            "available_components": sum(1 for c in components if c.is_available),
            "by_category": per_category,
            "compatibility_rules": len(self._index.rules_by_component),
            "pricing_rules": len(self._index.pricing_rules)
        }
