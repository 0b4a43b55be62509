import logging
from typing import Dict, Iterable, List, Mapping, Optional, Union

from configurator.models.component_models import (
    Component, ComponentCategory, CompatibilityRule
)

logger = logging.getLogger(__name__)

RuleSet = Union[Mapping[str, CompatibilityRule], Iterable[CompatibilityRule]]


def _find_rule(component_id: str, rules: RuleSet) -> Optional[CompatibilityRule]:
    if isinstance(rules, Mapping):
        return rules.get(component_id)
    for rule in rules:
        if rule.component_id == component_id:
            return rule
    return None


def rejection_reasons(candidate: Component, current_selections: List[Component],
                      rules: RuleSet) -> List[str]:
    """
    Every reason the candidate cannot join the current selections

    A candidate without a rule is never rejected. A non-empty
    compatible_with_ids list must contain every selected id, not just one.
    """
    rule = _find_rule(candidate.id, rules)
    if rule is None:
        return []

    reasons = []
    incompatible = set(rule.incompatible_with_ids or [])
    allowed = set(rule.compatible_with_ids)

    for selected in current_selections:
        if selected.id in incompatible:
            reasons.append(f"{candidate.id} is incompatible with {selected.id}")
        elif allowed and selected.id not in allowed:
            reasons.append(f"{candidate.id} is not approved for use with {selected.id}")

    if rule.requires_component_ids:
        selected_ids = {c.id for c in current_selections}
        for required_id in rule.requires_component_ids:
            if required_id not in selected_ids:
                reasons.append(f"{candidate.id} requires {required_id}")

    return reasons


def is_compatible(candidate: Component, current_selections: List[Component],
                  rules: RuleSet) -> bool:
    """Pure check: may the candidate be added alongside the current selections"""
    return not rejection_reasons(candidate, current_selections, rules)


class CompatibilityResolver:
    """Filters catalog candidates against what is already selected"""

    def __init__(self, catalog):
        self.catalog = catalog

    def is_compatible(self, candidate: Component, current_selections: List[Component]) -> bool:
        return is_compatible(candidate, current_selections, self.catalog.rules_by_component)

    def get_available_components(self, category: ComponentCategory,
                                 current_selections: List[Component]) -> List[Component]:
        """Available components of the category that fit the current selections"""
        candidates = self.catalog.get_components(category)

        if not current_selections:
            return candidates

        rules = self.catalog.rules_by_component
        eligible = [c for c in candidates if is_compatible(c, current_selections, rules)]
        logger.debug(
            f"{category.value}: {len(eligible)} of {len(candidates)} candidates eligible "
            f"for {len(current_selections)} selections"
        )
        return eligible

    def explain(self, candidate: Component, current_selections: List[Component]) -> List[str]:
        return rejection_reasons(candidate, current_selections, self.catalog.rules_by_component)

    def explain_category(self, category: ComponentCategory,
                         current_selections: List[Component]) -> Dict[str, List[str]]:
        """Rejection reasons for every rejected candidate of a category"""
        rules = self.catalog.rules_by_component
        explanations = {}
        for candidate in self.catalog.get_components(category):
            reasons = rejection_reasons(candidate, current_selections, rules)
            if reasons:
                explanations[candidate.id] = reasons
        return explanations
