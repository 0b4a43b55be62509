import logging
from decimal import Decimal
from typing import Dict, List, Optional

from configurator.models.bom_models import (
    BillOfMaterials, BOMLineItem, PriceCalculationResult, PricingRule, PricingRuleType
)
from configurator.models.component_models import Component, ComponentCategory
from configurator.models.quote_models import (
    DEFAULT_VALIDITY_DAYS, CustomerInfo, Quote, QuoteStatus
)

logger = logging.getLogger(__name__)

DEFAULT_TAX_RATE = Decimal("0.08")

# Volume discounts are only considered above this subtotal
VOLUME_DISCOUNT_FLOOR = Decimal("5000")

BUNDLE_CATEGORIES = frozenset({
    ComponentCategory.BASE,
    ComponentCategory.MOTOR,
    ComponentCategory.HOUSING,
    ComponentCategory.CONTROL,
})

VOLUME_DISCOUNT_LABEL = "Volume Discount"
BUNDLE_DISCOUNT_LABEL = "Complete System Bundle"

ZERO = Decimal("0")


def has_complete_system(components: List[Component]) -> bool:
    return BUNDLE_CATEGORIES.issubset({c.category for c in components})


def calculate_price(components: List[Component], pricing_rules: List[PricingRule],
                    tax_rate: Decimal = DEFAULT_TAX_RATE) -> PriceCalculationResult:
    """
    Price a set of selected components

    Discount order: volume, bundle, then one pass per category in enum order.
    Within a rule type the first rule in list order that qualifies wins, so
    reordering the rule list can change the result.
    """
    discounts: Dict[str, Decimal] = {}
    applied_rules: List[PricingRule] = []

    subtotal = sum((c.base_price for c in components), ZERO)

    # Volume
    if subtotal > VOLUME_DISCOUNT_FLOOR:
        volume_rule = next(
            (r for r in pricing_rules
             if r.rule_type == PricingRuleType.VOLUME and (r.threshold or ZERO) <= subtotal),
            None
        )
        if volume_rule:
            discounts[VOLUME_DISCOUNT_LABEL] = subtotal * (volume_rule.discount_percentage or ZERO)
            applied_rules.append(volume_rule)

    # Bundle
    if has_complete_system(components):
        bundle_rule = next(
            (r for r in pricing_rules if r.rule_type == PricingRuleType.BUNDLE),
            None
        )
        if bundle_rule:
            discounts[BUNDLE_DISCOUNT_LABEL] = subtotal * (bundle_rule.discount_percentage or ZERO)
            applied_rules.append(bundle_rule)

    # Category
    for category in ComponentCategory:
        category_components = [c for c in components if c.category == category]
        if len(category_components) < 2:
            continue

        category_rule = next(
            (r for r in pricing_rules
             if r.rule_type == PricingRuleType.CATEGORY
             and category in (r.applicable_categories or [])),
            None
        )
        if category_rule:
            category_total = sum((c.base_price for c in category_components), ZERO)
            label = f"{category.display_name} Discount"
            discounts[label] = category_total * (category_rule.discount_percentage or ZERO)
            applied_rules.append(category_rule)

    total_discount = sum(discounts.values(), ZERO)
    taxable_amount = subtotal - total_discount
    tax_amount = taxable_amount * tax_rate
    total = taxable_amount + tax_amount

    return PriceCalculationResult(
        subtotal=subtotal,
        discounts=discounts,
        tax_amount=tax_amount,
        total=total,
        applied_rules=applied_rules
    )


class PricingEngine:
    """
    Pricing, BOM assembly and quote creation over an injected rule set

    Holds no state between calls beyond the rules and tax rate it was built with.
    """

    def __init__(self, pricing_rules: List[PricingRule],
                 tax_rate: Decimal = DEFAULT_TAX_RATE,
                 validity_days: int = DEFAULT_VALIDITY_DAYS):
        self.pricing_rules = list(pricing_rules)
        self.tax_rate = tax_rate
        self.validity_days = validity_days

    def calculate_price(self, components: List[Component]) -> PriceCalculationResult:
        result = calculate_price(components, self.pricing_rules, self.tax_rate)
        logger.debug(
            f"Priced {len(components)} components: subtotal={result.subtotal} "
            f"discount={result.total_discount} total={result.total}"
        )
        return result

    # ================================================================
    # BOM Assembly
    # ================================================================
    def generate_bom(self, configuration,
                     quantities: Optional[Dict[str, int]] = None,
                     line_discounts: Optional[Dict[str, Decimal]] = None) -> BillOfMaterials:
        """
        Build a BOM for a configuration

        Line items are priced individually, then the headline totals are
        overwritten with the engine's aggregate result. The aggregate
        includes volume/bundle/category discounts that the line items do
        not carry, so subtotal may not equal the sum of line totals.
        """
        quantities = quantities or {}
        line_discounts = line_discounts or {}
        components = configuration.selected_components

        line_items = [
            BOMLineItem(
                component=component,
                quantity=quantities.get(component.id, 1),
                discount=line_discounts.get(component.id)
            )
            for component in components
        ]

        bom = BillOfMaterials(
            configuration_id=configuration.id,
            line_items=line_items,
            tax_rate=self.tax_rate
        )

        price = self.calculate_price(components)
        bom.subtotal = price.subtotal - price.total_discount
        bom.tax = price.tax_amount
        bom.total = price.total

        logger.info(
            f"BOM {bom.id} for configuration {configuration.id}: "
            f"{len(line_items)} lines, total={bom.total}"
        )
        return bom

    # ================================================================
    # Quote Creation
    # ================================================================
    def generate_quote(self, configuration, customer_info: CustomerInfo,
                       notes: Optional[str] = None,
                       status: QuoteStatus = QuoteStatus.DRAFT) -> Quote:
        """Wrap a configuration, a fresh BOM and the customer into a quote"""
        bom = self.generate_bom(configuration)
        quote = Quote.create(
            configuration=configuration,
            bill_of_materials=bom,
            customer_info=customer_info,
            status=status,
            validity_days=self.validity_days,
            notes=notes
        )
        logger.info(f"Quote {quote.quote_number} created for {customer_info.company_name}")
        return quote


def validate_customer(customer_info: CustomerInfo) -> List[str]:
    """Checks a caller runs before quoting; the engine itself does not enforce them"""
    errors = []
    if not customer_info.company_name.strip():
        errors.append("Company name is required")
    if not customer_info.contact_name.strip():
        errors.append("Contact name is required")
    if not customer_info.email.strip():
        errors.append("Email is required")
    elif "@" not in customer_info.email:
        errors.append(f"Invalid email: '{customer_info.email}'")
    return errors
