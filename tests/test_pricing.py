"""Tests for the pricing engine."""

from __future__ import annotations

from decimal import Decimal

from configurator.models.bom_models import PricingRule, PricingRuleType
from configurator.models.component_models import ComponentCategory
from configurator.services.pricing_service import (
    BUNDLE_DISCOUNT_LABEL,
    VOLUME_DISCOUNT_LABEL,
    calculate_price,
    validate_customer,
)
from configurator.models.quote_models import CustomerInfo

from conftest import TAX_RATE, make_component


def volume_rule(rule_id: str, threshold: str, percentage: str) -> PricingRule:
    return PricingRule(
        id=rule_id,
        name=f"Volume {percentage}",
        rule_type=PricingRuleType.VOLUME,
        threshold=Decimal(threshold),
        discount_percentage=Decimal(percentage),
    )


class TestCalculatePrice:
    """End-to-end pricing scenarios against the bundled rules."""

    def test_full_system_gets_volume_and_bundle_discounts(self, catalog, full_system) -> None:
        result = calculate_price(full_system, catalog.pricing_rules, TAX_RATE)

        assert result.subtotal == Decimal("7760.00")
        assert result.discounts == {
            VOLUME_DISCOUNT_LABEL: Decimal("776.00"),
            BUNDLE_DISCOUNT_LABEL: Decimal("388.00"),
        }
        assert result.total_discount == Decimal("1164.00")
        assert result.tax_amount == Decimal("527.68")
        assert result.total == Decimal("7123.68")
        assert [r.id for r in result.applied_rules] == ["PRICE-001", "PRICE-003"]

    def test_single_base_has_no_discounts(self, catalog, component) -> None:
        result = calculate_price([component("BASE-002")], catalog.pricing_rules, TAX_RATE)

        assert result.subtotal == Decimal("850.00")
        assert result.discounts == {}
        assert result.tax_amount == Decimal("68.00")
        assert result.total == Decimal("918.00")
        assert result.applied_rules == []

    def test_two_sensors_get_category_discount(self, catalog, component) -> None:
        sensors = [component("SENS-001"), component("SENS-002")]
        result = calculate_price(sensors, catalog.pricing_rules, TAX_RATE)

        assert result.discounts == {"Sensor Discount": Decimal("44.80")}
        assert [r.id for r in result.applied_rules] == ["PRICE-004"]
        assert result.total == (Decimal("560.00") - Decimal("44.80")) * (1 + TAX_RATE)

    def test_category_discount_uses_category_subtotal_only(self, catalog, component) -> None:
        parts = [component("BASE-001"), component("SENS-001"), component("SENS-002")]
        result = calculate_price(parts, catalog.pricing_rules, TAX_RATE)
        assert result.discounts["Sensor Discount"] == Decimal("560.00") * Decimal("0.08")

    def test_empty_selection_prices_to_zero(self, catalog) -> None:
        result = calculate_price([], catalog.pricing_rules, TAX_RATE)

        assert result.subtotal == 0
        assert result.discounts == {}
        assert result.tax_amount == 0
        assert result.total == 0
        assert result.applied_rules == []

    def test_volume_discount_requires_subtotal_above_floor(self) -> None:
        rules = [volume_rule("V", "1000", "0.10")]
        exactly_floor = [make_component("A", ComponentCategory.BASE, "5000.00")]
        assert calculate_price(exactly_floor, rules, TAX_RATE).discounts == {}

        above_floor = [make_component("A", ComponentCategory.BASE, "5000.01")]
        assert VOLUME_DISCOUNT_LABEL in calculate_price(above_floor, rules, TAX_RATE).discounts

    def test_first_qualifying_volume_rule_wins(self) -> None:
        parts = [
            make_component("A", ComponentCategory.BASE, "6000.00"),
            make_component("B", ComponentCategory.MOTOR, "6000.00"),
        ]
        low = volume_rule("LOW", "5000", "0.10")
        high = volume_rule("HIGH", "10000", "0.15")

        forward = calculate_price(parts, [low, high], TAX_RATE)
        reverse = calculate_price(parts, [high, low], TAX_RATE)

        assert forward.subtotal == reverse.subtotal == Decimal("12000.00")
        assert [r.id for r in forward.applied_rules] == ["LOW"]
        assert [r.id for r in reverse.applied_rules] == ["HIGH"]
        assert forward.discounts[VOLUME_DISCOUNT_LABEL] == Decimal("1200.00")
        assert reverse.discounts[VOLUME_DISCOUNT_LABEL] == Decimal("1800.00")

    def test_missing_threshold_counts_as_zero(self) -> None:
        rule = PricingRule(
            id="V", name="Any volume", rule_type=PricingRuleType.VOLUME,
            discount_percentage=Decimal("0.05"),
        )
        parts = [make_component("A", ComponentCategory.BASE, "6000.00")]
        assert calculate_price(parts, [rule], TAX_RATE).discounts[VOLUME_DISCOUNT_LABEL] == Decimal("300.00")

    def test_missing_percentage_is_zero_discount(self, full_system) -> None:
        rule = PricingRule(id="B", name="Bundle", rule_type=PricingRuleType.BUNDLE)
        result = calculate_price(full_system, [rule], TAX_RATE)

        assert result.discounts == {BUNDLE_DISCOUNT_LABEL: Decimal("0")}
        assert result.total == Decimal("7760.00") * (1 + TAX_RATE)

    def test_bundle_needs_base_motor_housing_and_control(self, catalog, component) -> None:
        no_control = [component("BASE-001"), component("MOTOR-001"), component("HOUSING-001")]
        result = calculate_price(no_control, catalog.pricing_rules, TAX_RATE)
        assert BUNDLE_DISCOUNT_LABEL not in result.discounts

        no_connector = no_control + [component("CTRL-002")]
        result = calculate_price(no_connector, catalog.pricing_rules, TAX_RATE)
        assert BUNDLE_DISCOUNT_LABEL in result.discounts

    def test_subtotal_is_independent_of_component_order(self, catalog, full_system) -> None:
        forward = calculate_price(full_system, catalog.pricing_rules, TAX_RATE)
        backward = calculate_price(list(reversed(full_system)), catalog.pricing_rules, TAX_RATE)
        assert forward.subtotal == backward.subtotal
        assert forward.total == backward.total

    def test_repeated_calls_are_identical(self, catalog, full_system) -> None:
        rules = catalog.pricing_rules
        first = calculate_price(full_system, rules, TAX_RATE)
        second = calculate_price(full_system, rules, TAX_RATE)

        assert first.to_dict() == second.to_dict()
        assert rules == catalog.pricing_rules


class TestPricingEngine:
    """Tests for the rule-injected engine wrapper."""

    def test_engine_matches_pure_function(self, pricing_engine, catalog, full_system) -> None:
        assert (
            pricing_engine.calculate_price(full_system).to_dict()
            == calculate_price(full_system, catalog.pricing_rules, TAX_RATE).to_dict()
        )


class TestValidateCustomer:
    """Tests for the caller-side customer checks."""

    def test_valid_customer_has_no_errors(self, customer) -> None:
        assert validate_customer(customer) == []

    def test_all_problems_are_collected(self) -> None:
        errors = validate_customer(CustomerInfo(company_name="", contact_name=" ", email="nobody"))
        assert errors == [
            "Company name is required",
            "Contact name is required",
            "Invalid email: 'nobody'",
        ]
