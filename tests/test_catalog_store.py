"""Tests for the catalog store and catalog sources."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from configurator.database.catalog_sources import (
    BundledCatalogSource,
    CatalogSnapshot,
    SupabaseCatalogSource,
)
from configurator.database.catalog_store import CatalogStore
from configurator.errors import CatalogLoadError
from configurator.models.bom_models import PricingRuleType
from configurator.models.component_models import ComponentCategory, CompatibilityRule

from conftest import make_component


class StaticSource:
    def __init__(self, snapshot: CatalogSnapshot) -> None:
        self.snapshot = snapshot

    def load(self) -> CatalogSnapshot:
        return self.snapshot


class TestBundledCatalog:
    def test_bundled_catalog_contents(self, catalog) -> None:
        stats = catalog.get_statistics()
        assert stats["total_components"] == 14
        assert stats["available_components"] == 14
        assert stats["by_category"] == {category.value: 2 for category in ComponentCategory}
        assert stats["compatibility_rules"] == 8
        assert stats["pricing_rules"] == 4

    def test_prices_are_exact_decimals(self, component) -> None:
        assert component("BASE-001").base_price == Decimal("1250.00")
        assert isinstance(component("CTRL-001").base_price, Decimal)

    def test_pricing_rules_keep_file_order(self, catalog) -> None:
        assert [r.id for r in catalog.pricing_rules] == ["PRICE-001", "PRICE-002", "PRICE-003", "PRICE-004"]
        assert catalog.pricing_rules[3].rule_type == PricingRuleType.CATEGORY
        assert catalog.pricing_rules[3].applicable_categories == [ComponentCategory.SENSOR]

    def test_missing_file_raises_load_error(self, tmp_path) -> None:
        with pytest.raises(CatalogLoadError):
            BundledCatalogSource(str(tmp_path / "missing.json")).load()

    def test_malformed_file_raises_load_error(self, tmp_path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"components": [{"id": "X"}]}))
        with pytest.raises(CatalogLoadError):
            BundledCatalogSource(str(path)).load()


class TestLookups:
    def test_unknown_component_is_none(self, catalog) -> None:
        assert catalog.get_component("NOPE-999") is None
        assert catalog.get_rule("NOPE-999") is None

    def test_rule_lookup_by_dependent_component(self, catalog) -> None:
        assert catalog.get_rule("MOTOR-001").id == "RULE-001"

    def test_category_lookup_hides_unavailable(self) -> None:
        store = CatalogStore(components=[
            make_component("A", ComponentCategory.BASE, "1"),
            make_component("B", ComponentCategory.BASE, "1", is_available=False),
        ])
        assert [c.id for c in store.get_components(ComponentCategory.BASE)] == ["A"]
        assert store.get_component("B") is not None

    def test_duplicate_rules_keep_first(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            store = CatalogStore(compatibility_rules=[
                CompatibilityRule(id="R1", component_id="C", compatible_with_ids=["A"]),
                CompatibilityRule(id="R2", component_id="C", compatible_with_ids=["B"]),
            ])
        assert store.get_rule("C").id == "R1"
        assert "Duplicate compatibility rule R2" in caplog.text

    def test_returned_lists_are_copies(self, catalog) -> None:
        catalog.all_components.clear()
        catalog.pricing_rules.clear()
        assert len(catalog.all_components) == 14
        assert len(catalog.pricing_rules) == 4


class TestReload:
    def test_reload_replaces_whole_snapshot(self, catalog) -> None:
        replacement = CatalogSnapshot(components=[make_component("NEW-1", ComponentCategory.MOTOR, "99")])
        catalog.reload(StaticSource(replacement))

        assert catalog.get_component("BASE-001") is None
        assert catalog.get_rule("MOTOR-001") is None
        assert catalog.pricing_rules == []
        assert [c.id for c in catalog.get_components(ComponentCategory.MOTOR)] == ["NEW-1"]

    def test_failed_reload_keeps_previous_snapshot(self, catalog, tmp_path) -> None:
        with pytest.raises(CatalogLoadError):
            catalog.reload(BundledCatalogSource(str(tmp_path / "missing.json")))
        assert catalog.get_component("BASE-001") is not None


class TestSupabaseCatalogSource:
    def test_loads_each_table_once(self) -> None:
        rows = {
            "components": [{"id": "BASE-9", "name": "Base 9", "category": "base", "basePrice": 100}],
            "compatibility_rules": [{"id": "R", "componentId": "BASE-9", "compatibleWithIds": []}],
            "pricing_rules": [{"id": "P", "name": "Bundle", "ruleType": "bundle", "discountPercentage": 0.05}],
        }
        client = MagicMock()

        def table(name):
            query = MagicMock()
            query.select.return_value.order.return_value.execute.return_value.data = rows[name]
            return query

        client.table.side_effect = table

        snapshot = SupabaseCatalogSource(client=client).load()

        assert [c.id for c in snapshot.components] == ["BASE-9"]
        assert snapshot.components[0].base_price == Decimal("100")
        assert snapshot.pricing_rules[0].discount_percentage == Decimal("0.05")
        assert [call.args[0] for call in client.table.call_args_list] == [
            "components", "compatibility_rules", "pricing_rules"
        ]
