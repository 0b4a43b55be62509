"""
Catalog sources
Each source produces one deterministic CatalogSnapshot; the store never
talks to files or remote tables directly.
"""
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from supabase import create_client

from configurator.config import Config
from configurator.errors import CatalogLoadError
from configurator.models.bom_models import PricingRule
from configurator.models.component_models import Component, CompatibilityRule

logger = logging.getLogger(__name__)


@dataclass
class CatalogSnapshot:
    """Ordered components and rules as delivered by a source"""
    components: List[Component] = field(default_factory=list)
    compatibility_rules: List[CompatibilityRule] = field(default_factory=list)
    pricing_rules: List[PricingRule] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> "CatalogSnapshot":
        return cls(
            components=[Component.from_dict(c) for c in data.get("components", [])],
            compatibility_rules=[CompatibilityRule.from_dict(r) for r in data.get("compatibilityRules", [])],
            pricing_rules=[PricingRule.from_dict(r) for r in data.get("pricingRules", [])]
        )


class BundledCatalogSource:
    """Catalog shipped as a JSON file"""

    def __init__(self, path: str = None):
        self.path = Path(path or Config.CATALOG_PATH)

    def load(self) -> CatalogSnapshot:
        if not self.path.exists():
            raise CatalogLoadError(f"Catalog file not found: {self.path}")

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            snapshot = CatalogSnapshot.from_dict(data)
        except (ValueError, KeyError) as e:
            raise CatalogLoadError(f"Invalid catalog file {self.path}: {e}") from e

        logger.info(
            f"Loaded bundled catalog from {self.path}: "
            f"{len(snapshot.components)} components, "
            f"{len(snapshot.compatibility_rules)} compatibility rules, "
            f"{len(snapshot.pricing_rules)} pricing rules"
        )
        return snapshot


class SupabaseCatalogSource:
    """One-shot snapshot of the catalog tables in Supabase"""

    def __init__(self, url: str = None, key: str = None, client=None):
        self.client = client or create_client(url or Config.SUPABASE_URL, key or Config.SUPABASE_KEY)
        logger.info("Supabase catalog source initialized")

    def _fetch(self, table: str) -> List[Dict]:
        result = self.client.table(table)\
            .select("*")\
            .order("id")\
            .execute()
        return result.data or []

    def load(self) -> CatalogSnapshot:
        try:
            snapshot = CatalogSnapshot(
                components=[Component.from_dict(row) for row in self._fetch("components")],
                compatibility_rules=[
                    CompatibilityRule.from_dict(row) for row in self._fetch("compatibility_rules")
                ],
                pricing_rules=[PricingRule.from_dict(row) for row in self._fetch("pricing_rules")]
            )
        except (ValueError, KeyError) as e:
            raise CatalogLoadError(f"Invalid catalog rows in Supabase: {e}") from e

        logger.info(
            f"Loaded Supabase catalog: {len(snapshot.components)} components, "
            f"{len(snapshot.compatibility_rules)} compatibility rules, "
            f"{len(snapshot.pricing_rules)} pricing rules"
        )
        return snapshot


def create_catalog_source():
    """Build the source selected by CATALOG_SOURCE"""
    if Config.CATALOG_SOURCE == "supabase":
        return SupabaseCatalogSource()
    return BundledCatalogSource()
