"""Shared pytest fixtures for configurator tests.

Everything is built from the bundled catalog so tests exercise the same
components, compatibility rules and pricing rules the service ships with.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from configurator.config import DEFAULT_CATALOG_PATH
from configurator.database.catalog_sources import BundledCatalogSource
from configurator.database.catalog_store import CatalogStore
from configurator.database.configuration_repository import ConfigurationRepository
from configurator.models.component_models import Component, ComponentCategory
from configurator.models.quote_models import CustomerInfo
from configurator.services.configuration_session import ConfigurationSession
from configurator.services.pricing_service import PricingEngine

TAX_RATE = Decimal("0.08")

FULL_SYSTEM_IDS = ["BASE-001", "MOTOR-001", "HOUSING-001", "CONN-001", "CTRL-001"]


@pytest.fixture
def catalog_source() -> BundledCatalogSource:
    return BundledCatalogSource(str(DEFAULT_CATALOG_PATH))


@pytest.fixture
def catalog(catalog_source: BundledCatalogSource) -> CatalogStore:
    return CatalogStore.from_source(catalog_source)


@pytest.fixture
def pricing_engine(catalog: CatalogStore) -> PricingEngine:
    return PricingEngine(catalog.pricing_rules, tax_rate=TAX_RATE)


@pytest.fixture
def session(catalog: CatalogStore, pricing_engine: PricingEngine) -> ConfigurationSession:
    return ConfigurationSession(catalog, pricing_engine)


@pytest.fixture
def component(catalog: CatalogStore):
    """Look up a bundled component by id."""

    def _lookup(component_id: str) -> Component:
        found = catalog.get_component(component_id)
        assert found is not None, f"{component_id} missing from bundled catalog"
        return found

    return _lookup


@pytest.fixture
def full_system(component) -> list[Component]:
    return [component(cid) for cid in FULL_SYSTEM_IDS]


@pytest.fixture
def complete_session(session: ConfigurationSession, full_system: list[Component]) -> ConfigurationSession:
    for part in full_system:
        session.select(part)
    return session


@pytest.fixture
def repository(tmp_path) -> ConfigurationRepository:
    repo = ConfigurationRepository(str(tmp_path / "configurator.db"))
    yield repo
    repo.close()


@pytest.fixture
def customer() -> CustomerInfo:
    return CustomerInfo(
        company_name="Acme Industrial",
        contact_name="Jordan Reyes",
        email="jordan@acme.example",
        phone="+1 555 0100",
    )


def make_component(component_id: str, category: ComponentCategory, price: str,
                   is_available: bool = True) -> Component:
    return Component(
        id=component_id,
        name=f"Test {component_id}",
        category=category,
        base_price=Decimal(price),
        is_available=is_available,
    )
