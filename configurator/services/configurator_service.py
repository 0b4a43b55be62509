import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from configurator.config import Config
from configurator.database.catalog_sources import create_catalog_source
from configurator.database.catalog_store import CatalogStore
from configurator.database.configuration_repository import ConfigurationRepository
from configurator.errors import CustomerValidationError, RecordNotFoundError
from configurator.models.component_models import Component, ComponentCategory
from configurator.models.quote_models import CustomerInfo, Quote, QuoteStatus
from configurator.services.configuration_session import ConfigurationSession
from configurator.services.pricing_service import PricingEngine, validate_customer

logger = logging.getLogger(__name__)


class ConfiguratorService:
    """
    Wires the catalog, pricing engine and repository together for the API

    Responsibilities:
    1. Own the process-wide catalog snapshot and pricing rules
    2. Keep one ConfigurationSession per in-progress wizard flow
    3. Turn sessions into saved configurations, BOMs and quotes
    """

    def __init__(self, catalog: CatalogStore = None,
                 repository: ConfigurationRepository = None,
                 pricing_engine: PricingEngine = None,
                 catalog_source=None,
                 session_idle_minutes: int = None):
        self.catalog_source = catalog_source or create_catalog_source()
        self.catalog = catalog or CatalogStore.from_source(self.catalog_source)
        self.repository = repository or ConfigurationRepository()
        self.pricing_engine = pricing_engine or PricingEngine(
            self.catalog.pricing_rules,
            tax_rate=Config.TAX_RATE,
            validity_days=Config.QUOTE_VALIDITY_DAYS
        )
        self.sessions: Dict[str, ConfigurationSession] = {}
        self.session_idle_minutes = session_idle_minutes or Config.SESSION_IDLE_MINUTES
        self._last_activity: Dict[str, datetime] = {}
        logger.info("Configurator service initialized")

    # ================================================================
    # Catalog
    # ================================================================
    def get_component(self, component_id: str) -> Component:
        component = self.catalog.get_component(component_id)
        if component is None:
            raise RecordNotFoundError("Component", component_id)
        return component

    def get_components(self, category: ComponentCategory) -> List[Component]:
        return self.catalog.get_components(category)

    def reload_catalog(self):
        """Swap in a fresh snapshot; open sessions move to the new compatibility and pricing rules"""
        self.catalog.reload(self.catalog_source)
        self.pricing_engine = PricingEngine(
            self.catalog.pricing_rules,
            tax_rate=self.pricing_engine.tax_rate,
            validity_days=self.pricing_engine.validity_days
        )
        for session in self.sessions.values():
            session.use_pricing_engine(self.pricing_engine)
        logger.info(f"Catalog reloaded; repriced {len(self.sessions)} open sessions")

    def get_statistics(self) -> Dict:
        stats = self.catalog.get_statistics()
        stats["open_sessions"] = len(self.sessions)
        return stats

    # ================================================================
    # Sessions
    # ================================================================
    def _register(self, session: ConfigurationSession):
        self.evict_idle_sessions()
        self.sessions[session.id] = session
        self._last_activity[session.id] = datetime.now()

    def evict_idle_sessions(self, now: Optional[datetime] = None) -> List[str]:
        """Drop sessions untouched for longer than the idle limit"""
        cutoff = (now or datetime.now()) - timedelta(minutes=self.session_idle_minutes)
        idle = [sid for sid, seen in self._last_activity.items() if seen < cutoff]
        for session_id in idle:
            del self.sessions[session_id]
            del self._last_activity[session_id]
        if idle:
            logger.info(f"Evicted {len(idle)} idle sessions")
        return idle

    def create_session(self, name: Optional[str] = None) -> ConfigurationSession:
        if name:
            session = ConfigurationSession(self.catalog, self.pricing_engine, name=name)
        else:
            session = ConfigurationSession(self.catalog, self.pricing_engine)
        self._register(session)
        logger.info(f"Session {session.id} started")
        return session

    def get_session(self, session_id: str) -> ConfigurationSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise RecordNotFoundError("Session", session_id)
        self._last_activity[session_id] = datetime.now()
        return session

    def close_session(self, session_id: str):
        self.get_session(session_id)
        del self.sessions[session_id]
        del self._last_activity[session_id]
        logger.info(f"Session {session_id} closed")

    def resume_configuration(self, configuration_id: str) -> ConfigurationSession:
        configuration = self.repository.require_configuration(configuration_id)
        session = ConfigurationSession.from_configuration(
            self.catalog, self.pricing_engine, configuration
        )
        self._register(session)
        logger.info(f"Session {session.id} resumed from configuration {configuration_id}")
        return session

    def select_component(self, session_id: str, component_id: str) -> ConfigurationSession:
        session = self.get_session(session_id)
        session.select(self.get_component(component_id))
        return session

    def save_session(self, session_id: str):
        session = self.get_session(session_id)
        configuration = session.to_configuration()
        self.repository.save_configuration(configuration)
        return configuration

    # ================================================================
    # Quotes
    # ================================================================
    def create_quote(self, session_id: str, customer_info: CustomerInfo,
                     notes: Optional[str] = None) -> Quote:
        session = self.get_session(session_id)

        errors = validate_customer(customer_info)
        if errors:
            raise CustomerValidationError(errors)

        quote = session.generate_quote(customer_info, notes=notes)
        self.repository.save_configuration(quote.configuration)
        self.repository.save_quote(quote)
        return quote

    def update_quote_status(self, quote_id: str, status: QuoteStatus) -> Quote:
        quote = self.repository.require_quote(quote_id).with_status(status)
        self.repository.save_quote(quote)
        return quote

    def expire_quotes(self) -> List[Quote]:
        """Mark every quote past its validity window as expired"""
        expired = []
        for quote in self.repository.get_expired_quotes():
            if quote.status != QuoteStatus.EXPIRED:
                expired.append(self.update_quote_status(quote.id, QuoteStatus.EXPIRED))
        logger.info(f"Expired {len(expired)} quotes")
        return expired

    def close(self):
        self.repository.close()
