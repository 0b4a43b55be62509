"""
Configuration session: the wizard state machine

Holds the ordered steps, the at-most-one-per-category selection set and the
cursor. Every mutation synchronously recomputes the eligible components for
the current step and the price breakdown, so readers never see a selection
set and a price that disagree.
"""
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from configurator.errors import IncompleteConfigurationError
from configurator.models.bom_models import BillOfMaterials, PriceCalculationResult
from configurator.models.component_models import (
    OPTIONAL_CATEGORIES, REQUIRED_CATEGORIES, Component, ComponentCategory,
    ConfigurationStep, ProductConfiguration
)
from configurator.models.quote_models import CustomerInfo, Quote
from configurator.services.compatibility_service import CompatibilityResolver
from configurator.services.pricing_service import PricingEngine

logger = logging.getLogger(__name__)

DEFAULT_CONFIGURATION_NAME = "New Configuration"

STEP_DEFINITIONS = [
    (ComponentCategory.BASE, "Select Base Component",
     "Choose the foundation for your industrial assembly"),
    (ComponentCategory.MOTOR, "Select Motor",
     "Choose a compatible motor for your application"),
    (ComponentCategory.HOUSING, "Select Housing",
     "Select protective housing for your assembly"),
    (ComponentCategory.CONNECTOR, "Select Connector",
     "Choose electrical connectors"),
    (ComponentCategory.CONTROL, "Select Control Unit",
     "Select control system"),
    (ComponentCategory.SENSOR, "Add Sensors (Optional)",
     "Add monitoring sensors"),
    (ComponentCategory.ACCESSORY, "Add Accessories (Optional)",
     "Add mounting and cable management accessories"),
]


def build_steps() -> List[ConfigurationStep]:
    return [
        ConfigurationStep(step_number=number, category=category, title=title, description=description)
        for number, (category, title, description) in enumerate(STEP_DEFINITIONS, start=1)
    ]


class ConfigurationSession:
    """Owned by a single wizard flow; never shared between flows"""

    def __init__(self, catalog, pricing_engine: PricingEngine,
                 name: str = DEFAULT_CONFIGURATION_NAME):
        self.catalog = catalog
        self.resolver = CompatibilityResolver(catalog)
        self.pricing_engine = pricing_engine
        self.id = str(uuid.uuid4())

        self.steps: List[ConfigurationStep] = build_steps()
        self.current_step_index = 0
        self.selected_components: List[Component] = []
        self.configuration = ProductConfiguration(name=name)

        self.available_components: List[Component] = []
        self.price_calculation: Optional[PriceCalculationResult] = None
        self._refresh()

    @classmethod
    def from_configuration(cls, catalog, pricing_engine: PricingEngine,
                           configuration: ProductConfiguration) -> "ConfigurationSession":
        """Resume a saved configuration; the cursor starts back at the first step"""
        session = cls(catalog, pricing_engine, name=configuration.name)
        for component in configuration.selected_components:
            session._place(component)
        session.configuration = ProductConfiguration(
            id=configuration.id,
            name=configuration.name,
            selected_components=list(session.selected_components),
            created_date=configuration.created_date,
            last_modified_date=configuration.last_modified_date
        )
        session._refresh()
        return session

    # ================================================================
    # State
    # ================================================================
    @property
    def current_step(self) -> ConfigurationStep:
        return self.steps[self.current_step_index]

    @property
    def selections(self) -> Dict[ComponentCategory, Component]:
        return {c.category: c for c in self.selected_components}

    def _step_for(self, category: ComponentCategory) -> ConfigurationStep:
        return next(step for step in self.steps if step.category == category)

    def _refresh(self):
        self.available_components = self.resolver.get_available_components(
            self.current_step.category, self.selected_components
        )
        self.price_calculation = self.pricing_engine.calculate_price(self.selected_components)

    def use_pricing_engine(self, pricing_engine: PricingEngine):
        """Reprice the current selections under another engine (after a catalog reload)"""
        self.pricing_engine = pricing_engine
        self._refresh()

    def _touch(self):
        self.configuration.selected_components = list(self.selected_components)
        self.configuration.last_modified_date = datetime.now()

    def _place(self, component: Component):
        self.selected_components = [
            c for c in self.selected_components if c.category != component.category
        ]
        self.selected_components.append(component)

        step = self._step_for(component.category)
        step.selected_component = component
        step.is_completed = False

    # ================================================================
    # Transitions
    # ================================================================
    def select(self, component: Component):
        """Make the component the selection for its category"""
        self._place(component)
        self._touch()
        self._refresh()
        logger.debug(f"Session {self.id}: selected {component.id} for {component.category.value}")

    def deselect(self, category: ComponentCategory):
        self.selected_components = [c for c in self.selected_components if c.category != category]

        step = self._step_for(category)
        step.selected_component = None
        step.is_completed = False

        self._touch()
        self._refresh()
        logger.debug(f"Session {self.id}: cleared {category.value}")

    def can_advance(self) -> bool:
        step = self.current_step
        if step.category in OPTIONAL_CATEGORIES:
            return True
        return step.selected_component is not None

    def advance(self) -> bool:
        """Move to the next step; returns False when the cursor did not move"""
        if self.current_step_index >= len(self.steps) - 1:
            return False
        if not self.can_advance():
            logger.debug(
                f"Session {self.id}: cannot leave {self.current_step.category.value} without a selection"
            )
            return False

        self.current_step.is_completed = True
        self.current_step_index += 1
        self._refresh()
        return True

    def retreat(self) -> bool:
        if self.current_step_index == 0:
            return False

        self.current_step_index -= 1
        self._refresh()
        return True

    def reset(self):
        """Back to the initial state under a fresh configuration record"""
        self.steps = build_steps()
        self.current_step_index = 0
        self.selected_components = []
        self.configuration = ProductConfiguration(name=DEFAULT_CONFIGURATION_NAME)
        self._refresh()
        logger.debug(f"Session {self.id}: reset")

    def rename(self, name: str):
        self.configuration.name = name
        self.configuration.last_modified_date = datetime.now()

    # ================================================================
    # Validation
    # ================================================================
    def validate(self) -> List[str]:
        """One message per missing required category, all collected"""
        selected = {c.category for c in self.selected_components}
        return [
            f"{category.display_name} is required"
            for category in REQUIRED_CATEGORIES
            if category not in selected
        ]

    def is_complete(self) -> bool:
        return not self.validate()

    # ================================================================
    # Outputs
    # ================================================================
    def to_configuration(self) -> ProductConfiguration:
        return ProductConfiguration(
            id=self.configuration.id,
            name=self.configuration.name,
            selected_components=list(self.selected_components),
            created_date=self.configuration.created_date,
            last_modified_date=self.configuration.last_modified_date
        )

    def generate_bom(self, quantities: Optional[Dict[str, int]] = None) -> BillOfMaterials:
        return self.pricing_engine.generate_bom(self.to_configuration(), quantities=quantities)

    def generate_quote(self, customer_info: CustomerInfo, notes: Optional[str] = None) -> Quote:
        errors = self.validate()
        if errors:
            raise IncompleteConfigurationError(errors)
        return self.pricing_engine.generate_quote(self.to_configuration(), customer_info, notes=notes)

    def to_dict(self):
        return {
            "id": self.id,
            "configuration": self.to_configuration().to_dict(),
            "currentStep": self.current_step_index,
            "steps": [step.to_dict() for step in self.steps],
            "availableComponents": [c.to_dict() for c in self.available_components],
            "price": self.price_calculation.to_dict() if self.price_calculation else None,
            "canAdvance": self.can_advance(),
            "isComplete": self.is_complete(),
            "validationErrors": self.validate()
        }
