"""
Catalog and configuration models
Components, compatibility rules and the wizard steps that select them
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional


class ComponentCategory(Enum):
    """Closed set of part categories, in wizard order"""
    BASE = "base"
    MOTOR = "motor"
    HOUSING = "housing"
    CONNECTOR = "connector"
    CONTROL = "control"
    SENSOR = "sensor"
    ACCESSORY = "accessory"

    @property
    def display_name(self) -> str:
        return CATEGORY_DISPLAY_NAMES[self]

    @property
    def is_required(self) -> bool:
        return self in REQUIRED_CATEGORIES


CATEGORY_DISPLAY_NAMES = {
    ComponentCategory.BASE: "Base Component",
    ComponentCategory.MOTOR: "Motor",
    ComponentCategory.HOUSING: "Housing",
    ComponentCategory.CONNECTOR: "Connector",
    ComponentCategory.CONTROL: "Control Unit",
    ComponentCategory.SENSOR: "Sensor",
    ComponentCategory.ACCESSORY: "Accessory",
}

REQUIRED_CATEGORIES = (
    ComponentCategory.BASE,
    ComponentCategory.MOTOR,
    ComponentCategory.HOUSING,
    ComponentCategory.CONNECTOR,
    ComponentCategory.CONTROL,
)

OPTIONAL_CATEGORIES = (ComponentCategory.SENSOR, ComponentCategory.ACCESSORY)


@dataclass(frozen=True)
class Component:
    """A purchasable catalog part"""
    id: str
    name: str
    category: ComponentCategory
    base_price: Decimal
    description: str = ""
    specifications: Dict[str, str] = field(default_factory=dict, hash=False, compare=False)
    model_identifier: str = ""
    image_url: Optional[str] = None
    is_available: bool = True

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "description": self.description,
            "specifications": dict(self.specifications),
            "basePrice": str(self.base_price),
            "imageURL": self.image_url,
            "modelIdentifier": self.model_identifier,
            "isAvailable": self.is_available
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Component":
        return cls(
            id=data["id"],
            name=data["name"],
            category=ComponentCategory(data["category"]),
            base_price=Decimal(str(data.get("basePrice", "0"))),
            description=data.get("description") or "",
            specifications=dict(data.get("specifications") or {}),
            model_identifier=data.get("modelIdentifier") or "",
            image_url=data.get("imageURL"),
            is_available=bool(data.get("isAvailable", True))
        )


@dataclass(frozen=True)
class CompatibilityRule:
    """
    Constraints declared by a dependent component

    compatible_with_ids: the component may only sit alongside these ids
    (empty means no positive constraint). requires_component_ids must all be
    selected already; any of incompatible_with_ids being selected rejects.
    conditions are stored for future predicates and never evaluated.
    """
    id: str
    component_id: str
    compatible_with_ids: List[str] = field(default_factory=list)
    requires_component_ids: Optional[List[str]] = None
    incompatible_with_ids: Optional[List[str]] = None
    conditions: Optional[Dict[str, str]] = None

    def to_dict(self):
        return {
            "id": self.id,
            "componentId": self.component_id,
            "compatibleWithIds": list(self.compatible_with_ids),
            "requiresComponentIds": self.requires_component_ids,
            "incompatibleWithIds": self.incompatible_with_ids,
            "conditions": self.conditions
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "CompatibilityRule":
        return cls(
            id=data["id"],
            component_id=data["componentId"],
            compatible_with_ids=list(data.get("compatibleWithIds") or []),
            requires_component_ids=data.get("requiresComponentIds"),
            incompatible_with_ids=data.get("incompatibleWithIds"),
            conditions=data.get("conditions")
        )


@dataclass
class ConfigurationStep:
    """One wizard step, bound to a single category"""
    step_number: int
    category: ComponentCategory
    title: str
    description: str
    is_completed: bool = False
    selected_component: Optional[Component] = None

    def to_dict(self):
        return {
            "stepNumber": self.step_number,
            "category": self.category.value,
            "title": self.title,
            "description": self.description,
            "isCompleted": self.is_completed,
            "selectedComponent": self.selected_component.to_dict() if self.selected_component else None
        }


@dataclass
class ProductConfiguration:
    """Persistable record of a configuration in progress or saved"""
    name: str
    selected_components: List[Component] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_date: datetime = field(default_factory=datetime.now)
    last_modified_date: datetime = field(default_factory=datetime.now)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "selectedComponents": [c.to_dict() for c in self.selected_components],
            "createdDate": self.created_date.isoformat(),
            "lastModifiedDate": self.last_modified_date.isoformat()
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ProductConfiguration":
        return cls(
            id=data["id"],
            name=data["name"],
            selected_components=[Component.from_dict(c) for c in data.get("selectedComponents", [])],
            created_date=datetime.fromisoformat(data["createdDate"]),
            last_modified_date=datetime.fromisoformat(data["lastModifiedDate"])
        )
