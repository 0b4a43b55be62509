"""
Data models for pricing and bills of materials
Simple dataclasses for clean data handling
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from configurator.models.component_models import Component, ComponentCategory


class PricingRuleType(Enum):
    VOLUME = "volume"
    BUNDLE = "bundle"
    CATEGORY = "category"


@dataclass(frozen=True)
class PricingRule:
    """A discount rule; rule lists are ordered and the first match of a type wins"""
    id: str
    name: str
    rule_type: PricingRuleType
    threshold: Optional[Decimal] = None
    discount_percentage: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    applicable_categories: Optional[List[ComponentCategory]] = None

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "ruleType": self.rule_type.value,
            "threshold": _decimal_or_none(self.threshold),
            "discountPercentage": _decimal_or_none(self.discount_percentage),
            "discountAmount": _decimal_or_none(self.discount_amount),
            "applicableCategories": (
                [c.value for c in self.applicable_categories]
                if self.applicable_categories is not None else None
            )
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PricingRule":
        categories = data.get("applicableCategories")
        return cls(
            id=data["id"],
            name=data["name"],
            rule_type=PricingRuleType(data["ruleType"]),
            threshold=_parse_decimal(data.get("threshold")),
            discount_percentage=_parse_decimal(data.get("discountPercentage")),
            discount_amount=_parse_decimal(data.get("discountAmount")),
            applicable_categories=(
                [ComponentCategory(c) for c in categories] if categories is not None else None
            )
        )


@dataclass
class PriceCalculationResult:
    """Price breakdown for a set of selected components"""
    subtotal: Decimal
    discounts: Dict[str, Decimal] = field(default_factory=dict)
    tax_amount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    applied_rules: List[PricingRule] = field(default_factory=list)

    @property
    def total_discount(self) -> Decimal:
        return sum(self.discounts.values(), Decimal("0"))

    def to_dict(self):
        return {
            "subtotal": str(self.subtotal),
            "discounts": {label: str(amount) for label, amount in self.discounts.items()},
            "totalDiscount": str(self.total_discount),
            "taxAmount": str(self.tax_amount),
            "total": str(self.total),
            "appliedRules": [rule.to_dict() for rule in self.applied_rules]
        }


@dataclass
class BOMLineItem:
    """One priced line per selected component"""
    component: Component
    quantity: int = 1
    discount: Optional[Decimal] = None
    notes: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    unit_price: Decimal = field(init=False)
    line_total: Decimal = field(init=False)

    def __post_init__(self):
        # Price is captured at selection time
        self.unit_price = self.component.base_price
        self.line_total = self.unit_price * self.quantity - (self.discount or Decimal("0"))

    def to_dict(self):
        return {
            "id": self.id,
            "component": self.component.to_dict(),
            "quantity": self.quantity,
            "unitPrice": str(self.unit_price),
            "lineTotal": str(self.line_total),
            "discount": _decimal_or_none(self.discount),
            "notes": self.notes
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "BOMLineItem":
        item = cls(
            component=Component.from_dict(data["component"]),
            quantity=int(data.get("quantity", 1)),
            discount=_parse_decimal(data.get("discount")),
            notes=data.get("notes"),
            id=data["id"]
        )
        # Keep the persisted snapshot even if the catalog price moved since
        item.unit_price = Decimal(data["unitPrice"])
        item.line_total = Decimal(data["lineTotal"])
        return item


@dataclass
class BillOfMaterials:
    """
    Itemized BOM with aggregate totals

    The headline subtotal/tax/total start as a plain sum of line totals but
    are overwritten by the pricing engine when the BOM is assembled, so they
    may differ from sum(line_total) whenever an aggregate discount applied.
    """
    configuration_id: str
    line_items: List[BOMLineItem] = field(default_factory=list)
    tax_rate: Decimal = Decimal("0")
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_date: datetime = field(default_factory=datetime.now)
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total: Decimal = Decimal("0")

    def __post_init__(self):
        self.recalculate(self.tax_rate)

    def recalculate(self, tax_rate: Optional[Decimal] = None):
        """Re-derive totals from the line items"""
        if tax_rate is not None:
            self.tax_rate = tax_rate
        self.subtotal = sum((item.line_total for item in self.line_items), Decimal("0"))
        self.tax = self.subtotal * self.tax_rate
        self.total = self.subtotal + self.tax

    @property
    def line_items_total(self) -> Decimal:
        return sum((item.line_total for item in self.line_items), Decimal("0"))

    def to_dict(self):
        return {
            "id": self.id,
            "configurationId": self.configuration_id,
            "lineItems": [item.to_dict() for item in self.line_items],
            "createdDate": self.created_date.isoformat(),
            "subtotal": str(self.subtotal),
            "tax": str(self.tax),
            "total": str(self.total)
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "BillOfMaterials":
        bom = cls(
            configuration_id=data["configurationId"],
            line_items=[BOMLineItem.from_dict(item) for item in data.get("lineItems", [])],
            id=data["id"],
            created_date=datetime.fromisoformat(data["createdDate"])
        )
        bom.subtotal = Decimal(data["subtotal"])
        bom.tax = Decimal(data["tax"])
        bom.total = Decimal(data["total"])
        return bom


def _parse_decimal(value) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return Decimal(str(value))


def _decimal_or_none(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None
