"""
Quote and customer models
"""
import time
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Optional

from configurator.models.bom_models import BillOfMaterials
from configurator.models.component_models import ProductConfiguration

DEFAULT_VALIDITY_DAYS = 30


class QuoteStatus(Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


@dataclass
class Address:
    street: str
    city: str
    state: str
    zip_code: str
    country: str

    @property
    def formatted_address(self) -> str:
        return f"{self.street}\n{self.city}, {self.state} {self.zip_code}\n{self.country}"

    def to_dict(self):
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "country": self.country
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Address":
        return cls(
            street=data["street"],
            city=data["city"],
            state=data["state"],
            zip_code=data["zipCode"],
            country=data["country"]
        )


@dataclass
class CustomerInfo:
    company_name: str
    contact_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[Address] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self):
        return {
            "id": self.id,
            "companyName": self.company_name,
            "contactName": self.contact_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address.to_dict() if self.address else None
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "CustomerInfo":
        address = data.get("address")
        return cls(
            id=data.get("id") or str(uuid.uuid4()),
            company_name=data.get("companyName", ""),
            contact_name=data.get("contactName", ""),
            email=data.get("email", ""),
            phone=data.get("phone"),
            address=Address.from_dict(address) if address else None
        )


def generate_quote_number(timestamp: Optional[float] = None) -> str:
    """QT- followed by the first 10 digits of the epoch-seconds timestamp"""
    if timestamp is None:
        timestamp = time.time()
    return f"QT-{str(timestamp)[:10]}"


def default_terms(valid_until: datetime) -> str:
    return (
        f"1. Prices are valid until {valid_until.strftime('%B %d, %Y')}\n"
        "2. All components are subject to availability\n"
        "3. Lead time: 4-6 weeks from order confirmation\n"
        "4. Payment terms: Net 30 days\n"
        "5. Warranty: 1 year from delivery date"
    )


@dataclass(frozen=True)
class Quote:
    """
    Time-bounded, customer-addressed snapshot of a configuration and its BOM

    Status moves draft -> pending -> approved/rejected/expired, but nothing
    here enforces the order. Expiry is derived from valid_until_date.
    """
    id: str
    quote_number: str
    configuration: ProductConfiguration
    bill_of_materials: BillOfMaterials
    customer_info: CustomerInfo
    status: QuoteStatus
    created_date: datetime
    valid_until_date: datetime
    terms_and_conditions: str
    approved_date: Optional[datetime] = None
    notes: Optional[str] = None

    @classmethod
    def create(cls, configuration: ProductConfiguration,
               bill_of_materials: BillOfMaterials,
               customer_info: CustomerInfo,
               status: QuoteStatus = QuoteStatus.DRAFT,
               validity_days: int = DEFAULT_VALIDITY_DAYS,
               notes: Optional[str] = None,
               now: Optional[datetime] = None) -> "Quote":
        created = now or datetime.now()
        valid_until = created + timedelta(days=validity_days)
        return cls(
            id=str(uuid.uuid4()),
            quote_number=generate_quote_number(created.timestamp()),
            configuration=configuration,
            bill_of_materials=bill_of_materials,
            customer_info=customer_info,
            status=status,
            created_date=created,
            valid_until_date=valid_until,
            terms_and_conditions=default_terms(valid_until),
            notes=notes
        )

    def with_status(self, status: QuoteStatus, now: Optional[datetime] = None) -> "Quote":
        """Return a copy moved to the given status; stamps approval time when approved"""
        approved = self.approved_date
        if status == QuoteStatus.APPROVED:
            approved = now or datetime.now()
        return replace(self, status=status, approved_date=approved)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now()) > self.valid_until_date

    @property
    def total(self):
        return self.bill_of_materials.total

    def to_dict(self):
        return {
            "id": self.id,
            "quoteNumber": self.quote_number,
            "configuration": self.configuration.to_dict(),
            "billOfMaterials": self.bill_of_materials.to_dict(),
            "customerInfo": self.customer_info.to_dict(),
            "status": self.status.value,
            "createdDate": self.created_date.isoformat(),
            "validUntilDate": self.valid_until_date.isoformat(),
            "approvedDate": self.approved_date.isoformat() if self.approved_date else None,
            "notes": self.notes,
            "termsAndConditions": self.terms_and_conditions,
            "isExpired": self.is_expired()
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Quote":
        approved = data.get("approvedDate")
        return cls(
            id=data["id"],
            quote_number=data["quoteNumber"],
            configuration=ProductConfiguration.from_dict(data["configuration"]),
            bill_of_materials=BillOfMaterials.from_dict(data["billOfMaterials"]),
            customer_info=CustomerInfo.from_dict(data["customerInfo"]),
            status=QuoteStatus(data["status"]),
            created_date=datetime.fromisoformat(data["createdDate"]),
            valid_until_date=datetime.fromisoformat(data["validUntilDate"]),
            terms_and_conditions=data.get("termsAndConditions", ""),
            approved_date=datetime.fromisoformat(approved) if approved else None,
            notes=data.get("notes")
        )
