from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import ValidationError


class CustomerType(str, Enum):
    INDIVIDUAL = "INDIVIDUAL"
    BUSINESS = "BUSINESS"


@dataclass(frozen=True)
class BusinessDetails:
    company_name: str
    tax_code: str


@dataclass(frozen=True)
class CustomerSnapshot:
    """Who the order is billed to, frozen at checkout."""

    name: str
    email: str
    address: str
    phone: Optional[str] = None
    business: Optional[BusinessDetails] = None

    @property
    def type(self) -> CustomerType:
        return CustomerType.BUSINESS if self.business is not None else CustomerType.INDIVIDUAL

    @classmethod
    def create(
        cls,
        name: Optional[str],
        email: Optional[str],
        address: Optional[str],
        phone: Optional[str] = None,
        type: str = CustomerType.INDIVIDUAL.value,
        company_name: Optional[str] = None,
        tax_code: Optional[str] = None,
    ) -> "CustomerSnapshot":
        name, email, address = (v.strip() if v else "" for v in (name, email, address))
        if not name or not email or not address:
            raise ValidationError(
                "Customer name, email, and address are required", code="invalid_customer"
            )
        try:
            customer_type = CustomerType((type or CustomerType.INDIVIDUAL.value).strip().upper())
        except ValueError:
            raise ValidationError(f"Unknown customer type {type!r}", code="invalid_customer")

        business = None
        if customer_type == CustomerType.BUSINESS:
            company_name = (company_name or "").strip()
            tax_code = (tax_code or "").strip()
            if not company_name or not tax_code:
                raise ValidationError(
                    "Business customers need a company name and a tax code",
                    code="invalid_customer",
                )
            business = BusinessDetails(company_name=company_name, tax_code=tax_code)

        return cls(
            name=name,
            email=email,
            address=address,
            phone=(phone or "").strip() or None,
            business=business,
        )
