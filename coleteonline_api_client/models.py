"""
Request and response models for the Colete Online REST API.

Every model maps its snake_case attributes onto the camelCase JSON keys
used by the API.  Optional attributes default to ``None`` and are left
out of serialised request bodies, so only the fields you set are sent.

.. code-block:: python

    order = Order(
        sender=Sender(address_id=1),
        recipient=Recipient(address_id=2),
        packages=Packages(
            type=PackageType.PACKAGE,
            content="Books",
            list=[Package(weight=1, width=10, height=10, length=10)],
        ),
        service=OrderService(
            selection_type=ServiceType.BEST_PRICE,
        ),
    )
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, alias_generators


class ColeteOnlineModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=alias_generators.to_camel, populate_by_name=True
    )

    def to_json(self) -> str:
        """Serialise using API field names, omitting unset optional fields."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


# ----------------------------------------------------------------------
# Addresses
# ----------------------------------------------------------------------
class ValidationStrategyType(str, Enum):
    MINIMAL = "minimal"
    PRICE_MINIMAL = "priceMinimal"


class Contact(ColeteOnlineModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    phone2: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None


class Address(ColeteOnlineModel):
    country_code: str
    postal_code: str
    city: str
    county: str
    county_code: str
    street: str
    number: str
    building: Optional[str] = None
    entrance: Optional[str] = None
    intercom: Optional[str] = None
    floor: Optional[str] = None
    apartment: Optional[str] = None
    landmark: Optional[str] = None
    additional_info: Optional[str] = None


class OrderAddress(ColeteOnlineModel):
    """A saved address book entry."""

    address_id: Optional[int] = None
    contact: Contact
    address: Address
    validation_strategy: Optional[ValidationStrategyType] = None


class Pagination(ColeteOnlineModel):
    total_items: int
    current_page: int
    total_pages: int


class AddressListResponse(ColeteOnlineModel):
    data: List[OrderAddress] = Field(default_factory=list)
    pagination: Pagination


# ----------------------------------------------------------------------
# Orders
# ----------------------------------------------------------------------
class PackageType(IntEnum):
    ENVELOPE = 1
    PACKAGE = 2


class ServiceType(str, Enum):
    DIRECT_ID = "directId"
    BEST_PRICE = "bestPrice"
    GRADE = "grade"


class ServiceGrade(str, Enum):
    DELIVERY = "delivery"
    PICKUP = "pickUp"
    REPAYMENT = "repayment"


class ExtraOptionId(IntEnum):
    STATUS_CHANGE = 1
    OPEN_AT_DELIVERY = 2
    SATURDAY_DELIVERY = 3
    INSURANCE = 4
    ACCOUNT_REPAYMENT = 5
    CASH_REPAYMENT = 6
    DECLARED_VALUE = 7
    SCHEDULED_PICKUP = 8
    CLIENT_REFERENCE = 9
    BASE_CURRENCY = 10


class Sender(ColeteOnlineModel):
    """Order origin: either a saved ``address_id`` or an inline contact/address."""

    address_id: Optional[int] = None
    contact: Optional[Contact] = None
    address: Optional[Address] = None
    validation_strategy: Optional[ValidationStrategyType] = None


class Recipient(ColeteOnlineModel):
    """Order destination: either a saved ``address_id`` or an inline contact/address."""

    address_id: Optional[int] = None
    contact: Optional[Contact] = None
    address: Optional[Address] = None
    validation_strategy: Optional[ValidationStrategyType] = None


class Package(ColeteOnlineModel):
    weight: float
    width: float
    height: float
    length: float


class Packages(ColeteOnlineModel):
    type: PackageType
    content: str
    list: List[Package]


class OrderService(ColeteOnlineModel):
    """How the courier service is picked for an order.

    ``service_ids`` is used with :attr:`ServiceType.DIRECT_ID` and
    ``grades`` with :attr:`ServiceType.GRADE`.
    """

    selection_type: ServiceType
    service_ids: Optional[List[int]] = None
    grades: Optional[List[ServiceGrade]] = None


class Order(ColeteOnlineModel):
    sender: Sender
    recipient: Recipient
    packages: Packages
    service: OrderService
    # Free-form option objects, e.g. {"id": ExtraOptionId.INSURANCE, "amount": 100}
    extra_options: Optional[List[Dict[str, Any]]] = None


class ServicePrice(ColeteOnlineModel):
    total: float
    no_vat: float


class ServiceDetails(ColeteOnlineModel):
    id: int
    courier_name: str
    name: str


class OrderResponseService(ColeteOnlineModel):
    price: ServicePrice
    service: ServiceDetails


class OrderResponse(ColeteOnlineModel):
    service: OrderResponseService
    awb: str
    unique_id: str
    estimated_pickup_date: str


class OrderPriceResponse(ColeteOnlineModel):
    selected: OrderResponseService
    list: List[OrderResponseService] = Field(default_factory=list)


class StatusSummary(ColeteOnlineModel):
    unique_id: str
    awb: str


class StatusTextPart(ColeteOnlineModel):
    name: str
    reason: str


class StatusTextParts(ColeteOnlineModel):
    ro: StatusTextPart


class StatusComment(ColeteOnlineModel):
    ro: str


class StatusHistory(ColeteOnlineModel):
    date_time: datetime
    unix_date_time: int
    status_text_parts: StatusTextParts
    comment: StatusComment
    code: int


class OrderStatusResponse(ColeteOnlineModel):
    summary: StatusSummary
    history: List[StatusHistory] = Field(default_factory=list)


# ----------------------------------------------------------------------
# Services and account
# ----------------------------------------------------------------------
class ServiceExtraOption(ColeteOnlineModel):
    id: int
    name: str
    required_fields: List[str] = Field(default_factory=list)
    optional_fields: List[str] = Field(default_factory=list)


class ServiceResponse(ColeteOnlineModel):
    id: int
    courier_name: str
    name: str
    extra_options: List[ServiceExtraOption] = Field(default_factory=list)


class UserBalance(ColeteOnlineModel):
    amount: float
    bonus: float


# ----------------------------------------------------------------------
# Error and token payloads
# ----------------------------------------------------------------------
class FieldError(ColeteOnlineModel):
    parameter: str
    message: str


class ResponseError(ColeteOnlineModel):
    """Body of an HTTP 400 answer from the API."""

    message: str
    code: int
    errors: List[FieldError] = Field(default_factory=list)


class AuthToken(BaseModel):
    access_token: str


class AuthResponseError(BaseModel):
    """OAuth error body returned by the token endpoint."""

    name: str = Field(default="", alias="error")
    description: str = Field(default="", alias="error_description")
