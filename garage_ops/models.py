"""
Entity models for the garage data core

Attributes are snake_case in Python. Rows in the local cache and in
Supabase use the camelCase names, produced through aliases.
"""

import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .services.dates import normalize_date, today_iso

logger = logging.getLogger(__name__)

CONFIG_ID = "main"


def new_id() -> str:
    """Random 128-bit (122 random bits) identifier"""
    return uuid.uuid4().hex


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class JobStatus(str, Enum):
    RECEIVED = "Received"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    DELIVERED = "Delivered"


TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.DELIVERED)


class InvoiceStatus(str, Enum):
    UNPAID = "Unpaid"
    PAID = "Paid"
    PARTIAL = "Partial"


class GarageModel(BaseModel):
    """Base for all stored entities"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = Field(default_factory=new_id)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Nullable columns fall back to field defaults
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _ensure_id(cls, value: Any) -> str:
        text = str(value).strip() if value is not None else ""
        return text or new_id()

    def to_row(self) -> dict:
        """Serialize with wire (camelCase) names"""
        return self.model_dump(by_alias=True, mode="json")


def _coerce_amount(value: Any) -> Any:
    if value in ("", None):
        return 0.0
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return value


class Job(GarageModel):
    """Single denormalized job card: customer and vehicle snapshot plus work"""

    customer_name: str = ""
    customer_mobile: str = ""
    customer_address: str = ""
    vehicle_number: str = ""
    brand: str = ""
    model: str = ""
    type: str = ""
    color: str = ""
    services: str = ""
    date_in: str = Field(default_factory=today_iso)
    expected_delivery_date: str = Field(default_factory=today_iso)
    charges: float = Field(default=0.0, ge=0)
    status: JobStatus = JobStatus.RECEIVED

    @field_validator("date_in", "expected_delivery_date", mode="before")
    @classmethod
    def _canonical_date(cls, value: Any) -> str:
        return normalize_date(value)

    @field_validator("charges", mode="before")
    @classmethod
    def _parse_charges(cls, value: Any) -> Any:
        amount = _coerce_amount(value)
        if isinstance(amount, (int, float)) and not isinstance(amount, bool) and amount < 0:
            logger.warning(f"⚠️ Negative charges {value!r}, using 0")
            return 0.0
        return amount


class Customer(BaseModel):
    """Customer profile derived from job history (never stored)"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str = ""
    mobile: str = ""
    address: str = ""
    created_at: str = ""


class Invoice(GarageModel):
    invoice_number: str = ""
    invoice_for: str = ""
    job_id: str = ""
    customer_name: str = ""
    customer_mobile: str = ""
    customer_email: str = ""
    customer_address: str = ""
    date: str = Field(default_factory=today_iso)
    branch: str = ""
    status: InvoiceStatus = InvoiceStatus.UNPAID
    details: str = ""
    tax: float = 0.0
    discount: float = 0.0
    total_amount: float = 0.0
    grand_total: float = 0.0
    adjustment_amount: float = 0.0
    due_amount: float = 0.0
    notes: str = ""
    is_internal_note: bool = False
    is_shared_with_customer: bool = False
    items: List[Any] = Field(default_factory=list)
    coupon_number: str = ""
    assigned_to: str = ""
    repair_category: str = ""
    service_type: str = ""
    vehicle_name: str = ""
    plate_number: str = ""
    date_in: str = ""
    date_out: str = ""

    @field_validator("tax", "discount", "total_amount", "grand_total",
                     "adjustment_amount", "due_amount", mode="before")
    @classmethod
    def _parse_amounts(cls, value: Any) -> Any:
        return _coerce_amount(value)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> Any:
        # Older rows carry free-text statuses
        if isinstance(value, InvoiceStatus):
            return value
        text = str(value or "").strip().lower()
        for status in InvoiceStatus:
            if status.value.lower() == text:
                return status
        logger.warning(f"⚠️ Unknown invoice status {value!r}, using Unpaid")
        return InvoiceStatus.UNPAID


class InventoryItem(GarageModel):
    name: str = ""
    category: str = ""
    quantity: float = 0.0
    unit: str = ""
    min_stock: float = 0.0
    price: float = 0.0
    last_updated: str = Field(default_factory=utc_timestamp)

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_stock


class Supplier(GarageModel):
    name: str = ""
    contact_person: str = ""
    mobile: str = ""
    email: str = ""
    address: str = ""
    category: str = ""


class PurchaseLine(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    product_id: str
    quantity: float = 0.0
    price: float = 0.0
    amount: float = 0.0


class Purchase(GarageModel):
    purchase_no: str = ""
    purchase_date: str = Field(default_factory=today_iso)
    supplier_id: str = ""
    items: List[PurchaseLine] = Field(default_factory=list)
    total_amount: float = 0.0
    notes: str = ""

    @field_validator("purchase_date", mode="before")
    @classmethod
    def _canonical_date(cls, value: Any) -> str:
        return normalize_date(value)


class Branch(GarageModel):
    name: str = ""
    contact_number: str = ""
    email: str = ""
    country: str = ""
    state: str = ""
    city: str = ""
    address: str = ""


class ShopConfig(GarageModel):
    """Singleton shop settings row (id is always 'main')"""

    id: str = CONFIG_ID
    group_invite_link: str = ""
    shop_name: str = ""
    shop_address: str = ""
    shop_phone: str = ""
    shop_email: str = ""
    terms_and_conditions: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _ensure_id(cls, value: Any) -> str:
        return CONFIG_ID
