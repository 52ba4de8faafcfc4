"""Pydantic input schemas for one bulk-upsert item.

Each entity schema is an explicit patch struct: ``MUTABLE_FIELDS`` lists the
columns a caller may write, and on update only the fields the caller actually
supplied are applied.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def is_positive_id(value: Any) -> bool:
    """True when ``value`` identifies an existing row (update), False for create."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def coerce_datetime(value: Any) -> Any:
    """Accept ISO strings (date-only included), epoch seconds/ms, or datetimes."""
    value = blank_to_none(value)
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if value > 1e11 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return value  # left for pydantic to report
    return value


class PatchModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Columns written to the table
    MUTABLE_FIELDS: ClassVar[tuple[str, ...]] = ()
    # Date-like strings coerced to timestamps
    DATETIME_FIELDS: ClassVar[tuple[str, ...]] = ()
    # Blank strings stored as NULL
    NULLABLE_FIELDS: ClassVar[tuple[str, ...]] = ()
    # Blank or null values fall back to the field default
    DEFAULTED_FIELDS: ClassVar[tuple[str, ...]] = ()
    # Lists that may arrive as null
    LIST_FIELDS: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def _coerce_inputs(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name in cls.DATETIME_FIELDS:
            if name in data:
                data[name] = coerce_datetime(data[name])
        for name in cls.NULLABLE_FIELDS:
            if name in data:
                data[name] = blank_to_none(data[name])
        for name in cls.DEFAULTED_FIELDS:
            if name in data and blank_to_none(data[name]) is None:
                del data[name]
        for name in cls.LIST_FIELDS:
            if name in data and data[name] is None:
                data[name] = []
        return data

    def changes(self, partial: bool) -> dict[str, Any]:
        """Column values to write; ``partial`` keeps only caller-supplied fields."""
        return {
            name: getattr(self, name)
            for name in self.MUTABLE_FIELDS
            if not partial or name in self.model_fields_set
        }


class VisitInput(PatchModel):
    MUTABLE_FIELDS = (
        "customer_id", "sales_person_id", "route_id", "zones_id",
        "visit_date", "visit_time", "purpose", "status",
        "start_time", "end_time", "duration",
        "start_latitude", "start_longitude", "end_latitude", "end_longitude",
        "check_in_time", "check_out_time", "orders_created", "amount_collected",
        "visit_notes", "customer_feedback", "next_visit_date", "is_active",
    )
    DATETIME_FIELDS = (
        "visit_date", "start_time", "end_time", "check_in_time",
        "check_out_time", "next_visit_date",
    )
    NULLABLE_FIELDS = (
        "start_latitude", "start_longitude", "end_latitude", "end_longitude",
        "amount_collected", "duration", "orders_created", "route_id", "zones_id",
        "visit_id", "createdby",
    )
    DEFAULTED_FIELDS = ("is_active",)

    visit_id: Optional[int] = None
    customer_id: int = Field(gt=0)
    sales_person_id: int = Field(gt=0)
    route_id: Optional[int] = None
    zones_id: Optional[int] = None
    visit_date: Optional[datetime] = None
    visit_time: Optional[str] = None
    purpose: Optional[str] = None
    status: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    start_latitude: Optional[Decimal] = None
    start_longitude: Optional[Decimal] = None
    end_latitude: Optional[Decimal] = None
    end_longitude: Optional[Decimal] = None
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    orders_created: Optional[int] = None
    amount_collected: Optional[Decimal] = None
    visit_notes: Optional[str] = None
    customer_feedback: Optional[str] = None
    next_visit_date: Optional[datetime] = None
    is_active: str = "Y"
    createdby: Optional[int] = None

    @property
    def is_update(self) -> bool:
        return is_positive_id(self.visit_id)


class OrderItemInput(PatchModel):
    MUTABLE_FIELDS = (
        "product_id", "product_name", "unit", "quantity", "unit_price",
        "discount_amount", "tax_amount", "total_amount", "notes",
    )
    NULLABLE_FIELDS = ("item_id", "total_amount")
    DEFAULTED_FIELDS = ("discount_amount", "tax_amount")

    item_id: Optional[int] = None
    product_id: int
    product_name: Optional[str] = None
    unit: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal
    discount_amount: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    total_amount: Optional[Decimal] = None
    notes: Optional[str] = None

    def changes(self, partial: bool) -> dict[str, Any]:
        values = super().changes(partial)
        pricing = {"quantity", "unit_price", "discount_amount", "tax_amount", "total_amount"}
        if not partial or pricing & values.keys():
            values["total_amount"] = self.computed_total()
        return values

    def computed_total(self) -> Decimal:
        if self.total_amount is not None:
            return self.total_amount
        return self.quantity * self.unit_price - self.discount_amount + self.tax_amount


class OrderInput(PatchModel):
    MUTABLE_FIELDS = (
        "order_number", "order_type", "order_date", "delivery_date", "status",
        "priority", "payment_method", "payment_terms", "subtotal",
        "discount_amount", "tax_amount", "shipping_amount", "total_amount",
        "notes", "shipping_address", "approval_status", "approved_by",
        "approved_at", "is_active",
    )
    DATETIME_FIELDS = ("order_date", "delivery_date", "approved_at")
    NULLABLE_FIELDS = ("order_id", "order_number", "approved_by")
    DEFAULTED_FIELDS = (
        "order_type", "status", "priority", "payment_method", "subtotal",
        "discount_amount", "tax_amount", "shipping_amount", "total_amount",
        "approval_status", "is_active",
    )
    LIST_FIELDS = ("items",)

    order_id: Optional[int] = None
    order_number: Optional[str] = None
    order_type: str = "regular"
    order_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    status: str = "draft"
    priority: str = "medium"
    payment_method: str = "credit"
    payment_terms: Optional[str] = "Net 30"
    subtotal: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    shipping_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    notes: Optional[str] = None
    shipping_address: Optional[str] = None
    approval_status: str = "pending"
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    is_active: str = "Y"
    items: list[OrderItemInput] = []


class PaymentInput(PatchModel):
    MUTABLE_FIELDS = (
        "payment_number", "customer_id", "payment_date", "collected_by", "method",
        "reference_number", "total_amount", "notes", "is_active", "currency_id",
    )
    DATETIME_FIELDS = ("payment_date",)
    NULLABLE_FIELDS = ("payment_id", "payment_number", "customer_id", "currency_id")
    DEFAULTED_FIELDS = ("is_active",)

    payment_id: Optional[int] = None
    payment_number: Optional[str] = None
    customer_id: Optional[int] = None
    payment_date: Optional[datetime] = None
    collected_by: int
    method: str
    reference_number: Optional[str] = None
    total_amount: Decimal
    notes: Optional[str] = None
    is_active: str = "Y"
    currency_id: Optional[int] = None


class CoolerInput(PatchModel):
    MUTABLE_FIELDS = (
        "code", "brand", "model", "serial_number", "customer_id", "capacity",
        "install_date", "last_service_date", "next_service_due", "status",
        "temperature", "energy_rating", "warranty_expiry", "maintenance_contract",
        "technician_id", "last_scanned_date", "is_active",
    )
    DATETIME_FIELDS = (
        "install_date", "last_service_date", "next_service_due",
        "warranty_expiry", "last_scanned_date",
    )
    NULLABLE_FIELDS = ("id", "code", "customer_id", "temperature", "technician_id")
    DEFAULTED_FIELDS = ("status", "is_active")

    id: Optional[int] = None
    code: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    customer_id: Optional[int] = None
    capacity: Optional[int] = None
    install_date: Optional[datetime] = None
    last_service_date: Optional[datetime] = None
    next_service_due: Optional[datetime] = None
    status: str = "working"
    temperature: Optional[Decimal] = None
    energy_rating: Optional[str] = None
    warranty_expiry: Optional[datetime] = None
    maintenance_contract: Optional[str] = None
    technician_id: Optional[int] = None
    last_scanned_date: Optional[datetime] = None
    is_active: str = "Y"

    @field_validator("capacity", mode="before")
    @classmethod
    def _digits_only(cls, value: Any) -> Any:
        """'300 L' -> 300; a string without digits means unknown."""
        if isinstance(value, str):
            digits = "".join(ch for ch in value if ch.isdigit())
            return int(digits) if digits else None
        return value or None


class CoolerInspectionInput(PatchModel):
    MUTABLE_FIELDS = (
        "inspected_by", "inspection_date", "temperature", "is_working", "issues",
        "images", "latitude", "longitude", "action_required", "action_taken",
        "next_inspection_due",
    )
    DATETIME_FIELDS = ("inspection_date", "next_inspection_due")
    NULLABLE_FIELDS = ("id", "cooler_id", "temperature", "latitude", "longitude")
    DEFAULTED_FIELDS = ("is_working", "action_required")

    id: Optional[int] = None
    cooler_id: Optional[int] = None
    inspected_by: int
    inspection_date: Optional[datetime] = None
    temperature: Optional[Decimal] = None
    is_working: str = "Y"
    issues: Optional[str] = None
    images: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    action_required: str = "N"
    action_taken: Optional[str] = None
    next_inspection_due: Optional[datetime] = None
    cooler: Optional[CoolerInput] = None


class SurveyAnswerInput(PatchModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    MUTABLE_FIELDS = ("field_id", "answer")
    NULLABLE_FIELDS = ("id",)

    id: Optional[int] = None
    field_id: int
    answer: Optional[str] = None


class SurveyResponseInput(PatchModel):
    MUTABLE_FIELDS = (
        "parent_id", "customer_id", "submitted_by", "submitted_at",
        "location", "photo_url", "is_active",
    )
    DATETIME_FIELDS = ("submitted_at",)
    NULLABLE_FIELDS = ("id", "customer_id")
    DEFAULTED_FIELDS = ("is_active",)
    LIST_FIELDS = ("survey_answers",)

    id: Optional[int] = None
    parent_id: int
    customer_id: Optional[int] = None
    submitted_by: int
    submitted_at: Optional[datetime] = None
    location: Optional[str] = None
    photo_url: Optional[str] = None
    is_active: str = "Y"
    survey_answers: list[SurveyAnswerInput] = []


class SurveyBlock(BaseModel):
    model_config = ConfigDict(extra="ignore")

    survey_response: SurveyResponseInput


class BulkVisitItem(BaseModel):
    """One normalized batch item: the visit plus its child collections."""

    model_config = ConfigDict(extra="ignore")

    visit: VisitInput
    orders: list[OrderInput] = []
    payments: list[PaymentInput] = []
    cooler_inspections: list[CoolerInspectionInput] = []
    survey: list[SurveyBlock] = []

    @field_validator("orders", "payments", "cooler_inspections", mode="before")
    @classmethod
    def _null_collections(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("survey", mode="before")
    @classmethod
    def _wrap_single_survey(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, dict):
            return [value] if value.get("survey_response") else []
        return value
