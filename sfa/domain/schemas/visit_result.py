"""Pydantic schemas for the bulk-upsert response."""

from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional


class OrderItemRead(BaseModel):
    id: int
    parent_id: int
    product_id: int
    product_name: Optional[str] = None
    unit: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class OrderRead(BaseModel):
    id: int
    order_number: str
    parent_id: int
    salesperson_id: int
    order_type: str
    order_date: datetime
    delivery_date: Optional[datetime] = None
    status: str
    priority: str
    payment_method: str
    payment_terms: Optional[str] = None
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    total_amount: Decimal
    notes: Optional[str] = None
    shipping_address: Optional[str] = None
    approval_status: str
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    is_active: str
    items: list[OrderItemRead] = []

    model_config = {"from_attributes": True}


class PaymentRead(BaseModel):
    id: int
    payment_number: str
    customer_id: int
    payment_date: datetime
    collected_by: int
    method: str
    reference_number: Optional[str] = None
    total_amount: Decimal
    notes: Optional[str] = None
    is_active: str
    currency_id: Optional[int] = None

    model_config = {"from_attributes": True}


class CoolerRead(BaseModel):
    id: int
    code: str
    brand: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    customer_id: Optional[int] = None
    capacity: Optional[int] = None
    status: str
    temperature: Optional[Decimal] = None
    is_active: str

    model_config = {"from_attributes": True}


class CoolerInspectionRead(BaseModel):
    id: int
    cooler_id: int
    visit_id: int
    inspected_by: int
    inspection_date: datetime
    temperature: Optional[Decimal] = None
    is_working: str
    issues: Optional[str] = None
    images: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    action_required: str
    action_taken: Optional[str] = None
    next_inspection_due: Optional[datetime] = None
    cooler: Optional[CoolerRead] = None

    model_config = {"from_attributes": True}


class SurveyAnswerRead(BaseModel):
    id: int
    parent_id: int
    field_id: int
    answer: Optional[str] = None

    model_config = {"from_attributes": True}


class SurveyResponseRead(BaseModel):
    id: int
    parent_id: int
    visit_id: int
    customer_id: Optional[int] = None
    submitted_by: int
    submitted_at: datetime
    location: Optional[str] = None
    photo_url: Optional[str] = None
    is_active: str
    survey_answers: list[SurveyAnswerRead] = []

    model_config = {"from_attributes": True}


class VisitImages(BaseModel):
    self: list[str] = []
    customer: list[str] = []
    cooler: list[str] = []


class VisitRead(BaseModel):
    id: int
    customer_id: int
    sales_person_id: int
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
    self_image: Optional[str] = None
    customer_image: Optional[str] = None
    cooler_image: Optional[str] = None
    is_active: str
    createdate: Optional[datetime] = None
    createdby: Optional[int] = None
    updatedate: Optional[datetime] = None
    updatedby: Optional[int] = None

    model_config = {"from_attributes": True}


class VisitAggregateRead(VisitRead):
    orders: list[OrderRead] = []
    payments: list[PaymentRead] = []
    cooler_inspections: list[CoolerInspectionRead] = []
    survey_responses: list[SurveyResponseRead] = []
    images: VisitImages = VisitImages()


class BulkVisitSuccess(BaseModel):
    visit_id: int
    message: str
    visit: VisitAggregateRead


class BulkVisitFailure(BaseModel):
    index: int
    input: Any = None
    error: str
    stage: str
    details: dict[str, Any] = {}


class BulkSummary(BaseModel):
    total: int
    created: int
    updated: int
    failed: int


class BulkResults(BaseModel):
    created: list[BulkVisitSuccess] = []
    updated: list[BulkVisitSuccess] = []
    failed: list[BulkVisitFailure] = []


class BulkUpsertResponse(BaseModel):
    success: bool
    message: str
    summary: BulkSummary
    results: BulkResults
