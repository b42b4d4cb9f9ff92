"""Pydantic response schemas for API endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    db: str
    version: str = "1.0.0"


class SettingsRead(BaseModel):
    db_url: str
    transaction_max_attempts: int
    db_timeout_seconds: float
    currency_symbol: str
    document_kinds: list[str]


class PartyRead(BaseModel):
    id: str
    name: str
    address: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    gst: Optional[str]
    contact_person: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CatalogItemRead(BaseModel):
    id: str
    name: str
    unit: str
    quantity: float
    last_updated: str
    category: Optional[str]
    batch_no: Optional[str]
    location: Optional[str]
    reorder_level: Optional[float]
    low_stock: bool = False


class StockChangeRead(BaseModel):
    item_id: str
    name: str
    before: float
    after: float


class LineItemRead(BaseModel):
    catalog_item_id: str
    name: str
    unit: str
    quantity: float
    rate: float
    tax_type: str
    tax: float
    # derived for display
    amount: float = 0.0
    tax_amount: float = 0.0
    line_total: float = 0.0
    cgst_percent: float = 0.0
    sgst_percent: float = 0.0
    igst_percent: float = 0.0


class SalesDocumentRead(BaseModel):
    id: str
    document_no: str
    manual_document_no: str
    party_type: str
    party_id: str
    party_name: str
    party_address: str
    party_phone: str
    party_email: str
    party_gst: str
    issue_date: str
    due_date: Optional[str]
    subtotal: float
    tax_percent: float
    tax: float
    total: float
    status: str
    notes: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SalesDocumentDetail(SalesDocumentRead):
    items: list[LineItemRead] = []


class SalesDocumentListResponse(BaseModel):
    total: int
    page: int
    page_size: int
    items: list[SalesDocumentRead]


class CreatedDocumentResponse(BaseModel):
    kind: str
    id: str
    document_no: str
    subtotal: float
    tax: float
    total: float
    stock_changes: list[StockChangeRead] = []


class StatusBucket(BaseModel):
    count: int
    total: float


class SalesSummary(BaseModel):
    count: int
    total: float
    by_status: dict[str, StatusBucket]


class FormOption(BaseModel):
    id: str
    name: str
    unit: str = ""


class FormOptions(BaseModel):
    parties: list[FormOption]
    items: list[FormOption]
    statuses: list[str]
    party_types: list[str]
    suggested_document_no: str
