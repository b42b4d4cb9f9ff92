"""Pydantic request bodies for the write endpoints."""
from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Form fields arrive as text or numbers; the aggregator reads both
FormNumber = Union[float, str, None]


class LineItemIn(BaseModel):
    """One editable row of the document form."""

    catalog_item_id: str = ""
    name: str = ""
    unit: str = ""
    quantity: FormNumber = None
    rate: FormNumber = None
    tax_type: str = "CGST/SGST"
    tax: FormNumber = 0  # percent


class SalesDocumentIn(BaseModel):
    """Form state submitted to create a sales document."""

    document_no: str = ""
    manual_document_no: str = ""
    party_type: str = "customer"
    party_id: str = ""
    issue_date: str = ""
    due_date: Optional[str] = None
    items: list[LineItemIn] = Field(default_factory=list)
    # manual mode only (ignored when items are present)
    subtotal: FormNumber = None
    tax_percent: FormNumber = 0
    status: Optional[str] = None
    notes: str = ""


class SalesDocumentPatch(BaseModel):
    """Header fields that may change after creation. Line items are fixed."""

    model_config = ConfigDict(extra="forbid")

    status: Optional[str] = None
    notes: Optional[str] = None
    manual_document_no: Optional[str] = None
    issue_date: Optional[str] = None
    due_date: Optional[str] = None


class PartyIn(BaseModel):
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    gst: Optional[str] = None
    contact_person: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()


class CatalogItemIn(BaseModel):
    name: str
    unit: str = ""
    quantity: float = 0.0
    category: Optional[str] = None
    batch_no: Optional[str] = None
    location: Optional[str] = None
    reorder_level: Optional[float] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()

    @field_validator("quantity")
    @classmethod
    def quantity_not_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("quantity must be >= 0")
        return v


class CatalogItemPatch(BaseModel):
    """Catalog metadata. Quantity only moves through stock receipts and sales."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    batch_no: Optional[str] = None
    location: Optional[str] = None
    reorder_level: Optional[float] = None


class StockReceiptIn(BaseModel):
    quantity: float
    note: str = ""

    @field_validator("quantity")
    @classmethod
    def quantity_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("quantity must be > 0")
        return v
