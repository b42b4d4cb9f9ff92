"""SQLModel models for sales documents (invoices, quotations, proforma invoices)."""
from typing import Any, Optional
from datetime import datetime
from sqlalchemy import JSON
from sqlmodel import SQLModel, Field

from pharma_erp.models.ids import new_id


class SalesDocumentBase(SQLModel):
    """
    Columns shared by the three sales document tables.

    Party fields are a snapshot taken at creation time; later edits to the
    customer/supplier record do not change them. items holds the line
    items as dicts: catalog_item_id, name, unit, quantity, rate, tax_type, tax.
    """

    document_no: str = Field(index=True, unique=True)
    manual_document_no: str = Field(default="")

    party_type: str = Field(default="customer", index=True)  # customer | supplier
    party_id: str = Field(index=True)
    party_name: str = Field(default="", index=True)
    party_address: str = Field(default="")
    party_phone: str = Field(default="")
    party_email: str = Field(default="")
    party_gst: str = Field(default="")

    issue_date: str = Field(index=True)  # YYYY-MM-DD
    due_date: Optional[str] = None

    items: list[dict[str, Any]] = Field(default_factory=list, sa_type=JSON)

    subtotal: float = Field(default=0.0)
    tax_percent: float = Field(default=0.0)  # document-level; 0 when itemised
    tax: float = Field(default=0.0)
    total: float = Field(default=0.0)

    status: str = Field(index=True)
    notes: str = Field(default="")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Invoice(SalesDocumentBase, table=True):
    __tablename__ = "invoices"

    id: str = Field(default_factory=new_id, primary_key=True)


class Quotation(SalesDocumentBase, table=True):
    __tablename__ = "quotations"

    id: str = Field(default_factory=new_id, primary_key=True)


class ProformaInvoice(SalesDocumentBase, table=True):
    __tablename__ = "proforma_invoices"

    id: str = Field(default_factory=new_id, primary_key=True)
