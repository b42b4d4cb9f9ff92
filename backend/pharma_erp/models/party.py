"""SQLModel models for parties (customers and suppliers)."""
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field

from pharma_erp.models.ids import new_id


class PartyBase(SQLModel):
    """Contact and billing attributes shared by customers and suppliers."""

    name: str = Field(index=True)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    gst: Optional[str] = Field(default=None, index=True)
    contact_person: Optional[str] = None


class Customer(PartyBase, table=True):
    __tablename__ = "customers"

    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Supplier(PartyBase, table=True):
    __tablename__ = "suppliers"

    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


PARTY_MODELS: dict[str, type[PartyBase]] = {
    "customer": Customer,
    "supplier": Supplier,
}
