"""
Registry of sales document kinds.

Invoices, quotations and proforma invoices share one record layout and one
creation path; they differ only in table, number prefix, status vocabulary,
which parties they may address and whether a manual number is mandatory.
"""
from __future__ import annotations

from dataclasses import dataclass

from pharma_erp.core.errors import NotFound
from pharma_erp.models.sales import Invoice, ProformaInvoice, Quotation, SalesDocumentBase


@dataclass(frozen=True)
class DocumentKind:
    slug: str                       # URL segment, e.g. "proforma-invoices"
    label: str                      # human name used in messages
    model: type[SalesDocumentBase]
    prefix: str                     # system number prefix
    statuses: tuple[str, ...]       # first entry is the default
    party_types: tuple[str, ...] = ("customer", "supplier")
    manual_number_required: bool = False

    @property
    def default_status(self) -> str:
        return self.statuses[0]


INVOICES = DocumentKind(
    slug="invoices",
    label="Invoice",
    model=Invoice,
    prefix="INV",
    statuses=("Pending", "Paid", "Overdue"),
)

QUOTATIONS = DocumentKind(
    slug="quotations",
    label="Quotation",
    model=Quotation,
    prefix="QT",
    statuses=("Pending", "Approved", "Rejected"),
)

PROFORMA_INVOICES = DocumentKind(
    slug="proforma-invoices",
    label="Proforma Invoice",
    model=ProformaInvoice,
    prefix="PI",
    statuses=("In Process", "Approved"),
    party_types=("customer",),
    manual_number_required=True,
)

DOCUMENT_KINDS: dict[str, DocumentKind] = {
    k.slug: k for k in (INVOICES, QUOTATIONS, PROFORMA_INVOICES)
}


def get_kind(slug: str) -> DocumentKind:
    try:
        return DOCUMENT_KINDS[slug]
    except KeyError:
        raise NotFound("Document type", slug) from None
