"""
Sales document writers: create (with stock deduction), convert, edit, delete.

All three document kinds go through create_sales_document(). The form is
validated, line items are sanitised and totalled, and then one transaction
checks the document number, resolves snapshots, deducts stock for every
referenced catalog item and inserts the document. Either all of it is
committed or none of it is.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from loguru import logger
from sqlalchemy import or_
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, func, select

from pharma_erp.core.database import run_transaction
from pharma_erp.core.errors import NotFound, ValidationError
from pharma_erp.core.numeric import format_currency, format_quantity, round_money
from pharma_erp.models.sales import Quotation, SalesDocumentBase
from pharma_erp.schemas.requests import SalesDocumentIn, SalesDocumentPatch
from pharma_erp.services.documents import INVOICES, PROFORMA_INVOICES, QUOTATIONS, DocumentKind
from pharma_erp.services.line_items import (
    DocumentTotals,
    aggregate_quantities,
    compute_totals,
    sanitize_line_items,
)
from pharma_erp.services.numbering import generate_document_no
from pharma_erp.services.snapshots import item_snapshot, load_lookups, party_snapshot
from pharma_erp.services.stock import StockChange, deduct_stock


@dataclass(frozen=True)
class CreatedDocument:
    kind: str
    id: str
    document_no: str
    subtotal: float
    tax: float
    total: float
    stock_changes: list[StockChange] = field(default_factory=list)


# ── Validation ────────────────────────────────────────────────────────────────


def _check_date(value: Optional[str], field_name: str) -> None:
    if not value:
        return
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be a YYYY-MM-DD date.", field=field_name) from None


def _check_status(kind: DocumentKind, status: str) -> None:
    if status not in kind.statuses:
        raise ValidationError(
            f"Status must be one of: {', '.join(kind.statuses)}.", field="status"
        )


def validate_form(kind: DocumentKind, form: SalesDocumentIn) -> None:
    """Header checks, in the order the form shows them."""
    if not form.document_no.strip():
        raise ValidationError(f"{kind.label} number is required.", field="document_no")
    if kind.manual_number_required and not form.manual_document_no.strip():
        raise ValidationError(f"Manual {kind.label.lower()} number is required.", field="manual_document_no")
    if form.party_type not in kind.party_types:
        raise ValidationError(
            f"{kind.label} party must be a {' or '.join(kind.party_types)}.", field="party_type"
        )
    if not form.party_id.strip():
        raise ValidationError(f"Select a {form.party_type}.", field="party_id")
    if form.status is not None:
        _check_status(kind, form.status)
    _check_date(form.issue_date, "issue_date")
    _check_date(form.due_date, "due_date")


def prepare_lines(form: SalesDocumentIn):
    """Sanitise the rows and total them; rejects forms whose rows were all blank."""
    lines = sanitize_line_items(form.items)
    if form.items and not lines:
        raise ValidationError(
            "Please select processed inventory item(s) and enter quantity.", field="items"
        )
    for line in lines:
        if line.rate < 0:
            raise ValidationError("Rate cannot be negative.", field="items")

    totals = compute_totals(lines, form.subtotal, form.tax_percent)
    if not totals.itemised and (totals.subtotal < 0 or totals.tax_percent < 0):
        raise ValidationError("Amounts cannot be negative.", field="subtotal")
    if not all(math.isfinite(x) for x in (totals.subtotal, totals.tax, totals.total)):
        raise ValidationError(
            "Amounts are too large.", field="items" if totals.itemised else "subtotal"
        )
    return lines, totals


# ── Create ────────────────────────────────────────────────────────────────────


def _ensure_number_free(session: Session, kind: DocumentKind, document_no: str) -> None:
    model = kind.model
    taken = session.exec(select(model.id).where(model.document_no == document_no)).first()
    if taken is not None:
        raise ValidationError(
            f"{kind.label} number {document_no} already exists.", field="document_no"
        )


def _totals_columns(totals: DocumentTotals) -> dict:
    return {
        "subtotal": round_money(totals.subtotal),
        "tax_percent": totals.tax_percent,
        "tax": round_money(totals.tax),
        "total": round_money(totals.total),
    }


def create_sales_document(db_engine: Engine, kind: DocumentKind, form: SalesDocumentIn) -> CreatedDocument:
    """
    Create an invoice, quotation or proforma invoice from submitted form state.

    Raises ValidationError before touching the database, then NotFound or
    InsufficientStock from inside the transaction (nothing committed), or
    TransientConflict if the stock rows stayed contended through every retry.
    """
    validate_form(kind, form)
    lines, totals = prepare_lines(form)

    document_no = form.document_no.strip()
    issue_date = form.issue_date or date.today().isoformat()
    status = form.status or kind.default_status

    def _work(session: Session) -> CreatedDocument:
        _ensure_number_free(session, kind, document_no)

        lookups = load_lookups(session, form.party_type)
        stamped = [item_snapshot(lookups, line) for line in lines]

        changes: list[StockChange] = []
        if stamped:
            changes = deduct_stock(session, aggregate_quantities(stamped))

        now = datetime.utcnow()
        doc = kind.model(
            document_no=document_no,
            manual_document_no=form.manual_document_no.strip(),
            party_type=form.party_type,
            party_id=form.party_id.strip(),
            **party_snapshot(lookups, form.party_id.strip()).as_columns(),
            issue_date=issue_date,
            due_date=form.due_date or None,
            items=[line.to_record() for line in stamped],
            status=status,
            notes=form.notes.strip(),
            created_at=now,
            updated_at=now,
            **_totals_columns(totals),
        )
        session.add(doc)
        session.flush()
        return CreatedDocument(
            kind=kind.slug,
            id=doc.id,
            document_no=doc.document_no,
            subtotal=doc.subtotal,
            tax=doc.tax,
            total=doc.total,
            stock_changes=changes,
        )

    try:
        created = run_transaction(db_engine, _work)
    except IntegrityError:
        # lost a race on the unique document number
        raise ValidationError(
            f"{kind.label} number {document_no} already exists.", field="document_no"
        ) from None

    for change in created.stock_changes:
        logger.info(
            f"stock: {created.document_no} took {format_quantity(change.before - change.after)} of "
            f"'{change.name}' ({format_quantity(change.before)} -> {format_quantity(change.after)})"
        )
    logger.info(f"{kind.label} {created.document_no} saved (total {format_currency(created.total)})")
    return created


# ── Convert ───────────────────────────────────────────────────────────────────


def convert_quotation(db_engine: Engine, quotation_id: str, target: DocumentKind) -> CreatedDocument:
    """
    Turn a stored quotation into an invoice or proforma invoice.

    Items, party snapshot and totals are copied. Stock is not deducted
    again: the quotation's creation already consumed it.
    """
    if target not in (INVOICES, PROFORMA_INVOICES):
        raise ValidationError(
            "A quotation can only be converted to an invoice or proforma invoice.", field="target"
        )

    def _work(session: Session) -> CreatedDocument:
        quotation = session.get(Quotation, quotation_id)
        if quotation is None:
            raise NotFound(QUOTATIONS.label, quotation_id)
        if quotation.party_type not in target.party_types:
            raise ValidationError(
                f"A {quotation.party_type} quotation cannot become a {target.label.lower()}.",
                field="party_type",
            )

        document_no = generate_document_no(target.prefix, quotation.issue_date)
        while session.exec(
            select(target.model.id).where(target.model.document_no == document_no)
        ).first() is not None:
            document_no = generate_document_no(target.prefix, quotation.issue_date)

        source_no = quotation.manual_document_no or quotation.document_no
        notes = f"Converted from quotation {source_no}"
        if quotation.notes:
            notes = f"{notes}\n{quotation.notes}"

        now = datetime.utcnow()
        doc = target.model(
            document_no=document_no,
            party_type=quotation.party_type,
            party_id=quotation.party_id,
            party_name=quotation.party_name,
            party_address=quotation.party_address,
            party_phone=quotation.party_phone,
            party_email=quotation.party_email,
            party_gst=quotation.party_gst,
            issue_date=quotation.issue_date,
            items=list(quotation.items or []),
            subtotal=quotation.subtotal,
            tax_percent=quotation.tax_percent,
            tax=quotation.tax,
            total=quotation.total,
            status=target.default_status,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        session.add(doc)
        session.flush()
        return CreatedDocument(
            kind=target.slug,
            id=doc.id,
            document_no=doc.document_no,
            subtotal=doc.subtotal,
            tax=doc.tax,
            total=doc.total,
        )

    created = run_transaction(db_engine, _work)
    logger.info(f"Quotation {quotation_id} converted to {target.label} {created.document_no}")
    return created


# ── Edit / delete ─────────────────────────────────────────────────────────────


def update_sales_document(
    db_engine: Engine, kind: DocumentKind, document_id: str, patch: SalesDocumentPatch
) -> SalesDocumentBase:
    """Update header fields. Line items, party and totals are fixed at creation."""
    changes = patch.model_dump(exclude_none=True)
    if not changes:
        raise ValidationError("No fields to update.")
    if "status" in changes:
        _check_status(kind, changes["status"])
    _check_date(changes.get("issue_date"), "issue_date")
    _check_date(changes.get("due_date"), "due_date")
    if kind.manual_number_required and "manual_document_no" in changes:
        if not changes["manual_document_no"].strip():
            raise ValidationError(
                f"Manual {kind.label.lower()} number is required.", field="manual_document_no"
            )

    def _work(session: Session) -> SalesDocumentBase:
        doc = session.get(kind.model, document_id)
        if doc is None:
            raise NotFound(kind.label, document_id)
        for key, value in changes.items():
            setattr(doc, key, value.strip() if isinstance(value, str) else value)
        doc.updated_at = datetime.utcnow()
        session.add(doc)
        return doc

    doc = run_transaction(db_engine, _work)
    logger.info(f"{kind.label} {doc.document_no} updated: {sorted(changes)}")
    return doc


def delete_sales_document(db_engine: Engine, kind: DocumentKind, document_id: str) -> str:
    """Delete a document. Deducted stock is not returned to inventory."""

    def _work(session: Session) -> str:
        doc = session.get(kind.model, document_id)
        if doc is None:
            raise NotFound(kind.label, document_id)
        number = doc.document_no
        session.delete(doc)
        return number

    number = run_transaction(db_engine, _work)
    logger.info(f"{kind.label} {number} deleted")
    return number


# ── Queries ───────────────────────────────────────────────────────────────────


def _filtered(kind: DocumentKind, search: Optional[str], status: Optional[str], party_type: Optional[str]):
    model = kind.model
    stmt = select(model)
    if search:
        q = search.strip().lower()
        stmt = stmt.where(
            or_(
                func.lower(col(model.document_no)).contains(q, autoescape=True),
                func.lower(col(model.manual_document_no)).contains(q, autoescape=True),
                func.lower(col(model.party_name)).contains(q, autoescape=True),
                func.lower(col(model.status)).contains(q, autoescape=True),
            )
        )
    if status:
        stmt = stmt.where(model.status == status)
    if party_type:
        stmt = stmt.where(model.party_type == party_type)
    return stmt


def list_documents(
    session: Session,
    kind: DocumentKind,
    search: Optional[str] = None,
    status: Optional[str] = None,
    party_type: Optional[str] = None,
    page: int = 1,
    page_size: int = 50,
) -> tuple[int, list[SalesDocumentBase]]:
    model = kind.model
    stmt = _filtered(kind, search, status, party_type)

    total = session.exec(select(func.count()).select_from(stmt.subquery())).one()

    stmt = stmt.order_by(col(model.issue_date).desc(), col(model.created_at).desc())
    if page_size:
        stmt = stmt.offset((page - 1) * page_size).limit(page_size)
    return total, list(session.exec(stmt).all())


def summarize(session: Session, kind: DocumentKind) -> dict:
    """Counts and totals per status, for the stat cards above each list."""
    model = kind.model
    rows = session.exec(
        select(model.status, func.count(model.id), func.sum(model.total)).group_by(model.status)
    ).all()
    by_status = {
        s: {"count": 0, "total": 0.0} for s in kind.statuses
    }
    for status, count, total in rows:
        by_status[status] = {"count": count, "total": round_money(float(total or 0))}
    return {
        "count": sum(v["count"] for v in by_status.values()),
        "total": round_money(sum(v["total"] for v in by_status.values())),
        "by_status": by_status,
    }
