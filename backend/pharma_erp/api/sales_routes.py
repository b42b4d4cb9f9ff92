"""
Sales document routes, one router per document kind.

Endpoints (for {kind} in invoices, quotations, proforma-invoices):
  GET    /api/{kind}                 – list (search, status, party_type, paging)
  POST   /api/{kind}                 – create from form state (deducts stock)
  GET    /api/{kind}/next-number     – fresh system number for a new form
  GET    /api/{kind}/form-options    – parties and catalog items to pick from
  GET    /api/{kind}/summary         – counts and totals per status
  GET    /api/{kind}/export/csv      – filtered list as CSV
  GET    /api/{kind}/export/xlsx     – filtered list as XLSX
  GET    /api/{kind}/{id}            – one document with line amounts
  PATCH  /api/{kind}/{id}            – header fields (status, notes, dates, manual no)
  DELETE /api/{kind}/{id}            – delete
  POST   /api/quotations/{id}/convert?target=invoices|proforma-invoices
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.engine import Engine
from sqlmodel import Session

from pharma_erp.core.database import get_engine, get_session
from pharma_erp.core.numeric import safe_number
from pharma_erp.schemas.requests import LineItemIn, SalesDocumentIn, SalesDocumentPatch
from pharma_erp.schemas.responses import (
    CreatedDocumentResponse,
    FormOption,
    FormOptions,
    LineItemRead,
    SalesDocumentDetail,
    SalesDocumentListResponse,
    SalesDocumentRead,
    SalesSummary,
    StockChangeRead,
)
from pharma_erp.services.documents import DOCUMENT_KINDS, QUOTATIONS, DocumentKind, get_kind
from pharma_erp.services.export import document_rows, to_csv, to_xlsx
from pharma_erp.services.line_items import compute_line, normalize_tax_type
from pharma_erp.services.numbering import generate_document_no
from pharma_erp.services.sales import (
    CreatedDocument,
    convert_quotation,
    create_sales_document,
    delete_sales_document,
    list_documents,
    summarize,
    update_sales_document,
)
from pharma_erp.services.snapshots import load_lookups


def _created(created: CreatedDocument) -> CreatedDocumentResponse:
    return CreatedDocumentResponse(
        kind=created.kind,
        id=created.id,
        document_no=created.document_no,
        subtotal=created.subtotal,
        tax=created.tax,
        total=created.total,
        stock_changes=[
            StockChangeRead(item_id=c.item_id, name=c.name, before=float(c.before), after=float(c.after))
            for c in created.stock_changes
        ],
    )


def _line_read(record: dict) -> LineItemRead:
    item = LineItemIn(**record)
    amounts = compute_line(item)
    return LineItemRead(
        catalog_item_id=item.catalog_item_id,
        name=item.name,
        unit=item.unit,
        quantity=safe_number(item.quantity),
        rate=safe_number(item.rate),
        tax_type=normalize_tax_type(item.tax_type),
        tax=safe_number(item.tax),
        amount=round(amounts.base, 2),
        tax_amount=round(amounts.tax_amount, 2),
        line_total=round(amounts.total, 2),
        cgst_percent=amounts.cgst_percent,
        sgst_percent=amounts.sgst_percent,
        igst_percent=amounts.igst_percent,
    )


def _sales_router(kind: DocumentKind) -> APIRouter:
    router = APIRouter(prefix=f"/api/{kind.slug}", tags=[kind.slug])
    model = kind.model

    def _get_or_404(session: Session, document_id: str):
        doc = session.get(model, document_id)
        if not doc:
            raise HTTPException(status_code=404, detail=f"{kind.label} not found")
        return doc

    @router.get("", response_model=SalesDocumentListResponse)
    def list_route(
        search: Optional[str] = Query(default=None, description="Number, party or status"),
        status: Optional[str] = Query(default=None),
        party_type: Optional[str] = Query(default=None),
        page: int = Query(default=1, ge=1),
        page_size: int = Query(default=50, ge=1, le=500),
        session: Session = Depends(get_session),
    ):
        total, docs = list_documents(session, kind, search, status, party_type, page, page_size)
        return SalesDocumentListResponse(
            total=total,
            page=page,
            page_size=page_size,
            items=[SalesDocumentRead.model_validate(d) for d in docs],
        )

    @router.post("", response_model=CreatedDocumentResponse, status_code=201)
    def create_route(form: SalesDocumentIn, db_engine: Engine = Depends(get_engine)):
        return _created(create_sales_document(db_engine, kind, form))

    @router.get("/next-number")
    def next_number(issue_date: Optional[date] = Query(default=None)) -> dict:
        iso = issue_date.isoformat() if issue_date else None
        return {"document_no": generate_document_no(kind.prefix, iso)}

    @router.get("/form-options", response_model=FormOptions)
    def form_options(
        party_type: str = Query(default=kind.party_types[0]),
        session: Session = Depends(get_session),
    ):
        if party_type not in kind.party_types:
            raise HTTPException(status_code=422, detail=f"party_type must be one of {list(kind.party_types)}")
        lookups = load_lookups(session, party_type)
        parties = sorted(
            (FormOption(id=pid, name=p.name) for pid, p in lookups.parties.items() if p.name),
            key=lambda o: o.name.lower(),
        )
        items = sorted(
            (FormOption(id=i.id, name=i.name, unit=i.unit) for i in lookups.items.values() if i.name),
            key=lambda o: o.name.lower(),
        )
        return FormOptions(
            parties=parties,
            items=items,
            statuses=list(kind.statuses),
            party_types=list(kind.party_types),
            suggested_document_no=generate_document_no(kind.prefix),
        )

    @router.get("/summary", response_model=SalesSummary)
    def summary(session: Session = Depends(get_session)):
        return summarize(session, kind)

    @router.get("/export/csv")
    def export_csv(
        search: Optional[str] = Query(default=None),
        status: Optional[str] = Query(default=None),
        session: Session = Depends(get_session),
    ):
        _, docs = list_documents(session, kind, search, status, page_size=0)
        content = to_csv(document_rows(docs))
        filename = f"{kind.slug}_{date.today()}.csv"
        return StreamingResponse(
            iter([content]),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @router.get("/export/xlsx")
    def export_xlsx(
        search: Optional[str] = Query(default=None),
        status: Optional[str] = Query(default=None),
        session: Session = Depends(get_session),
    ):
        _, docs = list_documents(session, kind, search, status, page_size=0)
        buf = to_xlsx(kind, document_rows(docs))
        filename = f"{kind.slug}_{date.today()}.xlsx"
        return StreamingResponse(
            buf,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @router.get("/{document_id}", response_model=SalesDocumentDetail)
    def get_route(document_id: str, session: Session = Depends(get_session)):
        doc = _get_or_404(session, document_id)
        header = SalesDocumentRead.model_validate(doc)
        return SalesDocumentDetail(
            **header.model_dump(), items=[_line_read(r) for r in (doc.items or [])]
        )

    @router.patch("/{document_id}", response_model=SalesDocumentRead)
    def patch_route(
        document_id: str, patch: SalesDocumentPatch, db_engine: Engine = Depends(get_engine)
    ):
        return SalesDocumentRead.model_validate(
            update_sales_document(db_engine, kind, document_id, patch)
        )

    @router.delete("/{document_id}")
    def delete_route(document_id: str, db_engine: Engine = Depends(get_engine)) -> dict:
        number = delete_sales_document(db_engine, kind, document_id)
        return {"status": "deleted", "id": document_id, "document_no": number}

    if kind is QUOTATIONS:

        @router.post("/{document_id}/convert", response_model=CreatedDocumentResponse, status_code=201)
        def convert_route(
            document_id: str,
            target: str = Query(description="invoices or proforma-invoices"),
            db_engine: Engine = Depends(get_engine),
        ):
            return _created(convert_quotation(db_engine, document_id, get_kind(target)))

    return router


sales_routers = [_sales_router(kind) for kind in DOCUMENT_KINDS.values()]
