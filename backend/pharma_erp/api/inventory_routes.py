"""
Processed inventory (the catalog sales documents draw from).

Endpoints:
  GET   /api/processed-inventory                – list, ?search= and ?low_only=
  POST  /api/processed-inventory                – add a catalog item with opening stock
  GET   /api/processed-inventory/{id}           – one item
  PATCH /api/processed-inventory/{id}           – metadata only (name, unit, location …)
  POST  /api/processed-inventory/{id}/receive   – add produced/purchased quantity

Quantity is not writable here. Stock goes up via /receive and down via
sales documents, both version-guarded.
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger
from sqlalchemy.engine import Engine
from sqlmodel import Session, col, func, select

from pharma_erp.core.database import get_engine, get_session
from pharma_erp.core.numeric import format_quantity
from pharma_erp.models.inventory import ProcessedInventoryItem
from pharma_erp.schemas.requests import CatalogItemIn, CatalogItemPatch, StockReceiptIn
from pharma_erp.schemas.responses import CatalogItemRead, StockChangeRead
from pharma_erp.services.stock import StockRecord, low_stock, receive_stock

inventory_router = APIRouter(prefix="/api/processed-inventory", tags=["processed-inventory"])


def _read(row: ProcessedInventoryItem) -> CatalogItemRead:
    record = StockRecord.from_row(row)
    return CatalogItemRead(
        id=row.id,
        name=row.name,
        unit=row.unit,
        quantity=float(record.quantity),
        last_updated=row.last_updated,
        category=row.category,
        batch_no=row.batch_no,
        location=row.location,
        reorder_level=row.reorder_level,
        low_stock=low_stock(row),
    )


def _get_or_404(session: Session, item_id: str) -> ProcessedInventoryItem:
    row = session.get(ProcessedInventoryItem, item_id)
    if not row:
        raise HTTPException(status_code=404, detail="Processed inventory item not found")
    return row


@inventory_router.get("", response_model=list[CatalogItemRead])
def list_items(
    search: Optional[str] = Query(default=None),
    low_only: bool = Query(default=False, description="Only items at or below reorder level"),
    session: Session = Depends(get_session),
):
    stmt = select(ProcessedInventoryItem)
    if search:
        stmt = stmt.where(func.lower(col(ProcessedInventoryItem.name)).contains(search.strip().lower(), autoescape=True))
    rows = session.exec(stmt.order_by(ProcessedInventoryItem.name)).all()
    items = [_read(r) for r in rows]
    if low_only:
        items = [i for i in items if i.low_stock]
    return items


@inventory_router.post("", response_model=CatalogItemRead, status_code=201)
def create_item(body: CatalogItemIn, session: Session = Depends(get_session)):
    data = body.model_dump()
    data["quantity"] = format_quantity(body.quantity)
    row = ProcessedInventoryItem(**data, last_updated=date.today().isoformat())
    session.add(row)
    session.commit()
    session.refresh(row)
    logger.info(f"processed inventory: '{row.name}' added with {row.quantity} {row.unit}".rstrip())
    return _read(row)


@inventory_router.get("/{item_id}", response_model=CatalogItemRead)
def get_item(item_id: str, session: Session = Depends(get_session)):
    return _read(_get_or_404(session, item_id))


@inventory_router.patch("/{item_id}", response_model=CatalogItemRead)
def update_item(item_id: str, body: CatalogItemPatch, session: Session = Depends(get_session)):
    row = _get_or_404(session, item_id)
    update = body.model_dump(exclude_none=True)
    if not update:
        raise HTTPException(status_code=422, detail="No fields to update")
    for key, value in update.items():
        setattr(row, key, value)
    session.add(row)
    session.commit()
    session.refresh(row)
    logger.info(f"processed inventory: '{row.name}' metadata updated: {sorted(update)}")
    return _read(row)


@inventory_router.post("/{item_id}/receive", response_model=StockChangeRead)
def receive(item_id: str, body: StockReceiptIn, db_engine: Engine = Depends(get_engine)):
    """Record a production batch or purchase receipt against a catalog item."""
    change = receive_stock(db_engine, item_id, body.quantity, body.note)
    return StockChangeRead(
        item_id=change.item_id, name=change.name, before=float(change.before), after=float(change.after)
    )
