"""
Processed-inventory stock movements.

The on-hand quantity is the one shared value with an invariant (never
negative after a sale). It is only ever written here, and only through a
version-guarded UPDATE issued inside run_transaction():

    read row (version v) -> validate -> UPDATE ... WHERE id = :id AND version = v

If another writer got there first the UPDATE matches no row, StaleRecord is
raised and run_transaction() retries the whole unit with fresh reads.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from loguru import logger
from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlmodel import Session

from pharma_erp.core.database import StaleRecord, run_transaction
from pharma_erp.core.errors import InsufficientStock, NotFound, RecordDecodeError
from pharma_erp.core.numeric import format_quantity, parse_quantity, to_quantity
from pharma_erp.models.inventory import ProcessedInventoryItem


@dataclass(frozen=True)
class StockRecord:
    """Typed view of a processed-inventory row, decoded once at the storage boundary."""

    id: str
    name: str
    unit: str
    quantity: Decimal
    version: int

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @classmethod
    def from_row(cls, row: ProcessedInventoryItem) -> "StockRecord":
        try:
            quantity = parse_quantity(row.quantity)
        except ValueError:
            raise RecordDecodeError("processed_inventory", row.id, "quantity", row.quantity) from None
        return cls(
            id=row.id,
            name=(row.name or "").strip(),
            unit=(row.unit or "").strip(),
            quantity=quantity,
            version=row.version or 0,
        )


@dataclass(frozen=True)
class StockChange:
    item_id: str
    name: str
    before: Decimal
    after: Decimal


def _today() -> str:
    return date.today().isoformat()


def read_stock(session: Session, item_id: str) -> StockRecord:
    row = session.get(ProcessedInventoryItem, item_id)
    if row is None:
        raise NotFound("Processed inventory item", item_id)
    return StockRecord.from_row(row)


def write_quantity(session: Session, record: StockRecord, quantity: Decimal) -> None:
    """Stage a guarded quantity write; raises StaleRecord if the row moved on."""
    result = session.execute(
        update(ProcessedInventoryItem)
        .where(
            ProcessedInventoryItem.id == record.id,
            ProcessedInventoryItem.version == record.version,
        )
        .values(
            quantity=format_quantity(quantity),
            last_updated=_today(),
            version=record.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise StaleRecord(f"processed_inventory {record.id} changed since version {record.version}")


def deduct_stock(session: Session, quantities: dict[str, Decimal]) -> list[StockChange]:
    """
    Validate and stage the deduction of every item in one transaction.

    quantities maps catalog item id -> total quantity consumed, already
    summed across lines. All rows are read and checked before any write is
    staged; the first missing item or shortfall aborts with nothing staged.
    """
    planned: list[tuple[StockRecord, Decimal]] = []
    for item_id, used in quantities.items():
        used = to_quantity(used)
        record = read_stock(session, item_id)
        remaining = record.quantity - used
        if remaining < 0:
            raise InsufficientStock(record.display_name, record.quantity, used)
        planned.append((record, remaining))

    changes = []
    for record, remaining in planned:
        write_quantity(session, record, remaining)
        changes.append(StockChange(record.id, record.display_name, record.quantity, remaining))
    return changes


def receive_stock(db_engine: Engine, item_id: str, quantity: float, note: str = "") -> StockChange:
    """Add produced or purchased quantity to a catalog item."""

    def _work(session: Session) -> StockChange:
        record = read_stock(session, item_id)
        after = record.quantity + to_quantity(quantity)
        write_quantity(session, record, after)
        return StockChange(record.id, record.display_name, record.quantity, after)

    change = run_transaction(db_engine, _work)
    logger.info(
        f"stock: received {format_quantity(quantity)} of '{change.name}' "
        f"({format_quantity(change.before)} -> {format_quantity(change.after)}) {note}".rstrip()
    )
    return change


def low_stock(row: ProcessedInventoryItem) -> bool:
    """True when a reorder level is set and the decoded quantity is at or below it."""
    if row.reorder_level is None:
        return False
    try:
        return parse_quantity(row.quantity) <= to_quantity(row.reorder_level)
    except ValueError:
        return False
