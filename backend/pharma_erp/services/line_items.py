"""
Line-item aggregation: per-line amounts and document totals.

Everything here is a pure function of the current line items. Totals are
recomputed from scratch on every call and never stored incrementally.
Unparseable quantities, rates or percentages count as zero; this layer
never raises.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional

from pharma_erp.core.numeric import safe_number, to_quantity

CGST_SGST = "CGST/SGST"
IGST = "IGST"


def normalize_tax_type(value: Optional[str]) -> str:
    """'CGST / SGST', 'cgst/sgst', '' -> 'CGST/SGST'; 'igst' -> 'IGST'."""
    if value and value.replace(" ", "").upper() == IGST:
        return IGST
    return CGST_SGST


@dataclass(frozen=True)
class SaleLine:
    """A sanitised line item, ready to be deducted and persisted."""

    catalog_item_id: str
    name: str
    unit: str
    quantity: float
    rate: float
    tax_type: str
    tax: float

    def to_record(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LineAmounts:
    base: float
    tax_amount: float
    total: float
    # presentation split of the percentage; never changes tax_amount
    cgst_percent: float
    sgst_percent: float
    igst_percent: float

    @property
    def cgst_amount(self) -> float:
        return self.base * self.cgst_percent / 100

    @property
    def sgst_amount(self) -> float:
        return self.base * self.sgst_percent / 100

    @property
    def igst_amount(self) -> float:
        return self.base * self.igst_percent / 100


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: float
    tax: float
    total: float
    tax_percent: float  # effective document-level percent (0 when itemised)
    itemised: bool


def compute_line(item: Any) -> LineAmounts:
    quantity = safe_number(item.quantity)
    rate = safe_number(item.rate)
    pct = safe_number(item.tax)
    base = quantity * rate
    tax_amount = base * pct / 100

    if normalize_tax_type(item.tax_type) == IGST:
        cgst = sgst = 0.0
        igst = pct
    else:
        cgst = sgst = pct / 2
        igst = 0.0

    return LineAmounts(
        base=base,
        tax_amount=tax_amount,
        total=base + tax_amount,
        cgst_percent=cgst,
        sgst_percent=sgst,
        igst_percent=igst,
    )


def compute_totals(
    items: Iterable[Any],
    manual_subtotal: Any = None,
    manual_tax_percent: Any = 0,
) -> DocumentTotals:
    """
    Document subtotal/tax/total.

    With at least one line item the manual fields are ignored. With none,
    the manual subtotal is taken as-is and taxed at the document percent.
    """
    lines = [compute_line(it) for it in items]
    if lines:
        subtotal = sum(l.base for l in lines)
        tax = max(0.0, sum(l.tax_amount for l in lines))
        return DocumentTotals(
            subtotal=subtotal,
            tax=tax,
            total=max(0.0, subtotal + tax),
            tax_percent=0.0,
            itemised=True,
        )

    subtotal = safe_number(manual_subtotal)
    pct = safe_number(manual_tax_percent)
    tax = max(0.0, subtotal * pct / 100)
    return DocumentTotals(
        subtotal=subtotal,
        tax=tax,
        total=max(0.0, subtotal + tax),
        tax_percent=pct,
        itemised=False,
    )


def sanitize_line_items(items: Iterable[Any]) -> list[SaleLine]:
    """
    Drop rows with no catalog reference or a non-positive quantity.

    Names and units are passed through as typed; snapshot resolution
    replaces them with catalog values later.
    """
    clean: list[SaleLine] = []
    for it in items:
        catalog_item_id = (it.catalog_item_id or "").strip()
        quantity = safe_number(it.quantity)
        if not catalog_item_id or quantity <= 0:
            continue
        clean.append(
            SaleLine(
                catalog_item_id=catalog_item_id,
                name=(it.name or "").strip(),
                unit=(it.unit or "").strip(),
                quantity=quantity,
                rate=safe_number(it.rate),
                tax_type=normalize_tax_type(it.tax_type),
                tax=max(0.0, safe_number(it.tax)),
            )
        )
    return clean


def aggregate_quantities(lines: Iterable[SaleLine]) -> dict[str, Decimal]:
    """Total quantity per catalog item, so each item is checked and deducted once."""
    totals: dict[str, Decimal] = {}
    for line in lines:
        totals[line.catalog_item_id] = totals.get(line.catalog_item_id, Decimal(0)) + to_quantity(line.quantity)
    return totals
