"""Flat-row exports of sales document lists (CSV and XLSX)."""
from __future__ import annotations

import csv
import io
from typing import Iterable

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from pharma_erp.models.sales import SalesDocumentBase
from pharma_erp.services.documents import DocumentKind

EXPORT_COLUMNS = [
    "Number", "Manual No", "Party Type", "Party", "GST", "Issue Date",
    "Due Date", "Items", "Subtotal", "Tax", "Total", "Status", "Notes",
]


def document_rows(docs: Iterable[SalesDocumentBase]) -> list[dict]:
    return [
        {
            "Number": d.document_no,
            "Manual No": d.manual_document_no or "",
            "Party Type": d.party_type,
            "Party": d.party_name or "",
            "GST": d.party_gst or "",
            "Issue Date": d.issue_date,
            "Due Date": d.due_date or "",
            "Items": len(d.items or []),
            "Subtotal": round(d.subtotal, 2),
            "Tax": round(d.tax, 2),
            "Total": round(d.total, 2),
            "Status": d.status,
            "Notes": d.notes or "",
        }
        for d in docs
    ]


def to_csv(rows: list[dict]) -> str:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    writer.writerows(rows)
    return output.getvalue()


def to_xlsx(kind: DocumentKind, rows: list[dict]) -> io.BytesIO:
    """One sheet named after the document kind, styled header, auto widths."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = f"{kind.label}s"[:31]

    header_fill = PatternFill(start_color="1F3864", end_color="1F3864", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF", size=10)
    row_font = Font(size=10)
    center = Alignment(horizontal="center", vertical="center")

    for col_idx, h in enumerate(EXPORT_COLUMNS, 1):
        cell = ws.cell(row=1, column=col_idx, value=h)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = center

    for row_idx, r in enumerate(rows, 2):
        for col_idx, key in enumerate(EXPORT_COLUMNS, 1):
            ws.cell(row=row_idx, column=col_idx, value=r[key]).font = row_font

    for col_idx in range(1, len(EXPORT_COLUMNS) + 1):
        col_letter = get_column_letter(col_idx)
        max_len = max(
            len(str(ws.cell(row=r, column=col_idx).value or ""))
            for r in range(1, len(rows) + 2)
        )
        ws.column_dimensions[col_letter].width = min(max_len + 4, 45)

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf
