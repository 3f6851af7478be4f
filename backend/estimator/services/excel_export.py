"""
Excel export — quotation / invoice workbook in the company template layout.

Template structure (quotation & invoice share the same layout):

  ─── Quote Letter sheet ───
  B1:  "QUOTATION" or "INVOICE"
  B3:  Works title (project title)
  B6:  Client name
  B13: Date | E13: Quote No. / Invoice No.
  E12: PO No. (invoice only)
  B16: Description of works
  F27: Prelims value exclusive of VAT
  B30-F39: Prelim line items (description, qty, unit, rate, total) — 10 slots
  F41: Main contract works exclusive of VAT
  B45+: Main contract line items — 60 slots reserved

  ─── BUILDING WORKS sheet ───
  D2: Client | D3: Date
  D11+: Prelim items (D description, F qty, G unit)
  D27+: Main items (D description, F qty, G unit, H rate)

Cell values are written, never formulas. Unused slots in both line-item
blocks are written blank.
"""

from __future__ import annotations

import io
import logging
import re
import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, BinaryIO, Dict, FrozenSet, List, Literal, Optional, Union

import xlsxwriter

from estimator.config import (
    COMPANY_FOOTER,
    DEFECTS_LIABILITY_MONTHS,
    PAYMENT_TERMS_DAYS,
    QUOTE_VALIDITY_DAYS,
)
from estimator.services.estimate_engine import EstimateSummary, LineItem, apportion_prelims
from estimator.services.perf_monitor import tracker

logger = logging.getLogger("estimator-export")

DocType = Literal["quotation", "invoice"]

QUOTE_SHEET = "Quote Letter "
BUILDING_SHEET = "BUILDING WORKS"

PRELIM_START_ROW = 30
PRELIM_SLOTS = 10
MAIN_START_ROW = 45
MAIN_SLOTS = 60
BUILDING_PRELIM_START_ROW = 11
BUILDING_MAIN_START_ROW = 27

_LINE_COLUMNS = ("B", "C", "D", "E", "F")
# rate and total columns; BUILDING WORKS column F is a quantity
QUOTE_MONEY_COLUMNS = frozenset({"E", "F"})
BUILDING_MONEY_COLUMNS = frozenset({"H"})

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ExportError(Exception):
    """Raised when an estimate document cannot be produced."""


@dataclass
class ExportLineItem:
    description: str
    quantity: float
    unit: str
    rate: float
    total: float


@dataclass
class ExportData:
    client_name: str
    project_title: str
    reference: str
    date: str                      # ISO YYYY-MM-DD
    prelims_items: List[ExportLineItem]
    prelims_total: float
    main_items: List[ExportLineItem]
    main_contract_total: float
    subtotal_ex_vat: float
    vat: float
    grand_total: float
    invoice_number: Optional[str] = None
    po_number: Optional[str] = None


def _export_line(item: LineItem) -> ExportLineItem:
    total = item.total if item.total is not None else item.quantity * item.rate
    return ExportLineItem(
        description=item.description,
        quantity=item.quantity,
        unit=item.unit,
        rate=item.rate,
        total=total,
    )


def build_export_data(
    summary: EstimateSummary,
    *,
    client_name: str = "",
    project_title: str = "",
    reference: str = "",
    date_iso: Optional[str] = None,
    prelims_items: Optional[List[LineItem]] = None,
    invoice_number: Optional[str] = None,
    po_number: Optional[str] = None,
) -> ExportData:
    """
    Project a computed summary onto the export shape.

    When ``prelims_items`` is not given, the prelims value is apportioned
    over the standard prelim components.
    """
    prelims = prelims_items if prelims_items is not None else apportion_prelims(summary)
    return ExportData(
        client_name=client_name,
        project_title=project_title,
        reference=reference,
        date=date_iso or date.today().isoformat(),
        prelims_items=[_export_line(i) for i in prelims],
        prelims_total=summary.prelims_value,
        main_items=[_export_line(i) for i in summary.items],
        main_contract_total=summary.main_contract_total,
        subtotal_ex_vat=summary.subtotal_ex_vat,
        vat=summary.vat,
        grand_total=summary.grand_total,
        invoice_number=invoice_number,
        po_number=po_number,
    )


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError) as e:
        raise ExportError(f"Invalid document date '{value}' (expected YYYY-MM-DD)") from e


def _line_cells(cells: Dict[str, Any], row: int, item: Optional[ExportLineItem]) -> None:
    values = (
        (item.description, item.quantity, item.unit, item.rate, item.total)
        if item is not None
        else ("", "", "", "", "")
    )
    for col, value in zip(_LINE_COLUMNS, values):
        cells[f"{col}{row}"] = value


def quote_letter_cells(data: ExportData, doc_type: DocType) -> Dict[str, Any]:
    """Cell address → value for the Quote Letter sheet."""
    if len(data.prelims_items) > PRELIM_SLOTS:
        raise ExportError(
            f"Too many prelim items ({len(data.prelims_items)}); template holds {PRELIM_SLOTS}"
        )

    cells: Dict[str, Any] = {
        "B1": "INVOICE" if doc_type == "invoice" else "QUOTATION",
        "B3": data.project_title or "WORKS",
        "B6": data.client_name or "Client",
        "B13": _parse_date(data.date),
        "B16": data.project_title or "Description of Works",
        "F27": data.prelims_total,
        "F41": data.main_contract_total,
    }
    if doc_type == "invoice":
        cells["E13"] = data.invoice_number or ""
        if data.po_number:
            cells["E12"] = data.po_number
    else:
        cells["E13"] = data.reference or ""

    for i in range(PRELIM_SLOTS):
        item = data.prelims_items[i] if i < len(data.prelims_items) else None
        _line_cells(cells, PRELIM_START_ROW + i, item)

    # main items may run past the reserved slots
    for i in range(max(MAIN_SLOTS, len(data.main_items))):
        item = data.main_items[i] if i < len(data.main_items) else None
        _line_cells(cells, MAIN_START_ROW + i, item)
    return cells


def building_works_cells(data: ExportData) -> Dict[str, Any]:
    """Cell address → value for the BUILDING WORKS sheet."""
    cells: Dict[str, Any] = {
        "D2": data.client_name or "Client",
        "D3": _parse_date(data.date),
    }
    for i, item in enumerate(data.prelims_items):
        row = BUILDING_PRELIM_START_ROW + i
        cells[f"D{row}"] = item.description
        cells[f"F{row}"] = item.quantity
        cells[f"G{row}"] = item.unit
    for i, item in enumerate(data.main_items):
        row = BUILDING_MAIN_START_ROW + i
        cells[f"D{row}"] = item.description
        cells[f"F{row}"] = item.quantity
        cells[f"G{row}"] = item.unit
        cells[f"H{row}"] = item.rate
    return cells


def cell_style(address: str, value: Any, money_columns: FrozenSet[str]) -> str:
    """Which workbook format a cell gets: date, blank, money or normal."""
    column = re.match(r"[A-Z]+", address).group(0)
    if isinstance(value, date):
        return "date"
    if value == "":
        return "blank"
    if isinstance(value, (int, float)) and column in money_columns:
        return "money"
    return "normal"


def _write_cells(ws, cells: Dict[str, Any], formats: Dict[str, Any], money_columns: FrozenSet[str]) -> None:
    for address, value in cells.items():
        style = cell_style(address, value, money_columns)
        if style == "date":
            ws.write_datetime(address, value, formats["date"])
        elif style == "blank":
            ws.write_blank(address, None, formats["normal"])
        elif style == "money":
            ws.write_number(address, value, formats["money"])
        else:
            ws.write(address, value, formats["normal"])


def write_estimate_workbook(
    data: ExportData,
    doc_type: DocType,
    output: Union[str, BinaryIO],
) -> None:
    """
    Write the quotation/invoice workbook to a file path or binary stream.

    Raises ExportError if the data does not fit the template or the
    workbook cannot be written.
    """
    start = time.perf_counter()
    try:
        quote_cells = quote_letter_cells(data, doc_type)
        building_cells = building_works_cells(data)

        options = {"nan_inf_to_errors": True}
        if not isinstance(output, str):
            options["in_memory"] = True
        wb = xlsxwriter.Workbook(output, options)
        formats = {
            "normal": wb.add_format({"font_size": 10}),
            "money": wb.add_format({"num_format": "#,##0.00", "font_size": 10}),
            "date": wb.add_format({"num_format": "DD/MM/YYYY", "font_size": 10}),
        }

        ws = wb.add_worksheet(QUOTE_SHEET)
        ws.set_column("B:B", 60)
        ws.set_column("C:F", 14)
        _write_cells(ws, quote_cells, formats, QUOTE_MONEY_COLUMNS)

        ws2 = wb.add_worksheet(BUILDING_SHEET)
        ws2.set_column("D:D", 60)
        ws2.set_column("F:H", 14)
        _write_cells(ws2, building_cells, formats, BUILDING_MONEY_COLUMNS)

        wb.close()
    except ExportError:
        tracker.record_export_error()
        raise
    except Exception as e:
        tracker.record_export_error()
        logger.error(f"Estimate workbook generation failed: {e}", exc_info=True)
        raise ExportError(f"Excel generation failed: {e}") from e

    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    tracker.record_export(duration_ms)
    logger.info(
        "Estimate workbook written",
        extra={"doc_type": doc_type, "main_items": len(data.main_items), "duration_ms": duration_ms},
    )


def workbook_bytes(data: ExportData, doc_type: DocType) -> bytes:
    buffer = io.BytesIO()
    write_estimate_workbook(data, doc_type, buffer)
    return buffer.getvalue()


def export_filename(data: ExportData, doc_type: DocType) -> str:
    """{QUO|INV}_{client slug}_{reference or YYYYMMDD}.xlsx"""
    date_str = data.date.replace("-", "")
    client_slug = re.sub(r"\s+", "_", data.client_name or "client")[:20]
    prefix = "INV" if doc_type == "invoice" else "QUO"
    ref = (data.invoice_number or "") if doc_type == "invoice" else (data.reference or "")
    # file name only: no path separators
    return re.sub(r"[\\/]", "-", f"{prefix}_{client_slug}_{ref or date_str}.xlsx")


def generate_invoice_number(now: Optional[datetime] = None) -> str:
    """INV- followed by the last 6 digits of the epoch timestamp in milliseconds."""
    moment = now or datetime.now()
    millis = int(moment.timestamp() * 1000)
    return "INV-" + str(millis)[-6:]


def document_footer(doc_type: DocType) -> List[str]:
    """Standard closing lines printed under an estimate or invoice."""
    if doc_type == "invoice":
        lines = [
            "Please make payment by the due date shown above.",
            "Late payments may incur interest at 8% above the Bank of England base rate "
            "per the Late Payment of Commercial Debts Act 1998.",
        ]
    else:
        lines = [
            f"This estimate is valid for {QUOTE_VALIDITY_DAYS} days from the date above.",
            f"Payment terms: {PAYMENT_TERMS_DAYS} days from invoice. "
            f"Defects liability: {DEFECTS_LIABILITY_MONTHS} months.",
            "All prices exclusive of VAT unless stated. Subject to site survey and final specification.",
        ]
    return lines + [COMPANY_FOOTER]
