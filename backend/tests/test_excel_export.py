"""
test_excel_export.py — Unit tests for the quotation / invoice workbook export.

Tests cover:
  - build_export_data projection (totals, apportioned prelims)
  - Quote Letter cell map: header cells, quotation vs invoice, line blocks,
    blank slot clearing, prelim slot overflow
  - BUILDING WORKS cell map
  - Workbook writing to a stream and to a path; invalid dates
  - File naming, invoice numbers, document footers
"""

import io
import zipfile
from datetime import date, datetime

import pytest

from estimator.services.estimate_engine import LineItem, calculate_estimate
from estimator.services.excel_export import (
    BUILDING_MONEY_COLUMNS,
    MAIN_SLOTS,
    PRELIM_SLOTS,
    QUOTE_MONEY_COLUMNS,
    ExportError,
    build_export_data,
    building_works_cells,
    cell_style,
    document_footer,
    export_filename,
    generate_invoice_number,
    quote_letter_cells,
    workbook_bytes,
    write_estimate_workbook,
)
from estimator.services.perf_monitor import tracker


@pytest.fixture
def export_data(example_summary):
    return build_export_data(
        example_summary,
        client_name="Landau Marine",
        project_title="Office Refurbishment",
        reference="CQ-010200",
        date_iso="2025-03-14",
    )


# ===========================================================================
# Class 1: Export projection
# ===========================================================================

class TestBuildExportData:

    def test_totals_copied_from_summary(self, export_data, example_summary):
        assert export_data.main_contract_total == example_summary.main_contract_total
        assert export_data.prelims_total == example_summary.prelims_value
        assert export_data.subtotal_ex_vat == example_summary.subtotal_ex_vat
        assert export_data.vat == example_summary.vat
        assert export_data.grand_total == example_summary.grand_total

    def test_main_items_carry_totals(self, export_data):
        assert [i.description for i in export_data.main_items] == [
            "Metal stud partition", "Standard flush door",
        ]
        assert abs(export_data.main_items[0].total - 213.02) < 1e-6

    def test_prelims_apportioned_by_default(self, export_data):
        assert len(export_data.prelims_items) == 5
        assert abs(sum(i.total for i in export_data.prelims_items) - export_data.prelims_total) < 1e-6

    def test_explicit_prelims_items(self, example_summary):
        prelims = [LineItem("Scaffold hire", 2, "wk", 40.0, 80.0)]
        data = build_export_data(example_summary, prelims_items=prelims, date_iso="2025-03-14")
        assert len(data.prelims_items) == 1
        assert data.prelims_items[0].total == 80.0

    def test_date_defaults_to_today(self, example_summary):
        data = build_export_data(example_summary)
        assert data.date == date.today().isoformat()


# ===========================================================================
# Class 2: Quote Letter sheet
# ===========================================================================

class TestQuoteLetterCells:

    def test_quotation_header(self, export_data):
        cells = quote_letter_cells(export_data, "quotation")
        assert cells["B1"] == "QUOTATION"
        assert cells["B3"] == "Office Refurbishment"
        assert cells["B6"] == "Landau Marine"
        assert cells["B13"] == date(2025, 3, 14)
        assert cells["E13"] == "CQ-010200"
        assert cells["B16"] == "Office Refurbishment"
        assert "E12" not in cells

    def test_invoice_header(self, export_data):
        export_data.invoice_number = "INV-123456"
        export_data.po_number = "PO-77"
        cells = quote_letter_cells(export_data, "invoice")
        assert cells["B1"] == "INVOICE"
        assert cells["E13"] == "INV-123456"
        assert cells["E12"] == "PO-77"

    def test_invoice_without_po_leaves_e12_alone(self, export_data):
        cells = quote_letter_cells(export_data, "invoice")
        assert "E12" not in cells
        assert cells["E13"] == ""

    def test_defaults_for_blank_project_details(self, example_summary):
        data = build_export_data(example_summary, date_iso="2025-03-14")
        cells = quote_letter_cells(data, "quotation")
        assert cells["B3"] == "WORKS"
        assert cells["B6"] == "Client"
        assert cells["B16"] == "Description of Works"

    def test_section_totals(self, export_data):
        cells = quote_letter_cells(export_data, "quotation")
        assert cells["F27"] == export_data.prelims_total
        assert cells["F41"] == export_data.main_contract_total

    def test_main_block_rows(self, export_data):
        cells = quote_letter_cells(export_data, "quotation")
        assert cells["B45"] == "Metal stud partition"
        assert cells["C45"] == 2
        assert cells["D45"] == "m²"
        assert cells["E45"] == 106.51
        assert abs(cells["F45"] - 213.02) < 1e-6
        assert cells["B46"] == "Standard flush door"

    def test_prelim_block_rows(self, export_data):
        cells = quote_letter_cells(export_data, "quotation")
        assert cells["B30"] == "Site management & supervision"
        assert cells["C30"] == 1
        assert cells["D30"] == "item"

    def test_unused_slots_blank_in_both_blocks(self, export_data):
        cells = quote_letter_cells(export_data, "quotation")
        last_prelim_row = 30 + PRELIM_SLOTS - 1
        last_main_row = 45 + MAIN_SLOTS - 1
        for col in "BCDEF":
            assert cells[f"{col}35"] == ""
            assert cells[f"{col}{last_prelim_row}"] == ""
            assert cells[f"{col}47"] == ""
            assert cells[f"{col}{last_main_row}"] == ""
        assert f"B{last_main_row + 1}" not in cells

    def test_main_items_past_reserved_slots(self):
        items = [LineItem(f"Item {n}", 1, "item", 10.0) for n in range(MAIN_SLOTS + 5)]
        data = build_export_data(calculate_estimate(items, 8), date_iso="2025-03-14")
        cells = quote_letter_cells(data, "quotation")
        assert cells[f"B{45 + MAIN_SLOTS + 4}"] == f"Item {MAIN_SLOTS + 4}"

    def test_too_many_prelim_items(self, example_summary):
        prelims = [LineItem(f"Prelim {n}", 1, "item", 1.0, 1.0) for n in range(PRELIM_SLOTS + 1)]
        data = build_export_data(example_summary, prelims_items=prelims, date_iso="2025-03-14")
        with pytest.raises(ExportError, match="prelim"):
            quote_letter_cells(data, "quotation")

    def test_invalid_date(self, export_data):
        export_data.date = "14/03/2025"
        with pytest.raises(ExportError, match="date"):
            quote_letter_cells(export_data, "quotation")


# ===========================================================================
# Class 3: BUILDING WORKS sheet
# ===========================================================================

class TestBuildingWorksCells:

    def test_header_and_rows(self, export_data):
        cells = building_works_cells(export_data)
        assert cells["D2"] == "Landau Marine"
        assert cells["D3"] == date(2025, 3, 14)
        assert cells["D11"] == "Site management & supervision"
        assert cells["F11"] == 1
        assert cells["G11"] == "item"
        assert cells["D27"] == "Metal stud partition"
        assert cells["F27"] == 2
        assert cells["G27"] == "m²"
        assert cells["H27"] == 106.51

    def test_no_rate_column_for_prelims(self, export_data):
        cells = building_works_cells(export_data)
        assert "H11" not in cells

    def test_building_quantity_not_money_formatted(self, export_data):
        """BUILDING WORKS F is a quantity; only H (rate) is money."""
        cells = building_works_cells(export_data)
        assert cell_style("F27", cells["F27"], BUILDING_MONEY_COLUMNS) == "normal"
        assert cell_style("H27", cells["H27"], BUILDING_MONEY_COLUMNS) == "money"

    def test_quote_letter_money_columns(self, export_data):
        cells = quote_letter_cells(export_data, "quotation")
        assert cell_style("C45", cells["C45"], QUOTE_MONEY_COLUMNS) == "normal"
        assert cell_style("E45", cells["E45"], QUOTE_MONEY_COLUMNS) == "money"
        assert cell_style("F41", cells["F41"], QUOTE_MONEY_COLUMNS) == "money"
        assert cell_style("B13", cells["B13"], QUOTE_MONEY_COLUMNS) == "date"
        assert cell_style("B50", cells["B50"], QUOTE_MONEY_COLUMNS) == "blank"


# ===========================================================================
# Class 4: Workbook output
# ===========================================================================

class TestWriteWorkbook:

    def test_in_memory_workbook_is_xlsx(self, export_data):
        content = workbook_bytes(export_data, "quotation")
        assert content[:2] == b"PK"
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            names = zf.namelist()
            workbook_xml = zf.read("xl/workbook.xml").decode("utf-8")
        assert "xl/worksheets/sheet1.xml" in names
        assert "xl/worksheets/sheet2.xml" in names
        assert 'name="Quote Letter "' in workbook_xml
        assert 'name="BUILDING WORKS"' in workbook_xml

    def test_write_to_path(self, export_data, tmp_path):
        path = tmp_path / "quote.xlsx"
        write_estimate_workbook(export_data, "invoice", str(path))
        assert path.exists()
        assert path.stat().st_size > 0

    def test_failures_counted_and_raised(self, export_data):
        tracker.reset()
        export_data.date = "not-a-date"
        with pytest.raises(ExportError):
            workbook_bytes(export_data, "quotation")
        assert tracker.get_metrics()["export_errors"] == 1
        tracker.reset()

    def test_successful_export_counted(self, export_data):
        tracker.reset()
        workbook_bytes(export_data, "quotation")
        metrics = tracker.get_metrics()
        assert metrics["exports_written"] == 1
        assert metrics["avg_export_duration_ms"] >= 0
        tracker.reset()


# ===========================================================================
# Class 5: Naming & document text
# ===========================================================================

class TestNaming:

    def test_quotation_filename_uses_reference(self, export_data):
        assert export_filename(export_data, "quotation") == "QUO_Landau_Marine_CQ-010200.xlsx"

    def test_invoice_filename_uses_invoice_number(self, export_data):
        export_data.invoice_number = "INV-654321"
        assert export_filename(export_data, "invoice") == "INV_Landau_Marine_INV-654321.xlsx"

    def test_filename_falls_back_to_date(self, example_summary):
        data = build_export_data(example_summary, date_iso="2025-03-14")
        assert export_filename(data, "quotation") == "QUO_client_20250314.xlsx"

    def test_client_slug_truncated_to_20(self, export_data):
        export_data.client_name = "Longleat   Enterprises Limited"
        name = export_filename(export_data, "quotation")
        assert name == "QUO_Longleat_Enterprises_CQ-010200.xlsx"

    def test_filename_has_no_path_separators(self, export_data):
        export_data.reference = "CQ/010/200"
        assert "/" not in export_filename(export_data, "quotation")

    def test_invoice_number(self):
        now = datetime.fromtimestamp(1741953600.123)
        number = generate_invoice_number(now)
        assert number.startswith("INV-")
        assert len(number) == 10
        assert number == "INV-" + str(int(now.timestamp() * 1000))[-6:]

    def test_footer_lines(self):
        quote = document_footer("quotation")
        invoice = document_footer("invoice")
        assert "valid for 30 days" in quote[0]
        assert "14 days from invoice" in quote[1]
        assert "due date" in invoice[0]
        assert quote[-1] == invoice[-1]
