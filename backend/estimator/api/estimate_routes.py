"""
Estimate Routes — totals, drafts and document export.

POST /api/estimates/calculate     — line items + prelims % → summary
POST /api/estimates/draft         — rate card picks + custom lines → priced draft
POST /api/estimates/export        — quotation / invoice .xlsx download
GET  /api/estimates/terms/{type}  — payment terms + footer lines for a document
"""
import logging
from typing import Literal
from urllib.parse import quote

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from estimator import config
from estimator.models.estimate_schema import (
    DocumentTermsOut,
    DraftRequest,
    DraftSummaryOut,
    EstimateRequest,
    EstimateSummaryOut,
    ExportRequest,
)
from estimator.services.estimate_draft import EstimateDraft
from estimator.services.estimate_engine import calculate_estimate, format_gbp
from estimator.services.excel_export import (
    XLSX_MEDIA_TYPE,
    ExportError,
    build_export_data,
    document_footer,
    export_filename,
    generate_invoice_number,
    workbook_bytes,
)
from estimator.services.perf_monitor import tracker
from estimator.services.rate_catalogue import find_entry, get_catalogue

router = APIRouter(prefix="/api/estimates", tags=["Estimates"])
logger = logging.getLogger("estimator-estimate-routes")

_FORMATTED_TOTALS = ("main_contract_total", "prelims_value", "subtotal_ex_vat", "vat", "grand_total")


def _content_disposition(filename: str) -> str:
    """Attachment header; RFC 5987 form when the name is not plain ASCII."""
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


@router.post("/calculate", response_model=EstimateSummaryOut)
async def calculate(body: EstimateRequest):
    """Totals are returned unrounded; round at display time."""
    summary = calculate_estimate([i.model_dump() for i in body.items], body.prelims_percent)
    tracker.record_estimate()
    return summary.to_dict()


@router.post("/draft", response_model=DraftSummaryOut)
async def price_draft(body: DraftRequest):
    """
    Build an estimate the way the form does: add rate card entries by
    (category, key), add custom lines, then apply the typed quantities and
    rates. Unknown rate card entries → 404.
    """
    draft = EstimateDraft(
        client_name=body.client_name,
        project_title=body.project_title,
        reference=body.reference,
    )
    draft.set_prelims_percent(body.prelims_percent)

    entries, _ = get_catalogue()
    for pick in body.picks:
        try:
            entry = find_entry(entries, pick.category, pick.key)
        except KeyError as e:
            raise HTTPException(status_code=404, detail=e.args[0])
        item = draft.add_rate_entry(entry)
        draft.update_item(item.id, "quantity", pick.quantity)

    for line in body.custom_items:
        item = draft.add_custom_item()
        draft.update_item(item.id, "description", line.description)
        draft.update_item(item.id, "quantity", line.quantity)
        draft.update_item(item.id, "rate", line.rate)

    summary = draft.summary()
    tracker.record_estimate()

    result = summary.to_dict()
    for out, item in zip(result["items"], summary.items):
        out["id"] = item.id
    result.update(
        client_name=draft.client_name,
        project_title=draft.project_title,
        reference=draft.reference,
        formatted={name: format_gbp(result[name]) for name in _FORMATTED_TOTALS},
    )
    return result


@router.post("/export")
async def export_estimate(body: ExportRequest):
    """Generate the quotation or invoice workbook and return it as a download."""
    summary = calculate_estimate([i.model_dump() for i in body.items], body.prelims_percent)

    invoice_number = body.invoice_number
    if body.doc_type == "invoice" and not invoice_number:
        invoice_number = generate_invoice_number()

    data = build_export_data(
        summary,
        client_name=body.client_name,
        project_title=body.project_title,
        reference=body.reference,
        date_iso=body.document_date.isoformat() if body.document_date else None,
        invoice_number=invoice_number,
        po_number=body.po_number,
    )
    filename = export_filename(data, body.doc_type)

    # built in memory; nothing is kept on disk between requests
    try:
        content = workbook_bytes(data, body.doc_type)
    except ExportError as e:
        logger.error(f"Estimate export failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": _content_disposition(filename)},
    )


@router.get("/terms/{doc_type}", response_model=DocumentTermsOut)
async def document_terms(doc_type: Literal["quotation", "invoice"]):
    return DocumentTermsOut(
        doc_type=doc_type,
        payment_terms=config.DEFAULT_PAYMENT_TERMS,
        bank_details=config.DEFAULT_BANK_DETAILS if doc_type == "invoice" else None,
        footer_lines=document_footer(doc_type),
    )
