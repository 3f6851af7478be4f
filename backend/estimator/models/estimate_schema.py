from datetime import date
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from estimator.config import DEFAULT_PRELIMS_PERCENT


class RateEntryOut(BaseModel):
    key: str
    category: str
    description: str
    rate: float
    unit: str
    source: str = ""


class CatalogueOut(BaseModel):
    entries: List[RateEntryOut]
    categories: List[str]


class LineItemIn(BaseModel):
    """
    One priced line. Quantity and rate are not range-checked: negative
    values are passed through to the calculator as-is.
    """
    description: str = ""
    quantity: float = 1.0
    unit: str = "item"
    rate: float = 0.0


class LineItemOut(LineItemIn):
    total: float


class EstimateRequest(BaseModel):
    items: List[LineItemIn] = Field(default_factory=list)
    prelims_percent: float = Field(DEFAULT_PRELIMS_PERCENT, description="Prelims as % of main contract value")


class EstimateSummaryOut(BaseModel):
    items: List[LineItemOut]
    main_contract_total: float
    prelims_percent: float
    prelims_value: float
    subtotal_ex_vat: float
    vat: float
    grand_total: float


class ExportRequest(EstimateRequest):
    doc_type: Literal["quotation", "invoice"] = "quotation"
    client_name: str = ""
    project_title: str = ""
    reference: str = ""
    document_date: Optional[date] = None
    # Invoice only
    invoice_number: Optional[str] = None
    po_number: Optional[str] = None


class DocumentTermsOut(BaseModel):
    doc_type: Literal["quotation", "invoice"]
    payment_terms: str
    bank_details: Optional[str] = None
    footer_lines: List[str]


class CataloguePick(BaseModel):
    """A rate card entry chosen by (category, key). Quantity is form text or a number."""
    category: str
    key: str
    quantity: Union[float, str] = 1


class CustomLine(BaseModel):
    description: str = "Custom item"
    quantity: Union[float, str] = 1
    rate: Union[float, str] = 0


class DraftRequest(BaseModel):
    client_name: str = ""
    project_title: str = ""
    reference: str = ""
    prelims_percent: Union[float, str] = DEFAULT_PRELIMS_PERCENT
    picks: List[CataloguePick] = Field(default_factory=list)
    custom_items: List[CustomLine] = Field(default_factory=list)


class DraftLineOut(LineItemOut):
    id: int


class DraftSummaryOut(EstimateSummaryOut):
    client_name: str
    project_title: str
    reference: str
    items: List[DraftLineOut]
    # £-formatted totals for display
    formatted: Dict[str, str]
