"""Catalogue API routes — browse, filter and search the rate card."""
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Query

from estimator.models.estimate_schema import CatalogueOut, RateEntryOut
from estimator.services.rate_catalogue import LABOUR_RATES, RateEntry, filter_entries, get_catalogue

router = APIRouter(prefix="/api/catalogue", tags=["Catalogue"])
logger = logging.getLogger("estimator-catalogue-routes")


def _entry_out(e: RateEntry) -> RateEntryOut:
    return RateEntryOut(
        key=e.key,
        category=e.category,
        description=e.description,
        rate=e.rate,
        unit=e.unit,
        source=e.source,
    )


@router.get("", response_model=CatalogueOut)
async def list_catalogue():
    """Full flattened rate card plus the category filter list."""
    entries, categories = get_catalogue()
    return CatalogueOut(entries=[_entry_out(e) for e in entries], categories=categories)


@router.get("/categories", response_model=List[str])
async def list_categories():
    _, categories = get_catalogue()
    return categories


@router.get("/search", response_model=List[RateEntryOut])
async def search_catalogue(
    category: str = Query(..., description="Exact category name"),
    q: str = Query("", description="Case-insensitive description substring"),
):
    entries, categories = get_catalogue()
    if category not in categories:
        raise HTTPException(status_code=404, detail=f"Unknown category '{category}'")
    return [_entry_out(e) for e in filter_entries(entries, category, q)]


@router.get("/labour-rates")
async def list_labour_rates() -> Dict[str, Dict[str, Any]]:
    """Hourly labour rates (ex VAT). Not part of the browsable catalogue."""
    return LABOUR_RATES
