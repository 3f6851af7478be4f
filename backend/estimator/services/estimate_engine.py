"""
EstimateEngine — line items + prelims percentage → estimate summary.

Covers:
  - Line totals (quantity × rate), main contract total
  - Prelims as a percentage of main contract value
  - Subtotal ex VAT, VAT at the fixed business rate, grand total
  - Prelims apportionment across the standard prelim components
  - GBP display formatting

Pure arithmetic: no validation, no clamping, no rounding. Rounding to
currency precision happens only at display time (format_gbp).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from estimator.config import CURRENCY_SYMBOL, DEFAULT_PRELIMS_PERCENT, VAT_RATE
from estimator.services.rate_catalogue import PRELIM_COMPONENTS


@dataclass
class LineItem:
    description: str
    quantity: float
    unit: str
    rate: float
    total: Optional[float] = None


@dataclass(frozen=True)
class EstimateSummary:
    items: Tuple[LineItem, ...]
    main_contract_total: float
    prelims_percent: float
    prelims_value: float
    subtotal_ex_vat: float
    vat: float
    grand_total: float

    def to_dict(self) -> dict:
        return {
            "items": [
                {
                    "description": i.description,
                    "quantity": i.quantity,
                    "unit": i.unit,
                    "rate": i.rate,
                    "total": i.total,
                }
                for i in self.items
            ],
            "main_contract_total": self.main_contract_total,
            "prelims_percent": self.prelims_percent,
            "prelims_value": self.prelims_value,
            "subtotal_ex_vat": self.subtotal_ex_vat,
            "vat": self.vat,
            "grand_total": self.grand_total,
        }


ItemLike = Union[LineItem, Mapping[str, Any]]


def _as_line_item(item: ItemLike) -> LineItem:
    """Copy of ``item`` as a LineItem; the caller's object is never touched."""
    if isinstance(item, LineItem):
        return replace(item)
    return LineItem(
        description=item.get("description", ""),
        quantity=item.get("quantity", 0.0),
        unit=item.get("unit", ""),
        rate=item.get("rate", 0.0),
    )


def calculate_estimate(
    items: Iterable[ItemLike],
    prelims_percent: float = DEFAULT_PRELIMS_PERCENT,
) -> EstimateSummary:
    """
    Derive the full financial summary for a list of line items.

    main_contract_total = Σ quantity × rate   (input order)
    prelims_value       = main_contract_total × prelims_percent / 100
    subtotal_ex_vat     = main_contract_total + prelims_value
    vat                 = subtotal_ex_vat × VAT_RATE
    grand_total         = subtotal_ex_vat + vat

    Out-of-range percentages and negative quantities/rates are passed
    through unchanged; NaN propagates into every total.
    """
    priced: List[LineItem] = []
    main_contract_total = 0.0
    for raw in items:
        item = _as_line_item(raw)
        item.total = item.quantity * item.rate
        main_contract_total += item.total
        priced.append(item)

    prelims_value = main_contract_total * (prelims_percent / 100)
    subtotal = main_contract_total + prelims_value
    vat = subtotal * VAT_RATE
    grand_total = subtotal + vat

    return EstimateSummary(
        items=tuple(priced),
        main_contract_total=main_contract_total,
        prelims_percent=prelims_percent,
        prelims_value=prelims_value,
        subtotal_ex_vat=subtotal,
        vat=vat,
        grand_total=grand_total,
    )


def apportion_prelims(summary: EstimateSummary) -> List[LineItem]:
    """
    Split ``summary.prelims_value`` over the standard prelim components,
    weighted by each component's share of contract value.

    Each line is quantity 1, unit "item"; the lines sum to prelims_value.
    Returns an empty list when there is nothing to apportion.
    """
    if summary.prelims_value == 0:
        return []
    weight_total = sum(c["percent_of_contract"] for c in PRELIM_COMPONENTS.values())
    lines: List[LineItem] = []
    for component in PRELIM_COMPONENTS.values():
        value = summary.prelims_value * component["percent_of_contract"] / weight_total
        lines.append(LineItem(
            description=component["description"],
            quantity=1,
            unit="item",
            rate=value,
            total=value,
        ))
    return lines


def format_gbp(amount: float) -> str:
    """£1,234.56 — display rounding only."""
    if not math.isfinite(amount):
        return f"{CURRENCY_SYMBOL}{amount}"
    sign = "-" if amount < 0 and round(abs(amount), 2) != 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{abs(amount):,.2f}"
