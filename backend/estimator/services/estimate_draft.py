"""
EstimateDraft — the caller-owned, editable list of line items.

The draft holds the only mutable state in an estimate session; totals are
always derived by handing the items to the pure calculate_estimate().
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List

from estimator.config import DEFAULT_PRELIMS_PERCENT
from estimator.services.estimate_engine import EstimateSummary, LineItem, calculate_estimate
from estimator.services.rate_catalogue import RateEntry

EDITABLE_FIELDS = ("description", "quantity", "rate")


@dataclass
class DraftLineItem(LineItem):
    id: int = 0


# Leading decimal number, optionally signed and with an exponent ("5 m" -> 5)
_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _parse_number(value: Any) -> float:
    """
    Form-field semantics: read the leading number of the text, so
    ``"12abc"`` is 12; blank or non-numeric input (and NaN) becomes 0.
    """
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_NUMBER.match("" if value is None else str(value))
        if not match:
            return 0.0
        number = float(match.group(1))
    return number if number == number else 0.0


@dataclass
class EstimateDraft:
    client_name: str = ""
    project_title: str = ""
    reference: str = ""
    prelims_percent: float = DEFAULT_PRELIMS_PERCENT
    items: List[DraftLineItem] = field(default_factory=list)
    _next_id: int = field(default=1, repr=False)

    def _append(self, description: str, unit: str, rate: float) -> DraftLineItem:
        item = DraftLineItem(
            description=description, quantity=1, unit=unit, rate=rate, id=self._next_id,
        )
        self._next_id += 1
        self.items.append(item)
        return item

    def add_rate_entry(self, entry: RateEntry) -> DraftLineItem:
        """Add one unit of a catalogue rate."""
        return self._append(entry.description, entry.unit, entry.rate)

    def add_custom_item(self) -> DraftLineItem:
        return self._append("Custom item", "item", 0.0)

    def get_item(self, item_id: int) -> DraftLineItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise KeyError(f"No line item with id {item_id}")

    def update_item(self, item_id: int, field_name: str, value: Any) -> DraftLineItem:
        """
        Edit one field of a line item in place.

        ``description`` takes the value as text; ``quantity`` and ``rate``
        are parsed as numbers, falling back to 0.
        """
        if field_name not in EDITABLE_FIELDS:
            raise ValueError(f"Field '{field_name}' is not editable (allowed: {', '.join(EDITABLE_FIELDS)})")
        item = self.get_item(item_id)
        if field_name == "description":
            item.description = "" if value is None else str(value)
        else:
            setattr(item, field_name, _parse_number(value))
        return item

    def remove_item(self, item_id: int) -> None:
        self.items = [i for i in self.items if i.id != item_id]

    def set_prelims_percent(self, value: Any) -> None:
        self.prelims_percent = _parse_number(value)

    def summary(self) -> EstimateSummary:
        return calculate_estimate(self.items, self.prelims_percent)
