"""
Business configuration — single source of truth for tax, prelims and
document terms.

Import from here in services and routes rather than hardcoding values.
"""
from __future__ import annotations

import os

# ── Tax & prelims ─────────────────────────────────────────────────────────────

# UK standard-rate VAT, applied to the subtotal (main contract + prelims)
VAT_RATE: float = 0.20

# Prelims as % of main contract value; rate card history puts it at 6-11 %
DEFAULT_PRELIMS_PERCENT: float = 8.0


# ── Document terms ─────────────────────────────────────────────────────────────

QUOTE_VALIDITY_DAYS: int = 30
PAYMENT_TERMS_DAYS: int = 14
DEFECTS_LIABILITY_MONTHS: int = 6

DEFAULT_PAYMENT_TERMS: str = "14 days from invoice"
DEFAULT_BANK_DETAILS: str = "Sort Code: XX-XX-XX | Account: XXXXXXXX"

COMPANY_FOOTER: str = "Construct FM Ltd · Havant, Hampshire · constructfm.co.uk"

CURRENCY_SYMBOL: str = "£"


# ── Runtime (env) ──────────────────────────────────────────────────────────────

APP_VERSION: str = "1.0.0"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON: bool = os.getenv("LOG_FORMAT", "json").lower() != "text"
