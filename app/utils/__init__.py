"""Utility functions for the invoice dashboard."""

from .cache import INVOICE_LIST, cached, invalidate
from .numeric import format_currency, from_cents, parse_amount, to_cents

__all__ = [
    "INVOICE_LIST",
    "cached",
    "invalidate",
    "format_currency",
    "from_cents",
    "parse_amount",
    "to_cents",
]
