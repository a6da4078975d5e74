"""Rate table and estimate calculator."""

from breezeline.pricing.calculator import format_currency, parse_area, quote
from breezeline.pricing.rates import RATE_TABLE, lookup_rate, price_list

__all__ = [
    "RATE_TABLE",
    "format_currency",
    "lookup_rate",
    "parse_area",
    "price_list",
    "quote",
]
