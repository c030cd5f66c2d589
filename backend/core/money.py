# core/money.py
"""
Money and date helpers shared by queries and mutation actions.

Invoices store integer cents, expenses and budgets store decimal units.
`format_currency` always receives cents; decimal amounts go through
`dollars_to_cents` first.
"""
from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[int, float, str, Decimal]

_CENT = Decimal("0.01")

def to_decimal(value: Optional[Number]) -> Decimal:
    """NULL aggregates and missing values count as zero."""
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))

def dollars_to_cents(amount: Optional[Number]) -> int:
    return int((to_decimal(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))

def cents_to_dollars(cents: Optional[Number]) -> Decimal:
    return (to_decimal(cents) / 100).quantize(_CENT, rounding=ROUND_HALF_UP)

def format_currency(cents: Optional[Number]) -> str:
    """4250 -> '$42.50', -150 -> '-$1.50'."""
    dollars = cents_to_dollars(cents)
    sign = "-" if dollars < 0 else ""
    return f"{sign}${abs(dollars):,.2f}"

def format_date(value: Optional[Union[date, datetime, str]]) -> str:
    """2024-01-15 -> 'Jan 15, 2024'."""
    if value is None:
        return ""
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    return f"{value:%b} {value.day}, {value.year}"

def format_date_for_input(value: Optional[Union[date, datetime, str]]) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        # re-rendered form: show what was posted
        return value
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()
