# backend/models.py
"""Display-ready records returned by the query functions."""
from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

class User(BaseModel):
    id: str
    name: str
    email: str
    password: str  # bcrypt hash, never rendered
    created_at: Optional[datetime] = None

# -------- Customers --------
class CustomerField(BaseModel):
    id: str
    name: str

class CustomerTableRow(BaseModel):
    id: str
    name: str
    email: str
    image_url: str
    total_invoices: int
    total_pending: str
    total_paid: str

# -------- Invoices --------
class InvoiceTableRow(BaseModel):
    id: str
    customer_id: str
    name: str
    email: str
    image_url: str
    amount: str
    date: str
    status: str

class InvoiceForm(BaseModel):
    id: str
    customer_id: str
    amount: Decimal  # dollars
    status: str

class LatestInvoice(BaseModel):
    id: str
    name: str
    email: str
    image_url: str
    amount: str

# -------- Expenses --------
class ExpenseTableRow(BaseModel):
    id: str
    amount: str
    spent_date: str
    description: Optional[str] = None
    updated_at: Optional[datetime] = None

class ExpenseForm(BaseModel):
    id: str
    user_id: str
    amount: Decimal
    description: Optional[str] = None
    spent_date: date

class LatestExpense(BaseModel):
    id: str
    amount: str
    description: Optional[str] = None
    spent_date: str

# -------- Dashboard --------
class CardSummary(BaseModel):
    number_of_invoices: int = 0
    number_of_customers: int = 0
    total_paid_invoices: str = "$0.00"
    total_pending_invoices: str = "$0.00"
    number_of_expenses: int = 0
    total_expenses: str = "$0.00"
    expense_daily: str = "$0.00"
    monthly_left: str = "$0.00"
