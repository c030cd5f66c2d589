# backend/queries.py
from __future__ import annotations
import logging
import math
from calendar import monthrange
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

import psycopg2

from core.dbutils import connection, dict_cursor, parse_id
from core.money import cents_to_dollars, dollars_to_cents, format_currency, format_date, to_decimal
from models import (
    CardSummary, CustomerField, CustomerTableRow, ExpenseForm, ExpenseTableRow,
    InvoiceForm, InvoiceTableRow, LatestExpense, LatestInvoice, User,
)

log = logging.getLogger("uvicorn.error")

ITEMS_PER_PAGE = 10
LATEST_LIMIT = 5

class FetchError(Exception):
    """A read failed in the database. The message is fixed and safe to show."""

# ---------------- Helpers ----------------
def _offset(page: int) -> int:
    return (max(int(page or 1), 1) - 1) * ITEMS_PER_PAGE

def _pattern(query: Optional[str]) -> str:
    return f"%{query or ''}%"

def _pages(count: Any) -> int:
    return math.ceil(int(count or 0) / ITEMS_PER_PAGE)

def _fetch_one(q: str, params: Any = None) -> Dict[str, Any]:
    with connection() as conn:
        with dict_cursor(conn) as cur:
            cur.execute(q, params)
            return cur.fetchone() or {}

def _fetch_all(q: str, params: Any = None) -> List[Dict[str, Any]]:
    with connection() as conn:
        with dict_cursor(conn) as cur:
            cur.execute(q, params)
            return cur.fetchall()

# ---------------- Users ----------------
def get_user(email: str) -> Optional[User]:
    try:
        row = _fetch_one(
            "SELECT id, name, email, password, created_at FROM users WHERE email = %s;",
            (email,),
        )
    except psycopg2.Error as e:
        log.exception("Database Error")
        raise FetchError("Failed to fetch user.") from e
    return User(**row) if row else None

# ---------------- Invoices ----------------
_INVOICE_FILTER = """
    customers.name ILIKE %(pattern)s OR
    customers.email ILIKE %(pattern)s OR
    invoices.amount_cents::text ILIKE %(pattern)s OR
    invoices.date::text ILIKE %(pattern)s OR
    invoices.status ILIKE %(pattern)s
"""

def list_invoices(query: str = "", page: int = 1) -> List[InvoiceTableRow]:
    try:
        rows = _fetch_all(
            f"""
            SELECT
              invoices.id, invoices.customer_id, invoices.amount_cents,
              invoices.date, invoices.status,
              customers.name, customers.email, customers.image_url
            FROM invoices
            JOIN customers ON invoices.customer_id = customers.id
            WHERE {_INVOICE_FILTER}
            ORDER BY invoices.date DESC, invoices.id DESC
            LIMIT %(limit)s OFFSET %(offset)s;
            """,
            {"pattern": _pattern(query), "limit": ITEMS_PER_PAGE, "offset": _offset(page)},
        )
    except psycopg2.Error as e:
        log.exception("Database Error")
        raise FetchError("Failed to fetch invoices.") from e
    return [
        InvoiceTableRow(
            id=r["id"], customer_id=r["customer_id"],
            name=r["name"], email=r["email"], image_url=r["image_url"],
            amount=format_currency(r["amount_cents"]),
            date=format_date(r["date"]),
            status=r["status"],
        )
        for r in rows
    ]

def count_invoice_pages(query: str = "") -> int:
    try:
        row = _fetch_one(
            f"""
            SELECT COUNT(*) AS count
            FROM invoices
            JOIN customers ON invoices.customer_id = customers.id
            WHERE {_INVOICE_FILTER};
            """,
            {"pattern": _pattern(query)},
        )
    except psycopg2.Error as e:
        log.exception("Database Error")
        raise FetchError("Failed to fetch total number of invoices.") from e
    return _pages(row.get("count"))

def fetch_invoice_by_id(id: str) -> Optional[InvoiceForm]:
    """None when no invoice has this id; FetchError when the read itself fails."""
    invoice_id = parse_id(id)
    if invoice_id is None:
        return None
    try:
        row = _fetch_one(
            "SELECT id, customer_id, amount_cents, status FROM invoices WHERE id = %s;",
            (invoice_id,),
        )
    except psycopg2.Error as e:
        log.exception("Database Error")
        raise FetchError("Failed to fetch invoice.") from e
    if not row:
        return None
    return InvoiceForm(
        id=row["id"], customer_id=row["customer_id"],
        amount=cents_to_dollars(row["amount_cents"]),
        status=row["status"],
    )

def fetch_latest_invoices() -> List[LatestInvoice]:
    try:
        rows = _fetch_all(
            """
            SELECT invoices.id, invoices.amount_cents,
                   customers.name, customers.image_url, customers.email
            FROM invoices
            JOIN customers ON invoices.customer_id = customers.id
            ORDER BY invoices.date DESC
            LIMIT %s;
            """,
            (LATEST_LIMIT,),
        )
    except psycopg2.Error as e:
        log.exception("Database Error")
        raise FetchError("Failed to fetch the latest invoices.") from e
    return [
        LatestInvoice(
            id=r["id"], name=r["name"], email=r["email"], image_url=r["image_url"],
            amount=format_currency(r["amount_cents"]),
        )
        for r in rows
    ]

# ---------------- Expenses ----------------
_EXPENSE_FILTER = """
    expenses.user_id = %(user_id)s AND (
      expenses.amount::text ILIKE %(pattern)s OR
      expenses.spent_date::text ILIKE %(pattern)s OR
      expenses.description ILIKE %(pattern)s
    )
"""

def _expense_amount(amount: Any) -> str:
    # decimal units in storage, cents for display
    return format_currency(dollars_to_cents(amount))

def list_expenses(user_id: str, query: str = "", page: int = 1) -> List[ExpenseTableRow]:
    try:
        rows = _fetch_all(
            f"""
            SELECT
              expenses.id, expenses.amount, expenses.spent_date,
              expenses.description, expenses.updated_at
            FROM expenses
            WHERE {_EXPENSE_FILTER}
            ORDER BY expenses.updated_at DESC, expenses.id DESC
            LIMIT %(limit)s OFFSET %(offset)s;
            """,
            {
                "user_id": user_id, "pattern": _pattern(query),
                "limit": ITEMS_PER_PAGE, "offset": _offset(page),
            },
        )
    except psycopg2.Error as e:
        log.exception("Database Error")
        raise FetchError("Failed to fetch expenses.") from e
    return [
        ExpenseTableRow(
            id=r["id"],
            amount=_expense_amount(r["amount"]),
            spent_date=format_date(r["spent_date"]),
            description=r["description"],
            updated_at=r["updated_at"],
        )
        for r in rows
    ]

def count_expense_pages(user_id: str, query: str = "") -> int:
    try:
        row = _fetch_one(
            f"SELECT COUNT(*) AS count FROM expenses WHERE {_EXPENSE_FILTER};",
            {"user_id": user_id, "pattern": _pattern(query)},
        )
    except psycopg2.Error as e:
        log.exception("Database Error")
        raise FetchError("Failed to fetch total number of expenses.") from e
    return _pages(row.get("count"))

def fetch_expense_by_id(user_id: str, id: str) -> Optional[ExpenseForm]:
    """Only finds expenses owned by `user_id`."""
    expense_id = parse_id(id)
    if expense_id is None:
        return None
    try:
        row = _fetch_one(
            """
            SELECT id, user_id, amount, description, spent_date
            FROM expenses
            WHERE id = %s AND user_id = %s;
            """,
            (expense_id, user_id),
        )
    except psycopg2.Error as e:
        log.exception("Database Error")
        raise FetchError("Failed to fetch expense.") from e
    return ExpenseForm(**row) if row else None

def fetch_latest_expenses(user_id: str) -> List[LatestExpense]:
    try:
        rows = _fetch_all(
            """
            SELECT id, amount, description, spent_date
            FROM expenses
            WHERE user_id = %s
            ORDER BY spent_date DESC, updated_at DESC
            LIMIT %s;
            """,
            (user_id, LATEST_LIMIT),
        )
    except psycopg2.Error as e:
        log.exception("Database Error")
        raise FetchError("Failed to fetch the latest expenses.") from e
    return [
        LatestExpense(
            id=r["id"],
            amount=_expense_amount(r["amount"]),
            description=r["description"],
            spent_date=format_date(r["spent_date"]),
        )
        for r in rows
    ]

# ---------------- Customers ----------------
def fetch_customers() -> List[CustomerField]:
    try:
        rows = _fetch_all("SELECT id, name FROM customers ORDER BY name ASC;")
    except psycopg2.Error as e:
        log.exception("Database Error")
        raise FetchError("Failed to fetch all customers.") from e
    return [CustomerField(**r) for r in rows]

def fetch_filtered_customers(query: str = "") -> List[CustomerTableRow]:
    try:
        rows = _fetch_all(
            """
            SELECT
              customers.id, customers.name, customers.email, customers.image_url,
              COUNT(invoices.id) AS total_invoices,
              SUM(CASE WHEN invoices.status = 'pending' THEN invoices.amount_cents ELSE 0 END) AS total_pending,
              SUM(CASE WHEN invoices.status = 'paid' THEN invoices.amount_cents ELSE 0 END) AS total_paid
            FROM customers
            LEFT JOIN invoices ON customers.id = invoices.customer_id
            WHERE customers.name ILIKE %(pattern)s OR customers.email ILIKE %(pattern)s
            GROUP BY customers.id, customers.name, customers.email, customers.image_url
            ORDER BY customers.name ASC;
            """,
            {"pattern": _pattern(query)},
        )
    except psycopg2.Error as e:
        log.exception("Database Error")
        raise FetchError("Failed to fetch customer table.") from e
    return [
        CustomerTableRow(
            id=r["id"], name=r["name"], email=r["email"], image_url=r["image_url"],
            total_invoices=int(r["total_invoices"] or 0),
            total_pending=format_currency(r["total_pending"]),
            total_paid=format_currency(r["total_paid"]),
        )
        for r in rows
    ]

# ---------------- Dashboard cards ----------------
def fetch_card_summary(user_id: str, today: Optional[date] = None) -> CardSummary:
    """
    Runs the independent aggregates in parallel, each on its own connection,
    and waits for all of them; any failure fails the whole summary.
    Aggregates over no rows come back NULL and count as zero.
    """
    today = today or date.today()
    days_in_month = monthrange(today.year, today.month)[1]
    month_start = today.replace(day=1)
    next_month = month_start + timedelta(days=days_in_month)

    aggregates = [
        ("SELECT COUNT(*) AS count FROM invoices;", None),
        ("SELECT COUNT(*) AS count FROM customers;", None),
        (
            """
            SELECT
              SUM(CASE WHEN status = 'paid' THEN amount_cents ELSE 0 END) AS paid,
              SUM(CASE WHEN status = 'pending' THEN amount_cents ELSE 0 END) AS pending
            FROM invoices;
            """,
            None,
        ),
        (
            """
            SELECT COUNT(*) AS count, SUM(amount) AS expenses_amt
            FROM expenses
            WHERE user_id = %s AND spent_date >= %s AND spent_date < %s;
            """,
            (user_id, month_start, next_month),
        ),
        (
            """
            SELECT amount
            FROM monthly_budgets
            WHERE user_id = %s
            ORDER BY created_at DESC
            LIMIT 1;
            """,
            (user_id,),
        ),
    ]

    try:
        with ThreadPoolExecutor(max_workers=len(aggregates)) as pool:
            futures = [pool.submit(_fetch_one, q, params) for q, params in aggregates]
            invoices, customers, status, month, budget = [f.result() for f in futures]
    except psycopg2.Error as e:
        log.exception("Database Error")
        raise FetchError("Failed to fetch card data.") from e

    expenses_amt = to_decimal(month.get("expenses_amt"))
    budget_amt = to_decimal(budget.get("amount"))
    daily = (budget_amt / days_in_month).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    accumulated = budget_amt / days_in_month * today.day

    return CardSummary(
        number_of_invoices=int(invoices.get("count") or 0),
        number_of_customers=int(customers.get("count") or 0),
        total_paid_invoices=format_currency(status.get("paid")),
        total_pending_invoices=format_currency(status.get("pending")),
        number_of_expenses=int(month.get("count") or 0),
        total_expenses=_expense_amount(expenses_amt),
        expense_daily=_expense_amount(daily),
        monthly_left=_expense_amount(accumulated - expenses_amt),
    )
