# backend/crud.py
"""
Mutation actions: the only place the dashboard writes.

Every action follows the same steps. It validates the raw form. It runs one
parameterized statement. It notifies the post-write hooks. It returns an
`ActionState`. A state with `redirect_to` set means success. Otherwise the
state carries field errors and/or a fixed message for the form to show.
"""
from __future__ import annotations
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Mapping, Optional

import psycopg2
from pydantic import BaseModel, Field

import session
from core import hooks
from core.dbutils import connection, dict_cursor, parse_id
from core.money import dollars_to_cents
from core.security import AuthError, CredentialsError, get_password_hash
from schemas import ExpenseIn, FieldErrors, InvoiceIn, SignUpIn, validate

log = logging.getLogger("uvicorn.error")

DASHBOARD_PATH = "/dashboard"
INVOICES_PATH = "/dashboard/invoices"
EXPENSES_PATH = "/dashboard/expenses"

class ActionState(BaseModel):
    errors: FieldErrors = Field(default_factory=dict)
    message: Optional[str] = None
    redirect_to: Optional[str] = None
    session_token: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.redirect_to is not None

# --------- Helpers ---------
def _write(q: str, params: Any) -> Optional[Dict[str, Any]]:
    """Runs a single `... RETURNING id` statement; None when no row was touched."""
    with connection() as conn:
        with dict_cursor(conn) as cur:
            cur.execute(q, params)
            return cur.fetchone()

def _invalid(errors: FieldErrors, message: str) -> ActionState:
    return ActionState(errors=errors, message=message)

def _failed(message: str) -> ActionState:
    log.exception(message)
    return ActionState(message=message)

def _committed(entity: str, row: Optional[Dict[str, Any]], path: str) -> ActionState:
    hooks.mutation_committed(entity, str(row["id"]) if row else None)
    return ActionState(redirect_to=path)

def _now() -> datetime:
    return datetime.now(timezone.utc)

# --------- Invoices ---------
def create_invoice(form: Mapping[str, Any]) -> ActionState:
    result = validate("invoice", form)
    if not result.success:
        return _invalid(result.errors, "Missing Fields. Failed to Create Invoice.")
    invoice: InvoiceIn = result.data

    try:
        row = _write(
            """
            INSERT INTO invoices (customer_id, amount_cents, status, date)
            VALUES (%s, %s, %s, %s)
            RETURNING id;
            """,
            (invoice.customer_id, dollars_to_cents(invoice.amount), invoice.status, date.today()),
        )
    except psycopg2.Error:
        return _failed("Database Error: Failed to Create Invoice.")
    return _committed("invoice", row, INVOICES_PATH)

def update_invoice(id: str, form: Mapping[str, Any]) -> ActionState:
    result = validate("invoice", form)
    if not result.success:
        return _invalid(result.errors, "Missing Fields. Failed to Update Invoice.")
    invoice: InvoiceIn = result.data

    invoice_id = parse_id(id)
    if invoice_id is None:
        return ActionState(message="Database Error: Failed to Update Invoice.")
    try:
        row = _write(
            """
            UPDATE invoices
            SET customer_id = %s, amount_cents = %s, status = %s
            WHERE id = %s
            RETURNING id;
            """,
            (invoice.customer_id, dollars_to_cents(invoice.amount), invoice.status, invoice_id),
        )
    except psycopg2.Error:
        return _failed("Database Error: Failed to Update Invoice.")
    return _committed("invoice", row, INVOICES_PATH)

def delete_invoice(id: str) -> ActionState:
    """Deleting an id that does not exist is a no-op that still succeeds."""
    invoice_id = parse_id(id)
    if invoice_id is None:
        return ActionState(redirect_to=INVOICES_PATH)
    try:
        row = _write("DELETE FROM invoices WHERE id = %s RETURNING id;", (invoice_id,))
    except psycopg2.Error:
        return _failed("Database Error: Failed to Delete Invoice.")
    return _committed("invoice", row, INVOICES_PATH)

# --------- Expenses ---------
def create_expense(user_id: str, form: Mapping[str, Any]) -> ActionState:
    result = validate("expense", form)
    if not result.success:
        return _invalid(result.errors, "Missing Fields. Failed to Create Expense.")
    expense: ExpenseIn = result.data

    now = _now()
    try:
        row = _write(
            """
            INSERT INTO expenses (user_id, amount, description, spent_date, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING id;
            """,
            (user_id, expense.amount, expense.description, expense.spent_date, now, now),
        )
    except psycopg2.Error:
        return _failed("Database Error: Failed to Create Expense.")
    return _committed("expense", row, EXPENSES_PATH)

def update_expense(user_id: str, id: str, form: Mapping[str, Any]) -> ActionState:
    result = validate("expense", form)
    if not result.success:
        return _invalid(result.errors, "Missing Fields. Failed to Update Expense.")
    expense: ExpenseIn = result.data

    expense_id = parse_id(id)
    if expense_id is None:
        return ActionState(message="Database Error: Failed to Update Expense.")
    try:
        row = _write(
            """
            UPDATE expenses
            SET amount = %s, description = %s, spent_date = %s, updated_at = %s
            WHERE id = %s AND user_id = %s
            RETURNING id;
            """,
            (expense.amount, expense.description, expense.spent_date, _now(), expense_id, user_id),
        )
    except psycopg2.Error:
        return _failed("Database Error: Failed to Update Expense.")
    return _committed("expense", row, EXPENSES_PATH)

def delete_expense(user_id: str, id: str) -> ActionState:
    expense_id = parse_id(id)
    if expense_id is None:
        return ActionState(redirect_to=EXPENSES_PATH)
    try:
        row = _write(
            "DELETE FROM expenses WHERE id = %s AND user_id = %s RETURNING id;",
            (expense_id, user_id),
        )
    except psycopg2.Error:
        return _failed("Database Error: Failed to Delete Expense.")
    return _committed("expense", row, EXPENSES_PATH)

# --------- Users / auth ---------
def sign_up(form: Mapping[str, Any]) -> ActionState:
    result = validate("signup", form)
    if not result.success:
        return _invalid(result.errors, "Missing Fields. Failed to Sign Up.")
    user: SignUpIn = result.data

    try:
        row = _write(
            "INSERT INTO users (name, email, password) VALUES (%s, %s, %s) RETURNING id;",
            (user.name, user.email, get_password_hash(user.password)),
        )
    except psycopg2.Error:
        return _failed("Database Error: Failed to Sign Up.")
    return _committed("user", row, DASHBOARD_PATH)

def authenticate(form: Mapping[str, Any]) -> ActionState:
    """Errors other than AuthError are not ours to handle and propagate."""
    try:
        token = session.sign_in(form)
    except CredentialsError:
        return ActionState(message="Invalid credentials.")
    except AuthError:
        return ActionState(message="Something went wrong.")
    hooks.mutation_committed("session")
    return ActionState(redirect_to=DASHBOARD_PATH, session_token=token)
