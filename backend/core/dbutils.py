# core/dbutils.py
from __future__ import annotations
import os, logging
from contextlib import contextmanager
from typing import Iterator, Optional
from uuid import UUID

import psycopg2
import psycopg2.extras
from dotenv import load_dotenv

# ------------------------------- Connection --------------------------------
load_dotenv()
os.environ.setdefault("PGCLIENTENCODING", "utf8")

DEFAULT_DBNAME = os.getenv("PGDATABASE", "pluto")
DEFAULT_USER   = os.getenv("PGUSER", "postgres")
DEFAULT_PASS   = os.getenv("PGPASSWORD", "postgres")
DEFAULT_HOST   = os.getenv("PGHOST", "localhost")
DEFAULT_PORT   = int(os.getenv("PGPORT", "5432"))

def get_conn():
    try:
        conn = psycopg2.connect(
            dbname=DEFAULT_DBNAME, user=DEFAULT_USER, password=DEFAULT_PASS,
            host=DEFAULT_HOST, port=DEFAULT_PORT, options="-c client_encoding=UTF8",
        )
        conn.autocommit = True
        return conn
    except Exception:
        logging.getLogger("uvicorn.error").exception("PostgreSQL connection failed")
        raise

@contextmanager
def connection() -> Iterator:
    """Autocommit connection that is always closed, even when the statement fails."""
    conn = get_conn()
    try:
        yield conn
    finally:
        conn.close()

def dict_cursor(conn):
    return conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)

def parse_id(value) -> Optional[str]:
    """Canonical uuid text for `value`, or None when it is not a uuid at all."""
    try:
        return str(UUID(str(value)))
    except (TypeError, ValueError):
        return None

# ---------------------------- ensure_* helpers ---------------------------
def ensure_users_table(conn):
    with conn.cursor() as cur:
        cur.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                name VARCHAR(255) NOT NULL,
                email TEXT NOT NULL UNIQUE,
                password TEXT NOT NULL,
                created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
            );
        """)

def ensure_customers_table(conn):
    with conn.cursor() as cur:
        cur.execute("""
            CREATE TABLE IF NOT EXISTS customers (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                name VARCHAR(255) NOT NULL,
                email VARCHAR(255) NOT NULL,
                image_url VARCHAR(255) NOT NULL
            );
        """)

def ensure_invoices_table(conn):
    """Invoice amounts are integer cents."""
    with conn.cursor() as cur:
        cur.execute("""
            CREATE TABLE IF NOT EXISTS invoices (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                customer_id UUID NOT NULL REFERENCES customers(id),
                amount_cents INTEGER NOT NULL,
                status VARCHAR(20) NOT NULL CHECK (status IN ('pending', 'paid')),
                date DATE NOT NULL
            );
        """)

def ensure_expenses_table(conn):
    """Expense amounts are decimal currency units, not cents."""
    with conn.cursor() as cur:
        cur.execute("""
            CREATE TABLE IF NOT EXISTS expenses (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                user_id UUID NOT NULL REFERENCES users(id),
                amount NUMERIC(14,2) NOT NULL,
                description TEXT NULL,
                spent_date DATE NOT NULL,
                created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
            );
        """)
        cur.execute("""
            CREATE INDEX IF NOT EXISTS ix_expenses_user_id_spent_date
            ON expenses (user_id, spent_date);
        """)

def ensure_monthly_budgets_table(conn):
    with conn.cursor() as cur:
        cur.execute("""
            CREATE TABLE IF NOT EXISTS monthly_budgets (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                user_id UUID NOT NULL REFERENCES users(id),
                amount NUMERIC(14,2) NOT NULL,
                created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
            );
        """)

def ensure_schema(conn):
    """Creates every table the dashboard reads or writes. Safe to run many times."""
    ensure_users_table(conn)
    ensure_customers_table(conn)
    ensure_invoices_table(conn)
    ensure_expenses_table(conn)
    ensure_monthly_budgets_table(conn)
