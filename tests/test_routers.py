"""
Page-level tests through the FastAPI app.

The client is built without entering its context, so startup does not try
to create tables on a real server.
"""

import logging
from datetime import date
from decimal import Decimal

import psycopg2
import pytest
from fastapi.testclient import TestClient

import crud
import session
from app import app
from session import current_user
from tests.conftest import CUSTOMER_ID, EXPENSE_ID, INVOICE_ID, USER_ID


@pytest.fixture
def client():
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def signed_in(user):
    app.dependency_overrides[current_user] = lambda: user
    yield user
    app.dependency_overrides.pop(current_user, None)


class TestHealth:

    def test_database_up(self, client, db):
        response = client.get("/health")
        assert response.json() == {"ok": True, "database": "up"}

    def test_database_down(self, client, db):
        db.on("SELECT 1", error=psycopg2.OperationalError("down"))
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "database": "down"}


class TestAccessControl:

    @pytest.mark.parametrize("path", [
        "/dashboard",
        "/dashboard/invoices",
        "/dashboard/invoices/create",
        "/dashboard/expenses",
        "/dashboard/customers",
    ])
    def test_anonymous_visitor_goes_to_login(self, client, db, path):
        response = client.get(path)
        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert db.executed == []

    def test_root_redirects_to_dashboard(self, client):
        response = client.get("/")
        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"


class TestInvoicePages:

    def test_listing_is_never_cached(self, client, db, signed_in):
        response = client.get("/dashboard/invoices", params={"query": "paid", "page": 2})
        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-store"
        [(_, params)] = db.statements("LIMIT")
        assert params["offset"] == 10

    def test_listing_failure_shows_the_error_page(self, client, db, signed_in):
        db.on("FROM invoices", error=psycopg2.OperationalError("down"))
        response = client.get("/dashboard/invoices")
        assert response.status_code == 500
        assert "Failed to fetch invoices." in response.text

    def test_invalid_create_rerenders_the_form(self, client, db, signed_in):
        db.on("FROM customers", [{"id": CUSTOMER_ID, "name": "Amy Burns"}])

        response = client.post("/dashboard/invoices/create", data={"customer_id": CUSTOMER_ID, "amount": "0"})

        assert response.status_code == 400
        assert "Missing Fields. Failed to Create Invoice." in response.text
        assert "Please enter an amount greater than $0." in response.text
        assert "Please select an invoice status." in response.text
        assert db.statements("INSERT") == []

    def test_create_redirects_to_the_listing(self, client, db, signed_in):
        db.on("INSERT INTO invoices", [{"id": INVOICE_ID}])

        response = client.post(
            "/dashboard/invoices/create",
            data={"customer_id": CUSTOMER_ID, "amount": "15.25", "status": "paid"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard/invoices"
        [(_, params)] = db.statements("INSERT INTO invoices")
        assert params[1] == 1525

    def test_edit_page_shows_dollars(self, client, db, signed_in):
        db.on("FROM invoices WHERE id", [
            {"id": INVOICE_ID, "customer_id": CUSTOMER_ID, "amount_cents": 4250, "status": "paid"},
        ])
        response = client.get(f"/dashboard/invoices/{INVOICE_ID}/edit")
        assert response.status_code == 200
        assert 'value="42.50"' in response.text

    def test_edit_missing_invoice(self, client, db, signed_in):
        response = client.get(f"/dashboard/invoices/{INVOICE_ID}/edit")
        assert response.status_code == 404
        assert "Could not find the requested invoice." in response.text

    def test_delete_always_returns_to_the_listing(self, client, db, signed_in):
        response = client.post("/dashboard/invoices/not-an-id/delete")
        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard/invoices"


class TestExpensePages:

    def test_create_uses_the_signed_in_user(self, client, db, signed_in):
        db.on("INSERT INTO expenses", [{"id": EXPENSE_ID}])

        response = client.post(
            "/dashboard/expenses/create",
            data={"amount": "42.50", "spent_date": "2024-01-15", "user_id": "someone-else"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard/expenses"
        [(_, params)] = db.statements("INSERT INTO expenses")
        assert params[0] == USER_ID
        assert params[1] == Decimal("42.50")

    def test_invalid_create(self, client, db, signed_in):
        response = client.post("/dashboard/expenses/create", data={"description": "Lunch"})
        assert response.status_code == 400
        assert "Missing Fields. Failed to Create Expense." in response.text
        assert 'value="Lunch"' in response.text

    def test_listing_shows_amounts_in_dollars(self, client, db, signed_in):
        db.on("FROM expenses", [{
            "id": EXPENSE_ID, "amount": Decimal("42.50"), "spent_date": date(2024, 1, 15),
            "description": "Coffee", "updated_at": None,
        }])
        response = client.get("/dashboard/expenses")
        assert response.status_code == 200
        assert "$42.50" in response.text
        assert "$4,250.00" not in response.text

    def test_someone_elses_expense_is_not_found(self, client, db, signed_in):
        response = client.get(f"/dashboard/expenses/{EXPENSE_ID}/edit")
        assert response.status_code == 404
        [(_, params)] = db.statements("FROM expenses")
        assert params == (EXPENSE_ID, USER_ID)

    def test_delete(self, client, db, signed_in):
        response = client.post(f"/dashboard/expenses/{EXPENSE_ID}/delete")
        assert response.status_code == 303
        [(_, params)] = db.statements("DELETE FROM expenses")
        assert params == (EXPENSE_ID, USER_ID)


class TestDashboard:

    def test_overview(self, client, db, signed_in):
        db.on("COUNT(*) AS count FROM invoices;", [{"count": 1}])
        db.on("COUNT(*) AS count FROM customers;", [{"count": 1}])
        db.on("AS paid", [{"paid": 1000, "pending": None}])
        db.on("expenses_amt", [{"count": 1, "expenses_amt": Decimal("42.50")}])
        db.on("monthly_budgets", [])
        db.on("FROM expenses", [{
            "id": EXPENSE_ID, "amount": Decimal("42.50"),
            "description": "Groceries", "spent_date": date(2024, 1, 15),
        }])

        response = client.get("/dashboard")

        assert response.status_code == 200
        assert "Groceries" in response.text
        assert "$42.50" in response.text
        assert "$10.00" in response.text


class TestAuthPages:

    def test_login_failure(self, client, monkeypatch):
        def bad_credentials(credentials):
            raise session.CredentialsError()

        monkeypatch.setattr(session, "sign_in", bad_credentials)

        response = client.post("/login", data={"email": "user@nextmail.com", "password": "wrong-pass"})

        assert response.status_code == 400
        assert "Invalid credentials." in response.text
        assert 'value="user@nextmail.com"' in response.text
        assert "wrong-pass" not in response.text
        assert "set-cookie" not in response.headers

    def test_login_sets_the_session_cookie(self, client, monkeypatch):
        monkeypatch.setattr(session, "sign_in", lambda credentials: "tok")

        response = client.post("/login", data={"email": "user@nextmail.com", "password": "123456"})

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"
        cookie = response.headers["set-cookie"]
        assert "session=tok" in cookie
        assert "HttpOnly" in cookie

    def test_logout_clears_the_cookie(self, client):
        response = client.post("/logout")
        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert "session=" in response.headers["set-cookie"]

    def test_sign_up_with_bad_email_never_echoes_the_password(self, client, db):
        response = client.post(
            "/signup", data={"name": "Ada", "email": "ada.example.com", "password": "s3cret-passw0rd"},
        )
        assert response.status_code == 400
        assert "This is not a valid email." in response.text
        assert "s3cret-passw0rd" not in response.text
        assert db.executed == []

    def test_sign_up_redirects_to_the_dashboard(self, client, db, monkeypatch):
        monkeypatch.setattr(crud, "get_password_hash", lambda password: "hashed")
        db.on("INSERT INTO users", [{"id": USER_ID}])

        response = client.post(
            "/signup", data={"name": "Ada", "email": "ada@example.com", "password": "correct horse"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"


class TestStaleListings:

    def test_write_logs_the_listing_it_made_stale(self, db, caplog):
        caplog.set_level(logging.INFO, logger="uvicorn.error")
        db.on("INSERT INTO invoices", [{"id": INVOICE_ID}])

        crud.create_invoice({"customer_id": CUSTOMER_ID, "amount": "15.25", "status": "paid"})

        assert "Listing /dashboard/invoices is stale after invoice change" in caplog.text

    def test_failed_write_logs_nothing_stale(self, db, caplog):
        caplog.set_level(logging.INFO, logger="uvicorn.error")

        crud.create_invoice({"customer_id": CUSTOMER_ID, "amount": "0", "status": "paid"})

        assert "is stale" not in caplog.text

    def test_dashboard_pages_are_sent_no_store(self, client, db, signed_in):
        response = client.get("/dashboard/expenses")
        assert response.headers["cache-control"] == "no-store"
