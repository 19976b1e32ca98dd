from datetime import date

import pytest
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from app import db
from app.forms import (
    AMOUNT_MESSAGE,
    AMOUNT_TOO_LARGE_MESSAGE,
    CUSTOMER_MESSAGE,
    STATUS_MESSAGE,
)
from app.models import Invoice
from app.services import invoice_actions
from app.services.invoice_actions import FormState
from app.services.invoice_data import DataAccessError
from tests.utils import add_invoice


def _boom(*args, **kwargs):
    raise SQLAlchemyError("database unavailable")


def test_create_invoice_inserts_row_and_redirects(app, customers, monkeypatch):
    customer_id = customers[0][0]
    monkeypatch.setattr(invoice_actions, "_today", lambda: date(2024, 5, 1))
    with app.test_request_context("/dashboard/invoices/create", method="POST"):
        with pytest.raises(HTTPException) as excinfo:
            invoice_actions.create_invoice(
                FormState(),
                {"customer_id": customer_id, "amount": "45.50", "status": "pending"},
            )
    response = excinfo.value.response
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/dashboard/invoices")

    with app.app_context():
        invoice = Invoice.query.one()
        assert invoice.customer_id == customer_id
        assert invoice.amount == 4550
        assert invoice.status == "pending"
        assert invoice.date == date(2024, 5, 1)
        assert len(invoice.id) == 36


def test_create_invoice_uses_todays_utc_date(app, customers):
    with app.test_request_context("/dashboard/invoices/create", method="POST"):
        today = invoice_actions._today()
        with pytest.raises(HTTPException):
            invoice_actions.create_invoice(
                FormState(),
                {"customer_id": customers[0][0], "amount": "1", "status": "paid"},
            )
    with app.app_context():
        assert Invoice.query.one().date == today


def test_create_invoice_validation_failure_writes_nothing(app, customers):
    with app.test_request_context("/dashboard/invoices/create", method="POST"):
        state = invoice_actions.create_invoice(
            FormState(), {"customer_id": "", "amount": "-5", "status": "paid"}
        )
    assert state.message == "Missing Fields. Failed to Create Invoice."
    assert state.errors == {
        "customer_id": [CUSTOMER_MESSAGE],
        "amount": [AMOUNT_MESSAGE],
    }
    with app.app_context():
        assert Invoice.query.count() == 0


@pytest.mark.parametrize("amount", ["0", "-0.01", "-100", ""])
def test_create_invoice_rejects_non_positive_amounts(app, customers, amount):
    with app.test_request_context("/dashboard/invoices/create", method="POST"):
        state = invoice_actions.create_invoice(
            FormState(),
            {"customer_id": customers[0][0], "amount": amount, "status": "paid"},
        )
    assert state.errors == {"amount": [AMOUNT_MESSAGE]}
    with app.app_context():
        assert Invoice.query.count() == 0


def test_create_invoice_rejects_unknown_status_and_customer(app, customers):
    with app.test_request_context("/dashboard/invoices/create", method="POST"):
        state = invoice_actions.create_invoice(
            FormState(),
            {"customer_id": "missing", "amount": "10", "status": "overdue"},
        )
    assert state.errors == {
        "customer_id": [CUSTOMER_MESSAGE],
        "status": [STATUS_MESSAGE],
    }


def test_create_invoice_database_error_returns_message(app, customers, monkeypatch):
    with app.test_request_context("/dashboard/invoices/create", method="POST"):
        monkeypatch.setattr(db.session, "commit", _boom)
        state = invoice_actions.create_invoice(
            FormState(),
            {"customer_id": customers[0][0], "amount": "10", "status": "paid"},
        )
    assert state == FormState(message="Database Error: Failed to Create Invoice.")
    with app.app_context():
        assert Invoice.query.count() == 0


def test_create_invoice_customer_lookup_failure_is_database_error(app, monkeypatch):
    def fail():
        raise DataAccessError("Failed to fetch all customers.")

    monkeypatch.setattr(invoice_actions, "fetch_customers", fail)
    with app.test_request_context("/dashboard/invoices/create", method="POST"):
        state = invoice_actions.create_invoice(
            FormState(), {"customer_id": "c1", "amount": "10", "status": "paid"}
        )
    assert state.message == "Database Error: Failed to Create Invoice."
    assert state.errors == {}


def test_update_invoice_overwrites_fields_but_not_date(app, customers):
    amy_id, lee_id = customers[0][0], customers[1][0]
    with app.app_context():
        invoice_id = add_invoice(amy_id, 1000, "pending", date(2023, 3, 4))

    with app.test_request_context(f"/dashboard/invoices/{invoice_id}/edit", method="POST"):
        with pytest.raises(HTTPException) as excinfo:
            invoice_actions.update_invoice(
                invoice_id,
                FormState(),
                {"customer_id": lee_id, "amount": "19.99", "status": "paid"},
            )
    assert excinfo.value.response.headers["Location"].endswith("/dashboard/invoices")

    with app.app_context():
        invoice = db.session.get(Invoice, invoice_id)
        assert invoice.customer_id == lee_id
        assert invoice.amount == 1999
        assert invoice.status == "paid"
        assert invoice.date == date(2023, 3, 4)


def test_update_invoice_validation_failure_leaves_row(app, customers):
    amy_id = customers[0][0]
    with app.app_context():
        invoice_id = add_invoice(amy_id, 1000)

    with app.test_request_context(method="POST"):
        state = invoice_actions.update_invoice(
            invoice_id,
            FormState(),
            {"customer_id": amy_id, "amount": "0", "status": "paid"},
        )
    assert state.message == "Missing Fields. Failed to Update Invoice."
    assert state.errors == {"amount": [AMOUNT_MESSAGE]}
    with app.app_context():
        invoice = db.session.get(Invoice, invoice_id)
        assert invoice.amount == 1000
        assert invoice.status == "pending"


def test_update_missing_invoice_is_database_error(app, customers):
    with app.test_request_context(method="POST"):
        state = invoice_actions.update_invoice(
            "does-not-exist",
            FormState(),
            {"customer_id": customers[0][0], "amount": "5", "status": "paid"},
        )
    assert state == FormState(message="Database Error: Failed to Update Invoice.")


def test_update_invoice_database_error(app, customers, monkeypatch):
    amy_id = customers[0][0]
    with app.app_context():
        invoice_id = add_invoice(amy_id, 1000)

    with app.test_request_context(method="POST"):
        monkeypatch.setattr(db.session, "commit", _boom)
        state = invoice_actions.update_invoice(
            invoice_id,
            FormState(),
            {"customer_id": amy_id, "amount": "5", "status": "paid"},
        )
    assert state.message == "Database Error: Failed to Update Invoice."
    with app.app_context():
        assert db.session.get(Invoice, invoice_id).amount == 1000


def test_delete_invoice_removes_row(app, customers):
    with app.app_context():
        invoice_id = add_invoice(customers[0][0], 1000)

    with app.test_request_context(method="POST"):
        state = invoice_actions.delete_invoice(invoice_id)
    assert state == FormState(message="Deleted Invoice.")
    with app.app_context():
        assert db.session.get(Invoice, invoice_id) is None


def test_delete_missing_invoice_reports_error_without_raising(app):
    with app.test_request_context(method="POST"):
        state = invoice_actions.delete_invoice("does-not-exist")
    assert state == FormState(message="Database Error: Failed to Delete Invoice.")


def test_delete_invoice_database_error_keeps_row(app, customers, monkeypatch):
    with app.app_context():
        invoice_id = add_invoice(customers[0][0], 1000)

    with app.test_request_context(method="POST"):
        monkeypatch.setattr(db.session, "commit", _boom)
        state = invoice_actions.delete_invoice(invoice_id)
    assert state.message == "Database Error: Failed to Delete Invoice."
    with app.app_context():
        assert db.session.get(Invoice, invoice_id) is not None


def test_successful_writes_invalidate_listing_cache(app, customers, monkeypatch):
    calls = []
    monkeypatch.setattr(invoice_actions, "invalidate", calls.append)
    with app.app_context():
        invoice_id = add_invoice(customers[0][0], 1000)

    with app.test_request_context(method="POST"):
        invoice_actions.create_invoice(FormState(), {})
        assert calls == []
        invoice_actions.delete_invoice(invoice_id)
    assert calls == ["invoice-list"]


@pytest.mark.parametrize(
    "amount,message",
    [("0.004", AMOUNT_MESSAGE), ("1e30", AMOUNT_TOO_LARGE_MESSAGE)],
)
def test_create_invoice_rejects_amounts_that_cannot_be_stored(
    app, customers, amount, message
):
    with app.test_request_context("/dashboard/invoices/create", method="POST"):
        state = invoice_actions.create_invoice(
            FormState(),
            {"customer_id": customers[0][0], "amount": amount, "status": "paid"},
        )
    assert state == FormState(
        errors={"amount": [message]},
        message="Missing Fields. Failed to Create Invoice.",
    )
    with app.app_context():
        assert Invoice.query.count() == 0


def test_update_invoice_rejects_amount_too_large(app, customers):
    amy_id = customers[0][0]
    with app.app_context():
        invoice_id = add_invoice(amy_id, 1000)

    with app.test_request_context(method="POST"):
        state = invoice_actions.update_invoice(
            invoice_id,
            FormState(),
            {"customer_id": amy_id, "amount": "1e30", "status": "paid"},
        )
    assert state.errors == {"amount": [AMOUNT_TOO_LARGE_MESSAGE]}
    with app.app_context():
        assert db.session.get(Invoice, invoice_id).amount == 1000
