"""Create, update and delete actions behind the invoice forms.

Each action validates the submitted fields, issues a single write and, on
success, invalidates the cached invoice listing.  Create and update finish
by redirecting to the listing; the redirect is raised, so a returned
:class:`FormState` always describes a failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, List, Mapping, NoReturn, Optional

from flask import abort, current_app, redirect, url_for
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.forms import parse_invoice_form
from app.models import Invoice
from app.services.invoice_data import DataAccessError, fetch_customers
from app.utils.cache import INVOICE_LIST, invalidate
from app.utils.numeric import to_cents


DELETED_MESSAGE = "Deleted Invoice."


@dataclass
class FormState:
    """Validation outcome rendered back into an invoice form."""

    errors: Dict[str, List[str]] = field(default_factory=dict)
    message: Optional[str] = None


class InvoiceNotFoundError(LookupError):
    """Raised inside an action when the targeted row does not exist."""


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _known_customer_ids():
    return {customer.id for customer in fetch_customers()}


def _redirect_to_invoices() -> NoReturn:
    abort(redirect(url_for("invoice.view_invoices")))


def create_invoice(prev_state: FormState, formdata: Mapping[str, str]) -> FormState:
    """Validate ``formdata`` and insert a new invoice dated today."""

    try:
        customer_ids = _known_customer_ids()
    except DataAccessError:
        current_app.logger.exception("Could not load customers for validation")
        return FormState(message="Database Error: Failed to Create Invoice.")

    validated = parse_invoice_form(formdata, customer_ids)
    if not validated.success:
        return FormState(
            errors=validated.errors,
            message="Missing Fields. Failed to Create Invoice.",
        )

    data = validated.data
    invoice = Invoice(
        customer_id=data.customer_id,
        amount=to_cents(data.amount),
        status=data.status,
        date=_today(),
    )
    try:
        db.session.add(invoice)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to create invoice")
        return FormState(message="Database Error: Failed to Create Invoice.")

    current_app.logger.info("Created invoice %s", invoice.id)
    invalidate(INVOICE_LIST)
    _redirect_to_invoices()


def update_invoice(
    invoice_id: str, prev_state: FormState, formdata: Mapping[str, str]
) -> FormState:
    """Overwrite customer, amount and status of ``invoice_id``.

    The invoice date is left untouched.  An id that matches no row is
    reported as a database error.
    """

    try:
        customer_ids = _known_customer_ids()
    except DataAccessError:
        current_app.logger.exception("Could not load customers for validation")
        return FormState(message="Database Error: Failed to Update Invoice.")

    validated = parse_invoice_form(formdata, customer_ids)
    if not validated.success:
        return FormState(
            errors=validated.errors,
            message="Missing Fields. Failed to Update Invoice.",
        )

    data = validated.data
    try:
        updated = Invoice.query.filter_by(id=invoice_id).update(
            {
                Invoice.customer_id: data.customer_id,
                Invoice.amount: to_cents(data.amount),
                Invoice.status: data.status,
            },
            synchronize_session=False,
        )
        if updated == 0:
            raise InvoiceNotFoundError(invoice_id)
        db.session.commit()
    except (SQLAlchemyError, InvoiceNotFoundError):
        db.session.rollback()
        current_app.logger.exception("Failed to update invoice %s", invoice_id)
        return FormState(message="Database Error: Failed to Update Invoice.")

    current_app.logger.info("Updated invoice %s", invoice_id)
    invalidate(INVOICE_LIST)
    _redirect_to_invoices()


def delete_invoice(invoice_id: str) -> FormState:
    """Delete ``invoice_id`` and return a message describing the outcome.

    Never raises for database problems; a missing row is reported the same
    way as a failed statement.
    """

    try:
        deleted = Invoice.query.filter_by(id=invoice_id).delete(
            synchronize_session=False
        )
        if deleted == 0:
            raise InvoiceNotFoundError(invoice_id)
        db.session.commit()
    except (SQLAlchemyError, InvoiceNotFoundError):
        db.session.rollback()
        current_app.logger.exception("Failed to delete invoice %s", invoice_id)
        return FormState(message="Database Error: Failed to Delete Invoice.")

    current_app.logger.info("Deleted invoice %s", invoice_id)
    invalidate(INVOICE_LIST)
    return FormState(message=DELETED_MESSAGE)
