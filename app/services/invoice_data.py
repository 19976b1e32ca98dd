"""Read queries used by the dashboard pages.

Every function returns plain frozen records rather than ORM instances so
the results can cross thread and app-context boundaries and be cached.
Database failures are re-raised as :class:`DataAccessError`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import String, case, cast, func, or_
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.models import Customer, Invoice
from app.utils.numeric import from_cents


class DataAccessError(RuntimeError):
    """Raised when a read query fails."""


@dataclass(frozen=True)
class CustomerField:
    id: str
    name: str


@dataclass(frozen=True)
class InvoiceRecord:
    """An invoice as shown in the edit form, amount in dollars."""

    id: str
    customer_id: str
    amount: Decimal
    status: str


@dataclass(frozen=True)
class InvoiceRow:
    """An invoice joined with its customer, amount in cents."""

    id: str
    amount: int
    date: date
    status: str
    name: str
    email: str
    image_url: Optional[str]


@dataclass(frozen=True)
class CardData:
    number_of_invoices: int
    number_of_customers: int
    total_paid: int
    total_pending: int


@dataclass(frozen=True)
class CustomerRow:
    id: str
    name: str
    email: str
    image_url: Optional[str]
    total_invoices: int
    total_pending: int
    total_paid: int


def _invoice_row_query():
    return db.session.query(
        Invoice.id,
        Invoice.amount,
        Invoice.date,
        Invoice.status,
        Customer.name,
        Customer.email,
        Customer.image_url,
    ).join(Customer, Invoice.customer_id == Customer.id)


def _search_filter(query: str):
    pattern = f"%{query}%"
    return or_(
        Customer.name.ilike(pattern),
        Customer.email.ilike(pattern),
        cast(Invoice.amount, String).ilike(pattern),
        cast(Invoice.date, String).ilike(pattern),
        Invoice.status.ilike(pattern),
    )


def fetch_invoice_by_id(invoice_id: str) -> Optional[InvoiceRecord]:
    """Return the invoice with ``invoice_id`` or ``None`` when it does not exist."""

    try:
        invoice = db.session.get(Invoice, invoice_id)
    except SQLAlchemyError as exc:
        raise DataAccessError("Failed to fetch invoice.") from exc
    if invoice is None:
        return None
    return InvoiceRecord(
        id=invoice.id,
        customer_id=invoice.customer_id,
        amount=from_cents(invoice.amount),
        status=invoice.status,
    )


def fetch_customers() -> List[CustomerField]:
    """Return every customer ordered by name."""

    try:
        rows = (
            db.session.query(Customer.id, Customer.name)
            .order_by(Customer.name.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        raise DataAccessError("Failed to fetch all customers.") from exc
    return [CustomerField(id=row.id, name=row.name) for row in rows]


def fetch_filtered_invoices(query: str, page: int, per_page: int) -> List[InvoiceRow]:
    """Return one page of invoices matching ``query``, newest first."""

    offset = (max(page, 1) - 1) * per_page
    try:
        rows = (
            _invoice_row_query()
            .filter(_search_filter(query))
            .order_by(Invoice.date.desc(), Invoice.id)
            .limit(per_page)
            .offset(offset)
            .all()
        )
    except SQLAlchemyError as exc:
        raise DataAccessError("Failed to fetch invoices.") from exc
    return [InvoiceRow(*row) for row in rows]


def fetch_invoice_pages(query: str, per_page: int) -> int:
    """Return the number of pages of invoices matching ``query``."""

    try:
        total = (
            db.session.query(func.count(Invoice.id))
            .join(Customer, Invoice.customer_id == Customer.id)
            .filter(_search_filter(query))
            .scalar()
        )
    except SQLAlchemyError as exc:
        raise DataAccessError("Failed to fetch total number of invoices.") from exc
    return math.ceil((total or 0) / per_page)


def fetch_latest_invoices(limit: int = 5) -> List[InvoiceRow]:
    try:
        rows = (
            _invoice_row_query()
            .order_by(Invoice.date.desc(), Invoice.id)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as exc:
        raise DataAccessError("Failed to fetch the latest invoices.") from exc
    return [InvoiceRow(*row) for row in rows]


def fetch_card_data() -> CardData:
    """Return the headline counts and totals shown on the dashboard."""

    try:
        invoice_count = db.session.query(func.count(Invoice.id)).scalar()
        customer_count = db.session.query(func.count(Customer.id)).scalar()
        paid, pending = db.session.query(
            func.sum(case((Invoice.status == "paid", Invoice.amount), else_=0)),
            func.sum(case((Invoice.status == "pending", Invoice.amount), else_=0)),
        ).one()
    except SQLAlchemyError as exc:
        raise DataAccessError("Failed to fetch card data.") from exc
    return CardData(
        number_of_invoices=int(invoice_count or 0),
        number_of_customers=int(customer_count or 0),
        total_paid=int(paid or 0),
        total_pending=int(pending or 0),
    )


def fetch_filtered_customers(query: str) -> List[CustomerRow]:
    """Return customers matching ``query`` with their invoice totals."""

    pattern = f"%{query}%"
    try:
        rows = (
            db.session.query(
                Customer.id,
                Customer.name,
                Customer.email,
                Customer.image_url,
                func.count(Invoice.id),
                func.sum(case((Invoice.status == "pending", Invoice.amount), else_=0)),
                func.sum(case((Invoice.status == "paid", Invoice.amount), else_=0)),
            )
            .outerjoin(Invoice, Invoice.customer_id == Customer.id)
            .filter(or_(Customer.name.ilike(pattern), Customer.email.ilike(pattern)))
            .group_by(Customer.id, Customer.name, Customer.email, Customer.image_url)
            .order_by(Customer.name.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        raise DataAccessError("Failed to fetch customer table.") from exc
    return [
        CustomerRow(
            id=row[0],
            name=row[1],
            email=row[2],
            image_url=row[3],
            total_invoices=int(row[4] or 0),
            total_pending=int(row[5] or 0),
            total_paid=int(row[6] or 0),
        )
        for row in rows
    ]
