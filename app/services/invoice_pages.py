"""Data assembly for the dashboard pages."""

from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, List, Tuple

from flask import abort, current_app, url_for

from app.services.invoice_data import (
    CardData,
    CustomerField,
    InvoiceRecord,
    InvoiceRow,
    fetch_card_data,
    fetch_customers,
    fetch_invoice_by_id,
    fetch_latest_invoices,
)


@dataclass(frozen=True)
class Breadcrumb:
    label: str
    href: str
    active: bool = False


@dataclass(frozen=True)
class EditInvoicePage:
    breadcrumbs: Tuple[Breadcrumb, ...]
    invoice: InvoiceRecord
    customers: List[CustomerField]


@dataclass(frozen=True)
class CreateInvoicePage:
    breadcrumbs: Tuple[Breadcrumb, ...]
    customers: List[CustomerField]


@dataclass(frozen=True)
class DashboardPage:
    cards: CardData
    latest_invoices: List[InvoiceRow]


def _call_in_app_context(app, func: Callable[[], Any]) -> Any:
    with app.app_context():
        return func()


def gather(*calls: Callable[[], Any]) -> List[Any]:
    """Run ``calls`` concurrently and return their results in call order.

    Each call runs in its own application context, so it gets its own
    database session.  The first exception raised by any call is re-raised
    as soon as it happens and no results are returned.
    """

    app = current_app._get_current_object()
    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = [pool.submit(_call_in_app_context, app, call) for call in calls]
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)
        for future in done:
            if future.exception() is not None:
                for pending in futures:
                    pending.cancel()
                raise future.exception()
        return [future.result() for future in futures]


def _invoices_crumb() -> Breadcrumb:
    return Breadcrumb(label="Invoices", href=url_for("invoice.view_invoices"))


def load_edit_invoice_page(invoice_id: str) -> EditInvoicePage:
    """Fetch the invoice and the customer list for the edit form.

    Aborts with 404 when the invoice does not exist.
    """

    invoice, customers = gather(
        lambda: fetch_invoice_by_id(invoice_id),
        fetch_customers,
    )
    if invoice is None:
        current_app.logger.info("Invoice %s not found", invoice_id)
        abort(404)

    breadcrumbs = (
        _invoices_crumb(),
        Breadcrumb(
            label="Edit Invoice",
            href=url_for("invoice.edit_invoice", invoice_id=invoice_id),
            active=True,
        ),
    )
    return EditInvoicePage(
        breadcrumbs=breadcrumbs, invoice=invoice, customers=customers
    )


def load_create_invoice_page() -> CreateInvoicePage:
    breadcrumbs = (
        _invoices_crumb(),
        Breadcrumb(
            label="Create Invoice",
            href=url_for("invoice.create_invoice"),
            active=True,
        ),
    )
    return CreateInvoicePage(breadcrumbs=breadcrumbs, customers=fetch_customers())


def load_dashboard_page() -> DashboardPage:
    cards, latest = gather(fetch_card_data, fetch_latest_invoices)
    return DashboardPage(cards=cards, latest_invoices=latest)
