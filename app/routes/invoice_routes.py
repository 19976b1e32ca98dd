from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import login_required

from app.forms import DeleteForm, InvoiceForm
from app.services import invoice_actions
from app.services.invoice_actions import DELETED_MESSAGE, FormState
from app.services.invoice_data import fetch_filtered_invoices, fetch_invoice_pages
from app.services.invoice_pages import load_create_invoice_page, load_edit_invoice_page
from app.utils.cache import INVOICE_LIST, cached
from app.utils.pagination import build_pagination_args, get_page, page_window

invoice = Blueprint("invoice", __name__)


def _customer_choices(customers):
    return [("", "Select a customer")] + [(c.id, c.name) for c in customers]


@invoice.errorhandler(404)
def invoice_not_found(error):
    """Render the invoice specific not-found page."""
    return render_template("invoices/not_found.html"), 404


@invoice.route("/dashboard/invoices")
@login_required
def view_invoices():
    """List invoices matching the search query, one page at a time."""
    query = request.args.get("query", "").strip()
    page = get_page()
    per_page = current_app.config["INVOICES_PER_PAGE"]

    def load():
        return (
            tuple(fetch_filtered_invoices(query, page, per_page)),
            fetch_invoice_pages(query, per_page),
        )

    invoices, total_pages = cached(INVOICE_LIST, (query, page, per_page), load)
    return render_template(
        "invoices/view_invoices.html",
        invoices=invoices,
        query=query,
        page=page,
        total_pages=total_pages,
        pages=page_window(page, total_pages),
        pagination_args=build_pagination_args(),
        delete_form=DeleteForm(),
    )


@invoice.route("/dashboard/invoices/create", methods=["GET", "POST"])
@login_required
def create_invoice():
    """Create an invoice."""
    page = load_create_invoice_page()
    form = InvoiceForm()
    form.customer_id.choices = _customer_choices(page.customers)
    state = FormState()
    if request.method == "POST":
        # Only returns when the submission failed; success redirects.
        state = invoice_actions.create_invoice(state, request.form)
    return render_template(
        "invoices/invoice_form_page.html",
        page=page,
        form=form,
        state=state,
        title="Create Invoice",
        submit_label="Create Invoice",
    )


@invoice.route("/dashboard/invoices/<invoice_id>/edit", methods=["GET", "POST"])
@login_required
def edit_invoice(invoice_id):
    """Edit an existing invoice."""
    page = load_edit_invoice_page(invoice_id)
    state = FormState()
    if request.method == "POST":
        form = InvoiceForm()
        state = invoice_actions.update_invoice(invoice_id, state, request.form)
    else:
        form = InvoiceForm(obj=page.invoice)
    form.customer_id.choices = _customer_choices(page.customers)
    return render_template(
        "invoices/invoice_form_page.html",
        page=page,
        form=form,
        state=state,
        title="Edit Invoice",
        submit_label="Edit Invoice",
    )


@invoice.route("/dashboard/invoices/<invoice_id>/delete", methods=["POST"])
@login_required
def delete_invoice(invoice_id):
    """Delete an invoice and return to the listing."""
    state = invoice_actions.delete_invoice(invoice_id)
    category = "success" if state.message == DELETED_MESSAGE else "danger"
    flash(state.message, category)
    return redirect(url_for("invoice.view_invoices"))
