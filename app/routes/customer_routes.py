from flask import Blueprint, render_template, request
from flask_login import login_required

from app.services.invoice_data import fetch_filtered_customers

customer = Blueprint("customer", __name__)


@customer.route("/dashboard/customers")
@login_required
def view_customers():
    """Display customers with their invoice totals."""
    query = request.args.get("query", "").strip()
    customers = fetch_filtered_customers(query)
    return render_template(
        "customers/view_customers.html", customers=customers, query=query
    )
