from flask import Blueprint, redirect, render_template, url_for
from flask_login import current_user, login_required

from app.services.invoice_pages import load_dashboard_page

main = Blueprint("main", __name__)


@main.route("/")
def home():
    """Send visitors to the dashboard, or to the login page when signed out."""
    if current_user.is_authenticated:
        return redirect(url_for("main.dashboard"))
    return redirect(url_for("auth.login"))


@main.route("/dashboard")
@login_required
def dashboard():
    """Render the overview cards and the latest invoices."""

    page = load_dashboard_page()
    return render_template("dashboard.html", user=current_user, page=page)
