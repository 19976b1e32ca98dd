from urllib.parse import urlparse

from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import current_user, login_required, login_user, logout_user
from werkzeug.security import check_password_hash

from app import limiter
from app.forms import LoginForm
from app.models import User

auth = Blueprint("auth", __name__)


def _safe_next_url(target):
    """Return ``target`` only when it points back into this site."""
    if not target:
        return None
    parsed = urlparse(target)
    if parsed.scheme or parsed.netloc or not target.startswith("/"):
        return None
    return target


@auth.route("/login", methods=["GET", "POST"])
@limiter.limit("5 per minute", methods=["POST"])
def login():
    """Authenticate a user and start their session."""
    form = LoginForm()
    if form.validate_on_submit():
        user = User.query.filter_by(email=form.email.data).first()

        if not user or not check_password_hash(user.password, form.password.data):
            flash("Invalid credentials.", "danger")
            return redirect(url_for("auth.login"))
        elif not user.active:
            flash("Please contact system admin to activate account.", "danger")
            return redirect(url_for("auth.login"))

        login_user(user)
        current_app.logger.info("User %s logged in", user.id)
        next_url = _safe_next_url(request.args.get("next"))
        return redirect(next_url or url_for("main.dashboard"))

    return render_template(
        "auth/login.html", form=form, demo=current_app.config["DEMO"]
    )


@auth.route("/logout")
@login_required
def logout():
    """Log the current user out."""
    user_id = current_user.id
    logout_user()
    current_app.logger.info("User %s logged out", user_id)
    return redirect(url_for("auth.login"))
