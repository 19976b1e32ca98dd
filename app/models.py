import uuid
from datetime import date

from flask_login import UserMixin
from sqlalchemy.orm import relationship

from app import db

INVOICE_STATUSES = ("pending", "paid")


def _generate_id() -> str:
    return str(uuid.uuid4())


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, default="")
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    active = db.Column(db.Boolean, default=False, nullable=False)


class Customer(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=_generate_id)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    image_url = db.Column(db.String(255))

    invoices = relationship(
        "Invoice", back_populates="customer", lazy=True, passive_deletes=True
    )

    __table_args__ = (db.Index("ix_customer_name", "name"),)


class Invoice(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=_generate_id)
    customer_id = db.Column(
        db.String(36), db.ForeignKey("customer.id"), nullable=False, index=True
    )
    # Stored in cents to avoid floating point drift.
    amount = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(10), nullable=False)
    date = db.Column(db.Date, nullable=False, default=date.today, index=True)

    customer = relationship("Customer", back_populates="invoices")

    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_invoice_amount_positive"),
        db.CheckConstraint(
            "status IN ('pending', 'paid')", name="ck_invoice_status"
        ),
        db.Index("ix_invoice_status", "status"),
    )
