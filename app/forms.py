from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import (
    DecimalField as WTFormsDecimalField,
    PasswordField,
    RadioField,
    SelectField,
    StringField,
    SubmitField,
)
from wtforms.validators import (
    AnyOf,
    DataRequired,
    Email,
    StopValidation,
    ValidationError,
)

from app.models import INVOICE_STATUSES
from app.utils.numeric import parse_amount, to_cents

CUSTOMER_MESSAGE = "Please select a customer."
AMOUNT_MESSAGE = "Please enter an amount greater than $0."
STATUS_MESSAGE = "Please select an invoice status."
AMOUNT_TOO_LARGE_MESSAGE = "Please enter a smaller amount."


class AmountField(WTFormsDecimalField):
    """Decimal field that coerces its input with :func:`parse_amount`.

    WTForms' own decimal parsing records a processing error for
    non-numeric text.  Here unparseable input simply leaves ``data`` as
    ``None`` so the field reports the single amount message from its
    validators.
    """

    def __init__(self, *args, render_kw=None, **kwargs):
        render_kw = dict(render_kw or {})
        render_kw.setdefault("inputmode", "decimal")
        render_kw.setdefault("step", "0.01")
        render_kw.setdefault("placeholder", "Enter USD amount")
        super().__init__(*args, render_kw=render_kw, **kwargs)

    def process_formdata(self, valuelist):
        if not valuelist:
            return
        self.data = parse_amount(valuelist[0])


class PositiveCents:
    """Stop validation unless the field stores as at least one cent.

    The check runs on the rounded cents value, so ``0.004`` is rejected the
    same way as ``0``.  Amounts too large for the amount column get
    ``too_large_message``.
    """

    def __init__(self, message: str, too_large_message: str):
        self.message = message
        self.too_large_message = too_large_message

    def __call__(self, form, field):
        if field.data is None or field.data <= 0:
            raise StopValidation(self.message)
        try:
            cents = to_cents(field.data)
        except ValueError:
            raise StopValidation(self.too_large_message)
        if cents <= 0:
            raise StopValidation(self.message)


class LoginForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField("Password", validators=[DataRequired()])
    submit = SubmitField("Log in")


class InvoiceForm(FlaskForm):
    """Fields of the create and edit invoice forms.

    ``customer_id.choices`` is filled from the customer list before the form
    is rendered.  Setting ``known_customer_ids`` restricts the submitted id
    to that set.
    """

    customer_id = SelectField(
        "Choose customer",
        validators=[DataRequired(message=CUSTOMER_MESSAGE)],
        choices=[],
        validate_choice=False,
    )
    amount = AmountField(
        "Choose an amount",
        validators=[PositiveCents(AMOUNT_MESSAGE, AMOUNT_TOO_LARGE_MESSAGE)],
    )
    status = RadioField(
        "Set the invoice status",
        choices=[(status, status.capitalize()) for status in INVOICE_STATUSES],
        validators=[AnyOf(INVOICE_STATUSES, message=STATUS_MESSAGE)],
        validate_choice=False,
    )

    known_customer_ids = None

    def validate_customer_id(self, field):
        known = self.known_customer_ids
        if known is not None and field.data not in known:
            raise ValidationError(CUSTOMER_MESSAGE)


class DeleteForm(FlaskForm):
    """Simple form used for CSRF protection on delete actions."""

    submit = SubmitField("Delete")


@dataclass(frozen=True)
class InvoiceInput:
    customer_id: str
    amount: Decimal
    status: str


@dataclass(frozen=True)
class InvoiceValidation:
    """Outcome of :func:`parse_invoice_form`.

    Exactly one of ``data`` (on success) or ``errors`` (on failure) is
    meaningful.
    """

    success: bool
    data: Optional[InvoiceInput] = None
    errors: Dict[str, List[str]] = field(default_factory=dict)


def parse_invoice_form(
    formdata: Mapping[str, str], customer_ids: Optional[Iterable[str]] = None
) -> InvoiceValidation:
    """Validate submitted invoice fields without raising.

    Only ``customer_id``, ``amount`` and ``status`` are read; anything else
    in ``formdata`` is ignored.
    """

    if not isinstance(formdata, MultiDict):
        formdata = MultiDict(formdata)
    form = InvoiceForm(formdata=formdata, meta={"csrf": False})
    if customer_ids is not None:
        form.known_customer_ids = set(customer_ids)
    if not form.validate():
        errors = {name: list(messages) for name, messages in form.errors.items()}
        return InvoiceValidation(success=False, errors=errors)
    return InvoiceValidation(
        success=True,
        data=InvoiceInput(
            customer_id=form.customer_id.data,
            amount=form.amount.data,
            status=form.status.data,
        ),
    )
