"""Create user, customer and invoice tables."""

from alembic import op
import sqlalchemy as sa


def _has_table(table_name: str, bind) -> bool:
    inspector = sa.inspect(bind)
    return inspector.has_table(table_name)


# revision identifiers, used by Alembic.
revision = "202410180001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    if not bind:
        return

    if not _has_table("user", bind):
        op.create_table(
            "user",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("email", sa.String(length=120), nullable=False, unique=True),
            sa.Column("password", sa.String(length=255), nullable=False),
            sa.Column("active", sa.Boolean(), nullable=False),
        )

    if not _has_table("customer", bind):
        op.create_table(
            "customer",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("image_url", sa.String(length=255), nullable=True),
        )
        op.create_index("ix_customer_name", "customer", ["name"])

    if not _has_table("invoice", bind):
        op.create_table(
            "invoice",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("customer_id", sa.String(length=36), nullable=False),
            sa.Column("amount", sa.Integer(), nullable=False),
            sa.Column("status", sa.String(length=10), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.ForeignKeyConstraint(["customer_id"], ["customer.id"]),
            sa.CheckConstraint("amount > 0", name="ck_invoice_amount_positive"),
            sa.CheckConstraint(
                "status IN ('pending', 'paid')", name="ck_invoice_status"
            ),
        )
        op.create_index("ix_invoice_customer_id", "invoice", ["customer_id"])
        op.create_index("ix_invoice_date", "invoice", ["date"])
        op.create_index("ix_invoice_status", "invoice", ["status"])


def downgrade():
    bind = op.get_bind()
    if not bind:
        return

    if _has_table("invoice", bind):
        op.drop_index("ix_invoice_status", table_name="invoice")
        op.drop_index("ix_invoice_date", table_name="invoice")
        op.drop_index("ix_invoice_customer_id", table_name="invoice")
        op.drop_table("invoice")
    if _has_table("customer", bind):
        op.drop_index("ix_customer_name", table_name="customer")
        op.drop_table("customer")
    if _has_table("user", bind):
        op.drop_table("user")
