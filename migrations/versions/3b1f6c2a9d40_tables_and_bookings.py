"""tables and bookings with overlap guard

Revision ID: 3b1f6c2a9d40
Revises: 
Create Date: 2026-10-16 09:12:44.310522

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b1f6c2a9d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist;")

    op.create_table(
        "restaurants",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=False),
        sa.Column("cuisine", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("email", sa.String(length=254), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "tables",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "restaurant_id",
            sa.String(length=36),
            sa.ForeignKey("restaurants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("section", sa.String(length=100), nullable=False),
        sa.CheckConstraint("capacity > 0", name="ck_tables_capacity_positive"),
    )
    op.create_index("ix_tables_restaurant_id", "tables", ["restaurant_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "restaurant_id",
            sa.String(length=36),
            sa.ForeignKey("restaurants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "table_id",
            sa.String(length=36),
            sa.ForeignKey("tables.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("party_size", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="confirmed"),
        sa.Column("customer_name", sa.String(length=200), nullable=False),
        sa.Column("customer_email", sa.String(length=254), nullable=False),
        sa.Column("customer_phone", sa.String(length=32), nullable=True),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("party_size > 0", name="ck_bookings_party_size_positive"),
        sa.CheckConstraint("end_time > start_time", name="ck_bookings_window"),
        sa.CheckConstraint(
            "status IN ('confirmed', 'cancelled', 'completed')",
            name="ck_bookings_status",
        ),
    )
    op.create_index("ix_bookings_restaurant_date", "bookings", ["restaurant_id", "booking_date"])
    op.create_index(
        "uq_bookings_table_slot",
        "bookings",
        ["table_id", "booking_date", "start_time"],
        unique=True,
        postgresql_where=sa.text("status = 'confirmed'"),
    )

    # Half-open windows on one table may touch but never overlap.
    op.execute(
        """
        ALTER TABLE bookings
          ADD CONSTRAINT ex_bookings_table_window
          EXCLUDE USING gist (
            table_id WITH =,
            tsrange(booking_date + start_time, booking_date + end_time, '[)') WITH &&
          )
          WHERE (status = 'confirmed');
        """
    )


def downgrade() -> None:
    op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS ex_bookings_table_window;")
    op.drop_index("uq_bookings_table_slot", table_name="bookings")
    op.drop_index("ix_bookings_restaurant_date", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_tables_restaurant_id", table_name="tables")
    op.drop_table("tables")
    op.drop_table("restaurants")
    op.execute("DROP EXTENSION IF EXISTS btree_gist;")
