"""Initial schema: customers, drivers, corridors, trips and the audit log.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    # ── customers ─────────────────────────────────────────────────────
    op.create_table(
        "customers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("full_name", sa.String(120), nullable=False),
        sa.Column("phone_number", sa.String(32), unique=True, nullable=False),
        sa.Column("business_type", sa.String(120), nullable=True),
        *_timestamps(),
    )

    # ── corridors ─────────────────────────────────────────────────────
    op.create_table(
        "corridors",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(120), unique=True, nullable=False),
        *_timestamps(),
    )

    # ── drivers ───────────────────────────────────────────────────────
    op.create_table(
        "drivers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("full_name", sa.String(120), nullable=False),
        sa.Column("phone_number", sa.String(32), unique=True, nullable=False),
        sa.Column("vehicle_type", sa.String(60), nullable=False),
        sa.Column(
            "registration_number", sa.String(20), unique=True, nullable=False
        ),
        sa.Column("sacco_affiliation", sa.String(120), nullable=True),
        sa.Column(
            "reliability_score", sa.Integer, server_default="100", nullable=False
        ),
        *_timestamps(),
    )

    # ── driver_corridors ──────────────────────────────────────────────
    op.create_table(
        "driver_corridors",
        sa.Column(
            "driver_id",
            sa.String(36),
            sa.ForeignKey("drivers.id"),
            primary_key=True,
        ),
        sa.Column(
            "corridor_id",
            sa.String(36),
            sa.ForeignKey("corridors.id"),
            primary_key=True,
        ),
    )

    # ── trips ─────────────────────────────────────────────────────────
    op.create_table(
        "trips",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "customer_id",
            sa.String(36),
            sa.ForeignKey("customers.id"),
            nullable=False,
        ),
        sa.Column(
            "driver_id", sa.String(36), sa.ForeignKey("drivers.id"), nullable=True
        ),
        sa.Column("load_description", sa.Text, nullable=False),
        sa.Column("pickup_location", sa.Text, nullable=False),
        sa.Column("dropoff_location", sa.Text, nullable=False),
        sa.Column("pickup_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("agreed_fare", sa.Numeric(12, 2), nullable=True),
        sa.Column("platform_commission", sa.Numeric(12, 2), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "Pending",
                "Confirmed",
                "In Progress",
                "Completed",
                name="trip_status",
            ),
            server_default="Pending",
            nullable=False,
        ),
        sa.Column("customer_verified_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("driver_verified_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column(
            "commission_paid", sa.Boolean, server_default=sa.false(), nullable=False
        ),
        sa.Column(
            "commission_settled",
            sa.Boolean,
            server_default=sa.false(),
            nullable=False,
        ),
        sa.Column("version", sa.Integer, server_default="1", nullable=False),
        *_timestamps(),
        sa.CheckConstraint("agreed_fare IS NULL OR agreed_fare >= 0", name="ck_trips_fare"),
    )
    op.create_index("idx_trips_status", "trips", ["status"])
    op.create_index("idx_trips_driver", "trips", ["driver_id"])
    op.create_index("idx_trips_pickup_time", "trips", ["pickup_time"])
    op.create_index(
        "idx_trips_reconciliation", "trips", ["status", "commission_settled"]
    )

    # ── audit_log ─────────────────────────────────────────────────────
    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("table_name", sa.String(60), nullable=False),
        sa.Column("record_id", sa.String(36), nullable=False),
        sa.Column("action", sa.String(40), nullable=False),
        sa.Column("old_data", sa.JSON, nullable=True),
        sa.Column("new_data", sa.JSON, nullable=True),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_audit_record", "audit_log", ["table_name", "record_id"])
    op.create_index("idx_audit_created", "audit_log", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("trips")
    op.drop_table("driver_corridors")
    op.drop_table("drivers")
    op.drop_table("corridors")
    op.drop_table("customers")
    op.execute("DROP TYPE IF EXISTS trip_status")
