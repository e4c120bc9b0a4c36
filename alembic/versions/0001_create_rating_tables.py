"""create accounts, profiles, trips and ratings

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

TRIP_STATUSES = (
    "DRAFT",
    "SEARCHING",
    "MATCHED",
    "DRIVER_ASSIGNED",
    "DRIVER_EN_ROUTE",
    "DRIVER_ARRIVED",
    "IN_PROGRESS",
    "COMPLETED",
    "CANCELED",
    "NO_DRIVERS",
)
RATING_DIRECTIONS = ("DRIVER_TO_PASSENGER", "PASSENGER_TO_DRIVER")


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_type", sa.String(20), nullable=False),
        sa.Column("email", sa.String(190), unique=True),
        sa.Column("phone_e164", sa.String(32), unique=True),
        sa.Column("first_name", sa.String(100)),
        sa.Column("last_name", sa.String(100)),
        sa.Column("avatar_url", sa.String(500)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_accounts_email", "accounts", ["email"])

    for table in ("driver_profiles", "passenger_profiles"):
        columns = [
            sa.Column(
                "account_id",
                sa.String(36),
                sa.ForeignKey("accounts.id", ondelete="CASCADE"),
                primary_key=True,
            ),
        ]
        if table == "driver_profiles":
            columns += [
                sa.Column("license_number", sa.String(64)),
                sa.Column("verification_state", sa.String(20), nullable=False, server_default="PENDING"),
            ]
        columns += [
            sa.Column("rating_avg", sa.Float, nullable=False, server_default="0"),
            sa.Column("rating_count", sa.Integer, nullable=False, server_default="0"),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        ]
        op.create_table(table, *columns)

    op.create_table(
        "trips",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("passenger_id", sa.String(36), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("driver_id", sa.String(36), sa.ForeignKey("accounts.id")),
        sa.Column("status", sa.Enum(*TRIP_STATUSES, name="trip_status"), nullable=False),
        sa.Column("pickup_address", sa.String(255)),
        sa.Column("dropoff_address", sa.String(255)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_trips_driver_status", "trips", ["driver_id", "status"])
    op.create_index("ix_trips_passenger_id", "trips", ["passenger_id"])

    op.create_table(
        "ratings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("trip_id", sa.String(36), sa.ForeignKey("trips.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rated_by", sa.String(36), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rated_user", sa.String(36), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("direction", sa.Enum(*RATING_DIRECTIONS, name="rating_direction"), nullable=False),
        sa.Column("stars", sa.Integer, nullable=False),
        sa.Column("comment", sa.Text),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("trip_id", "direction", name="uq_ratings_trip_direction"),
        sa.CheckConstraint("stars >= 1 AND stars <= 5", name="check_stars_range"),
    )
    op.create_index("ix_ratings_rated_user", "ratings", ["rated_user"])
    op.create_index("ix_ratings_rated_by", "ratings", ["rated_by"])


def downgrade() -> None:
    op.drop_index("ix_ratings_rated_by", table_name="ratings")
    op.drop_index("ix_ratings_rated_user", table_name="ratings")
    op.drop_table("ratings")
    op.drop_index("ix_trips_passenger_id", table_name="trips")
    op.drop_index("ix_trips_driver_status", table_name="trips")
    op.drop_table("trips")
    op.drop_table("passenger_profiles")
    op.drop_table("driver_profiles")
    op.drop_index("ix_accounts_email", table_name="accounts")
    op.drop_table("accounts")
    sa.Enum(name="rating_direction").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="trip_status").drop(op.get_bind(), checkfirst=True)
