"""Initial tables for users, listings, reviews, inquiries, and activity logs.

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("role", sa.String(length=20), server_default="User", nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("idx_users_created", "users", ["created_at"], unique=False)

    op.create_table(
        "listings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=False),
        sa.Column("price", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("facilities", sa.Text(), nullable=True),
        sa.Column("owner_id", sa.Integer(), nullable=True),
        sa.Column(
            "status", sa.String(length=20), server_default="Pending", nullable=False
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "rating",
            sa.Numeric(precision=3, scale=2),
            server_default="0",
            nullable=False,
        ),
        sa.Column("review_count", sa.Integer(), server_default="0", nullable=False),
        _created_at(),
        _created_at("last_updated"),
        sa.CheckConstraint("price >= 0", name="ck_listings_price_non_negative"),
        sa.ForeignKeyConstraint(
            ["owner_id"],
            ["users.id"],
            name="fk_listings_owner_id_users",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_listings"),
    )
    op.create_index("idx_listings_owner", "listings", ["owner_id"], unique=False)
    op.create_index("idx_listings_status", "listings", ["status"], unique=False)
    op.create_index("idx_listings_created", "listings", ["created_at"], unique=False)

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("listing_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("text", sa.String(length=1000), nullable=True),
        _created_at(),
        _created_at("updated_at"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
        sa.ForeignKeyConstraint(
            ["listing_id"],
            ["listings.id"],
            name="fk_reviews_listing_id_listings",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_reviews_user_id_users"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_reviews"),
        sa.UniqueConstraint("listing_id", "user_id", name="uq_reviews_listing_user"),
    )
    op.create_index("idx_reviews_listing", "reviews", ["listing_id"], unique=False)
    op.create_index("idx_reviews_created", "reviews", ["created_at"], unique=False)

    op.create_table(
        "inquiries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("listing_id", sa.Integer(), nullable=False),
        sa.Column("from_user_id", sa.Integer(), nullable=True),
        sa.Column("message", sa.String(length=2000), nullable=False),
        sa.Column(
            "owner_seen", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["listing_id"],
            ["listings.id"],
            name="fk_inquiries_listing_id_listings",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["from_user_id"], ["users.id"], name="fk_inquiries_from_user_id_users"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_inquiries"),
    )
    op.create_index(
        "idx_inquiries_listing", "inquiries", ["listing_id"], unique=False
    )
    op.create_index(
        "idx_inquiries_created", "inquiries", ["created_at"], unique=False
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("kind", sa.String(length=32), nullable=False),
        sa.Column("actor_user_id", sa.Integer(), nullable=True),
        sa.Column("listing_id", sa.Integer(), nullable=True),
        sa.Column("review_id", sa.Integer(), nullable=True),
        sa.Column("inquiry_id", sa.Integer(), nullable=True),
        sa.Column("meta", sa.Text(), nullable=True),
        _created_at("at"),
        sa.PrimaryKeyConstraint("id", name="pk_activity_logs"),
    )
    op.create_index("idx_activity_logs_at", "activity_logs", ["at"], unique=False)
    op.create_index(
        "idx_activity_logs_listing", "activity_logs", ["listing_id"], unique=False
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("idx_activity_logs_listing", table_name="activity_logs")
    op.drop_index("idx_activity_logs_at", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("idx_inquiries_created", table_name="inquiries")
    op.drop_index("idx_inquiries_listing", table_name="inquiries")
    op.drop_table("inquiries")
    op.drop_index("idx_reviews_created", table_name="reviews")
    op.drop_index("idx_reviews_listing", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("idx_listings_created", table_name="listings")
    op.drop_index("idx_listings_status", table_name="listings")
    op.drop_index("idx_listings_owner", table_name="listings")
    op.drop_table("listings")
    op.drop_index("idx_users_created", table_name="users")
    op.drop_table("users")
