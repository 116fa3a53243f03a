"""baseline schema: tenants, memberships, catalog and loans

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("slug", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("logo", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )

    op.create_table(
        "tenant_settings",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("loan_days", sa.Integer(), nullable=False),
        sa.Column("max_loans", sa.Integer(), nullable=False),
        sa.Column("max_renewals", sa.Integer(), nullable=False),
        sa.Column("fine_per_day", sa.Float(), nullable=False),
        sa.Column("max_fine", sa.Float(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id"),
    )

    op.create_table(
        "memberships",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("identity_ref", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=True),
        sa.Column(
            "role",
            sa.Enum("DEVELOPER", "ADMIN", "MEMBER", name="membership_role", native_enum=False),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum("PENDING", "APPROVED", "REJECTED", name="membership_status", native_enum=False),
            nullable=False,
        ),
        sa.Column("is_main_admin", sa.Boolean(), nullable=False),
        sa.Column("class_name", sa.String(length=10), nullable=True),
        sa.Column("section", sa.String(length=10), nullable=True),
        sa.Column("student_number", sa.String(length=20), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "NOT (role = 'MEMBER' AND status = 'APPROVED' AND tenant_id IS NULL)",
            name="ck_memberships_approved_member_has_tenant",
        ),
        sa.CheckConstraint(
            "role != 'DEVELOPER' OR tenant_id IS NULL",
            name="ck_memberships_developer_without_tenant",
        ),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("identity_ref"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_memberships_tenant_id", "memberships", ["tenant_id"])
    op.create_index("idx_memberships_tenant_status", "memberships", ["tenant_id", "status"])
    op.create_index("idx_memberships_tenant_student_number", "memberships", ["tenant_id", "student_number"])
    op.create_index(
        "uq_memberships_main_admin",
        "memberships",
        ["tenant_id"],
        unique=True,
        sqlite_where=sa.text("is_main_admin = 1"),
        postgresql_where=sa.text("is_main_admin"),
    )

    op.create_table(
        "categories",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("slug", sa.String(length=60), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("icon", sa.String(length=60), nullable=True),
        sa.Column("color", sa.String(length=20), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_categories_tenant_slug"),
    )
    op.create_index("ix_categories_tenant_id", "categories", ["tenant_id"])

    op.create_table(
        "books",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("category_id", sa.String(length=36), nullable=True),
        sa.Column("title", sa.String(length=1000), nullable=False),
        sa.Column("author", sa.String(length=1000), nullable=False),
        sa.Column("isbn", sa.String(length=20), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cover_image", sa.String(length=500), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("available", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("available >= 0", name="ck_books_available_non_negative"),
        sa.CheckConstraint("available <= quantity", name="ck_books_available_within_quantity"),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_books_tenant_id", "books", ["tenant_id"])
    op.create_index("idx_books_tenant_title", "books", ["tenant_id", "title"])
    op.create_index("idx_books_tenant_category", "books", ["tenant_id", "category_id"])

    op.create_table(
        "loans",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("member_id", sa.String(length=36), nullable=False),
        sa.Column("book_id", sa.String(length=36), nullable=False),
        sa.Column(
            "status",
            sa.Enum("ACTIVE", "RETURNED", name="loan_status", native_enum=False),
            nullable=False,
        ),
        sa.Column("borrowed_at", sa.DateTime(), nullable=False),
        sa.Column("due_at", sa.DateTime(), nullable=False),
        sa.Column("returned_at", sa.DateTime(), nullable=True),
        sa.Column("renew_count", sa.Integer(), nullable=False),
        sa.Column("fine_amount", sa.Float(), nullable=False),
        sa.Column("fine_paid", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["member_id"], ["memberships.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["book_id"], ["books.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_loans_tenant_id", "loans", ["tenant_id"])
    op.create_index("idx_loans_tenant_status", "loans", ["tenant_id", "status"])
    op.create_index("idx_loans_member_status", "loans", ["member_id", "status"])

    op.create_table(
        "favorites",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("member_id", sa.String(length=36), nullable=False),
        sa.Column("book_id", sa.String(length=36), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["member_id"], ["memberships.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["book_id"], ["books.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("member_id", "book_id", name="uq_favorites_member_book"),
    )
    op.create_index("ix_favorites_tenant_id", "favorites", ["tenant_id"])


def downgrade() -> None:
    op.drop_table("favorites")
    op.drop_table("loans")
    op.drop_table("books")
    op.drop_table("categories")
    op.drop_index("uq_memberships_main_admin", table_name="memberships")
    op.drop_table("memberships")
    op.drop_table("tenant_settings")
    op.drop_table("tenants")
