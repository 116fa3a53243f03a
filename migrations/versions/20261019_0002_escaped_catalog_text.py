"""widen escaped catalog text columns

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:02
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.drop_index("idx_books_tenant_title", table_name="books")
    with op.batch_alter_table("books") as batch_op:
        batch_op.alter_column("title", existing_type=sa.String(length=1000), type_=sa.Text(), existing_nullable=False)
        batch_op.alter_column("author", existing_type=sa.String(length=1000), type_=sa.Text(), existing_nullable=False)
    with op.batch_alter_table("categories") as batch_op:
        batch_op.alter_column("name", existing_type=sa.String(length=120), type_=sa.Text(), existing_nullable=False)


def downgrade() -> None:
    with op.batch_alter_table("categories") as batch_op:
        batch_op.alter_column("name", existing_type=sa.Text(), type_=sa.String(length=120), existing_nullable=False)
    with op.batch_alter_table("books") as batch_op:
        batch_op.alter_column("author", existing_type=sa.Text(), type_=sa.String(length=1000), existing_nullable=False)
        batch_op.alter_column("title", existing_type=sa.Text(), type_=sa.String(length=1000), existing_nullable=False)
    op.create_index("idx_books_tenant_title", "books", ["tenant_id", "title"])
