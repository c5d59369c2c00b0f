"""Create users, book catalog and transaction ticket tables

Revision ID: 001
Revises: None
Create Date: 2024-03-01 00:00:00.000000+00:00

What:  Initial schema: users, book_categories, books, transaction_tickets.
How:   String(36) UUID keys generated by the application, so the same
       migration runs on PostgreSQL and SQLite.

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False, comment="UUID4 identifier (string form)"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("gender", sa.String(50), nullable=True),
        sa.Column("dob", sa.String(50), nullable=True),
        sa.Column("contact", sa.String(50), nullable=True),
        sa.Column("photo", sa.String(1024), nullable=False, server_default=sa.text("''")),
        sa.Column("email", sa.String(50), nullable=False),
        sa.Column("password", sa.String(255), nullable=False, comment="bcrypt hash"),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'user'")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    # Unique index backs the duplicate-email check and login lookups
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "book_categories",
        sa.Column("id", sa.String(36), nullable=False, comment="UUID4 identifier (string form)"),
        sa.Column("category", sa.String(255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("category"),
    )

    op.create_table(
        "books",
        sa.Column("id", sa.String(36), nullable=False, comment="UUID4 identifier (string form)"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("author", sa.String(255), nullable=False),
        sa.Column("image", sa.String(1024), nullable=False, server_default=sa.text("''")),
        sa.Column("language", sa.String(100), nullable=False, server_default=sa.text("''")),
        sa.Column("publisher", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("category_id", sa.String(36), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["category_id"], ["book_categories.id"], ondelete="SET NULL"
        ),
    )
    op.create_index("idx_books_category_id", "books", ["category_id"])

    # book_id / borrower_id / approved_by carry no foreign keys: tickets may
    # reference a book that does not exist yet and outlive deleted users
    op.create_table(
        "transaction_tickets",
        sa.Column("id", sa.String(36), nullable=False, comment="UUID4 identifier (string form)"),
        sa.Column("book_id", sa.String(36), nullable=False),
        sa.Column("borrower_id", sa.String(36), nullable=False),
        sa.Column("transaction_type", sa.String(20), nullable=False),
        sa.Column("issue_date", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("due_date", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("return_date", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "status", sa.String(20), nullable=False, server_default=sa.text("'pending'")
        ),
        sa.Column("approved_by", sa.String(36), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_tickets_status_borrower", "transaction_tickets", ["status", "borrower_id"]
    )
    op.create_index(
        "idx_tickets_book_status", "transaction_tickets", ["book_id", "status"]
    )


def downgrade() -> None:
    op.drop_index("idx_tickets_book_status", table_name="transaction_tickets")
    op.drop_index("idx_tickets_status_borrower", table_name="transaction_tickets")
    op.drop_table("transaction_tickets")
    op.drop_index("idx_books_category_id", table_name="books")
    op.drop_table("books")
    op.drop_table("book_categories")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
