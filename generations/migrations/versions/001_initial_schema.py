"""Initial schema baseline

Revision ID: 001
Revises:
Create Date: 2026-01-27

Creates the users, generations and flashcards tables. For databases created
with init_db(), mark this migration as complete without running it:
    alembic stamp 001
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("created_at", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    # generations table
    op.create_table(
        "generations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("source_text", sa.Text(), nullable=False),
        sa.Column("model", sa.Text(), nullable=True),
        sa.Column("generation_duration", sa.Integer(), nullable=True),
        sa.Column("generated_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("generated_flashcards", sa.Text(), nullable=True),
        sa.Column("reviewed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("accepted_unedited_count", sa.Integer(), nullable=True),
        sa.Column("accepted_edited_count", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_generations_user_id", "generations", ["user_id"])

    # flashcards table
    op.create_table(
        "flashcards",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("generation_id", sa.Integer(), nullable=True),
        sa.Column("front", sa.Text(), nullable=False),
        sa.Column("back", sa.Text(), nullable=False),
        sa.Column("source", sa.Text(), nullable=False),
        sa.Column("created_at", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["generation_id"], ["generations.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_flashcards_user_id", "flashcards", ["user_id"])
    op.create_index("idx_flashcards_generation_id", "flashcards", ["generation_id"])


def downgrade() -> None:
    op.drop_index("idx_flashcards_generation_id", table_name="flashcards")
    op.drop_index("idx_flashcards_user_id", table_name="flashcards")
    op.drop_table("flashcards")
    op.drop_index("idx_generations_user_id", table_name="generations")
    op.drop_table("generations")
    op.drop_table("users")
