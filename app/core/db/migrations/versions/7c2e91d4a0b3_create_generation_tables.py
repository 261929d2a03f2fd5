"""create users, generations, flashcards and generation_error_logs

Revision ID: 7c2e91d4a0b3
Revises:
Create Date: 2025-10-23 09:12:41.530877

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "7c2e91d4a0b3"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("hashed_password", sa.String(length=1024), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_superuser", sa.Boolean(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)

    op.create_table(
        "generations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("model", sa.String(), nullable=False),
        sa.Column("generated_count", sa.Integer(), nullable=False),
        sa.Column("accepted_unedited_count", sa.Integer(), nullable=True),
        sa.Column("accepted_edited_count", sa.Integer(), nullable=True),
        sa.Column("source_text_hash", sa.String(), nullable=False),
        sa.Column("source_text_length", sa.Integer(), nullable=False),
        sa.Column("generation_duration", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "source_text_length BETWEEN 1000 AND 10000",
            name="ck_generations_source_text_length",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_generations_id"), "generations", ["id"], unique=False)
    op.create_index(
        op.f("ix_generations_user_id"), "generations", ["user_id"], unique=False
    )

    op.create_table(
        "flashcards",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("front", sa.String(length=200), nullable=False),
        sa.Column("back", sa.String(length=500), nullable=False),
        sa.Column("source", sa.String(), nullable=False),
        sa.Column("generation_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "source IN ('ai-full', 'ai-edited', 'manual')",
            name="ck_flashcards_source",
        ),
        sa.ForeignKeyConstraint(
            ["generation_id"], ["generations.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_flashcards_id"), "flashcards", ["id"], unique=False)
    op.create_index(
        op.f("ix_flashcards_generation_id"),
        "flashcards",
        ["generation_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_flashcards_user_id"), "flashcards", ["user_id"], unique=False
    )

    op.create_table(
        "generation_error_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("model", sa.String(), nullable=False),
        sa.Column("source_text_hash", sa.String(), nullable=False),
        sa.Column("source_text_length", sa.Integer(), nullable=False),
        sa.Column("error_code", sa.String(length=100), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "source_text_length BETWEEN 1000 AND 10000",
            name="ck_generation_error_logs_source_text_length",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_generation_error_logs_id"),
        "generation_error_logs",
        ["id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_generation_error_logs_user_id"),
        "generation_error_logs",
        ["user_id"],
        unique=False,
    )

    # updated_at is maintained by the ORM (onupdate); keep raw SQL writers honest too
    op.execute(
        """
        CREATE OR REPLACE FUNCTION set_updated_at() RETURNS trigger AS $$
        BEGIN
          NEW.updated_at = now();
          RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
        """
    )
    for table in ("generations", "flashcards"):
        op.execute(
            f"CREATE TRIGGER trg_{table}_updated_at BEFORE UPDATE ON {table} "
            "FOR EACH ROW EXECUTE FUNCTION set_updated_at()"
        )


def downgrade() -> None:
    """Downgrade schema."""
    for table in ("generations", "flashcards"):
        op.execute(f"DROP TRIGGER IF EXISTS trg_{table}_updated_at ON {table}")
    op.execute("DROP FUNCTION IF EXISTS set_updated_at()")
    op.drop_index(
        op.f("ix_generation_error_logs_user_id"), table_name="generation_error_logs"
    )
    op.drop_index(
        op.f("ix_generation_error_logs_id"), table_name="generation_error_logs"
    )
    op.drop_table("generation_error_logs")
    op.drop_index(op.f("ix_flashcards_user_id"), table_name="flashcards")
    op.drop_index(op.f("ix_flashcards_generation_id"), table_name="flashcards")
    op.drop_index(op.f("ix_flashcards_id"), table_name="flashcards")
    op.drop_table("flashcards")
    op.drop_index(op.f("ix_generations_user_id"), table_name="generations")
    op.drop_index(op.f("ix_generations_id"), table_name="generations")
    op.drop_table("generations")
    op.drop_index(op.f("ix_users_id"), table_name="users")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
