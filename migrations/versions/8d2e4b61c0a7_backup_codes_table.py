"""Move backup codes from users.backup_codes into their own table

Revision ID: 8d2e4b61c0a7
Revises: 3f1c9a2b7d40
Create Date: 2026-10-19 09:41:07.215630
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "8d2e4b61c0a7"
down_revision = "3f1c9a2b7d40"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "backup_codes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("code_hash", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_backup_codes_user_id", "backup_codes", ["user_id"])

    # bestehende Codes verfallen; betroffene User richten TOTP neu ein
    with op.batch_alter_table("users") as batch:
        batch.drop_column("backup_codes")


def downgrade() -> None:
    with op.batch_alter_table("users") as batch:
        batch.add_column(sa.Column("backup_codes", sa.JSON(), nullable=False, server_default="[]"))

    op.drop_index("ix_backup_codes_user_id", table_name="backup_codes")
    op.drop_table("backup_codes")
